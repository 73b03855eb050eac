"""
Seeded pseudo-random number generator.

Every random decision in the simulation is drawn from one SeededRNG owned by
the running game. The whole generator state is a single 32-bit integer, so a
saved game stores it and resumes the exact same future sequence.

Example:
    >>> rng = SeededRNG("test-1")
    >>> rng.range(0.7, 0.8)
    >>> saved = rng.get_state()
    >>> rng.set_state(saved)
"""

import math
from typing import List, Sequence, TypeVar, Union

T = TypeVar("T")

UINT32_MASK = 0xFFFFFFFF
TWO_POW_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    """32-bit integer multiply (low 32 bits of the product)."""
    return (a * b) & UINT32_MASK


def hash_seed(seed: Union[int, str]) -> int:
    """
    Reduce a seed to a 32-bit integer.

    Integers are masked to 32 bits. Strings are hashed with FNV-1a so that
    human-readable seeds like "test-1" are stable across runs.

    Args:
        seed: Integer or string seed

    Returns:
        Unsigned 32-bit seed value
    """
    if isinstance(seed, bool):
        raise TypeError("seed must be an int or str")
    if isinstance(seed, int):
        return seed & UINT32_MASK
    if isinstance(seed, str):
        h = 0x811C9DC5
        for byte in seed.encode("utf-8"):
            h ^= byte
            h = _imul(h, 0x01000193)
        return h
    raise TypeError("seed must be an int or str")


class SeededRNG:
    """
    Deterministic float source in [0, 1).

    Attributes:
        seed: The 32-bit seed the generator was created with.
    """

    def __init__(self, seed: Union[int, str] = 0):
        self.seed = hash_seed(seed)
        self._state = self.seed

    def get_state(self) -> int:
        """Current 32-bit state for persistence."""
        return self._state

    def set_state(self, state: int) -> None:
        """Restore a state previously returned by get_state()."""
        self._state = int(state) & UINT32_MASK

    def fork(self, salt: Union[int, str]) -> "SeededRNG":
        """
        Independent generator derived from this generator's seed and a salt.

        Drawing from the fork never advances this generator.
        """
        return SeededRNG(f"{self.seed}:{salt}")

    def next(self) -> float:
        """Advance the state and return a float in [0, 1)."""
        self._state = (self._state + 0x6D2B79F5) & UINT32_MASK
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & UINT32_MASK
        return ((t ^ (t >> 14)) & UINT32_MASK) / TWO_POW_32

    def range(self, min_value: float, max_value: float) -> float:
        """Uniform float in [min_value, max_value)."""
        return min_value + self.next() * (max_value - min_value)

    def int(self, min_value: int, max_value: int) -> int:
        """Uniform integer in [min_value, max_value], both inclusive."""
        return int(math.floor(self.range(min_value, max_value + 1)))

    def chance(self, probability: float) -> bool:
        """True with the given probability."""
        return self.next() < probability

    def pick(self, items: Sequence[T]) -> T:
        """
        Pick one element uniformly.

        Raises:
            ValueError: If items is empty
        """
        if not items:
            raise ValueError("Cannot pick from an empty sequence")
        return items[self.int(0, len(items) - 1)]

    def normal(self, mean: float = 0.0, std_dev: float = 1.0) -> float:
        """Gaussian sample via the Box-Muller transform (two draws)."""
        # 1 - u keeps the log argument in (0, 1]
        u1 = 1.0 - self.next()
        u2 = self.next()
        z0 = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
        return z0 * std_dev + mean

    def shuffle(self, items: List[T]) -> List[T]:
        """Return a Fisher-Yates shuffled copy of items."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.int(0, i)
            result[i], result[j] = result[j], result[i]
        return result

