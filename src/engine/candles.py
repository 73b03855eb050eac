"""
Multi-resolution OHLC candle storage and aggregation.

Every trade produces one raw candle in ``today``. At the day boundary the raw
stream is compacted into fixed 5-minute buckets and one daily candle, which
are pushed into the coarser resolution windows. Each window is a bounded
sequence with a single append+evict operation; candles are immutable once
stored.

Resolutions:
    today      every trade of the live day (unbounded, cleared daily)
    yesterday  6 buckets of the previous day
    d5         last 5 days x 6 buckets
    m1         last 30 daily candles
    y1         last 365 daily candles
    y5         last 260 weekly candles (updated every 7th day)
"""

from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional

# Window capacities
YESTERDAY_CAPACITY = 6
D5_CAPACITY = 30
M1_CAPACITY = 30
Y1_CAPACITY = 365
Y5_CAPACITY = 260

BUCKETS_PER_DAY = 6
DAYS_PER_WEEK = 7


@dataclass(frozen=True)
class PriceCandle:
    """
    One OHLC aggregate over a time bucket.

    Attributes:
        tick: Tick within the day of the first trade in the bucket
        day: Simulation day the candle belongs to
        open: Price at bucket start
        high: Highest price in the bucket
        low: Lowest price in the bucket
        close: Price at bucket end
        volume: Number of trades aggregated into the candle
    """
    tick: int
    day: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @classmethod
    def flat(cls, tick: int, day: int, price: float) -> "PriceCandle":
        """Candle with no movement and no volume."""
        return cls(tick=tick, day=day, open=price, high=price, low=price, close=price, volume=0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tick": self.tick,
            "day": self.day,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PriceCandle":
        return cls(
            tick=int(data.get("tick", 0)),
            day=int(data.get("day", 0)),
            open=float(data["open"]),
            high=float(data["high"]),
            low=float(data["low"]),
            close=float(data["close"]),
            volume=float(data.get("volume") or 0.0),
        )


def aggregate(candles: List[PriceCandle]) -> PriceCandle:
    """
    Reduce an ordered list of candles to one.

    open is the first open, close the last close, high/low the extremes and
    volume the sum. tick and day come from the first candle. A single-entry
    list returns that entry unchanged.

    Args:
        candles: Candles in chronological order

    Returns:
        Aggregated candle

    Raises:
        ValueError: If candles is empty
    """
    if not candles:
        raise ValueError("Cannot aggregate an empty candle list")
    if len(candles) == 1:
        return candles[0]

    first = candles[0]
    return PriceCandle(
        tick=first.tick,
        day=first.day,
        open=first.open,
        high=max(c.high for c in candles),
        low=min(c.low for c in candles),
        close=candles[-1].close,
        volume=sum(c.volume for c in candles),
    )


class ResolutionWindow:
    """
    Bounded, ordered candle sequence for one chart resolution.

    Appending past capacity evicts from the oldest end.

    Attributes:
        capacity: Maximum number of candles retained
        bucket_ticks: Ticks covered by one candle at this resolution
    """

    def __init__(self, capacity: int, bucket_ticks: int, candles: Optional[Iterable[PriceCandle]] = None):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self.bucket_ticks = bucket_ticks
        self._candles: deque = deque(candles or [], maxlen=capacity)

    def append(self, candle: PriceCandle) -> None:
        """Push one candle, evicting the oldest when full."""
        self._candles.append(candle)

    def extend(self, candles: Iterable[PriceCandle]) -> None:
        """Push several candles in order."""
        self._candles.extend(candles)

    def replace(self, candles: Iterable[PriceCandle]) -> None:
        """Drop everything and keep only the given candles (newest kept)."""
        self._candles = deque(candles, maxlen=self.capacity)

    def last(self, n: int) -> List[PriceCandle]:
        """The newest n candles in chronological order."""
        if n <= 0:
            return []
        return list(self._candles)[-n:]

    @property
    def latest(self) -> Optional[PriceCandle]:
        return self._candles[-1] if self._candles else None

    def copy(self) -> "ResolutionWindow":
        return ResolutionWindow(self.capacity, self.bucket_ticks, self._candles)

    def to_list(self) -> List[Dict[str, Any]]:
        return [c.to_dict() for c in self._candles]

    def __len__(self) -> int:
        return len(self._candles)

    def __iter__(self) -> Iterator[PriceCandle]:
        return iter(self._candles)

    def __getitem__(self, index: int) -> PriceCandle:
        return self._candles[index]


def bucket_day(
    trades: List[PriceCandle],
    day: int,
    fallback_price: float,
    ticks_per_day: int = 1800,
    buckets: int = BUCKETS_PER_DAY,
) -> List[PriceCandle]:
    """
    Compact one day of raw trade candles into fixed-size buckets.

    Trades are assigned by tick (ticks start at 1). A bucket with no trades
    becomes a flat candle at the previous bucket's close, so the output
    always has exactly ``buckets`` entries.

    Args:
        trades: The day's raw candles in chronological order
        day: Day number stamped on the buckets
        fallback_price: Price used when the day had no trades at all
        ticks_per_day: Ticks in a trading day
        buckets: Number of buckets to produce

    Returns:
        List of bucket candles
    """
    bucket_ticks = max(1, ticks_per_day // buckets)
    grouped: List[List[PriceCandle]] = [[] for _ in range(buckets)]
    for trade in trades:
        index = min(buckets - 1, max(0, (trade.tick - 1) // bucket_ticks))
        grouped[index].append(trade)

    prev_close = trades[0].open if trades else fallback_price
    result = []
    for i, group in enumerate(grouped):
        if group:
            merged = aggregate(group)
            candle = PriceCandle(
                tick=i * bucket_ticks,
                day=day,
                open=merged.open,
                high=merged.high,
                low=merged.low,
                close=merged.close,
                volume=merged.volume,
            )
        else:
            candle = PriceCandle.flat(i * bucket_ticks, day, prev_close)
        result.append(candle)
        prev_close = candle.close
    return result


class PriceHistory:
    """
    Price history of one asset across all display resolutions.

    Attributes:
        today: Raw trade candles of the live day
        yesterday: Previous day in 5-minute buckets
        d5: Five days of 5-minute buckets
        m1: Thirty daily candles
        y1: One year of daily candles
        y5: Five years of weekly candles
    """

    def __init__(self, ticks_per_day: int = 1800):
        bucket_ticks = max(1, ticks_per_day // BUCKETS_PER_DAY)
        self.ticks_per_day = ticks_per_day
        self.today: List[PriceCandle] = []
        self.yesterday = ResolutionWindow(YESTERDAY_CAPACITY, bucket_ticks)
        self.d5 = ResolutionWindow(D5_CAPACITY, bucket_ticks)
        self.m1 = ResolutionWindow(M1_CAPACITY, ticks_per_day)
        self.y1 = ResolutionWindow(Y1_CAPACITY, ticks_per_day)
        self.y5 = ResolutionWindow(Y5_CAPACITY, ticks_per_day * DAYS_PER_WEEK)

    def record_trade(self, candle: PriceCandle) -> None:
        """Append one raw trade candle to today."""
        self.today.append(candle)

    def close_day(self, day: int, fallback_price: float) -> PriceCandle:
        """
        Compact today into every coarser resolution and clear it.

        Args:
            day: The day being closed
            fallback_price: Price used for flat candles when nothing traded

        Returns:
            The daily candle pushed into m1/y1
        """
        buckets = bucket_day(self.today, day, fallback_price, self.ticks_per_day)
        daily = aggregate(buckets)

        self.yesterday.replace(buckets)
        self.d5.extend(buckets)
        self.m1.append(daily)
        self.y1.append(daily)
        if day % DAYS_PER_WEEK == 0 and len(self.y1) > 0:
            self.y5.append(aggregate(self.y1.last(DAYS_PER_WEEK)))

        self.today = []
        return daily

    def copy(self) -> "PriceHistory":
        clone = PriceHistory(self.ticks_per_day)
        clone.today = list(self.today)
        clone.yesterday = self.yesterday.copy()
        clone.d5 = self.d5.copy()
        clone.m1 = self.m1.copy()
        clone.y1 = self.y1.copy()
        clone.y5 = self.y5.copy()
        return clone

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "today": [c.to_dict() for c in self.today],
            "yesterday": self.yesterday.to_list(),
            "d5": self.d5.to_list(),
            "m1": self.m1.to_list(),
            "y1": self.y1.to_list(),
            "y5": self.y5.to_list(),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], ticks_per_day: int = 1800) -> "PriceHistory":
        history = cls(ticks_per_day)
        if not data:
            return history
        history.today = [PriceCandle.from_dict(c) for c in data.get("today", [])]
        for name in ("yesterday", "d5", "m1", "y1", "y5"):
            window: ResolutionWindow = getattr(history, name)
            window.extend(PriceCandle.from_dict(c) for c in data.get(name, []))
        return history
