"""Exceptions raised by the simulation engine."""


class SimulationError(Exception):
    """Base exception for simulation errors."""
    pass


class InvariantViolation(SimulationError):
    """A player action was rejected; game state is unchanged."""
    pass


class InsufficientCashError(InvariantViolation):
    """Spending more cash than the player holds."""
    pass


class InsufficientUnitsError(InvariantViolation):
    """Selling more units than the player holds."""
    pass


class HoldingsFrozenError(InsufficientUnitsError):
    """Selling units that are locked by an account freeze."""
    pass


class InvalidActionError(InvariantViolation):
    """Malformed action (non-positive amount, unknown type, rugged target)."""
    pass


class AssetNotFoundError(SimulationError):
    """Referenced asset does not exist."""
    pass


class InvalidStateTransition(SimulationError):
    """Lifecycle action not allowed in the current simulation status."""
    pass
