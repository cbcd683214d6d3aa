class MnemosError(Exception):
    """Base exception for the scheduling engine."""
    pass


class SessionStateError(MnemosError):
    """Raised when a session operation is invoked in a state that forbids it.

    This is a caller-side invariant violation (e.g. rating with an empty queue),
    not a condition to recover from.
    """
    pass


class StoreError(MnemosError):
    """Base class for failures of the persistent card store."""
    pass


class StoreUnavailableError(StoreError):
    """Raised when cards cannot be loaded from the store."""
    pass


class PersistenceError(StoreError):
    """Raised when an updated card cannot be written back to the store."""
    pass


class ForecastUnavailableError(MnemosError):
    """Raised when the authoritative forecast source cannot answer."""
    pass
