"""Exception types raised at the recurring order boundaries."""


class RecurringOrderError(Exception):
    """Base class for recurring order execution errors."""


class ProviderError(RecurringOrderError):
    """The due-orders lookup failed."""


class MaterializationError(RecurringOrderError):
    """The host could not create a concrete order from a recurring definition."""


class PersistenceError(RecurringOrderError):
    """The execution log could not be read or written."""


class ServiceNotStartedError(RecurringOrderError):
    """A host collaborator is needed but the service was never started."""

    def __init__(self, message: str = "Recurring order service not properly initialized") -> None:
        super().__init__(message)
