"""
Service-level exceptions.

This module contains the exceptions raised by the registry, the timeline
store and the exporters. Callers catch ``HealthKeyError`` to handle any of
them.
"""

class HealthKeyError(Exception):
    """Base exception for timeline engine errors."""
    pass

class UnknownEventTypeError(HealthKeyError):
    """Raised when an event type id is not registered."""
    pass

class UnknownCategoryError(HealthKeyError):
    """Raised when a category id is not registered."""
    pass

class NotFoundError(HealthKeyError):
    """Raised when a log event id does not exist."""
    pass

class AlreadyClosedError(HealthKeyError):
    """Raised when closing an event that already has an end time."""
    pass

class ProtectedEntityError(HealthKeyError):
    """Raised when deleting a built-in category or event type."""
    pass

class LastCategoryError(HealthKeyError):
    """Raised when deleting the only remaining category."""
    pass

class EmptyDayError(HealthKeyError):
    """Raised when exporting a day that has no events."""
    pass

class InvalidIntervalError(HealthKeyError):
    """Raised when an update would leave an end time before the start time."""
    pass

class PairingWindowExceededError(HealthKeyError):
    """Raised when a paired tap arrives after the pairing window closed."""
    pass

class StorageError(HealthKeyError):
    """Raised when a snapshot cannot be written to the key-value store."""
    pass
