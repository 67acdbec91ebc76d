"""Exceptions raised by the health tracker core."""


class HealthTrackerError(Exception):
    """Base exception for health tracker errors."""


class StorageFault(HealthTrackerError):
    """Raised when the store is unreachable or a transaction aborts.

    Nothing from the failed transaction is committed, so callers may retry.
    """


class ValidationFault(HealthTrackerError):
    """Raised for malformed input before any write is attempted."""
