# backend/bookingcore/exceptions.py
"""
Errors raised by the availability and booking engine.

Raised in services/* and translated to HTTP responses in main.py.
"""


class BookingEngineError(Exception):
    """Base exception for all engine errors."""
    pass


class ValidationError(BookingEngineError):
    """Malformed input: missing tenant, unknown service, date out of window."""
    pass


class InvalidTransition(ValidationError):
    """Booking status change not allowed by the state machine."""
    pass


class NotFound(BookingEngineError):
    """Entity does not exist for this tenant."""
    pass


class SlotConflict(BookingEngineError):
    """The chosen slot became unavailable between read and commit. Re-query."""

    def __init__(self, message: str, conflicting_time: str | None = None):
        super().__init__(message)
        self.conflicting_time = conflicting_time


class CommitTimeout(BookingEngineError):
    """Store unreachable or commit exceeded its bound. Retry with the same idempotency key."""
    pass


class ConfigMissing(BookingEngineError):
    """Tenant has no schedule settings yet."""
    pass
