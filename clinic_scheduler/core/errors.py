"""Typed failures raised by the scheduling core.

Each error carries a human-readable ``detail`` and the HTTP-style
``status_code`` a calling layer should answer with.
"""


class SchedulingError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(SchedulingError):
    """Practitioner or booking does not exist."""
    status_code = 404


class InvalidIntervalError(SchedulingError):
    """Start is not before end, or the interval leaves the working window."""
    status_code = 400


class PractitionerUnavailableError(InvalidIntervalError):
    """The practitioner does not work on the requested weekday."""


class ConflictError(SchedulingError):
    """The requested interval overlaps an existing active booking."""
    status_code = 409


class ValidationError(SchedulingError):
    """Malformed input such as an unparseable time or unknown status."""
    status_code = 422


class ConcurrencyConflictError(SchedulingError):
    """The store rejected a write that raced with another booking.

    Callers should re-run the whole resolve, validate and write sequence
    rather than repeating the write.
    """
    status_code = 409


class StoreUnavailableError(SchedulingError):
    status_code = 503


DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'
