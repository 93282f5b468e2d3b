"""Domain errors raised by the service layer.

Each error maps to one HTTP status in ``app.main``; the message is returned to
the client as ``detail``.
"""


class BookingError(Exception):
    """Base class for all domain errors."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    """Malformed input: bad interval, missing fields, illegal transition."""
    status_code = 400


class NotFoundError(BookingError):
    """Unknown equipment, reservation, user, grant or log entry."""
    status_code = 404


class ConflictError(BookingError):
    """Interval overlap, or restore onto an occupied slot."""
    status_code = 409


class AuthorizationError(BookingError):
    """Insufficient role or permission level, or non-owner mutation."""
    status_code = 403
