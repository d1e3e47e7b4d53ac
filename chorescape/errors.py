"""
Application error taxonomy.

Services raise these, the handlers registered in main.py turn them into the
`{message, data}` response body. Anything that is not an AppError is an
internal error.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base class for errors that map onto an HTTP status"""

    status_code = 500

    def __init__(self, message: str, data: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.data = data


class ValidationError(AppError):
    """Missing or malformed input"""

    status_code = 400


class InvalidTransitionError(ValidationError):
    """Booking status does not satisfy the action's precondition"""

    def __init__(self, message: str, current: str, expected: list[str]):
        super().__init__(message, data={"currentStatus": current, "expectedStatus": expected})
        self.current = current
        self.expected = expected


class UnauthenticatedError(AppError):
    status_code = 401


class AuthorizationError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class PayloadTooLargeError(AppError):
    status_code = 413


class UpstreamUnavailableError(AppError):
    """Datastore or identity provider could not be reached"""

    status_code = 503
