"""
Domain error taxonomy.

Services raise these; the application maps each kind to its HTTP status
in one exception handler (see taskmanager.main).
"""

from fastapi import status


class ServiceError(Exception):
    """Base class for errors a service reports to the caller."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "An internal error occurred"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ServiceError):
    """Bad input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthError(ServiceError):
    """Bad credentials or token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication failed"


class Forbidden(ServiceError):
    """Authenticated but not permitted."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to perform this action"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"
