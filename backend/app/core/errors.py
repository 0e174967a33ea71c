"""
Typed failures raised by the catalog components.

Services and stores raise these; only the API layer (app.api.errors) turns
them into HTTP status codes and response envelopes.
"""
from typing import List, Optional

from fastapi import status


class CatalogError(Exception):
    """Base class for every failure the engine reports to a caller."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[str]] = None):
        self.message = message or self.default_message
        self.errors = list(errors) if errors else []
        super().__init__(self.message)


class ValidationError(CatalogError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"


class Unauthenticated(CatalogError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class MissingCredential(Unauthenticated):
    default_message = "Access token is required"


class InvalidCredential(Unauthenticated):
    default_message = "Invalid token"


class ExpiredCredential(Unauthenticated):
    default_message = "Token has expired"


class AccountNotFound(Unauthenticated):
    default_message = "User not found"


class AccountDeactivated(Unauthenticated):
    default_message = "User account is deactivated"


class Forbidden(CatalogError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission to access this resource"


class NotFound(CatalogError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class Conflict(CatalogError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource conflict detected"


class InternalError(CatalogError):
    pass


class DeadlineExceeded(InternalError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    default_message = "Request timed out"
