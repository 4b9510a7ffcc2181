"""
Custom exception classes for DocVault.

This module defines a hierarchy of custom exceptions that map to HTTP status codes
and provide consistent error responses across the API.

Exception hierarchy:
    AppException (base)
    ├── ForbiddenError (403)
    ├── ResourceError
    │   ├── NotFoundError (404)
    │   ├── AlreadyExistsError (409)
    │   └── ConflictError (409)
    └── ValidationError (422)

Authentication failures are deliberately collapsed into ForbiddenError: the
message is fixed and carries no details, whatever step failed.
"""

from typing import Any


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    Attributes:
        status_code: HTTP status code for the error
        error_code: Machine-readable error code
        message: Human-readable error message
        details: Optional additional error details
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for JSON response.

        Returns:
            Dictionary with error information
        """
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            }
        }


# =============================================================================
# Authorization Errors (403 Forbidden)
# =============================================================================


class ForbiddenError(AppException):
    """
    Raised for any authentication or authorization failure.

    Bad password, bad TOTP code, missing session and missing capability all
    produce the same response.
    """

    def __init__(self) -> None:
        super().__init__(
            message="You don't have access to this resource",
            status_code=403,
            error_code="ForbiddenError",
        )


# =============================================================================
# Resource Errors
# =============================================================================


class ResourceError(AppException):
    """Base class for resource-related errors."""

    def __init__(
        self,
        message: str,
        status_code: int,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=status_code,
            error_code=error_code,
            details=details,
        )


class NotFoundError(ResourceError):
    """Raised when a requested resource is absent or soft-deleted."""

    def __init__(
        self,
        resource: str = "Resource",
        message: str | None = None,
        error_code: str = "NOT_FOUND",
        details: dict[str, Any] | None = None,
    ) -> None:
        if message is None:
            message = f"{resource} not found"
        super().__init__(
            message=message,
            status_code=404,
            error_code=error_code,
            details=details,
        )


class AlreadyExistsError(ResourceError):
    """Raised when attempting to create a resource that already exists."""

    def __init__(
        self,
        resource: str = "Resource",
        message: str | None = None,
        error_code: str = "ALREADY_EXISTS",
        details: dict[str, Any] | None = None,
    ) -> None:
        if message is None:
            message = f"{resource} already exists"
        super().__init__(
            message=message,
            status_code=409,
            error_code=error_code,
            details=details,
        )


class ConflictError(ResourceError):
    """Raised when a business rule forbids the requested change."""

    def __init__(
        self,
        message: str = "Resource conflict",
        error_code: str = "CONFLICT",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=409,
            error_code=error_code,
            details=details,
        )


# =============================================================================
# Validation Errors (422 Unprocessable Entity)
# =============================================================================


class ValidationError(AppException):
    """Raised when an input field is missing, malformed or out of range."""

    def __init__(
        self,
        field: str,
        reason: str,
        error_code: str = "VALIDATION_ERROR",
    ) -> None:
        super().__init__(
            message=f"{field}: {reason}",
            status_code=422,
            error_code=error_code,
            details={"field": field, "reason": reason},
        )
        self.field = field
        self.reason = reason
