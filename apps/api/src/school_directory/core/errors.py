"""
Service Errors

Error taxonomy shared by all service layers. Each error carries a
machine-readable code and the HTTP status it maps to at the request
boundary. Handlers in main.py translate them into JSON bodies of the form:

    {"detail": {"error": "<CODE>", "message": "<text>", ...extra}}
"""

from typing import Any

from fastapi import status


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        extra: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.extra = extra or {}
        super().__init__(message)

    def to_detail(self) -> dict[str, Any]:
        """Body placed under the `detail` key of the error response."""
        return {"error": self.error_code, "message": self.message, **self.extra}


class ValidationError(ServiceError):
    """Raised for malformed or missing input."""

    def __init__(self, message: str, extra: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=status.HTTP_400_BAD_REQUEST,
            extra=extra,
        )


class ConflictError(ServiceError):
    """Raised when a unique resource already exists."""

    def __init__(self, message: str, error_code: str = "CONFLICT"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_409_CONFLICT,
        )


class AuthenticationRequiredError(ServiceError):
    """Raised when an operation needs a valid session and none was presented."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(
            message=message,
            error_code="AUTHENTICATION_REQUIRED",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class InvalidCredentialsError(ServiceError):
    """Raised for unknown email or wrong password. Both cases look identical."""

    def __init__(self):
        super().__init__(
            message="Invalid email or password",
            error_code="INVALID_CREDENTIALS",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class VerificationRequiredError(ServiceError):
    """Raised when valid credentials belong to an unverified account."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(
            message="Email not verified",
            error_code="EMAIL_NOT_VERIFIED",
            status_code=status.HTTP_403_FORBIDDEN,
            extra={"requiresVerification": True, "email": email},
        )


class ForbiddenError(ServiceError):
    """Raised when an authenticated user may not act on a resource."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message=message,
            error_code="FORBIDDEN",
            status_code=status.HTTP_403_FORBIDDEN,
        )


class NotFoundError(ServiceError):
    """Raised when a resource does not exist."""

    def __init__(self, message: str = "Resource not found", error_code: str = "NOT_FOUND"):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_404_NOT_FOUND,
        )


class InvalidOrExpiredError(ServiceError):
    """Raised when a one-time code is wrong, expired, or already used."""

    def __init__(self, message: str = "Invalid or expired OTP code"):
        super().__init__(
            message=message,
            error_code="INVALID_OR_EXPIRED_OTP",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class DeliveryError(ServiceError):
    """Raised when a notification could not be delivered."""

    def __init__(self, message: str = "Failed to send verification email. Please try again."):
        super().__init__(
            message=message,
            error_code="DELIVERY_FAILED",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


class InternalError(ServiceError):
    """Raised for unexpected failures. The message is always generic."""

    def __init__(self, message: str = "An unexpected error occurred. Please try again later."):
        super().__init__(
            message=message,
            error_code="INTERNAL_ERROR",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


__all__ = [
    "ServiceError",
    "ValidationError",
    "ConflictError",
    "AuthenticationRequiredError",
    "InvalidCredentialsError",
    "VerificationRequiredError",
    "ForbiddenError",
    "NotFoundError",
    "InvalidOrExpiredError",
    "DeliveryError",
    "InternalError",
]
