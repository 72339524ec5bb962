"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error responses across the API
- Machine-readable error codes for client handling
- An HTTP status carried by each error class

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Missing or invalid input
    ├── AuthError - Caller identity cannot be resolved
    ├── NotFoundError - Resource not found
    ├── ConflictError - State conflicts (duplicates, concurrent modifications)
    └── ExternalServiceError - Third-party service failures

Usage:
    from core.exceptions import ValidationError, NotFoundError

    # Raise with message only
    raise ValidationError("Please pass required all parameters.")

    # Raise with error code for client handling
    raise NotFoundError("Plan not found.", error_code="PLAN_NOT_FOUND")

    # Convert to dict for API response
    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=e.http_status)

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (parsing, authentication, etc.).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, identifiers, etc.)
        http_status: Status code views answer with when this error escapes
            a service call

    Example:
        try:
            CheckoutService.create_checkout_session(user=user, ...)
        except BaseApplicationError as e:
            logger.warning(f"Checkout rejected: {e.error_code}")
            return Response(e.to_dict(), status=e.http_status)
    """

    default_error_code: str = "APPLICATION_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error, error_code, and details keys

        Example:
            {
                "error": "Subscription already exist.",
                "error_code": "SUBSCRIPTION_EXISTS",
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for:
    - Missing required request parameters
    - Values outside the accepted set (e.g. an unknown checkout type)

    Example:
        raise ValidationError(
            "Please pass valid type",
            details={"type": ["Only 'trial' is accepted."]},
        )

    Note:
        DRF serializer errors are converted into this exception by the
        payments views so that every 400 shares the same body shape.
    """

    default_error_code: str = "VALIDATION_ERROR"
    http_status: int = 400


class AuthError(BaseApplicationError):
    """
    Raised when the caller's identity cannot be resolved.

    Authentication itself (token parsing) is handled by DRF. This covers
    the case where a token was accepted but the user record behind it is
    gone or deactivated.
    """

    default_error_code: str = "AUTH_ERROR"
    http_status: int = 401


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Example:
        subscription = Subscription.objects.current_for(user).first()
        if not subscription:
            raise NotFoundError(
                "Subscription does not exist.",
                details={"subscription_id": subscription_id},
            )
    """

    default_error_code: str = "NOT_FOUND"
    http_status: int = 404


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Use for:
    - Duplicate entries (a second live subscription)
    - Invalid state transitions
    """

    default_error_code: str = "CONFLICT"
    http_status: int = 409


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Use for:
    - Stripe API failures
    - Network timeouts

    Note:
        Log the original error for debugging but don't expose
        internal details to clients in production.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    http_status: int = 502
