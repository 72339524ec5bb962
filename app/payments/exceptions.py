"""
Payment-specific exceptions for subscription checkout and cancellation.

Exception Hierarchy:
    ConflictError
    └── DuplicateSubscriptionError - User already holds a live subscription
    NotFoundError
    ├── PlanNotFoundError - No purchasable product/price on Stripe
    └── SubscriptionNotFoundError - No live subscription matches the request

    ExternalServiceError
    └── StripeError - Base for all Stripe errors
        ├── StripeCardDeclinedError - Card declined (permanent)
        ├── StripeInvalidRequestError - Invalid request params (permanent)
        ├── StripeAuthenticationError - Bad API key (permanent)
        ├── StripeRateLimitError - Rate limited (transient)
        ├── StripeAPIUnavailableError - API unavailable (transient)
        └── StripeTimeoutError - Request timeout (transient)

    WebhookSignatureError - Stripe-Signature header failed verification

HTTP statuses:
    The checkout endpoint has always answered a duplicate subscription and
    a missing plan with 401, and an unknown subscription on cancel with 400.
    Clients depend on those codes, so each class pins its own http_status.

Usage:
    from payments.exceptions import DuplicateSubscriptionError

    if Subscription.objects.current_for(user).exists():
        raise DuplicateSubscriptionError(
            "Subscription already exist.",
            details={"user_id": str(user.pk)},
        )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
)

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Subscription Domain Exceptions
# =============================================================================


class DuplicateSubscriptionError(ConflictError):
    """
    Raised when a user starts checkout while holding a current subscription.

    A subscription is current when its status is active or trialing and its
    end date has not passed.
    """

    default_error_code: str = "SUBSCRIPTION_EXISTS"
    http_status: int = 401


class PlanNotFoundError(NotFoundError):
    """
    Raised when Stripe returns no product with a default price.

    Checkout always sells the first product's default price, so an empty
    catalogue means there is nothing to sell.
    """

    default_error_code: str = "PLAN_NOT_FOUND"
    http_status: int = 401


class SubscriptionNotFoundError(NotFoundError):
    """
    Raised when cancelling a subscription the user does not currently hold.

    Covers unknown ids, subscriptions of other users, and subscriptions
    that are expired or no longer active/trialing.
    """

    default_error_code: str = "SUBSCRIPTION_NOT_FOUND"
    http_status: int = 400


class WebhookSignatureError(BaseApplicationError):
    """
    Raised when a webhook payload fails Stripe signature verification.

    The webhook view answers 400 "Invalid signature" and records nothing.
    """

    default_error_code: str = "INVALID_WEBHOOK_SIGNATURE"
    http_status: int = 400


# =============================================================================
# Stripe-Specific Exceptions
# =============================================================================


class StripeError(ExternalServiceError):
    """
    Base exception for all Stripe-related errors.

    Provides common attributes for Stripe error handling:
    - stripe_code: Stripe's internal error code
    - decline_code: Card decline code (if applicable)
    - is_retryable: Whether the operation could succeed if repeated

    Nothing in this service retries automatically. is_retryable is
    informational for callers and logs.

    Example:
        try:
            StripeAdapter.update_subscription(sub_id, cancel_at_period_end=True)
        except StripeError as e:
            logger.error("Cancel failed", extra={"stripe_code": e.stripe_code})
            return Response(e.to_dict(), status=e.http_status)
    """

    default_error_code: str = "STRIPE_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        stripe_code: str | None = None,
        decline_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if stripe_code:
            details["stripe_code"] = stripe_code
        if decline_code:
            details["decline_code"] = decline_code
        super().__init__(message, error_code=error_code, details=details)
        self.stripe_code = stripe_code
        self.decline_code = decline_code


# -----------------------------------------------------------------------------
# Permanent Errors
# -----------------------------------------------------------------------------


class StripeCardDeclinedError(StripeError):
    """
    Card was declined by the issuing bank.

    Checkout collects the card on Stripe's hosted page, so this only
    surfaces from subscription updates that trigger an immediate charge.
    """

    default_error_code: str = "CARD_DECLINED"


class StripeInvalidRequestError(StripeError):
    """
    Invalid request parameters sent to Stripe.

    Possible causes:
    - Unknown subscription or price id
    - Malformed success/cancel URL
    - Trial settings rejected for the price

    Usually a bug or a configuration mismatch between environments.
    """

    default_error_code: str = "INVALID_STRIPE_REQUEST"


class StripeAuthenticationError(StripeError):
    """STRIPE_SECRET_KEY is missing, revoked or for the wrong account."""

    default_error_code: str = "STRIPE_AUTHENTICATION_FAILED"


# -----------------------------------------------------------------------------
# Transient Errors
# -----------------------------------------------------------------------------


class StripeRateLimitError(StripeError):
    """
    Rate limited by Stripe API.

    Stripe allows 100 requests/second in live mode, 25/second in test mode.
    """

    default_error_code: str = "STRIPE_RATE_LIMITED"
    is_retryable: bool = True


class StripeAPIUnavailableError(StripeError):
    """
    Stripe API is temporarily unavailable.

    This covers:
    - Network connectivity issues
    - Stripe server errors (5xx)
    - SSL/TLS errors
    """

    default_error_code: str = "STRIPE_UNAVAILABLE"
    is_retryable: bool = True


class StripeTimeoutError(StripeError):
    """
    Stripe API call timed out.

    The request was sent but no response arrived within
    STRIPE_API_TIMEOUT_SECONDS. The operation may have succeeded on
    Stripe's side.
    """

    default_error_code: str = "STRIPE_TIMEOUT"
    is_retryable: bool = True


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Subscription domain
    "DuplicateSubscriptionError",
    "PlanNotFoundError",
    "SubscriptionNotFoundError",
    "WebhookSignatureError",
    # Stripe-specific
    "StripeError",
    "StripeCardDeclinedError",
    "StripeInvalidRequestError",
    "StripeAuthenticationError",
    "StripeRateLimitError",
    "StripeAPIUnavailableError",
    "StripeTimeoutError",
]
