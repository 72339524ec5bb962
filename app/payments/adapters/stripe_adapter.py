"""
Stripe API adapter for subscription operations.

This module provides the StripeAdapter class which encapsulates all
Stripe API interactions. All Stripe calls should go through this
adapter to ensure consistent error handling, timeouts, and observability.

Features:
- Configurable timeouts on all API calls
- Automatic error translation to domain exceptions
- Structured logging with timing metrics

Configuration (via settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_WEBHOOK_SECRET: Webhook signing secret
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- STRIPE_MAX_RETRIES: SDK network retries (default: 0)

Usage:
    from payments.adapters import StripeAdapter, CreateCheckoutSessionParams

    products = StripeAdapter.list_products()
    session = StripeAdapter.create_checkout_session(
        CreateCheckoutSessionParams(
            price_id=products[0].default_price_id,
            success_url="https://app.example.com/success",
            cancel_url="https://app.example.com/cancel?id=...",
            metadata={"paymentLog": "...", "userId": "1", "priceId": "..."},
        )
    )
    redirect_to(session.url)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import stripe
from django.conf import settings

from payments.constants import CHECKOUT_METADATA
from payments.exceptions import (
    StripeAPIUnavailableError,
    StripeAuthenticationError,
    StripeCardDeclinedError,
    StripeInvalidRequestError,
    StripeRateLimitError,
    StripeTimeoutError,
    WebhookSignatureError,
)


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class ProductResult:
    """
    A Stripe Product as seen by checkout.

    Attributes:
        id: Product ID (prod_xxx)
        name: Display name
        default_price_id: ID of the product's default Price (price_xxx)
        raw_response: Full Stripe response dict
    """

    id: str
    name: str = ""
    default_price_id: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class CreateCheckoutSessionParams:
    """
    Parameters for creating a subscription-mode Checkout Session.

    Attributes:
        price_id: Price to subscribe to
        success_url: Where Stripe redirects after payment
        cancel_url: Where Stripe redirects when the customer backs out
        metadata: Key-value pairs set on the session and the subscription
        quantity: Line item quantity (default: 1)
        trial_period_days: Free trial length, None for no trial
        payment_method_types: Allowed payment methods (default: ['card'])
    """

    price_id: str
    success_url: str
    cancel_url: str
    metadata: dict[str, str] = field(default_factory=dict)
    quantity: int = 1
    trial_period_days: int | None = None
    payment_method_types: list[str] = field(default_factory=lambda: ["card"])

    def __post_init__(self) -> None:
        """Validate parameters after initialization."""
        if not self.price_id:
            raise ValueError("price_id is required")
        if not self.success_url or not self.cancel_url:
            raise ValueError("success_url and cancel_url are required")
        if self.trial_period_days is not None and self.trial_period_days <= 0:
            raise ValueError("trial_period_days must be positive")

    @property
    def line_item(self) -> dict[str, Any]:
        return {"price": self.price_id, "quantity": self.quantity}

    def subscription_data(self) -> dict[str, Any]:
        """
        Build the subscription_data block.

        Trials end by cancelling the subscription when the customer never
        attached a payment method.
        """
        data: dict[str, Any] = {"metadata": dict(self.metadata)}
        if self.trial_period_days:
            data["trial_period_days"] = self.trial_period_days
            data["trial_settings"] = {
                "end_behavior": {"missing_payment_method": "cancel"},
            }
        return data


@dataclass
class CheckoutSessionResult:
    """
    Result from Checkout Session creation.

    Attributes:
        id: Checkout Session ID (cs_xxx)
        url: Hosted checkout page URL
        metadata: Attached metadata
        raw_response: Full Stripe response dict
    """

    id: str
    url: str
    metadata: dict[str, str] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class SubscriptionResult:
    """
    Result from Stripe Subscription operations.

    Attributes:
        id: Subscription ID (sub_xxx)
        status: Current status (active, trialing, canceled, etc.)
        cancel_at_period_end: Whether cancellation is scheduled
        current_period_end: Unix timestamp of the period end, when reported
        raw_response: Full Stripe response dict
    """

    id: str
    status: str
    cancel_at_period_end: bool = False
    current_period_end: int | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Stripe Adapter
# =============================================================================


class StripeAdapter:
    """
    Adapter for Stripe API operations.

    All methods are classmethods - no instance state is maintained.
    Services receive the adapter class as their ``processor`` so tests can
    pass a fake with the same methods.

    Usage:
        products = StripeAdapter.list_products()
        session = StripeAdapter.create_checkout_session(params)
        StripeAdapter.update_subscription("sub_xxx", cancel_at_period_end=True)
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def _configure_stripe() -> None:
        """Configure Stripe client with API key, timeout and retries."""
        stripe.api_key = settings.STRIPE_SECRET_KEY
        timeout = getattr(settings, "STRIPE_API_TIMEOUT_SECONDS", 10)
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)
        stripe.max_network_retries = getattr(settings, "STRIPE_MAX_RETRIES", 0)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Catalogue
    # =========================================================================

    @classmethod
    def list_products(cls, limit: int = 10) -> list[ProductResult]:
        """
        List Stripe products in Stripe's default order.

        Args:
            limit: Maximum number to return (default: 10, max: 100)

        Returns:
            List of ProductResult objects, possibly empty
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {"operation": "list_products", "limit": limit}

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            products = stripe.Product.list(limit=min(limit, 100))

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={
                    **log_context,
                    "count": len(products.data),
                    "duration_ms": duration_ms,
                },
            )

            return [
                ProductResult(
                    id=product.id,
                    name=getattr(product, "name", None) or "",
                    default_price_id=_object_id(getattr(product, "default_price", None)),
                    raw_response=product.to_dict(),
                )
                for product in products.data
            ]

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise  # Never reached, but satisfies type checker

    # =========================================================================
    # Checkout
    # =========================================================================

    @classmethod
    def create_checkout_session(
        cls,
        params: CreateCheckoutSessionParams,
    ) -> CheckoutSessionResult:
        """
        Create a subscription-mode Stripe Checkout Session.

        Args:
            params: Parameters for the session

        Returns:
            CheckoutSessionResult with the hosted page URL

        Raises:
            StripeInvalidRequestError: Invalid price or URLs
            StripeAPIUnavailableError: Stripe service unavailable
            StripeTimeoutError: Request timed out
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_checkout_session",
            "price_id": params.price_id,
            "payment_log_id": params.metadata.get(CHECKOUT_METADATA.PAYMENT_LOG),
            "trial_period_days": params.trial_period_days,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            session = stripe.checkout.Session.create(
                mode="subscription",
                payment_method_types=params.payment_method_types,
                line_items=[params.line_item],
                metadata=params.metadata,
                subscription_data=params.subscription_data(),
                success_url=params.success_url,
                cancel_url=params.cancel_url,
            )

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={
                    **log_context,
                    "checkout_session_id": session.id,
                    "duration_ms": duration_ms,
                },
            )

            return CheckoutSessionResult(
                id=session.id,
                url=session.url,
                metadata=dict(getattr(session, "metadata", None) or {}),
                raw_response=session.to_dict(),
            )

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    # =========================================================================
    # Subscriptions
    # =========================================================================

    @classmethod
    def update_subscription(
        cls,
        subscription_id: str,
        **changes: Any,
    ) -> SubscriptionResult:
        """
        Update a Stripe Subscription.

        Args:
            subscription_id: Stripe Subscription ID (sub_xxx)
            **changes: Fields to update (e.g. cancel_at_period_end=True)

        Returns:
            SubscriptionResult with updated subscription details

        Raises:
            StripeInvalidRequestError: Unknown subscription or invalid change
            StripeAPIUnavailableError: Stripe service unavailable
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "update_subscription",
            "subscription_id": subscription_id,
            "changes": sorted(changes),
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            subscription = stripe.Subscription.modify(subscription_id, **changes)

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={
                    **log_context,
                    "status": subscription.status,
                    "duration_ms": duration_ms,
                },
            )

            return SubscriptionResult(
                id=subscription.id,
                status=subscription.status,
                cancel_at_period_end=bool(getattr(subscription, "cancel_at_period_end", False)),
                current_period_end=getattr(subscription, "current_period_end", None),
                raw_response=subscription.to_dict(),
            )

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    # =========================================================================
    # Webhook Verification
    # =========================================================================

    @classmethod
    def verify_webhook_signature(
        cls,
        payload: bytes,
        signature: str,
    ) -> dict[str, Any]:
        """
        Verify and parse a Stripe webhook event.

        Args:
            payload: Raw webhook payload bytes
            signature: Stripe-Signature header value

        Returns:
            Parsed event data dict

        Raises:
            WebhookSignatureError: Invalid signature or unparseable payload
        """
        try:
            event = stripe.Webhook.construct_event(
                payload,
                signature,
                settings.STRIPE_WEBHOOK_SECRET,
            )
            return event.to_dict()
        except stripe.SignatureVerificationError as e:
            raise WebhookSignatureError(
                "Invalid signature",
                details={"error": str(e)},
            ) from e
        except ValueError as e:
            raise WebhookSignatureError(
                "Invalid payload",
                error_code="INVALID_WEBHOOK_PAYLOAD",
            ) from e

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_stripe_error(
        cls,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe exceptions to domain exceptions.

        Args:
            error: The Stripe exception
            log_context: Logging context dict
            duration_ms: Operation duration for logging

        Raises:
            StripeCardDeclinedError: Card was declined
            StripeInvalidRequestError: Invalid request parameters
            StripeAuthenticationError: Bad API key
            StripeRateLimitError: Rate limited
            StripeTimeoutError: Request timed out
            StripeAPIUnavailableError: API unavailable or unexpected error
        """
        logger = cls.get_logger()

        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, stripe.CardError):
            decline_code = getattr(error, "decline_code", None)
            logger.warning(
                "Card error from Stripe",
                extra={**log_context, "decline_code": decline_code},
            )
            raise StripeCardDeclinedError(
                str(error.user_message or error),
                stripe_code=error.code,
                decline_code=decline_code,
            ) from error

        elif isinstance(error, stripe.InvalidRequestError):
            logger.error(
                "Invalid request to Stripe",
                extra={**log_context, "stripe_code": error.code},
            )
            raise StripeInvalidRequestError(
                str(error.user_message or error),
                stripe_code=error.code,
            ) from error

        elif isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise StripeRateLimitError(
                "Stripe rate limit exceeded. Please retry.",
                stripe_code="rate_limit",
            ) from error

        elif isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise StripeAuthenticationError(
                "Stripe authentication failed",
                stripe_code="authentication_error",
            ) from error

        elif isinstance(error, stripe.APIConnectionError):
            timed_out = "timeout" in str(error).lower()
            logger.error(
                "Connection error to Stripe",
                extra={**log_context, "timed_out": timed_out},
                exc_info=True,
            )
            if timed_out:
                raise StripeTimeoutError(
                    "Stripe request timed out. Please retry.",
                    stripe_code="timeout",
                ) from error
            raise StripeAPIUnavailableError(
                "Could not connect to Stripe. Please retry.",
                stripe_code="api_connection_error",
            ) from error

        elif isinstance(error, stripe.APIError):
            logger.error("Stripe API error", extra=log_context, exc_info=True)
            raise StripeAPIUnavailableError(
                "Stripe service error. Please retry.",
                stripe_code="api_error",
            ) from error

        else:
            logger.error(
                f"Unexpected error from Stripe: {type(error).__name__}",
                extra=log_context,
                exc_info=True,
            )
            raise StripeAPIUnavailableError(
                f"Unexpected Stripe error: {error}",
                stripe_code="unknown_error",
            ) from error


def _object_id(value: Any) -> str | None:
    """Return the id of an expandable Stripe field (id string or object)."""
    if value is None or isinstance(value, str):
        return value
    return getattr(value, "id", None)
