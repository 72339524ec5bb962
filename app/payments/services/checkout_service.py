"""
Checkout service for starting a subscription.

This module provides the CheckoutService class which turns a user's request
to subscribe into a hosted Stripe Checkout page:

1. Validate the redirect URLs and the optional checkout type
2. Resolve the user and reject a second live subscription
3. Pick the plan (first Stripe product's default price)
4. Record a PaymentLog for the attempt
5. Create the Checkout Session, tagging it with the log id

Usage:
    from payments.services import CheckoutService

    session = CheckoutService.create_checkout_session(
        user=request.user,
        success_url="https://app.example.com/success",
        cancel_url="https://app.example.com/cancel",
        checkout_type="trial",
    )
    return Response({"url": session.url})
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from django.conf import settings
from django.contrib.auth import get_user_model

from core.exceptions import AuthError, ValidationError
from core.services import BaseService

from payments.adapters import CreateCheckoutSessionParams, StripeAdapter
from payments.constants import CHECKOUT_METADATA
from payments.exceptions import DuplicateSubscriptionError, PlanNotFoundError
from payments.models import PaymentLog, Subscription

if TYPE_CHECKING:
    from payments.adapters import CheckoutSessionResult


# =============================================================================
# Constants
# =============================================================================

TRIAL_CHECKOUT_TYPE = "trial"

MISSING_PARAMETERS_MESSAGE = "Please pass required all parameters."


class CheckoutService(BaseService):
    """
    Creates Stripe Checkout Sessions for the subscription plan.

    The processor defaults to StripeAdapter. Tests pass a fake exposing
    list_products() and create_checkout_session().
    """

    @classmethod
    def create_checkout_session(
        cls,
        user,
        success_url: str | None,
        cancel_url: str | None,
        checkout_type: str | None = None,
        processor=StripeAdapter,
    ) -> CheckoutSessionResult:
        """
        Create a subscription checkout session for user.

        Args:
            user: The authenticated user (request.user)
            success_url: Where Stripe redirects after payment
            cancel_url: Where Stripe redirects on cancel; ?id=<log id> is appended
            checkout_type: "trial" for a free trial, empty for a plain subscription
            processor: Payment processor client

        Returns:
            CheckoutSessionResult whose url is the hosted checkout page

        Raises:
            ValidationError: Missing URL or unknown checkout type
            AuthError: User cannot be resolved
            DuplicateSubscriptionError: User already holds a live subscription
            PlanNotFoundError: Stripe has no product with a default price
            StripeError: Stripe call failed
        """
        logger = cls.get_logger()

        if not success_url or not cancel_url:
            raise ValidationError(MISSING_PARAMETERS_MESSAGE)
        if checkout_type and checkout_type != TRIAL_CHECKOUT_TYPE:
            raise ValidationError(
                "Please pass valid type",
                details={"type": checkout_type},
            )

        account = get_user_model().objects.find_by_id(
            getattr(user, "pk", None),
            active_only=True,
        )
        if account is None:
            raise AuthError("User not found.")

        if Subscription.objects.current_for(account).exists():
            logger.info(
                "Checkout rejected, subscription exists",
                extra={"user_id": account.pk},
            )
            raise DuplicateSubscriptionError("Subscription already exist.")

        products = processor.list_products()
        price_id = products[0].default_price_id if products else None
        if not price_id:
            raise PlanNotFoundError("Plan not found.")

        line_item = {"price": price_id, "quantity": 1}
        payment_log = PaymentLog.objects.create(user=account, request=line_item)

        metadata = {
            CHECKOUT_METADATA.PAYMENT_LOG: str(payment_log.id),
            CHECKOUT_METADATA.USER_ID: str(account.pk),
            CHECKOUT_METADATA.PRICE_ID: price_id,
        }
        trial_days = None
        if checkout_type == TRIAL_CHECKOUT_TYPE:
            trial_days = getattr(settings, "SUBSCRIPTION_TRIAL_DAYS", 3)

        session = processor.create_checkout_session(
            CreateCheckoutSessionParams(
                price_id=price_id,
                success_url=success_url,
                cancel_url=append_query_param(cancel_url, "id", str(payment_log.id)),
                metadata=metadata,
                trial_period_days=trial_days,
            )
        )

        logger.info(
            "Checkout session created",
            extra={
                "user_id": account.pk,
                "payment_log_id": str(payment_log.id),
                "checkout_session_id": session.id,
                "trial": trial_days is not None,
            },
        )
        return session


def append_query_param(url: str, name: str, value: str) -> str:
    """Append name=value to url, joining with & when a query already exists."""
    separator = "&" if urlsplit(url).query else "?"
    return f"{url}{separator}{name}={value}"
