"""
Payment services for the subscription flow.

This module provides:
- CheckoutService: Creates Stripe Checkout Sessions for the subscription plan
- CancellationService: Cancels pending payments and live subscriptions

Usage:
    from payments.services import CheckoutService

    url = CheckoutService.create_checkout_session(
        user=request.user,
        success_url="https://app.example.com/success",
        cancel_url="https://app.example.com/cancel",
        checkout_type="trial",
    )

    from payments.services import CancellationService

    CancellationService.cancel_subscription(user=request.user, subscription_id="sub_xxx")
"""

from payments.services.cancellation_service import CancellationService
from payments.services.checkout_service import CheckoutService

__all__ = [
    "CancellationService",
    "CheckoutService",
]
