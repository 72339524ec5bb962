"""
Payment adapters for external services.

All Stripe API calls go through StripeAdapter to ensure consistent error
handling, timeouts, and observability.

Usage:
    from payments.adapters import StripeAdapter

    products = StripeAdapter.list_products()
    StripeAdapter.update_subscription("sub_xxx", cancel_at_period_end=True)
"""

from payments.adapters.stripe_adapter import (
    CheckoutSessionResult,
    CreateCheckoutSessionParams,
    ProductResult,
    StripeAdapter,
    SubscriptionResult,
)

__all__ = [
    "CheckoutSessionResult",
    "CreateCheckoutSessionParams",
    "ProductResult",
    "StripeAdapter",
    "SubscriptionResult",
]
