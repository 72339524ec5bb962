"""
Pytest fixtures for payment service tests.

Services take the payment processor as an argument, so these tests pass a
recording fake instead of patching the Stripe SDK.
"""

import pytest

from payments.adapters import CheckoutSessionResult, ProductResult, SubscriptionResult
from payments.tests.factories import SubscriptionFactory


class FakeProcessor:
    """In-memory stand-in for StripeAdapter that records every call."""

    def __init__(self, products=None, error=None):
        self.products = (
            products
            if products is not None
            else [ProductResult(id="prod_test123", name="Premium", default_price_id="price_test123")]
        )
        self.error = error
        self.sessions = []
        self.updates = []

    def list_products(self, limit: int = 10):
        if self.error:
            raise self.error
        return self.products

    def create_checkout_session(self, params):
        if self.error:
            raise self.error
        self.sessions.append(params)
        return CheckoutSessionResult(
            id="cs_test123",
            url="https://checkout.stripe.com/c/pay/cs_test123",
            metadata=params.metadata,
        )

    def update_subscription(self, subscription_id, **changes):
        if self.error:
            raise self.error
        self.updates.append((subscription_id, changes))
        return SubscriptionResult(
            id=subscription_id,
            status="active",
            cancel_at_period_end=changes.get("cancel_at_period_end", False),
        )


@pytest.fixture
def processor():
    return FakeProcessor()


@pytest.fixture
def current_subscription(db, user):
    """An active, unexpired subscription held by user."""
    return SubscriptionFactory(user=user, stripe_subscription_id="sub_live123")
