"""
Pytest fixtures for payment tests.

This module provides subscription and payment log fixtures in the states
the checkout and cancellation flows care about. The user fixtures come
from the project conftest.

Usage:
    def test_cancel(authenticated_client, current_subscription):
        response = authenticated_client.post(
            "/api/v1/payments/cancel/",
            {"subscriptionId": current_subscription.stripe_subscription_id},
            format="json",
        )
"""

from unittest.mock import patch

import pytest

from payments.adapters import CheckoutSessionResult, ProductResult, SubscriptionResult
from payments.tests.factories import PaymentLogFactory, SubscriptionFactory


# =============================================================================
# Subscription Fixtures
# =============================================================================


@pytest.fixture
def current_subscription(db, user):
    """An active, unexpired subscription held by user."""
    return SubscriptionFactory(user=user)


@pytest.fixture
def expired_subscription(db, user):
    """An active subscription of user whose period has ended."""
    return SubscriptionFactory(user=user, expired=True)


@pytest.fixture
def payment_log(db, user):
    """A PaymentLog created at checkout for user."""
    return PaymentLogFactory(user=user)


# =============================================================================
# Mock Adapter
# =============================================================================


@pytest.fixture
def mock_stripe_adapter():
    """Patch StripeAdapter methods used by the payment services."""
    with patch("payments.adapters.StripeAdapter.list_products") as list_products, patch(
        "payments.adapters.StripeAdapter.create_checkout_session"
    ) as create_session, patch(
        "payments.adapters.StripeAdapter.update_subscription"
    ) as update_subscription:
        list_products.return_value = [
            ProductResult(id="prod_test123", name="Premium", default_price_id="price_test123")
        ]
        create_session.return_value = CheckoutSessionResult(
            id="cs_test123",
            url="https://checkout.stripe.com/c/pay/cs_test123",
        )
        update_subscription.return_value = SubscriptionResult(
            id="sub_test123",
            status="active",
            cancel_at_period_end=True,
        )
        yield {
            "list_products": list_products,
            "create_checkout_session": create_session,
            "update_subscription": update_subscription,
        }
