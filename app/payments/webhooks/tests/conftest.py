"""
Pytest fixtures for webhook tests.

Provides Stripe event payload builders, WebhookEvent rows in each status
and a RequestFactory helper for the webhook view. Payload builders return
plain dicts shaped like Stripe's event JSON so tests can tweak any field.
"""

import json
import time
from unittest.mock import patch

import pytest
from django.test import RequestFactory
from django.utils import timezone

from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus

PERIOD_START = 1767225600  # 2026-01-01T00:00:00Z
PERIOD_END = 1769904000  # 2026-02-01T00:00:00Z


# =============================================================================
# Payload Builders
# =============================================================================


@pytest.fixture
def subscription_object():
    """Build a Stripe subscription object carrying checkout metadata."""

    def _create(
        id: str = "sub_test123",
        status: str = "active",
        user_id=None,
        payment_log_id=None,
        price_id: str | None = "price_test123",
        cancel_at_period_end: bool = False,
        current_period_end: int | None = PERIOD_END,
        created: int = PERIOD_START,
        customer: str = "cus_test123",
        item_price_id: str = "price_item123",
        item_period_end: int | None = None,
        snake_keys: bool = False,
    ) -> dict:
        user_key, log_key, price_key = (
            ("user_id", "payment_log_id", "price_id")
            if snake_keys
            else ("userId", "paymentLog", "priceId")
        )
        metadata = {}
        if user_id is not None:
            metadata[user_key] = str(user_id)
        if payment_log_id is not None:
            metadata[log_key] = str(payment_log_id)
        if price_id is not None:
            metadata[price_key] = price_id

        item = {"id": "si_test123", "price": {"id": item_price_id, "object": "price"}}
        if item_period_end is not None:
            item["current_period_end"] = item_period_end

        obj = {
            "id": id,
            "object": "subscription",
            "status": status,
            "customer": customer,
            "created": created,
            "cancel_at_period_end": cancel_at_period_end,
            "metadata": metadata,
            "items": {"object": "list", "data": [item]},
        }
        if current_period_end is not None:
            obj["current_period_end"] = current_period_end
        return obj

    return _create


@pytest.fixture
def invoice_object():
    """Build a Stripe invoice object whose subscription carries metadata."""

    def _create(
        user_id=None,
        status: str = "paid",
        in_metadata: bool = False,
        snake_keys: bool = False,
        payment_log_id=None,
    ) -> dict:
        user_key = "user_id" if snake_keys else "userId"
        details = {"metadata": {}}
        if user_id is not None:
            if in_metadata:
                details["metadata"][user_key] = str(user_id)
            else:
                details[user_key] = str(user_id)
        metadata = {}
        if payment_log_id is not None:
            metadata["payment_log_id" if snake_keys else "paymentLog"] = str(payment_log_id)
        return {
            "id": "in_test123",
            "object": "invoice",
            "status": status,
            "metadata": metadata,
            "subscription_details": details,
        }

    return _create


@pytest.fixture
def event_payload():
    """Wrap a data.object into a Stripe event envelope."""

    def _create(event_type: str, obj: dict, id: str | None = "evt_test123") -> dict:
        payload = {
            "object": "event",
            "type": event_type,
            "created": int(time.time()),
            "data": {"object": obj},
        }
        if id is not None:
            payload["id"] = id
        return payload

    return _create


# =============================================================================
# Webhook Event Fixtures
# =============================================================================


@pytest.fixture
def processed_webhook_event(db, event_payload, subscription_object):
    """A WebhookEvent already reconciled."""
    payload = event_payload(
        "customer.subscription.created",
        subscription_object(),
        id="evt_test_processed_789",
    )
    return WebhookEvent.objects.create(
        stripe_event_id="evt_test_processed_789",
        event_type="customer.subscription.created",
        payload=payload,
        status=WebhookEventStatus.PROCESSED,
        processed_at=timezone.now(),
    )


@pytest.fixture
def failed_webhook_event(db, event_payload, subscription_object):
    """A WebhookEvent whose reconciliation failed earlier."""
    payload = event_payload(
        "customer.subscription.created",
        subscription_object(),
        id="evt_test_failed_101",
    )
    return WebhookEvent.objects.create(
        stripe_event_id="evt_test_failed_101",
        event_type="customer.subscription.created",
        payload=payload,
        status=WebhookEventStatus.FAILED,
        error_message="Previous processing failed",
    )


# =============================================================================
# Request Helpers
# =============================================================================


@pytest.fixture
def rf():
    """Request factory for creating test requests."""
    return RequestFactory()


@pytest.fixture
def webhook_request(rf):
    """Create a POST request to the webhook endpoint."""

    def _create(payload, signature: str | None = "test_sig"):
        body = payload if isinstance(payload, (bytes, str)) else json.dumps(payload)
        headers = {}
        if signature:
            headers["HTTP_STRIPE_SIGNATURE"] = signature
        return rf.post(
            "/api/v1/payments/webhooks/stripe/",
            data=body,
            content_type="application/json",
            **headers,
        )

    return _create


@pytest.fixture
def mock_verify_signature():
    """Mock the Stripe signature verification."""
    with patch(
        "payments.webhooks.views.StripeAdapter.verify_webhook_signature"
    ) as mock:
        yield mock
