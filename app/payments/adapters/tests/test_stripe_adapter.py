"""
Tests for Stripe adapter.

Tests cover:
- Checkout session parameter validation and subscription_data
- Error translation for each exception type
- Successful API operations
- Webhook signature verification
- Timeout and retry configuration
"""

import pytest
import stripe
from django.test import override_settings

from payments.adapters import (
    CheckoutSessionResult,
    CreateCheckoutSessionParams,
    ProductResult,
    StripeAdapter,
    SubscriptionResult,
)
from payments.exceptions import (
    StripeAPIUnavailableError,
    StripeAuthenticationError,
    StripeCardDeclinedError,
    StripeInvalidRequestError,
    StripeRateLimitError,
    StripeTimeoutError,
    WebhookSignatureError,
)

from .conftest import MockStripeList, MockStripeObject


def make_params(**overrides):
    values = {
        "price_id": "price_test123",
        "success_url": "https://app.example.com/success",
        "cancel_url": "https://app.example.com/cancel?id=log-1",
        "metadata": {"paymentLog": "log-1", "userId": "7", "priceId": "price_test123"},
    }
    values.update(overrides)
    return CreateCheckoutSessionParams(**values)


# =============================================================================
# CreateCheckoutSessionParams Tests
# =============================================================================


class TestCreateCheckoutSessionParams:
    """Tests for CreateCheckoutSessionParams dataclass validation."""

    def test_valid_params(self):
        """Should create params with defaults."""
        params = make_params()

        assert params.quantity == 1
        assert params.payment_method_types == ["card"]
        assert params.trial_period_days is None
        assert params.line_item == {"price": "price_test123", "quantity": 1}

    def test_price_required(self):
        """Should raise ValueError for empty price."""
        with pytest.raises(ValueError, match="price_id is required"):
            make_params(price_id="")

    def test_urls_required(self):
        """Should raise ValueError when either redirect URL is empty."""
        with pytest.raises(ValueError, match="success_url and cancel_url"):
            make_params(success_url="")

        with pytest.raises(ValueError, match="success_url and cancel_url"):
            make_params(cancel_url="")

    def test_trial_days_must_be_positive(self):
        """Should raise ValueError for a zero-day trial."""
        with pytest.raises(ValueError, match="trial_period_days must be positive"):
            make_params(trial_period_days=0)

    def test_subscription_data_without_trial(self):
        """Should carry only the metadata when there is no trial."""
        params = make_params()

        assert params.subscription_data() == {"metadata": params.metadata}

    def test_subscription_data_with_trial(self):
        """Should add trial days and cancel-on-missing-payment-method."""
        params = make_params(trial_period_days=3)

        data = params.subscription_data()

        assert data["trial_period_days"] == 3
        assert data["trial_settings"] == {
            "end_behavior": {"missing_payment_method": "cancel"}
        }
        assert data["metadata"]["paymentLog"] == "log-1"

    def test_subscription_metadata_is_a_copy(self):
        """Mutating subscription_data must not touch the session metadata."""
        params = make_params()

        params.subscription_data()["metadata"]["extra"] = "x"

        assert "extra" not in params.metadata


# =============================================================================
# Error Translation Tests
# =============================================================================


class TestStripeAdapterErrorTranslation:
    """Tests for Stripe error translation to domain exceptions."""

    @pytest.fixture(autouse=True)
    def setup_mocks(self, mock_stripe_http_client):
        """Set up common mocks for all tests."""
        pass

    def test_card_declined_error(self, mock_stripe_subscription, card_error):
        """Should translate CardError to StripeCardDeclinedError."""
        mock_stripe_subscription.modify.side_effect = card_error

        with pytest.raises(StripeCardDeclinedError) as exc_info:
            StripeAdapter.update_subscription("sub_test123", cancel_at_period_end=True)

        assert exc_info.value.decline_code == "generic_decline"
        assert exc_info.value.is_retryable is False
        assert exc_info.value.http_status == 502

    def test_invalid_request_error(
        self, mock_stripe_subscription, invalid_request_error
    ):
        """Should translate InvalidRequestError to StripeInvalidRequestError."""
        mock_stripe_subscription.modify.side_effect = invalid_request_error

        with pytest.raises(StripeInvalidRequestError) as exc_info:
            StripeAdapter.update_subscription("sub_missing", cancel_at_period_end=True)

        assert exc_info.value.stripe_code == "resource_missing"
        assert exc_info.value.is_retryable is False

    def test_rate_limit_error(self, mock_stripe_product, rate_limit_error):
        """Should translate RateLimitError to StripeRateLimitError."""
        mock_stripe_product.list.side_effect = rate_limit_error

        with pytest.raises(StripeRateLimitError) as exc_info:
            StripeAdapter.list_products()

        assert exc_info.value.is_retryable is True

    def test_api_connection_error(self, mock_stripe_product, api_connection_error):
        """Should translate APIConnectionError to StripeAPIUnavailableError."""
        mock_stripe_product.list.side_effect = api_connection_error

        with pytest.raises(StripeAPIUnavailableError) as exc_info:
            StripeAdapter.list_products()

        assert exc_info.value.stripe_code == "api_connection_error"

    def test_timeout_error(self, mock_stripe_product, api_timeout_error):
        """Should translate a timed-out connection to StripeTimeoutError."""
        mock_stripe_product.list.side_effect = api_timeout_error

        with pytest.raises(StripeTimeoutError) as exc_info:
            StripeAdapter.list_products()

        assert exc_info.value.is_retryable is True

    def test_api_error(self, mock_stripe_checkout_session, api_error):
        """Should translate APIError to StripeAPIUnavailableError."""
        mock_stripe_checkout_session.create.side_effect = api_error

        with pytest.raises(StripeAPIUnavailableError) as exc_info:
            StripeAdapter.create_checkout_session(make_params())

        assert exc_info.value.stripe_code == "api_error"

    def test_authentication_error(
        self, mock_stripe_checkout_session, authentication_error
    ):
        """Should translate AuthenticationError to StripeAuthenticationError."""
        mock_stripe_checkout_session.create.side_effect = authentication_error

        with pytest.raises(StripeAuthenticationError) as exc_info:
            StripeAdapter.create_checkout_session(make_params())

        assert exc_info.value.error_code == "STRIPE_AUTHENTICATION_FAILED"

    def test_unknown_error(self, mock_stripe_product):
        """Should wrap unknown errors in StripeAPIUnavailableError."""
        mock_stripe_product.list.side_effect = RuntimeError("boom")

        with pytest.raises(StripeAPIUnavailableError) as exc_info:
            StripeAdapter.list_products()

        assert exc_info.value.stripe_code == "unknown_error"
        assert "boom" in exc_info.value.message


# =============================================================================
# Operation Tests
# =============================================================================


class TestStripeAdapterListProducts:
    """Tests for StripeAdapter.list_products."""

    @pytest.fixture(autouse=True)
    def setup_mocks(self, mock_stripe_http_client):
        """Set up common mocks for all tests."""
        pass

    def test_list_products_success(self, mock_stripe_product):
        """Should return products with their default price id."""
        result = StripeAdapter.list_products()

        assert len(result) == 1
        assert isinstance(result[0], ProductResult)
        assert result[0].id == "prod_test123"
        assert result[0].name == "Premium"
        assert result[0].default_price_id == "price_test123"

    def test_expanded_default_price(self, mock_stripe_product, mock_product):
        """Should read the id from an expanded default_price object."""
        price = MockStripeObject({"id": "price_expanded", "object": "price"})
        mock_stripe_product.list.return_value = MockStripeList(
            items=[mock_product(default_price=price)]
        )

        result = StripeAdapter.list_products()

        assert result[0].default_price_id == "price_expanded"

    def test_product_without_default_price(self, mock_stripe_product, mock_product):
        """Should report None when the product has no default price."""
        mock_stripe_product.list.return_value = MockStripeList(
            items=[mock_product(default_price=None)]
        )

        result = StripeAdapter.list_products()

        assert result[0].default_price_id is None

    def test_empty_catalogue(self, mock_stripe_product):
        """Should return an empty list when Stripe has no products."""
        mock_stripe_product.list.return_value = MockStripeList(items=[])

        assert StripeAdapter.list_products() == []

    def test_caps_limit_at_100(self, mock_stripe_product):
        """Should never ask Stripe for more than 100 products."""
        StripeAdapter.list_products(limit=500)

        assert mock_stripe_product.list.call_args.kwargs["limit"] == 100


class TestStripeAdapterCreateCheckoutSession:
    """Tests for StripeAdapter.create_checkout_session."""

    @pytest.fixture(autouse=True)
    def setup_mocks(self, mock_stripe_http_client):
        """Set up common mocks for all tests."""
        pass

    def test_create_checkout_session_success(self, mock_stripe_checkout_session):
        """Should create a subscription-mode session and return its URL."""
        params = make_params()

        result = StripeAdapter.create_checkout_session(params)

        assert isinstance(result, CheckoutSessionResult)
        assert result.id == "cs_test123"
        assert result.url == "https://checkout.stripe.com/c/pay/cs_test123"

        call_kwargs = mock_stripe_checkout_session.create.call_args.kwargs
        assert call_kwargs["mode"] == "subscription"
        assert call_kwargs["payment_method_types"] == ["card"]
        assert call_kwargs["line_items"] == [{"price": "price_test123", "quantity": 1}]
        assert call_kwargs["metadata"] == params.metadata
        assert call_kwargs["subscription_data"] == {"metadata": params.metadata}
        assert call_kwargs["success_url"] == "https://app.example.com/success"
        assert call_kwargs["cancel_url"] == "https://app.example.com/cancel?id=log-1"

    def test_create_trial_checkout_session(self, mock_stripe_checkout_session):
        """Should pass trial settings through subscription_data."""
        StripeAdapter.create_checkout_session(make_params(trial_period_days=3))

        subscription_data = mock_stripe_checkout_session.create.call_args.kwargs[
            "subscription_data"
        ]
        assert subscription_data["trial_period_days"] == 3
        assert (
            subscription_data["trial_settings"]["end_behavior"]["missing_payment_method"]
            == "cancel"
        )


class TestStripeAdapterUpdateSubscription:
    """Tests for StripeAdapter.update_subscription."""

    @pytest.fixture(autouse=True)
    def setup_mocks(self, mock_stripe_http_client):
        """Set up common mocks for all tests."""
        pass

    def test_update_subscription_success(self, mock_stripe_subscription):
        """Should forward changes to Stripe and return the result."""
        result = StripeAdapter.update_subscription(
            "sub_test123",
            cancel_at_period_end=True,
        )

        assert isinstance(result, SubscriptionResult)
        assert result.id == "sub_test123"
        assert result.status == "active"
        assert result.cancel_at_period_end is True
        assert result.current_period_end == 1767225600

        mock_stripe_subscription.modify.assert_called_once_with(
            "sub_test123",
            cancel_at_period_end=True,
        )


# =============================================================================
# Webhook Verification Tests
# =============================================================================


class TestStripeAdapterVerifyWebhookSignature:
    """Tests for StripeAdapter.verify_webhook_signature."""

    @override_settings(STRIPE_WEBHOOK_SECRET="whsec_test")
    def test_verify_webhook_signature_success(self, mock_stripe_webhook):
        """Should verify and return event data."""
        result = StripeAdapter.verify_webhook_signature(
            payload=b'{"id": "evt_test"}',
            signature="test_signature",
        )

        assert result["id"] == "evt_test123"
        assert result["type"] == "customer.subscription.created"
        mock_stripe_webhook.construct_event.assert_called_once_with(
            b'{"id": "evt_test"}',
            "test_signature",
            "whsec_test",
        )

    def test_verify_webhook_signature_invalid(
        self, mock_stripe_webhook, signature_verification_error
    ):
        """Should raise WebhookSignatureError for invalid signature."""
        mock_stripe_webhook.construct_event.side_effect = signature_verification_error

        with pytest.raises(WebhookSignatureError) as exc_info:
            StripeAdapter.verify_webhook_signature(
                payload=b"tampered",
                signature="bad_signature",
            )

        assert exc_info.value.message == "Invalid signature"
        assert exc_info.value.http_status == 400

    def test_verify_webhook_payload_not_json(self, mock_stripe_webhook):
        """Should raise WebhookSignatureError when the payload is not JSON."""
        mock_stripe_webhook.construct_event.side_effect = ValueError("bad json")

        with pytest.raises(WebhookSignatureError) as exc_info:
            StripeAdapter.verify_webhook_signature(
                payload=b"not-json",
                signature="t=1,v1=abc",
            )

        assert exc_info.value.error_code == "INVALID_WEBHOOK_PAYLOAD"


# =============================================================================
# Configuration Tests
# =============================================================================


class TestStripeAdapterConfiguration:
    """Tests for Stripe adapter configuration."""

    @override_settings(STRIPE_SECRET_KEY="sk_test_custom")
    def test_uses_settings_api_key(self, mock_stripe_http_client, mock_stripe_product):
        """Should use API key from settings."""
        StripeAdapter.list_products()

        assert stripe.api_key == "sk_test_custom"

    @override_settings(STRIPE_API_TIMEOUT_SECONDS=30)
    def test_uses_settings_timeout(self, mock_stripe_http_client, mock_stripe_product):
        """Should use timeout from settings."""
        StripeAdapter.list_products()

        mock_stripe_http_client.assert_called_with(timeout=30)

    @override_settings(STRIPE_MAX_RETRIES=2)
    def test_uses_settings_max_retries(
        self, mock_stripe_http_client, mock_stripe_product
    ):
        """Should use network retry count from settings."""
        StripeAdapter.list_products()

        assert stripe.max_network_retries == 2
