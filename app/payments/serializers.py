"""
DRF serializers for payments app.

This module provides request serializers for:
- Checkout session creation
- Pending payment cancellation
- Subscription cancellation

The front end posts camelCase keys; each serializer maps them to the
snake_case arguments the services take. Fields are optional and blank is
allowed because the services own validation and its error messages.

Related files:
    - services/: CheckoutService, CancellationService
    - views.py: Payment API views

Usage:
    serializer = CreateCheckoutSessionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    session = CheckoutService.create_checkout_session(
        user=request.user,
        **serializer.validated_data,
    )
"""

from __future__ import annotations

from rest_framework import serializers


class CreateCheckoutSessionSerializer(serializers.Serializer):
    """
    Serializer for checkout session creation.

    Fields:
        type: "trial" for a free trial, omitted for a plain subscription
        successUrl: URL to redirect after successful checkout
        cancelUrl: URL to redirect if checkout is canceled
    """

    type = serializers.CharField(
        source="checkout_type",
        required=False,
        allow_blank=True,
        allow_null=True,
        trim_whitespace=False,
        help_text='Checkout type, "trial" or empty',
    )
    successUrl = serializers.CharField(
        source="success_url",
        required=False,
        allow_blank=True,
        allow_null=True,
        help_text="URL to redirect after successful checkout",
    )
    cancelUrl = serializers.CharField(
        source="cancel_url",
        required=False,
        allow_blank=True,
        allow_null=True,
        help_text="URL to redirect if checkout is canceled; ?id=<payment log id> is appended",
    )

    def to_internal_value(self, data):
        values = super().to_internal_value(data)
        values.setdefault("success_url", None)
        values.setdefault("cancel_url", None)
        return values


class CheckoutSessionResponseSerializer(serializers.Serializer):
    """Response body of a created checkout session."""

    url = serializers.URLField(read_only=True, help_text="Hosted checkout page")


class CancelPaymentSerializer(serializers.Serializer):
    """
    Serializer for pending payment cancellation.

    Fields:
        paymentId: PaymentLog id echoed back on the cancel URL
    """

    paymentId = serializers.CharField(
        source="payment_id",
        required=False,
        allow_blank=True,
        allow_null=True,
        help_text="Payment log id from the cancel URL",
    )


class CancelSubscriptionSerializer(serializers.Serializer):
    """
    Serializer for subscription cancellation.

    Fields:
        subscriptionId: Stripe Subscription ID (sub_xxx)
    """

    subscriptionId = serializers.CharField(
        source="subscription_id",
        required=False,
        allow_blank=True,
        allow_null=True,
        help_text="Stripe Subscription ID (sub_xxx)",
    )


class SuccessResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField(read_only=True)


class ErrorResponseSerializer(serializers.Serializer):
    """Body of every rejected payments request."""

    error = serializers.CharField(read_only=True)
    error_code = serializers.CharField(read_only=True)
    details = serializers.DictField(read_only=True, required=False)
