"""
DRF views for payments app.

This module provides API views for:
- Checkout session creation
- Pending payment cancellation
- Subscription cancellation

The Stripe webhook endpoint lives in payments.webhooks.views.

Related files:
    - services/: CheckoutService, CancellationService
    - serializers.py: Request/response serializers
    - urls.py: URL routing

Endpoints:
    POST /api/v1/payments/subscription/ - Create checkout session
    POST /api/v1/payments/cancel-payment/ - Cancel a pending payment
    POST /api/v1/payments/cancel/ - Cancel subscription at period end

Security:
    - All endpoints require authentication
    - Subscription cancellation is scoped to the caller's own subscriptions
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError, ValidationError

from .serializers import (
    CancelPaymentSerializer,
    CancelSubscriptionSerializer,
    CheckoutSessionResponseSerializer,
    CreateCheckoutSessionSerializer,
    ErrorResponseSerializer,
    SuccessResponseSerializer,
)
from .services import CancellationService, CheckoutService
from .services.checkout_service import MISSING_PARAMETERS_MESSAGE

logger = logging.getLogger(__name__)


def error_response(error: BaseApplicationError) -> Response:
    """Answer with the error body and the status the error class carries."""
    logger.info(
        "Payments request rejected",
        extra={"error_code": error.error_code, "status": error.http_status},
    )
    return Response(error.to_dict(), status=error.http_status)


def validated_data(serializer_class, data) -> dict:
    """Map the camelCase body, raising ValidationError on malformed values."""
    serializer = serializer_class(data=data)
    if not serializer.is_valid():
        raise ValidationError(MISSING_PARAMETERS_MESSAGE, details=serializer.errors)
    return serializer.validated_data


class CreateCheckoutSessionView(APIView):
    """
    Create Stripe Checkout session.

    POST /api/v1/payments/subscription/

    Request body:
        {
            "type": "trial",
            "successUrl": "https://example.com/success",
            "cancelUrl": "https://example.com/cancel"
        }

    Returns:
        {"url": "https://checkout.stripe.com/..."}
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="create_checkout_session",
        summary="Create checkout session",
        description=(
            "Start a subscription checkout for the current user. Rejected when the "
            "user already holds an active or trialing subscription."
        ),
        request=CreateCheckoutSessionSerializer,
        responses={
            200: CheckoutSessionResponseSerializer,
            400: OpenApiResponse(ErrorResponseSerializer, description="Missing URL or invalid type"),
            401: OpenApiResponse(
                ErrorResponseSerializer,
                description="User not found, subscription exists or plan not found",
            ),
            502: OpenApiResponse(ErrorResponseSerializer, description="Stripe call failed"),
        },
        tags=["Payments"],
    )
    def post(self, request):
        """Create checkout session."""
        try:
            session = CheckoutService.create_checkout_session(
                user=request.user,
                **validated_data(CreateCheckoutSessionSerializer, request.data),
            )
        except BaseApplicationError as e:
            return error_response(e)

        return Response({"url": session.url}, status=status.HTTP_200_OK)


class CancelPaymentView(APIView):
    """
    Cancel a pending payment.

    POST /api/v1/payments/cancel-payment/

    Request body:
        {"paymentId": "<payment log id>"}

    Returns:
        {"success": true}, also when no payment log matched
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="cancel_payment",
        summary="Cancel pending payment",
        request=CancelPaymentSerializer,
        responses={
            200: SuccessResponseSerializer,
            400: OpenApiResponse(ErrorResponseSerializer, description="Missing paymentId"),
        },
        tags=["Payments"],
    )
    def post(self, request):
        """Mark the payment log as cancelled."""
        try:
            data = validated_data(CancelPaymentSerializer, request.data)
            CancellationService.cancel_payment(data.get("payment_id"))
        except BaseApplicationError as e:
            return error_response(e)

        return Response({"success": True}, status=status.HTTP_200_OK)


class CancelSubscriptionView(APIView):
    """
    Cancel subscription.

    POST /api/v1/payments/cancel/

    Request body:
        {"subscriptionId": "sub_xxx"}

    Returns:
        {"success": true} once Stripe has scheduled cancellation at period end
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="cancel_subscription",
        summary="Cancel subscription",
        description=(
            "Schedule cancellation of the current user's subscription at the end "
            "of the billing period. The local record changes when Stripe's "
            "webhook arrives."
        ),
        request=CancelSubscriptionSerializer,
        responses={
            200: SuccessResponseSerializer,
            400: OpenApiResponse(
                ErrorResponseSerializer,
                description="Missing subscriptionId or no such current subscription",
            ),
            502: OpenApiResponse(ErrorResponseSerializer, description="Stripe call failed"),
        },
        tags=["Payments"],
    )
    def post(self, request):
        """Cancel subscription."""
        try:
            data = validated_data(CancelSubscriptionSerializer, request.data)
            CancellationService.cancel_subscription(
                user=request.user,
                subscription_id=data.get("subscription_id"),
            )
        except BaseApplicationError as e:
            return error_response(e)

        return Response({"success": True}, status=status.HTTP_200_OK)
