"""
URL configuration for the payments app.

Routes:
    - POST /subscription/ - Create checkout session
    - POST /cancel-payment/ - Cancel a pending payment
    - POST /cancel/ - Cancel subscription at period end
    - POST /webhooks/stripe/ - Stripe webhook endpoint

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("payments/", include("payments.urls")),
    ]
"""

from django.urls import path

from payments.views import (
    CancelPaymentView,
    CancelSubscriptionView,
    CreateCheckoutSessionView,
)
from payments.webhooks.views import stripe_webhook

app_name = "payments"

urlpatterns = [
    path("subscription/", CreateCheckoutSessionView.as_view(), name="create_checkout_session"),
    path("cancel-payment/", CancelPaymentView.as_view(), name="cancel_payment"),
    path("cancel/", CancelSubscriptionView.as_view(), name="cancel_subscription"),
    # Webhook endpoints
    path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
]
