"""
Payments app configuration.

This app provides the Stripe subscription flow:
- Checkout session creation
- Webhook reconciliation of subscriptions and payment logs
- Payment and subscription cancellation
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
