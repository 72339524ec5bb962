"""
Webhook handling for subscription events from Stripe.

Webhooks are verified, decoded into a WebhookEnvelope, recorded for
duplicate suppression and reconciled synchronously.

Usage:
    # In urls.py
    from payments.webhooks.views import stripe_webhook

    urlpatterns = [
        path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
    ]
"""

from payments.webhooks.envelope import WebhookEnvelope, WebhookEventKind
from payments.webhooks.handlers import dispatch_webhook, register_handler
from payments.webhooks.views import stripe_webhook

__all__ = [
    "WebhookEnvelope",
    "WebhookEventKind",
    "dispatch_webhook",
    "register_handler",
    "stripe_webhook",
]
