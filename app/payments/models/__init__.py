"""
Payment domain models.

This module contains all payment-related models:
- Subscription: Local mirror of a Stripe subscription billing cycle
- PaymentLog: Audit record of a checkout attempt and the events it received
- WebhookEvent: Stripe webhook event tracking for duplicate suppression
"""

from payments.models.payment_log import PaymentLog
from payments.models.subscription import Subscription
from payments.models.webhook_event import WebhookEvent

__all__ = [
    "PaymentLog",
    "Subscription",
    "WebhookEvent",
]
