"""
State enums used by payment models.
"""

from payments.state_machines.states import (
    PaymentLogStatus,
    SubscriptionStatus,
    SubscriptionType,
    WebhookEventStatus,
)

__all__ = [
    "PaymentLogStatus",
    "SubscriptionStatus",
    "SubscriptionType",
    "WebhookEventStatus",
]
