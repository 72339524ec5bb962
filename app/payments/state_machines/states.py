"""
State enums for payment models.

These are Django TextChoices for database storage and admin integration.

Subscription status (mirrors Stripe's subscription.status):
    incomplete → active (customer.subscription.updated on an incomplete row)
    created directly at trialing / active / any other Stripe status
    terminal states (canceled, incomplete_expired) arrive from Stripe

WebhookEvent status:
    pending → processing → processed
    pending → processing → failed
"""

from django.db import models


class SubscriptionStatus(models.TextChoices):
    """
    Stripe subscription statuses mirrored on local Subscription rows.

    The field is not restricted to these values: Stripe may introduce new
    statuses and the row stores whatever the processor sent.
    """

    INCOMPLETE = "incomplete", "Incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired", "Incomplete expired"
    TRIALING = "trialing", "Trialing"
    ACTIVE = "active", "Active"
    PAST_DUE = "past_due", "Past due"
    CANCELED = "canceled", "Canceled"
    UNPAID = "unpaid", "Unpaid"
    PAUSED = "paused", "Paused"

    @classmethod
    def current(cls) -> list[str]:
        """Statuses that count as a live subscription."""
        return [cls.ACTIVE, cls.TRIALING]


class SubscriptionType(models.TextChoices):
    """
    How a Subscription row came to exist.

    Rows created from customer.subscription.created copy the Stripe status
    into this field instead (e.g. "trialing"), so it is not restricted to
    these values either.
    """

    NEW = "new", "New"
    RENEWAL = "renewal", "Renewal"


class PaymentLogStatus:
    """Literal status values written to PaymentLog besides Stripe's own."""

    NO_STATUS = "NO-STATUS"
    CANCEL = "cancel"
    SUCCESS = "success"


class WebhookEventStatus(models.TextChoices):
    """
    Processing status for WebhookEvent.

    State Flow:
        PENDING → PROCESSING → PROCESSED
        PENDING → PROCESSING → FAILED
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"
