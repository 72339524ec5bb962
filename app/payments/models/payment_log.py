"""
PaymentLog model recording checkout attempts.

A PaymentLog is created before the Stripe Checkout Session. Its id travels
to Stripe as ``payment_log_id`` metadata and comes back on the cancel URL,
which lets later webhooks and the cancel-payment endpoint find it again.
Webhook reconciliation also writes one log per received event.

Usage:
    from payments.models import PaymentLog

    log = PaymentLog.objects.create(
        user=user,
        request={"price": "price_xxx", "quantity": 1},
    )
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import PaymentLogStatus


class PaymentLog(UUIDPrimaryKeyMixin, BaseModel):
    """
    Audit record of a payment attempt or a received webhook event.

    Fields:
        user: User the attempt belongs to (null when unresolved)
        request: Line item sent to Stripe at checkout
        response: Webhook envelope received from Stripe
        status: NO-STATUS, cancel, success or a Stripe status
        event: Stripe event type, or "cancel"
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payment_logs",
        help_text="User the payment attempt belongs to",
    )

    request = models.JSONField(
        null=True,
        blank=True,
        help_text="Outbound line item sent to Stripe",
    )

    response = models.JSONField(
        null=True,
        blank=True,
        help_text="Inbound webhook envelope from Stripe",
    )

    status = models.CharField(
        max_length=64,
        blank=True,
        default="",
        db_index=True,
        help_text="NO-STATUS, cancel, success or a Stripe status",
    )

    event = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Stripe event type, or 'cancel'",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment Log"
        verbose_name_plural = "Payment Logs"

    def __str__(self) -> str:
        return f"PaymentLog({self.id}, {self.status or PaymentLogStatus.NO_STATUS})"
