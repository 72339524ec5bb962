"""
Decoding of Stripe webhook payloads.

WebhookEnvelope turns the raw event dict into a typed value once, at the
boundary, so reconciliation never digs through nested dicts itself:

    envelope = WebhookEnvelope.from_payload(event_data)
    envelope.kind            # WebhookEventKind.SUBSCRIPTION_UPDATED
    envelope.user_id         # "42" (from metadata) or None
    envelope.correlation_id  # PaymentLog id sent at checkout, or None

Where the user id lives depends on the event family:
    invoice.*                  object.subscription_details.userId
                               (or subscription_details.metadata.userId)
    subscription / session /   object.metadata.userId
    payment_intent
    anything else              none

The PaymentLog id travels as metadata.paymentLog. Older subscriptions
carry user_id / payment_log_id instead; both spellings are read.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from core.exceptions import ValidationError

from payments.constants import CHECKOUT_METADATA, metadata_value
from payments.state_machines import PaymentLogStatus


class WebhookEventKind(str, Enum):
    """Stripe event types the reconciler knows about."""

    INVOICE_PAYMENT_SUCCEEDED = "invoice.payment_succeeded"
    INVOICE_UPDATED = "invoice.updated"
    INVOICE_CREATED = "invoice.created"
    SUBSCRIPTION_CREATED = "customer.subscription.created"
    SUBSCRIPTION_UPDATED = "customer.subscription.updated"
    CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
    PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
    PAYMENT_INTENT_CREATED = "payment_intent.created"
    CHARGE_SUCCEEDED = "charge.succeeded"
    PAYMENT_METHOD_ATTACHED = "payment_method.attached"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def from_event_type(cls, event_type: str) -> WebhookEventKind:
        try:
            return cls(event_type)
        except ValueError:
            return cls.UNRECOGNIZED


INVOICE_KINDS = frozenset(
    [
        WebhookEventKind.INVOICE_PAYMENT_SUCCEEDED,
        WebhookEventKind.INVOICE_UPDATED,
        WebhookEventKind.INVOICE_CREATED,
    ]
)

# Kinds whose object carries our checkout metadata directly.
METADATA_KINDS = frozenset(
    [
        WebhookEventKind.SUBSCRIPTION_CREATED,
        WebhookEventKind.SUBSCRIPTION_UPDATED,
        WebhookEventKind.CHECKOUT_SESSION_COMPLETED,
        WebhookEventKind.PAYMENT_INTENT_SUCCEEDED,
        WebhookEventKind.PAYMENT_INTENT_CREATED,
    ]
)

UNLOGGED_KINDS = frozenset(
    [
        WebhookEventKind.CHARGE_SUCCEEDED,
        WebhookEventKind.PAYMENT_METHOD_ATTACHED,
    ]
)


@dataclass(frozen=True)
class WebhookEnvelope:
    """
    A decoded Stripe event.

    Attributes:
        kind: Known event kind, or UNRECOGNIZED
        event_type: Raw Stripe event type string
        object: The event's data.object
        payload: The complete event as received
        event_id: Stripe Event ID (evt_xxx), when present
        user_id: User id from our checkout metadata, as a string
        correlation_id: PaymentLog id from our checkout metadata
        status: data.object.status, when present
    """

    kind: WebhookEventKind
    event_type: str
    object: dict[str, Any]
    payload: dict[str, Any] = field(repr=False)
    event_id: str | None = None
    user_id: str | None = None
    correlation_id: str | None = None
    status: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> WebhookEnvelope:
        """
        Decode a raw Stripe event dict.

        Raises:
            ValidationError: payload has no type or no data.object
        """
        if not isinstance(payload, dict):
            raise ValidationError("Invalid event")

        event_type = payload.get("type")
        data = payload.get("data")
        obj = data.get("object") if isinstance(data, dict) else None
        if not event_type or not isinstance(event_type, str) or not isinstance(obj, dict):
            raise ValidationError(
                "Invalid event",
                details={"event_id": payload.get("id")},
            )

        kind = WebhookEventKind.from_event_type(event_type)
        metadata = _as_dict(obj.get("metadata"))
        details = _as_dict(obj.get("subscription_details"))
        details_metadata = _as_dict(details.get("metadata"))

        if kind in INVOICE_KINDS:
            user_id = metadata_value(
                CHECKOUT_METADATA.USER_ID,
                CHECKOUT_METADATA.USER_ID_FALLBACK,
                details,
                details_metadata,
            )
            correlation_id = metadata_value(
                CHECKOUT_METADATA.PAYMENT_LOG,
                CHECKOUT_METADATA.PAYMENT_LOG_FALLBACK,
                metadata,
                details_metadata,
            )
        else:
            user_id = None
            if kind in METADATA_KINDS:
                user_id = metadata_value(
                    CHECKOUT_METADATA.USER_ID,
                    CHECKOUT_METADATA.USER_ID_FALLBACK,
                    metadata,
                )
            correlation_id = metadata_value(
                CHECKOUT_METADATA.PAYMENT_LOG,
                CHECKOUT_METADATA.PAYMENT_LOG_FALLBACK,
                metadata,
            )

        status = obj.get("status")
        return cls(
            kind=kind,
            event_type=event_type,
            object=obj,
            payload=payload,
            event_id=payload.get("id") or None,
            user_id=_as_str(user_id),
            correlation_id=_as_str(correlation_id),
            status=status if isinstance(status, str) and status else None,
        )

    @property
    def writes_payment_log(self) -> bool:
        """Whether reconciliation records a PaymentLog for this event."""
        return self.kind not in UNLOGGED_KINDS

    @property
    def log_status(self) -> str:
        return self.status or PaymentLogStatus.NO_STATUS

    def log_context(self) -> dict[str, Any]:
        return {
            "stripe_event_id": self.event_id,
            "event_type": self.event_type,
            "user_id": self.user_id,
            "payment_log_id": self.correlation_id,
        }


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)
