"""
Webhook event handlers for Stripe events.

This module provides a handler registry and the reconciliation steps that
mirror Stripe events into PaymentLog and Subscription rows.

Every event goes through the same pipeline:
1. Resolve the user named in the checkout metadata
2. Record a PaymentLog (except charge.succeeded / payment_method.attached)
3. Run the kind-specific handler, if one is registered

Usage:
    from payments.webhooks.handlers import dispatch_webhook, register_handler

    @register_handler(WebhookEventKind.INVOICE_CREATED)
    def handle_invoice_created(envelope, user) -> ServiceResult:
        ...

    result = dispatch_webhook(envelope)
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone as dt_timezone
from typing import TYPE_CHECKING, Any, Callable

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from core.services import ServiceResult

from payments.constants import CHECKOUT_METADATA, metadata_value
from payments.models import PaymentLog, Subscription, WebhookEvent
from payments.state_machines import (
    PaymentLogStatus,
    SubscriptionStatus,
    SubscriptionType,
)
from payments.webhooks.envelope import WebhookEnvelope, WebhookEventKind

if TYPE_CHECKING:
    from authentication.models import User


logger = logging.getLogger(__name__)


# =============================================================================
# Handler Registry
# =============================================================================


Handler = Callable[[WebhookEnvelope, "User | None"], ServiceResult]

# Maps event kinds to handler functions
WEBHOOK_HANDLERS: dict[WebhookEventKind, Handler] = {}


def register_handler(kind: WebhookEventKind) -> Callable:
    """
    Decorator to register a webhook event handler.

    Usage:
        @register_handler(WebhookEventKind.SUBSCRIPTION_CREATED)
        def handle_subscription_created(envelope, user) -> ServiceResult:
            ...

    Args:
        kind: The event kind the handler reconciles

    Returns:
        Decorator function that registers the handler
    """

    def decorator(func: Handler) -> Handler:
        WEBHOOK_HANDLERS[kind] = func
        logger.debug(f"Registered webhook handler for {kind.value}")
        return func

    return decorator


def dispatch_webhook(envelope: WebhookEnvelope) -> ServiceResult:
    """
    Reconcile one decoded event.

    Records the PaymentLog, then looks up the handler by kind. Kinds
    without a handler succeed as no-ops.

    Args:
        envelope: The decoded event

    Returns:
        ServiceResult from the handler, or success if no handler
    """
    user = resolve_user(envelope)

    payment_log = None
    if envelope.writes_payment_log:
        payment_log = PaymentLog.objects.create(
            user=user,
            response=envelope.payload,
            status=envelope.log_status,
            event=envelope.event_type,
        )

    handler = WEBHOOK_HANDLERS.get(envelope.kind)

    if not handler:
        logger.info(
            f"No handler registered for event type: {envelope.event_type}",
            extra=envelope.log_context(),
        )
        return ServiceResult.ok({"payment_log": payment_log})

    logger.info(
        f"Dispatching {envelope.event_type} to handler",
        extra=envelope.log_context(),
    )

    result = handler(envelope, user)
    if result.success:
        result.data = {"payment_log": payment_log, **(result.data or {})}
    return result


def process_webhook_event(
    envelope: WebhookEnvelope,
    webhook_event: WebhookEvent | None = None,
) -> ServiceResult:
    """
    Run dispatch_webhook atomically and record the outcome.

    An exception rolls back the event's writes, marks the WebhookEvent
    failed and is reported as a failed result instead of propagating.

    Args:
        envelope: The decoded event
        webhook_event: Audit row to update, None for events without an id

    Returns:
        ServiceResult from dispatch, or a failure describing the exception
    """
    if webhook_event is not None:
        webhook_event.mark_processing()
        webhook_event.save(update_fields=["status", "updated_at"])

    try:
        with transaction.atomic():
            result = dispatch_webhook(envelope)
    except Exception as e:
        logger.error(
            f"Webhook reconciliation failed: {type(e).__name__}",
            extra=envelope.log_context(),
            exc_info=True,
        )
        result = ServiceResult.failure(str(e), error_code="WEBHOOK_PROCESSING_FAILED")

    if webhook_event is not None:
        if result.success:
            webhook_event.mark_processed()
        else:
            webhook_event.mark_failed(result.error or "Unknown error")
        webhook_event.save(
            update_fields=["status", "processed_at", "error_message", "updated_at"]
        )

    return result


# =============================================================================
# Shared Helpers
# =============================================================================


def resolve_user(envelope: WebhookEnvelope):
    """
    Look up the user named in the event metadata.

    Returns None when the event names no user or an unknown one; the
    latter is logged because it means the metadata and the user table
    disagree.
    """
    if envelope.user_id is None:
        return None

    user = get_user_model().objects.find_by_id(envelope.user_id)
    if user is None:
        logger.warning("Webhook names unknown user", extra=envelope.log_context())
    return user


def from_unix(timestamp: Any) -> datetime | None:
    """Convert Stripe's Unix seconds to an aware UTC datetime."""
    if timestamp in (None, ""):
        return None
    return datetime.fromtimestamp(int(timestamp), tz=dt_timezone.utc)


def first_subscription_item(subscription: dict[str, Any]) -> dict[str, Any]:
    items = subscription.get("items") or {}
    data = items.get("data") if isinstance(items, dict) else None
    if data and isinstance(data[0], dict):
        return data[0]
    return {}


def _object_id(value: Any) -> str:
    if isinstance(value, dict):
        return value.get("id") or ""
    return value or ""


def create_subscription_record(
    subscription: dict[str, Any],
    user,
    subscription_type: str,
) -> Subscription:
    """
    Mirror a Stripe subscription object into a new Subscription row.

    Newer API versions report current_period_end and the price on the
    subscription items only, so both fall back to the first item.
    """
    item = first_subscription_item(subscription)
    metadata = subscription.get("metadata") or {}

    period_end = subscription.get("current_period_end")
    if period_end is None:
        period_end = item.get("current_period_end")

    price_id = metadata_value(
        CHECKOUT_METADATA.PRICE_ID,
        CHECKOUT_METADATA.PRICE_ID_FALLBACK,
        metadata,
    ) or _object_id(item.get("price"))

    return Subscription.objects.create(
        user=user,
        stripe_subscription_id=subscription.get("id") or "",
        subscription_status=subscription.get("status") or SubscriptionStatus.INCOMPLETE,
        start_date=from_unix(subscription.get("created")),
        end_date=from_unix(period_end),
        payment_status="complete",
        subscription_type=subscription_type or "",
        stripe_customer_id=_object_id(subscription.get("customer")),
        stripe_price_id=price_id,
    )


# =============================================================================
# Subscription Handlers
# =============================================================================


@register_handler(WebhookEventKind.SUBSCRIPTION_CREATED)
def handle_subscription_created(envelope: WebhookEnvelope, user) -> ServiceResult:
    """
    Mirror a newly created Stripe subscription.

    The subscription type records the status Stripe created it with
    (e.g. "trialing" or "incomplete").
    """
    subscription = create_subscription_record(
        envelope.object,
        user,
        subscription_type=envelope.status or "",
    )

    logger.info(
        "Subscription recorded",
        extra={
            **envelope.log_context(),
            "subscription_id": subscription.stripe_subscription_id,
            "status": subscription.subscription_status,
        },
    )
    return ServiceResult.ok({"subscription": subscription})


@register_handler(WebhookEventKind.SUBSCRIPTION_UPDATED)
def handle_subscription_updated(envelope: WebhookEnvelope, user) -> ServiceResult:
    """
    Reconcile a subscription update.

    Three outcomes:
    - an incomplete row for this subscription exists: activate it
    - otherwise, unless cancellation at period end is scheduled: record a
      renewal row and close the checkout's PaymentLog
    - otherwise nothing is written
    """
    stripe_subscription_id = envelope.object.get("id")
    log_context = {**envelope.log_context(), "subscription_id": stripe_subscription_id}

    incomplete = (
        Subscription.objects.select_for_update()
        .filter(
            stripe_subscription_id=stripe_subscription_id,
            subscription_status=SubscriptionStatus.INCOMPLETE,
        )
        .first()
    )
    if incomplete is not None:
        incomplete.activate()
        incomplete.save()
        logger.info("Subscription activated", extra=log_context)
        return ServiceResult.ok({"subscription": incomplete, "activated": True})

    if envelope.object.get("cancel_at_period_end"):
        logger.info("Subscription cancellation scheduled upstream", extra=log_context)
        return ServiceResult.ok({"subscription": None})

    renewal = create_subscription_record(
        envelope.object,
        user,
        subscription_type=SubscriptionType.RENEWAL,
    )
    logger.info("Subscription renewal recorded", extra=log_context)

    complete_checkout_log(envelope)
    return ServiceResult.ok({"subscription": renewal})


def complete_checkout_log(envelope: WebhookEnvelope) -> int:
    """
    Copy the subscription outcome onto the PaymentLog created at checkout.

    Returns:
        Number of logs updated (0 when the id is absent, malformed or unknown)
    """
    if envelope.correlation_id is None:
        logger.warning("Subscription update without payment log id", extra=envelope.log_context())
        return 0

    try:
        log_id = uuid.UUID(envelope.correlation_id)
    except ValueError:
        logger.warning("Malformed payment log id", extra=envelope.log_context())
        return 0

    status = (
        PaymentLogStatus.SUCCESS
        if envelope.status == SubscriptionStatus.ACTIVE
        else envelope.log_status
    )
    updated = PaymentLog.objects.filter(id=log_id).update(
        response=envelope.payload,
        status=status,
        event=envelope.event_type,
        updated_at=timezone.now(),
    )
    if not updated:
        logger.warning("Payment log not found", extra=envelope.log_context())
    return updated
