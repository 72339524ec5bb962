"""
Webhook endpoint views for Stripe.

This module provides the HTTP endpoint for receiving Stripe webhooks.
The view:
1. Verifies the webhook signature
2. Decodes the event into a WebhookEnvelope
3. Creates/retrieves the WebhookEvent record (duplicate suppression)
4. Reconciles the event synchronously
5. Returns 200

Usage:
    # In urls.py
    from payments.webhooks.views import stripe_webhook

    urlpatterns = [
        path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
    ]
"""

from __future__ import annotations

import json
import logging

from django.conf import settings
from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from core.exceptions import ValidationError

from payments.adapters import StripeAdapter
from payments.exceptions import WebhookSignatureError
from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus
from payments.webhooks.envelope import WebhookEnvelope
from payments.webhooks.handlers import process_webhook_event


logger = logging.getLogger(__name__)


def unsigned_webhooks_allowed() -> bool:
    """Unsigned payloads are accepted only in development with no secret set."""
    return bool(
        getattr(settings, "STRIPE_WEBHOOK_ALLOW_UNSIGNED", False)
        and not getattr(settings, "STRIPE_WEBHOOK_SECRET", "")
    )


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> HttpResponse:
    """
    Receive and reconcile Stripe webhook events.

    Security:
    - Signature verification prevents spoofed webhooks
    - CSRF exemption required for external webhooks
    - Only POST requests accepted

    Duplicates:
    - WebhookEvent.stripe_event_id is unique
    - Events already processed return 200 without reconciling again
    - Failed events are reconciled again when Stripe redelivers them

    Returns:
        HttpResponse with status:
        - 200 with an empty body: event accepted (new, duplicate, or failed
          during reconciliation)
        - 400: Missing/invalid signature or malformed event

    Example Stripe-Signature header:
        t=1614556800,v1=xxx,v0=yyy
    """
    payload = request.body
    signature = request.headers.get("Stripe-Signature", "")

    # Step 1: Verify signature
    if not signature and unsigned_webhooks_allowed():
        try:
            event_data = json.loads(payload)
        except ValueError:
            logger.warning("Unsigned webhook payload is not JSON")
            return HttpResponse("Invalid payload", status=400)
        logger.warning("Accepting unsigned webhook (development only)")
    elif not signature:
        logger.warning("Webhook received without Stripe-Signature header")
        return HttpResponse("Missing signature", status=400)
    else:
        try:
            event_data = StripeAdapter.verify_webhook_signature(payload, signature)
        except WebhookSignatureError as e:
            logger.warning(
                "Webhook signature verification failed",
                extra={"error": str(e)},
            )
            return HttpResponse("Invalid signature", status=400)
        except Exception as e:
            logger.error(
                f"Unexpected error verifying webhook: {type(e).__name__}",
                exc_info=True,
            )
            return HttpResponse("Verification error", status=400)

    # Step 2: Decode
    try:
        envelope = WebhookEnvelope.from_payload(event_data)
    except ValidationError:
        logger.warning("Webhook missing required fields")
        return HttpResponse("Invalid event", status=400)

    logger.info(
        f"Received Stripe webhook: {envelope.event_type}",
        extra=envelope.log_context(),
    )

    # Step 3: Create/get WebhookEvent
    webhook_event = None
    if envelope.event_id:
        webhook_event, created = WebhookEvent.objects.get_or_create(
            stripe_event_id=envelope.event_id,
            defaults={
                "event_type": envelope.event_type,
                "payload": envelope.payload,
                "status": WebhookEventStatus.PENDING,
            },
        )

        if not created and webhook_event.is_processed:
            logger.info(
                "Webhook already processed, returning success",
                extra={"stripe_event_id": envelope.event_id},
            )
            return HttpResponse(status=200)

    # Step 4: Reconcile
    result = process_webhook_event(envelope, webhook_event)
    if not result.success:
        logger.warning(
            "Webhook accepted without reconciliation",
            extra={**envelope.log_context(), "error": result.error},
        )

    return HttpResponse(status=200)
