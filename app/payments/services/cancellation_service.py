"""
Cancellation service for payments and subscriptions.

Two independent operations:

- cancel_payment: the customer backed out of the hosted checkout page and
  the front end reports the PaymentLog id from the cancel URL.
- cancel_subscription: the customer stops a live subscription. Stripe is
  told to cancel at period end; the local row changes only when the
  resulting webhook arrives.

Usage:
    from payments.services import CancellationService

    CancellationService.cancel_payment(payment_id=request.data["paymentId"])
    CancellationService.cancel_subscription(
        user=request.user,
        subscription_id="sub_xxx",
    )
"""

from __future__ import annotations

import uuid

from django.utils import timezone

from core.exceptions import ValidationError
from core.services import BaseService

from payments.adapters import StripeAdapter, SubscriptionResult
from payments.exceptions import SubscriptionNotFoundError
from payments.models import PaymentLog, Subscription
from payments.services.checkout_service import MISSING_PARAMETERS_MESSAGE
from payments.state_machines import PaymentLogStatus


class CancellationService(BaseService):
    """Cancels pending payments and live subscriptions."""

    @classmethod
    def cancel_payment(cls, payment_id: str | None) -> int:
        """
        Mark the PaymentLog with payment_id as cancelled.

        An id that is not a valid UUID, or matches no log, updates nothing
        and is not an error.

        Args:
            payment_id: PaymentLog id echoed back on the cancel URL

        Returns:
            Number of logs updated (0 or 1)

        Raises:
            ValidationError: payment_id missing
        """
        if not payment_id:
            raise ValidationError(MISSING_PARAMETERS_MESSAGE)

        logger = cls.get_logger()

        try:
            log_id = uuid.UUID(str(payment_id))
        except ValueError:
            logger.debug(
                "Cancel payment ignored, malformed id",
                extra={"payment_log_id": payment_id},
            )
            return 0

        with cls.atomic():
            updated = PaymentLog.objects.filter(id=log_id).update(
                status=PaymentLogStatus.CANCEL,
                event=PaymentLogStatus.CANCEL,
                updated_at=timezone.now(),
            )

        if updated:
            logger.info("Payment cancelled", extra={"payment_log_id": str(log_id)})
        else:
            logger.debug(
                "Cancel payment matched no log",
                extra={"payment_log_id": str(log_id)},
            )
        return updated

    @classmethod
    def cancel_subscription(
        cls,
        user,
        subscription_id: str | None,
        processor=StripeAdapter,
    ) -> SubscriptionResult:
        """
        Schedule cancellation of user's live subscription at period end.

        Args:
            user: The authenticated user (request.user)
            subscription_id: Stripe Subscription ID (sub_xxx)
            processor: Payment processor client

        Returns:
            SubscriptionResult reported by the processor

        Raises:
            ValidationError: subscription_id missing
            SubscriptionNotFoundError: user holds no current subscription with this id
            StripeError: Stripe call failed
        """
        if not subscription_id:
            raise ValidationError(MISSING_PARAMETERS_MESSAGE)

        owned = Subscription.objects.current_for(user).filter(
            stripe_subscription_id=subscription_id,
        )
        if not owned.exists():
            raise SubscriptionNotFoundError("Subscription does not exist.")

        result = processor.update_subscription(
            subscription_id,
            cancel_at_period_end=True,
        )

        cls.get_logger().info(
            "Subscription cancellation scheduled",
            extra={
                "user_id": user.pk,
                "subscription_id": subscription_id,
                "status": result.status,
            },
        )
        return result
