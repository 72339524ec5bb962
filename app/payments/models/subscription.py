"""
Subscription model mirroring Stripe subscriptions.

Rows are written by webhook reconciliation only. Checkout reads them to
reject a second live subscription, and cancellation reads them to check
ownership before asking Stripe to cancel at period end.

Each renewal cycle adds a new row for the same stripe_subscription_id, so
the Stripe id is not unique here.

Usage:
    from payments.models import Subscription

    # Is the user already subscribed?
    if Subscription.objects.current_for(user).exists():
        ...

    # Promote an incomplete subscription once Stripe reports an update
    subscription.activate()  # incomplete -> active
    subscription.save()
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel
from core.model_mixins import UUIDPrimaryKeyMixin

from payments.state_machines import SubscriptionStatus, SubscriptionType


class SubscriptionQuerySet(models.QuerySet):
    """Chainable filters for subscription lookups."""

    def current(self):
        """Active or trialing subscriptions whose period has not ended."""
        return self.filter(
            subscription_status__in=SubscriptionStatus.current(),
            end_date__gte=timezone.now(),
        )

    def current_for(self, user):
        """Current subscriptions held by user."""
        return self.current().filter(user=user)


class Subscription(UUIDPrimaryKeyMixin, BaseModel):
    """
    One billing cycle of a Stripe subscription.

    State Flow:
        INCOMPLETE -> ACTIVE (customer.subscription.updated)
        Rows may also be created directly at any Stripe status.

    Fields:
        user: Subscriber (null when the event named an unknown user)
        stripe_subscription_id: Stripe Subscription ID (sub_xxx)
        subscription_status: Stripe status string (FSM managed)
        start_date: When Stripe created the subscription
        end_date: End of the current billing period
        payment_status: Local payment marker, "complete" for Stripe rows
        subscription_type: new / renewal / trial or the Stripe status at creation
        stripe_customer_id: Stripe Customer ID (cus_xxx)
        stripe_price_id: Stripe Price ID (price_xxx)
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="subscriptions",
        help_text="User holding the subscription",
    )

    # ==========================================================================
    # Stripe Integration
    # ==========================================================================

    stripe_subscription_id = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Stripe Subscription ID (sub_xxx), repeated across renewals",
    )

    stripe_customer_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Stripe Customer ID (cus_xxx)",
    )

    stripe_price_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Stripe Price ID (price_xxx)",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    # Not protected: reconciliation writes whatever status Stripe sent.
    subscription_status = FSMField(
        max_length=32,
        default=SubscriptionStatus.INCOMPLETE,
        db_index=True,
        help_text="Stripe subscription status",
    )

    subscription_type = models.CharField(
        max_length=32,
        blank=True,
        default="",
        help_text="new, renewal, trial, or the Stripe status at creation",
    )

    payment_status = models.CharField(
        max_length=32,
        default="complete",
        help_text="Local payment marker",
    )

    # ==========================================================================
    # Billing Period
    # ==========================================================================

    start_date = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the subscription was created on Stripe",
    )

    end_date = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="End of the current billing period",
    )

    objects = SubscriptionQuerySet.as_manager()

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Subscription"
        verbose_name_plural = "Subscriptions"
        indexes = [
            models.Index(
                fields=["user", "subscription_status", "end_date"],
                name="payments_su_user_id_6c1f0e_idx",
            ),
        ]

    def __str__(self) -> str:
        """Return string representation with Stripe id and status."""
        return f"Subscription({self.stripe_subscription_id}, {self.subscription_status})"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=subscription_status,
        source=SubscriptionStatus.INCOMPLETE,
        target=SubscriptionStatus.ACTIVE,
    )
    def activate(self):
        """
        Activate after Stripe reports the first update.

        Transition: INCOMPLETE -> ACTIVE
        """
        self.subscription_type = SubscriptionType.NEW
