"""
Payment admin configuration.

Registers the subscription mirror, payment logs and received webhook
events with the Django admin. Payment logs and webhook events form the
audit trail and cannot be deleted.
"""

from django.contrib import admin

from payments.models import PaymentLog, Subscription, WebhookEvent

__all__ = [
    "SubscriptionAdmin",
    "PaymentLogAdmin",
    "WebhookEventAdmin",
]


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    """
    Admin configuration for Subscription.

    One row per subscription period; renewals add rows with the same
    Stripe subscription id.
    """

    list_display = [
        "id",
        "user",
        "stripe_subscription_id",
        "subscription_status",
        "subscription_type",
        "end_date",
        "created_at",
    ]
    list_filter = ["subscription_status", "subscription_type", "payment_status"]
    search_fields = [
        "id",
        "stripe_subscription_id",
        "stripe_customer_id",
        "user__email",
    ]
    readonly_fields = ["id", "created_at", "updated_at"]
    raw_id_fields = ["user"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "user", "subscription_status", "subscription_type"),
            },
        ),
        (
            "Stripe",
            {
                "fields": (
                    "stripe_subscription_id",
                    "stripe_customer_id",
                    "stripe_price_id",
                    "payment_status",
                ),
            },
        ),
        (
            "Period",
            {
                "fields": ("start_date", "end_date"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )


@admin.register(PaymentLog)
class PaymentLogAdmin(admin.ModelAdmin):
    """
    Admin configuration for PaymentLog.

    Shows checkout requests and the webhook payloads recorded against them.
    """

    list_display = ["id", "user", "status", "event", "created_at"]
    list_filter = ["status", "event", "created_at"]
    search_fields = ["id", "user__email", "event"]
    readonly_fields = ["id", "created_at", "updated_at", "request", "response"]
    raw_id_fields = ["user"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for payment logs (audit trail)."""
        return False


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    """
    Admin configuration for WebhookEvent.

    Provides visibility into webhook processing status.
    Webhook events are immutable once received.
    """

    list_display = [
        "id",
        "stripe_event_id",
        "event_type",
        "status",
        "processed_at",
        "created_at",
    ]
    list_filter = ["status", "event_type", "created_at"]
    search_fields = ["id", "stripe_event_id", "event_type"]
    readonly_fields = [
        "id",
        "created_at",
        "updated_at",
        "stripe_event_id",
        "event_type",
        "payload",
        "processed_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "stripe_event_id", "event_type", "status"),
            },
        ),
        (
            "Processing",
            {
                "fields": ("processed_at",),
            },
        ),
        (
            "Error Info",
            {
                "fields": ("error_message",),
                "classes": ("collapse",),
            },
        ),
        (
            "Payload",
            {
                "fields": ("payload",),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for webhook events (audit trail)."""
        return False
