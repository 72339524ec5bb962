"""
Payments app for Stripe subscription integration.

This app handles:
- Checkout sessions for the subscription plan (optionally with a trial)
- Webhook reconciliation into Subscription and PaymentLog rows
- Cancelling a pending payment or an active subscription

Related apps:
    - authentication: User model owning subscriptions and payment logs

Usage:
    from payments.services import CheckoutService

    session = CheckoutService.create_checkout_session(
        user=request.user,
        success_url="https://app.example.com/success",
        cancel_url="https://app.example.com/cancel",
        checkout_type="trial",
    )
"""
