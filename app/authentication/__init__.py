"""
Authentication application.

Provides the custom email-based User model. Token issuing and request
authentication are handled by djangorestframework-simplejwt; this app only
owns the user record that subscriptions and payment logs point at.

Usage:
    from authentication.models import User
"""
