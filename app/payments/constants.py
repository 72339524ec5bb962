"""
Constants for the Stripe checkout metadata contract.

Checkout writes these keys into session and subscription metadata; Stripe
echoes them back on every later event for that subscription, including
renewals. Subscriptions created before the keys settled carry the
snake_case spellings, so readers accept both.

Import example:
    from payments.constants import CHECKOUT_METADATA
"""

from typing import Final


class CHECKOUT_METADATA:
    """Metadata keys attached to checkout sessions and subscriptions."""

    USER_ID: Final[str] = "userId"
    PAYMENT_LOG: Final[str] = "paymentLog"
    PRICE_ID: Final[str] = "priceId"

    # Accepted when reading only
    USER_ID_FALLBACK: Final[str] = "user_id"
    PAYMENT_LOG_FALLBACK: Final[str] = "payment_log_id"
    PRICE_ID_FALLBACK: Final[str] = "price_id"


def metadata_value(key: str, fallback: str, *sources: dict):
    """Return the first non-empty value for key, then fallback, across sources."""
    for name in (key, fallback):
        for source in sources:
            value = source.get(name)
            if value not in (None, ""):
                return value
    return None
