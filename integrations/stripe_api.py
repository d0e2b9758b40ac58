"""Stripe SDK configuration shared by catalog, checkout and webhook code.

Call `get_stripe()` instead of importing `stripe` directly so the API key
and network retry policy always come from settings.
"""

import stripe
from django.conf import settings


def get_stripe():
    stripe.api_key = settings.STRIPE_SECRET_KEY
    stripe.max_network_retries = settings.STRIPE_MAX_NETWORK_RETRIES
    return stripe


def as_dict(obj) -> dict:
    """Plain-dict view of a StripeObject (or pass through a dict)."""

    if obj is None:
        return {}
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)
