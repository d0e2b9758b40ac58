"""Hosted checkout session creation.

The cart contents ride along in the session metadata so the webhook can
rebuild "what was bought" without another lookup. Stripe caps metadata
values at 500 characters and a session at 50 keys, so a long cart is split
across numbered keys.
"""

import json
import logging
from decimal import ROUND_HALF_UP, Decimal

from common.exceptions import CheckoutError, ValidationError
from django.conf import settings
from integrations.stripe_api import as_dict, get_stripe

logger = logging.getLogger("kso.checkout")

METADATA_VALUE_LIMIT = 500
METADATA_MAX_KEYS = 50
ITEMS_KEY = "items"
PARTS_KEY = "items_parts"


def to_minor_units(price) -> int:
    return int((Decimal(str(price)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_line_items(items: list[dict]) -> list[dict]:
    """One Stripe line item per cart entry.

    Entries with a price id reference it; others get inline price data.
    """

    line_items = []
    for item in items:
        if item.get("stripe_price_id"):
            line_items.append({"price": item["stripe_price_id"], "quantity": item["quantity"]})
            continue
        product_data = {"name": item["name"]}
        if item.get("image"):
            product_data["images"] = [item["image"]]
        line_items.append(
            {
                "price_data": {
                    "currency": settings.CHECKOUT_CURRENCY,
                    "product_data": product_data,
                    "unit_amount": to_minor_units(item["price"]),
                },
                "quantity": item["quantity"],
            }
        )
    return line_items


def encode_cart_metadata(items: list[dict]) -> dict:
    """Serialize `[{id, quantity, stripe_price_id}]` into metadata keys."""

    snapshot = [
        {"id": item["id"], "quantity": item["quantity"], "stripe_price_id": item.get("stripe_price_id") or None}
        for item in items
    ]
    payload = json.dumps(snapshot, separators=(",", ":"))
    if len(payload) <= METADATA_VALUE_LIMIT:
        return {ITEMS_KEY: payload}

    chunks = [payload[i : i + METADATA_VALUE_LIMIT] for i in range(0, len(payload), METADATA_VALUE_LIMIT)]
    if len(chunks) + 1 > METADATA_MAX_KEYS:
        raise ValidationError("Cart is too large to check out in one order")
    metadata = {f"{ITEMS_KEY}_{n}": chunk for n, chunk in enumerate(chunks)}
    metadata[PARTS_KEY] = str(len(chunks))
    return metadata


def decode_cart_metadata(metadata: dict | None) -> list[dict]:
    """Inverse of `encode_cart_metadata`; returns [] when nothing usable is present."""

    metadata = metadata or {}
    if metadata.get(ITEMS_KEY):
        payload = metadata[ITEMS_KEY]
    elif metadata.get(PARTS_KEY):
        try:
            parts = int(metadata[PARTS_KEY])
        except ValueError:
            return []
        payload = "".join(metadata.get(f"{ITEMS_KEY}_{n}", "") for n in range(parts))
    else:
        return []
    try:
        items = json.loads(payload)
    except ValueError:
        logger.warning("checkout.metadata_unreadable", extra={"event": "checkout.metadata_unreadable"})
        return []
    return items if isinstance(items, list) else []


def create_checkout_session(*, items: list[dict], customer_email: str, user=None, idempotency_key=None) -> dict:
    """Create a hosted payment-mode session and return `{session_id, url}`.

    Nothing is written locally; a failure leaves the stored cart untouched.
    """

    if not items:
        raise ValidationError("No items in cart")
    if not customer_email:
        raise ValidationError("Customer email is required")

    frontend = settings.FRONTEND_URL.rstrip("/")
    params = {
        "mode": "payment",
        "payment_method_types": ["card"],
        "line_items": build_line_items(items),
        "customer_email": customer_email,
        "billing_address_collection": "required",
        "shipping_address_collection": {"allowed_countries": list(settings.CHECKOUT_ALLOWED_COUNTRIES)},
        "phone_number_collection": {"enabled": True},
        "customer_creation": "always",
        "success_url": f"{frontend}/shop/success?session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{frontend}/shop",
        "metadata": encode_cart_metadata(items),
    }
    user_id = getattr(user, "id", None) if getattr(user, "is_authenticated", False) else None
    if user_id:
        params["client_reference_id"] = str(user_id)
    if idempotency_key:
        params["idempotency_key"] = idempotency_key

    stripe = get_stripe()
    try:
        session = as_dict(stripe.checkout.Session.create(**params))
    except stripe.StripeError as exc:
        logger.error(
            "checkout.session_failed",
            extra={"event": "checkout.session_failed", "user_id": user_id, "error": str(exc)},
        )
        raise CheckoutError() from exc

    logger.info(
        "checkout.session_created",
        extra={
            "event": "checkout.session_created",
            "stripe_session_id": session.get("id"),
            "user_id": user_id,
            "line_items": len(params["line_items"]),
        },
    )
    return {"session_id": session.get("id"), "url": session.get("url")}
