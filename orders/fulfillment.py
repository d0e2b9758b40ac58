"""Map a completed checkout session to a Printful order.

Each purchased item is traced from its Stripe price to the Stripe product
and from there to the Printful sync variant stored in the product metadata.
Items that cannot be traced are dropped so the rest of the order still
ships; an order with nothing traceable is rejected as a whole.
"""

import logging

from common.exceptions import NoFulfillableItems, ValidationError
from integrations.printful import PrintfulClient
from integrations.stripe_api import as_dict, get_stripe

logger = logging.getLogger("kso.fulfillment")

DEFAULT_RECIPIENT_NAME = "Customer"
DEFAULT_COUNTRY = "US"


def shipping_details(session: dict) -> dict:
    """`{name, address}` for shipping, falling back to the customer details."""

    collected = session.get("collected_information") or {}
    for candidate in (collected.get("shipping_details"), session.get("shipping_details")):
        if candidate and candidate.get("address"):
            return candidate
    customer = session.get("customer_details") or {}
    return {"name": customer.get("name"), "address": customer.get("address")}


def build_recipient(session: dict) -> dict:
    customer = session.get("customer_details") or {}
    shipping = shipping_details(session)
    address = shipping.get("address") or {}
    return {
        "name": shipping.get("name") or customer.get("name") or DEFAULT_RECIPIENT_NAME,
        "email": customer.get("email"),
        "phone": customer.get("phone") or "",
        "address1": address.get("line1") or "",
        "address2": address.get("line2") or "",
        "city": address.get("city") or "",
        "state_code": address.get("state") or "",
        "country_code": address.get("country") or DEFAULT_COUNTRY,
        "zip": address.get("postal_code") or "",
    }


def resolve_variant_id(stripe, item: dict):
    """Printful sync variant id for one cart item, or None when it cannot be traced."""

    price_id = item.get("stripe_price_id")
    if not price_id:
        logger.warning(
            "fulfillment.item_without_price",
            extra={"event": "fulfillment.item_without_price", "item_id": item.get("id")},
        )
        return None
    try:
        price = as_dict(stripe.Price.retrieve(price_id))
        product_ref = price.get("product")
        product_id = product_ref.get("id") if isinstance(product_ref, dict) else product_ref
        product = as_dict(stripe.Product.retrieve(product_id))
    except stripe.StripeError as exc:
        logger.warning(
            "fulfillment.lookup_failed",
            extra={
                "event": "fulfillment.lookup_failed",
                "item_id": item.get("id"),
                "stripe_price_id": price_id,
                "error": str(exc),
            },
        )
        return None

    variant_id = (product.get("metadata") or {}).get("printful_variant_id")
    if not variant_id:
        logger.warning(
            "fulfillment.item_without_variant",
            extra={"event": "fulfillment.item_without_variant", "item_id": item.get("id"), "stripe_product_id": product_id},
        )
        return None
    return int(variant_id) if str(variant_id).isdigit() else variant_id


def map_items(items: list[dict]) -> list[dict]:
    """Resolve items one at a time; untraceable items are left out."""

    stripe = get_stripe()
    mapped = []
    for item in items:
        variant_id = resolve_variant_id(stripe, item)
        if variant_id is None:
            continue
        mapped.append({"sync_variant_id": variant_id, "quantity": item.get("quantity") or 1})
    return mapped


def build_fulfillment_order(session: dict, items: list[dict]) -> dict:
    """Printful order payload for the session.

    Raises `ValidationError` without an email or items and
    `NoFulfillableItems` when no item can be traced to a Printful variant.
    """

    email = (session.get("customer_details") or {}).get("email")
    if not email or not items:
        raise ValidationError("Missing required order information")

    mapped = map_items(items)
    if not mapped:
        raise NoFulfillableItems()
    if len(mapped) < len(items):
        logger.warning(
            "fulfillment.partial",
            extra={
                "event": "fulfillment.partial",
                "stripe_session_id": session.get("id"),
                "requested": len(items),
                "fulfillable": len(mapped),
            },
        )
    return {"recipient": build_recipient(session), "items": mapped, "external_id": session["id"]}


def submit_fulfillment_order(session: dict, items: list[dict], *, printful: PrintfulClient | None = None) -> dict:
    """Build and submit the Printful order; returns Printful's order object."""

    order = build_fulfillment_order(session, items)
    if printful is not None:
        result = printful.create_order(order)
    else:
        with PrintfulClient() as client:
            result = client.create_order(order)
    logger.info(
        "fulfillment.submitted",
        extra={
            "event": "fulfillment.submitted",
            "stripe_session_id": session.get("id"),
            "printful_order_id": result.get("id"),
            "items": len(order["items"]),
        },
    )
    return result
