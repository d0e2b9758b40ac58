"""Catalog services: storefront product reads and the Printful → Stripe sync."""

import logging
from decimal import Decimal, InvalidOperation

from common.exceptions import CatalogError, UpstreamError
from django.conf import settings
from django.utils import timezone
from integrations.printful import PrintfulClient
from integrations.stripe_api import as_dict, get_stripe

from .adapters import NAME_SEPARATOR, CatalogProduct, adapt_listings

logger = logging.getLogger("kso.catalog")


def list_active_listings() -> list[dict]:
    """All active Stripe products with their default price expanded."""

    stripe = get_stripe()
    page = stripe.Product.list(active=True, expand=["data.default_price"], limit=100)
    return [as_dict(product) for product in page.auto_paging_iter()]


def fetch_products() -> list[CatalogProduct]:
    """Return the storefront catalog, or raise `CatalogError` with no partial result."""

    stripe = get_stripe()
    try:
        products = adapt_listings(list_active_listings())
    except (stripe.StripeError, KeyError, TypeError, ValueError) as exc:
        logger.exception("catalog.fetch_failed", extra={"event": "catalog.fetch_failed", "error": str(exc)})
        raise CatalogError() from exc
    logger.info("catalog.fetched", extra={"event": "catalog.fetched", "products": len(products)})
    return products


def to_cents(retail_price) -> int:
    try:
        return int((Decimal(str(retail_price)) * 100).quantize(Decimal("1")))
    except (InvalidOperation, TypeError):
        return 0


def variant_display_name(product_name: str, variant_name: str) -> str:
    """Printful variant names usually repeat the product name; keep only the option part."""

    prefix = f"{product_name}{NAME_SEPARATOR}"
    if variant_name.startswith(prefix):
        variant_name = variant_name[len(prefix) :]
    return variant_name or "Default"


def ensure_default_price(stripe, product: dict, amount: int) -> str:
    """Point the product's default price at `amount` cents, creating a price if needed."""

    current = product.get("default_price")
    if isinstance(current, str):
        current = as_dict(stripe.Price.retrieve(current))
    if current and current.get("unit_amount") == amount:
        return current["id"]

    price = as_dict(
        stripe.Price.create(product=product["id"], unit_amount=amount, currency=settings.CHECKOUT_CURRENCY)
    )
    stripe.Product.modify(product["id"], default_price=price["id"])
    logger.info(
        "catalog.price_updated",
        extra={"event": "catalog.price_updated", "stripe_product_id": product["id"], "unit_amount": amount},
    )
    return price["id"]


def upsert_variant_product(stripe, sync_product: dict, variant: dict, existing: dict | None) -> dict:
    """Create or update the Stripe product for one Printful sync variant."""

    product_name = sync_product.get("name") or ""
    label = variant_display_name(product_name, variant.get("name") or "")
    name = f"{product_name}{NAME_SEPARATOR}{label}"
    thumbnail = sync_product.get("thumbnail_url")
    fields = {
        "name": name,
        "description": f"{settings.CATALOG_DESCRIPTION_PREFIX} {name}",
        "images": [thumbnail] if thumbnail else [],
        "metadata": {
            "printful_product_id": str(sync_product["id"]),
            "printful_variant_id": str(variant["id"]),
            "variant_group_id": str(sync_product["id"]),
            "variant_name": label,
            "category": settings.CATALOG_DEFAULT_CATEGORY,
            "last_synced": timezone.now().isoformat(),
        },
    }
    amount = to_cents(variant.get("retail_price"))

    if existing:
        product = as_dict(stripe.Product.modify(existing["id"], active=True, **fields))
        product["default_price"] = existing.get("default_price")
        price_id = ensure_default_price(stripe, product, amount)
    else:
        product = as_dict(
            stripe.Product.create(
                default_price_data={"currency": settings.CHECKOUT_CURRENCY, "unit_amount": amount},
                **fields,
            )
        )
        default_price = product.get("default_price")
        price_id = default_price.get("id") if isinstance(default_price, dict) else default_price

    return {
        "name": name,
        "stripe_product_id": product["id"],
        "stripe_price_id": price_id or "",
        "printful_variant_id": str(variant["id"]),
        "created": existing is None,
    }


def remove_stripe_product(stripe, product: dict) -> None:
    """Delete a Stripe product; products with prices cannot be deleted, so archive those."""

    try:
        stripe.Product.delete(product["id"])
    except stripe.InvalidRequestError:
        stripe.Product.modify(product["id"], active=False)


def sync_printful_products(*, printful: PrintfulClient | None = None) -> dict:
    """Mirror every enabled Printful sync variant as a Stripe product.

    Stripe products that carry Printful metadata but whose variant (or
    product, for product-level entries) no longer exists are removed.
    Returns `{"synced": [...], "deleted": int, "total": int}`.
    """

    stripe = get_stripe()
    client = printful or PrintfulClient()
    try:
        known = [
            as_dict(p)
            for p in stripe.Product.list(limit=100, expand=["data.default_price"]).auto_paging_iter()
        ]
        by_variant = {
            p["metadata"]["printful_variant_id"]: p for p in known if (p.get("metadata") or {}).get("printful_variant_id")
        }

        live_products: set[str] = set()
        live_variants: set[str] = set()
        synced = []
        for store_product in client.get_store_products():
            detail = client.get_sync_product(store_product["id"])
            sync_product = detail.get("sync_product") or store_product
            live_products.add(str(sync_product["id"]))
            for variant in detail.get("sync_variants") or []:
                if variant.get("is_enabled") is False:
                    continue
                live_variants.add(str(variant["id"]))
                synced.append(upsert_variant_product(stripe, sync_product, variant, by_variant.get(str(variant["id"]))))

        deleted = 0
        for product in known:
            metadata = product.get("metadata") or {}
            variant_id = metadata.get("printful_variant_id")
            product_id = metadata.get("printful_product_id")
            if variant_id:
                orphaned = variant_id not in live_variants
            elif product_id:
                orphaned = product_id not in live_products
            else:
                orphaned = False
            if orphaned and product.get("active", True):
                remove_stripe_product(stripe, product)
                deleted += 1
    except stripe.StripeError as exc:
        logger.exception("catalog.sync_failed", extra={"event": "catalog.sync_failed", "error": str(exc)})
        raise UpstreamError("Failed to sync products") from exc
    finally:
        if printful is None:
            client.close()

    logger.info(
        "catalog.synced",
        extra={"event": "catalog.synced", "synced": len(synced), "deleted": deleted},
    )
    return {"synced": synced, "deleted": deleted, "total": len(synced)}
