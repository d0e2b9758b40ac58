"""Turn Stripe product listings into storefront products.

Stripe holds one product per sellable SKU ("KSO Hoodie - Black / M").
The storefront wants one product per design with its SKUs as variants, so
listings are grouped and each group becomes a `CatalogProduct`.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from django.conf import settings

NAME_SEPARATOR = " - "
OPTION_SEPARATOR = " / "
DEFAULT_OPTION = "Default"
PLACEHOLDER_IMAGE = "/placeholder-product.jpg"
DROPSHIP_INVENTORY = 999


@dataclass
class CatalogVariant:
    id: str
    name: str
    color: str
    size: str
    price: Decimal
    stripe_product_id: str
    stripe_price_id: str
    printful_variant_id: str
    is_available: bool = True


@dataclass
class CatalogProduct:
    id: str
    name: str
    description: str
    price: Decimal
    image: str
    category: str
    stripe_product_id: str
    stripe_price_id: str
    printful_product_id: str
    inventory_count: int
    is_active: bool
    variants: list[CatalogVariant] = field(default_factory=list)


def base_name(name: str) -> str:
    """Text before the first `" - "`, or the whole name."""
    return name.split(NAME_SEPARATOR)[0] if NAME_SEPARATOR in name else name


def variant_label(name: str) -> str:
    return name.split(NAME_SEPARATOR)[1] if NAME_SEPARATOR in name else DEFAULT_OPTION


def split_options(label: str) -> tuple[str, str]:
    """Return `(color, size)` for a variant label."""

    if OPTION_SEPARATOR in label:
        parts = label.split(OPTION_SEPARATOR)
        return parts[0] or DEFAULT_OPTION, parts[1] or DEFAULT_OPTION
    return label or DEFAULT_OPTION, DEFAULT_OPTION


def group_key(listing: dict) -> str:
    """Explicit `variant_group_id` metadata wins over the name convention."""

    group_id = (listing.get("metadata") or {}).get("variant_group_id")
    if group_id:
        return f"group:{group_id}"
    return f"name:{base_name(listing.get('name') or '')}"


def price_of(listing: dict) -> tuple[Decimal, str]:
    """Major-unit amount and id of the listing's default price."""

    default_price = listing.get("default_price")
    if not isinstance(default_price, dict):
        return Decimal("0"), default_price if isinstance(default_price, str) else ""
    unit_amount = default_price.get("unit_amount")
    amount = Decimal(unit_amount) / 100 if unit_amount is not None else Decimal("0")
    return amount, default_price.get("id") or ""


def inventory_of(metadata: dict) -> int:
    if metadata.get("printful_product_id"):
        return DROPSHIP_INVENTORY
    try:
        return int(metadata.get("inventory_count") or 0)
    except (TypeError, ValueError):
        return 0


def to_variant(listing: dict) -> CatalogVariant:
    color, size = split_options(variant_label(listing.get("name") or ""))
    price, price_id = price_of(listing)
    metadata = listing.get("metadata") or {}
    return CatalogVariant(
        id=listing["id"],
        name=f"{color}{OPTION_SEPARATOR}{size}",
        color=color,
        size=size,
        price=price,
        stripe_product_id=listing["id"],
        stripe_price_id=price_id,
        printful_variant_id=metadata.get("printful_variant_id") or "",
    )


def adapt_listings(listings: list[dict]) -> list[CatalogProduct]:
    """Group listings into products, preserving first-seen order.

    The first listing of each group supplies the product-level fields.
    """

    groups: dict[str, list[dict]] = {}
    for listing in listings:
        groups.setdefault(group_key(listing), []).append(listing)

    products = []
    for members in groups.values():
        first = members[0]
        metadata = first.get("metadata") or {}
        name = base_name(first.get("name") or "")
        price, price_id = price_of(first)
        images = first.get("images") or []
        products.append(
            CatalogProduct(
                id=first["id"],
                name=name,
                description=first.get("description") or f"{settings.CATALOG_DESCRIPTION_PREFIX} {name}",
                price=price,
                image=images[0] if images else PLACEHOLDER_IMAGE,
                category=metadata.get("category") or "",
                stripe_product_id=first["id"],
                stripe_price_id=price_id,
                printful_product_id=metadata.get("printful_product_id") or "",
                inventory_count=inventory_of(metadata),
                is_active=bool(first.get("active", True)),
                variants=[to_variant(listing) for listing in members],
            )
        )
    return products
