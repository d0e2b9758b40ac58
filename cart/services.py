"""Cart services: whole-cart replacement, item removal and clearing.

Reads and writes always hit the `CartItem` table; there is no cache to
invalidate. Database errors caused by a missing cart table are raised as
`StorageUnavailable`; every other database error propagates unchanged.
Every operation raises `Unauthenticated` when called without a member.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal

from common.exceptions import StorageUnavailable, Unauthenticated
from django.db import DatabaseError, transaction
from django.utils import timezone

from .models import CartItem
from .selectors import cart_items_for_user

logger = logging.getLogger("kso.cart")

UNDEFINED_TABLE = "42P01"


@dataclass(frozen=True)
class CartItemKey:
    """Identity of a cart row within one member's cart."""

    product_id: str
    variant_id: str = ""

    @classmethod
    def parse(cls, composite_id: str) -> "CartItemKey":
        """Split `productId-variantId` on the first hyphen.

        Everything after the first hyphen is the variant id, so variant ids
        may themselves contain hyphens.
        """
        product_id, _, variant_id = str(composite_id).partition("-")
        return cls(product_id=product_id, variant_id=variant_id)

    def __str__(self) -> str:
        return f"{self.product_id}-{self.variant_id}" if self.variant_id else self.product_id


def is_missing_table_error(exc: Exception) -> bool:
    cause = exc.__cause__
    code = getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)
    if code == UNDEFINED_TABLE:
        return True
    return "no such table" in str(exc).lower()


def require_member(user):
    """Return `user`, or raise `Unauthenticated` when no member resolved."""

    if user is None or not getattr(user, "is_authenticated", False):
        raise Unauthenticated()
    return user


@contextmanager
def storage_errors():
    """Re-raise missing-table database errors as `StorageUnavailable`."""

    try:
        yield
    except DatabaseError as exc:
        if is_missing_table_error(exc):
            logger.error("cart.storage_unavailable", extra={"event": "cart.storage_unavailable", "error": str(exc)})
            raise StorageUnavailable() from exc
        raise


def get_cart(*, user) -> list[CartItem]:
    """Return the user's cart items in insertion order."""

    require_member(user)
    with storage_errors():
        return list(cart_items_for_user(user=user))


def replace_cart(*, user, items: list[dict]) -> list[CartItem]:
    """Make the user's cart equal to `items`.

    Each entry carries a composite `id` plus `name`, `price`, `image`,
    `quantity` and `stripe_price_id`. Rows are upserted on
    `(user, product_id, variant_id)` and rows whose key is absent from
    `items` are deleted afterwards, inside one transaction, so a concurrent
    reader sees either the old cart or the new one and never an empty cart.
    Duplicate ids in `items` are merged; the last entry wins.
    """

    require_member(user)
    merged: dict[CartItemKey, dict] = {}
    for entry in items:
        merged[CartItemKey.parse(entry["id"])] = entry

    now = timezone.now()
    rows = [
        CartItem(
            user=user,
            product_id=key.product_id,
            variant_id=key.variant_id,
            product_name=entry.get("name") or "",
            price=Decimal(str(entry.get("price") or 0)),
            product_image=entry.get("image") or "",
            quantity=int(entry.get("quantity") or 1),
            stripe_price_id=entry.get("stripe_price_id") or "",
            created_at=now,
            updated_at=now,
        )
        for key, entry in merged.items()
    ]

    with storage_errors(), transaction.atomic():
        if rows:
            CartItem.objects.bulk_create(
                rows,
                update_conflicts=True,
                unique_fields=["user", "product_id", "variant_id"],
                update_fields=["product_name", "product_image", "price", "quantity", "stripe_price_id", "updated_at"],
            )
        stale = [
            pk
            for pk, product_id, variant_id in CartItem.objects.filter(user=user).values_list(
                "id", "product_id", "variant_id"
            )
            if CartItemKey(product_id, variant_id) not in merged
        ]
        if stale:
            CartItem.objects.filter(user=user, id__in=stale).delete()

    logger.info(
        "cart.replaced",
        extra={
            "event": "cart.replaced",
            "user_id": getattr(user, "id", None),
            "item_count": len(rows),
            "removed": len(stale),
        },
    )
    return get_cart(user=user)


def delete_item(*, user, composite_id: str) -> bool:
    """Delete exactly the `(product_id, variant_id)` row named by `composite_id`.

    Returns True when a row was removed.
    """

    require_member(user)
    key = CartItemKey.parse(composite_id)
    with storage_errors(), transaction.atomic():
        deleted, _ = CartItem.objects.filter(
            user=user, product_id=key.product_id, variant_id=key.variant_id
        ).delete()
    logger.info(
        "cart.item_removed",
        extra={
            "event": "cart.item_removed",
            "user_id": getattr(user, "id", None),
            "item_id": str(key),
            "deleted": bool(deleted),
        },
    )
    return bool(deleted)


def clear_cart(*, user) -> int:
    """Delete all of the user's cart rows and return how many were removed."""

    require_member(user)
    with storage_errors(), transaction.atomic():
        deleted, _ = CartItem.objects.filter(user=user).delete()
    logger.info(
        "cart.cleared",
        extra={"event": "cart.cleared", "user_id": getattr(user, "id", None), "removed": deleted},
    )
    return deleted
