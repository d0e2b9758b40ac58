"""Selectors for read-only cart queries."""

from .models import CartItem


def cart_items_for_user(*, user):
    """Return the user's cart rows, oldest first."""

    return CartItem.objects.filter(user=user).order_by("created_at", "id")

