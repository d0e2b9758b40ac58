"""Cart app models.

A member's cart is the set of their `CartItem` rows; there is no separate
cart entity. Each row snapshots the product data shown in the storefront so
the cart renders without a catalog lookup.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    """Abstract base model adding created/updated timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class CartItem(TimeStampedModel):
    """One product (and optional variant) in a member's cart.

    `variant_id` is an empty string for items without a variant so the
    `(user, product_id, variant_id)` uniqueness constraint covers them too.
    """

    user = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="cart_items", on_delete=models.CASCADE)
    product_id = models.CharField(max_length=255)
    variant_id = models.CharField(max_length=255, blank=True, default="")
    product_name = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    product_image = models.CharField(max_length=1024, blank=True, default="")
    quantity = models.PositiveIntegerField(default=1)
    stripe_price_id = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(fields=["user", "product_id", "variant_id"], name="unique_cart_item_per_user"),
            models.CheckConstraint(
                name="cart_item_quantity_positive",
                condition=models.Q(quantity__gte=1),
            ),
        ]
        indexes = [
            models.Index(fields=["user", "created_at"], name="cart_item_user_created_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"CartItem#{self.id} user={self.user_id} {self.composite_id} qty={self.quantity}"

    @property
    def composite_id(self) -> str:
        """Storefront id: `productId` or `productId-variantId`."""
        if self.variant_id:
            return f"{self.product_id}-{self.variant_id}"
        return self.product_id
