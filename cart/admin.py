"""Admin registration for cart rows.

Support staff can inspect a member's cart and clear it when the storefront
and the stored cart disagree.
"""

from django.contrib import admin, messages

from .models import CartItem
from .services import clear_cart


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "product_id", "variant_id", "product_name", "quantity", "price", "updated_at")
    search_fields = ("product_id", "variant_id", "product_name", "user__email", "user__username")
    list_select_related = ("user",)
    ordering = ("user", "created_at")
    readonly_fields = ("created_at", "updated_at")
    raw_id_fields = ("user",)

    @admin.action(description="Clear the carts of the selected rows' owners")
    def action_clear_owner_carts(self, request, queryset):
        users = {item.user for item in queryset.select_related("user")}
        removed = sum(clear_cart(user=user) for user in users)
        messages.success(request, f"Cleared {len(users)} cart(s), {removed} item(s) removed.")

    actions = ["action_clear_owner_carts"]
