from rest_framework.permissions import BasePermission


class IsShopAdmin(BasePermission):
    """Allow members flagged as admins (or Django staff)."""

    message = "Admin access required."

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "is_shop_admin", False))
