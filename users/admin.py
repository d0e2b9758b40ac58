"""Admin registration for the custom User model."""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Django's `UserAdmin` with the member profile fields added."""

    list_display = (
        "username",
        "email",
        "user_type",
        "board_position",
        "is_admin",
        "is_staff",
        "is_active",
        "date_joined",
    )
    list_filter = ("user_type", "is_admin", "is_staff", "is_active")
    search_fields = ("username", "email", "first_name", "last_name", "board_position")
    ordering = ("-date_joined",)
    readonly_fields = ("last_login", "date_joined")

    fieldsets = (
        (None, {"fields": ("username", "password")}),
        ("Personal info", {"fields": ("first_name", "last_name", "email")}),
        ("Membership", {"fields": ("user_type", "board_position")}),
        (
            "Permissions",
            {"fields": ("is_active", "is_admin", "is_staff", "is_superuser", "groups", "user_permissions")},
        ),
        ("Important dates", {"fields": ("last_login", "date_joined")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("username", "email", "password1", "password2"),
            },
        ),
    )

    filter_horizontal = ("groups", "user_permissions")
