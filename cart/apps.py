"""Django app configuration for the Cart app."""

from django.apps import AppConfig


class CartConfig(AppConfig):
    """Per-member persisted shopping carts."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "cart"
