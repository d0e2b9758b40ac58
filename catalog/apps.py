"""Django app configuration for catalog."""

from django.apps import AppConfig


class CatalogConfig(AppConfig):
    """Storefront catalog read from Stripe; no local tables."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "catalog"
