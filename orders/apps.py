"""Django app configuration for the Orders app."""

from django.apps import AppConfig


class OrdersConfig(AppConfig):
    """Checkout sessions, Stripe webhooks, Printful fulfillment and order records."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "orders"
