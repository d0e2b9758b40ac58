"""Django app configuration for the users app."""

from django.apps import AppConfig


class UsersConfig(AppConfig):
    """Members, authentication and profiles."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "users"
