"""Django app configuration for the Orders app."""

from django.apps import AppConfig


class OrdersConfig(AppConfig):
    """AppConfig for checkout and the order lifecycle."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "orders"
