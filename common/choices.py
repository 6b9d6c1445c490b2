"""Shared enumerations and choices used across apps."""

from django.db import models


class CartStatus(models.TextChoices):
    """Statuses for shopping carts.

    Only `active` carts are mutable; `merged` and `completed` are terminal.
    """

    ACTIVE = "active", "Active"
    MERGED = "merged", "Merged"
    COMPLETED = "completed", "Completed"


class ProductType(models.TextChoices):
    """Catalog product types; each one is priced with its own strategy."""

    SIMPLE = "simple", "Simple"
    VARIANT = "variant", "Variant"
    BUNDLE = "bundle", "Bundle"
    PARAMETRIC = "parametric", "Parametric"


class OrderStatus(models.TextChoices):
    """Lifecycle statuses for orders."""

    PENDING = "pending", "Pending"
    CONFIRMED = "confirmed", "Confirmed"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"
