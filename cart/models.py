"""Cart app models.

A cart belongs to a tenant and to exactly one owner: an authenticated user
(`user_id`) or a guest session (`session_id`). Users live in the identity
service, so owners are stored by value.
"""

import uuid
from decimal import Decimal

from common.choices import CartStatus, ProductType
from common.models import TimeStampedModel
from django.conf import settings
from django.db import models


class Cart(TimeStampedModel):
    """Shopping cart owned by a user or a guest session."""

    STATUS_ACTIVE = CartStatus.ACTIVE
    STATUS_MERGED = CartStatus.MERGED
    STATUS_COMPLETED = CartStatus.COMPLETED
    STATUS_CHOICES = CartStatus.choices

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey("tenants.Tenant", related_name="carts", on_delete=models.CASCADE)
    user_id = models.UUIDField(null=True, blank=True)
    session_id = models.CharField(max_length=64, null=True, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)

    class Meta:
        ordering = ["-updated_at"]
        indexes = [
            models.Index(fields=["tenant", "user_id", "status"], name="cart_cart_tenant__6c1b2e_idx"),
            models.Index(fields=["tenant", "session_id", "status"], name="cart_cart_tenant__9f4d0a_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                name="cart_single_owner",
                condition=(
                    models.Q(user_id__isnull=False, session_id__isnull=True)
                    | models.Q(user_id__isnull=True, session_id__isnull=False)
                ),
            ),
            models.UniqueConstraint(
                fields=["tenant", "user_id"],
                condition=models.Q(status=CartStatus.ACTIVE, user_id__isnull=False),
                name="unique_active_cart_per_user",
            ),
            models.UniqueConstraint(
                fields=["tenant", "session_id"],
                condition=models.Q(status=CartStatus.ACTIVE, session_id__isnull=False),
                name="unique_active_cart_per_session",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        owner = self.user_id or f"session:{self.session_id}"
        return f"Cart#{self.id} ({owner})"

    @property
    def is_active(self) -> bool:
        return self.status == CartStatus.ACTIVE

    @property
    def subtotal(self) -> Decimal:
        return sum((item.total_price for item in self.items.all()), Decimal("0.00"))

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items.all())

    @property
    def currency(self) -> str:
        first = next(iter(self.items.all()), None)
        if first is not None and first.currency:
            return first.currency
        return settings.DEFAULT_CURRENCY


class CartItem(TimeStampedModel):
    """Line item for a catalog product, optionally with a configuration."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cart = models.ForeignKey(Cart, related_name="items", on_delete=models.CASCADE)
    product_id = models.UUIDField()
    variant_id = models.UUIDField(null=True, blank=True)
    product_type = models.CharField(max_length=16, choices=ProductType.choices, default=ProductType.SIMPLE)
    product_name = models.CharField(max_length=255, blank=True, default="")
    sku = models.CharField(max_length=128, blank=True, default="")
    image_url = models.CharField(max_length=500, blank=True, default="")
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="CHF")
    configuration = models.JSONField(null=True, blank=True)
    config_hash = models.CharField(max_length=64, blank=True, default="", db_index=True)

    class Meta:
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                name="cart_item_quantity_positive",
                condition=models.Q(quantity__gte=1),
            ),
        ]
        indexes = [
            models.Index(
                fields=["cart", "product_id", "variant_id", "config_hash"], name="cart_cartit_cart_id_3e7a51_idx"
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"CartItem#{self.id} cart={self.cart_id} product={self.product_id} qty={self.quantity}"

    @property
    def total_price(self) -> Decimal:
        return (self.unit_price or Decimal("0.00")) * int(self.quantity)
