"""Orders app models.

Orders are frozen snapshots of a validated cart. After creation only the
status, timestamps and totals may change; line items and status history
are append-only.
"""

import uuid
from decimal import Decimal

from common.choices import OrderStatus, ProductType
from common.models import TimeStampedModel
from django.db import models


class ImmutableRowError(Exception):
    """Raised when code tries to rewrite or delete an append-only row."""


class AppendOnlyModel(models.Model):
    """Rows may be inserted; saving an existing row or deleting one raises."""

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRowError(f"{type(self).__name__} rows cannot be modified")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRowError(f"{type(self).__name__} rows cannot be deleted")


class Order(TimeStampedModel):
    """Purchase order capturing a snapshot of a checked-out cart.

    Totals are denormalized for reporting and auditability; tax is always 0.
    """

    STATUS_PENDING = OrderStatus.PENDING
    STATUS_CONFIRMED = OrderStatus.CONFIRMED
    STATUS_PROCESSING = OrderStatus.PROCESSING
    STATUS_SHIPPED = OrderStatus.SHIPPED
    STATUS_DELIVERED = OrderStatus.DELIVERED
    STATUS_CANCELLED = OrderStatus.CANCELLED
    STATUS_CHOICES = OrderStatus.choices

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    tenant = models.ForeignKey("tenants.Tenant", related_name="orders", on_delete=models.PROTECT)
    user_id = models.UUIDField(db_index=True)
    order_number = models.CharField(max_length=32)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="CHF")
    shipping_address = models.JSONField(null=True, blank=True)
    billing_address = models.JSONField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["tenant", "user_id", "status", "created_at"], name="orders_orde_tenant__4b8e21_idx"
            ),
        ]
        constraints = [
            models.UniqueConstraint(fields=["tenant", "order_number"], name="unique_order_number_per_tenant"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"Order {self.order_number} user={self.user_id} status={self.status}"


class OrderItem(AppendOnlyModel):
    """Line item within an order.

    Snapshots product info at checkout time (name, SKU, unit price, configuration).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, related_name="items", on_delete=models.CASCADE)
    product_id = models.UUIDField()
    variant_id = models.UUIDField(null=True, blank=True)
    product_type = models.CharField(max_length=16, choices=ProductType.choices, default=ProductType.SIMPLE)
    product_name = models.CharField(max_length=255, blank=True, default="")
    sku = models.CharField(max_length=128, blank=True, default="")
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="CHF")
    configuration = models.JSONField(null=True, blank=True)
    position = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        # Rows of one order share created_at; position keeps cart order.
        ordering = ["position", "created_at"]
        constraints = [
            models.CheckConstraint(name="orderitem_price_non_negative", condition=models.Q(unit_price__gte=0)),
            models.CheckConstraint(name="orderitem_quantity_positive", condition=models.Q(quantity__gte=1)),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"OrderItem#{self.id} order={self.order_id} product={self.product_id} qty={self.quantity}"


class OrderStatusLog(AppendOnlyModel):
    """One row per status change; `from_status` is empty only for the creation entry."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(Order, related_name="status_history", on_delete=models.CASCADE)
    from_status = models.CharField(max_length=16, choices=OrderStatus.choices, null=True, blank=True)
    to_status = models.CharField(max_length=16, choices=OrderStatus.choices)
    changed_by = models.UUIDField(null=True, blank=True)
    note = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.order_id}: {self.from_status or '-'} -> {self.to_status}"


class OrderSequence(models.Model):
    """Per-tenant, per-day counter behind order numbers."""

    tenant = models.ForeignKey("tenants.Tenant", related_name="order_sequences", on_delete=models.CASCADE)
    day = models.DateField()
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["tenant", "day"], name="unique_order_sequence_per_day"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.tenant_id} {self.day:%Y%m%d} #{self.last_value}"


class IdempotencyKey(TimeStampedModel):
    """Stores idempotent request results to prevent duplicate processing."""

    key = models.CharField(max_length=128)
    scope = models.CharField(max_length=128)
    path = models.CharField(max_length=255)
    method = models.CharField(max_length=16)
    request_hash = models.CharField(max_length=64, null=True, blank=True)
    response_code = models.IntegerField(null=True, blank=True)
    response_json = models.JSONField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True, db_index=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["key", "scope", "path", "method"], name="uniq_idem_scope_path_method"),
        ]
