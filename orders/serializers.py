"""DRF serializers for Orders."""

from rest_framework import serializers

from .models import Order, OrderItem, OrderStatusLog


class OrderItemSerializer(serializers.ModelSerializer):
    """API representation of a frozen order line."""

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "variant_id",
            "product_type",
            "product_name",
            "sku",
            "quantity",
            "unit_price",
            "total_price",
            "currency",
            "configuration",
            "created_at",
        ]
        read_only_fields = fields


class OrderStatusLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusLog
        fields = ["id", "from_status", "to_status", "changed_by", "note", "created_at"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """API representation for an order with its lines and status history."""

    tenant_id = serializers.UUIDField(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    status_history = OrderStatusLogSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "tenant_id",
            "user_id",
            "order_number",
            "status",
            "subtotal",
            "tax_amount",
            "total",
            "currency",
            "shipping_address",
            "billing_address",
            "notes",
            "items",
            "status_history",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CheckoutSerializer(serializers.Serializer):
    """Checkout input; addresses are free-form JSON objects."""

    shipping_address = serializers.DictField(required=False, allow_null=True)
    billing_address = serializers.DictField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
