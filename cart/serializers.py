"""Cart serializers for read and write operations."""

from rest_framework import serializers

from .models import CartItem
from .selectors import cart_totals
from .services import add_item, update_item_quantity


class CartItemReadSerializer(serializers.ModelSerializer):
    """Read serializer for a cart item."""

    total_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = CartItem
        fields = [
            "id",
            "product_id",
            "variant_id",
            "product_type",
            "product_name",
            "sku",
            "image_url",
            "quantity",
            "unit_price",
            "total_price",
            "currency",
            "configuration",
            "created_at",
            "updated_at",
        ]


class CartReadSerializer(serializers.Serializer):
    """Full cart snapshot: owner, status, items and derived totals."""

    id = serializers.UUIDField()
    tenant_id = serializers.UUIDField()
    user_id = serializers.UUIDField(allow_null=True)
    session_id = serializers.CharField(allow_null=True)
    status = serializers.CharField()
    items = CartItemReadSerializer(many=True)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField()
    item_count = serializers.IntegerField()
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()

    @classmethod
    def snapshot(cls, *, cart) -> dict:
        totals = cart_totals(cart=cart)
        return {
            "id": cart.id,
            "tenant_id": cart.tenant_id,
            "user_id": cart.user_id,
            "session_id": cart.session_id,
            "status": cart.status,
            "items": list(cart.items.all()),
            "created_at": cart.created_at,
            "updated_at": cart.updated_at,
            **totals,
        }

    @classmethod
    def from_cart(cls, *, cart):
        return cls(cls.snapshot(cart=cart))


class SkippedItemSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    product_id = serializers.UUIDField()
    code = serializers.CharField()
    message = serializers.CharField()


class CartValidationSerializer(CartReadSerializer):
    """Cart snapshot after re-pricing, plus the lines that could not be re-priced."""

    skipped_items = SkippedItemSerializer(many=True)

    @classmethod
    def from_validation(cls, *, validation):
        data = cls.snapshot(cart=validation.cart)
        data["skipped_items"] = validation.skipped
        return cls(data)


class AddItemSerializer(serializers.Serializer):
    """Write serializer for adding an item to the cart.

    Expects `identity` and `resolver` in the serializer context.
    """

    product_id = serializers.UUIDField()
    variant_id = serializers.UUIDField(required=False, allow_null=True)
    quantity = serializers.IntegerField()
    configuration = serializers.JSONField(required=False, allow_null=True)

    def create(self, validated_data):  # type: ignore[override]
        identity = self.context["identity"]
        return add_item(resolver=self.context["resolver"], **identity.owner(), **validated_data)


class UpdateItemQuantitySerializer(serializers.Serializer):
    """Write serializer for updating a cart item quantity."""

    quantity = serializers.IntegerField()

    def create(self, validated_data):  # type: ignore[override]
        identity = self.context["identity"]
        return update_item_quantity(
            **identity.owner(), item_id=self.context["item_id"], quantity=validated_data["quantity"]
        )
