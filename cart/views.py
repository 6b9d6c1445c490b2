"""DRF views for cart operations.

Every endpoint works for guests (`X-Session-ID`) and authenticated users;
`X-Tenant-ID` is always required.
"""

from common.identity import SESSION_HEADER, TENANT_HEADER
from common.views import IdentityMixin, get_container
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema, inline_serializer
from rest_framework import serializers as rf_serializers
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import AddItemSerializer, CartReadSerializer, CartValidationSerializer, UpdateItemQuantitySerializer
from .services import clear_cart, complete_cart, get_or_create_cart, merge_carts, remove_item, validate_cart

IDENTITY_PARAMETERS = [
    OpenApiParameter(
        name=TENANT_HEADER,
        location=OpenApiParameter.HEADER,
        required=True,
        description="Tenant code",
        type=str,
    ),
    OpenApiParameter(
        name=SESSION_HEADER,
        location=OpenApiParameter.HEADER,
        required=False,
        description="Guest session identifier; issued in the response when missing",
        type=str,
    ),
]

ERROR_RESPONSE = inline_serializer(
    name="ErrorResponse",
    fields={
        "error": inline_serializer(
            name="ErrorBody",
            fields={"code": rf_serializers.CharField(), "message": rf_serializers.CharField()},
        )
    },
)

CART_EXAMPLE = OpenApiExample(
    "Cart",
    value={
        "id": "4f8a4bb6-8d36-4a43-9a7c-41cfa2b0b1f2",
        "tenant_id": "0b7e6f0e-1e32-4f5e-9d0c-6f1f5d2b9c11",
        "user_id": None,
        "session_id": "2c1e0b0f-6b0e-4d7e-8d5e-3d0b9c5a7e21",
        "status": "active",
        "items": [
            {
                "id": "9a0f2e1d-3c4b-4a59-8e7f-6d5c4b3a2910",
                "product_id": "7d1c2b3a-4e5f-4a6b-9c8d-0e1f2a3b4c5d",
                "variant_id": None,
                "product_type": "simple",
                "product_name": "Schraube M6",
                "sku": "SCR-M6",
                "image_url": "",
                "quantity": 2,
                "unit_price": "10.00",
                "total_price": "20.00",
                "currency": "CHF",
                "configuration": None,
            }
        ],
        "subtotal": "20.00",
        "currency": "CHF",
        "item_count": 2,
    },
)


class CartAPIView(IdentityMixin, APIView):
    permission_classes = [AllowAny]
    throttle_scope = "cart_write"

    def cart_response(self, cart, code=status.HTTP_200_OK):
        return Response(CartReadSerializer.from_cart(cart=cart).data, status=code)


class CartDetailView(CartAPIView):
    """Return the caller's active cart, creating it if missing."""

    throttle_scope = "cart"

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Get active cart",
        description="Returns the active cart including items and totals. Guests get a new session id.",
        parameters=IDENTITY_PARAMETERS,
        responses={200: CartReadSerializer, 400: ERROR_RESPONSE, 403: ERROR_RESPONSE, 404: ERROR_RESPONSE},
        examples=[CART_EXAMPLE],
    )
    def get(self, request):
        cart = get_or_create_cart(**self.get_identity().owner())
        return self.cart_response(cart)


class CartAddItemView(CartAPIView):
    """Add an item to the cart."""

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Add item to cart",
        description=(
            "Adds a product to the cart. An identical product, variant and configuration "
            "increases the existing line's quantity; otherwise the product is priced by the catalog."
        ),
        parameters=IDENTITY_PARAMETERS,
        request=AddItemSerializer,
        responses={201: CartReadSerializer, 400: ERROR_RESPONSE, 404: ERROR_RESPONSE, 500: ERROR_RESPONSE},
        examples=[
            OpenApiExample(
                "Bundle",
                request_only=True,
                value={
                    "product_id": "7d1c2b3a-4e5f-4a6b-9c8d-0e1f2a3b4c5d",
                    "quantity": 1,
                    "configuration": {
                        "bundleComponents": [
                            {"componentId": "5b6c7d8e-9f0a-4b1c-8d2e-3f4a5b6c7d8e", "quantity": 2}
                        ]
                    },
                },
            ),
            CART_EXAMPLE,
        ],
    )
    def post(self, request):
        serializer = AddItemSerializer(
            data=request.data,
            context={"identity": self.get_identity(), "resolver": get_container().resolver},
        )
        serializer.is_valid(raise_exception=True)
        cart = serializer.save()
        return self.cart_response(cart, status.HTTP_201_CREATED)


class CartItemView(CartAPIView):
    """Update or remove a single cart line."""

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Update cart item quantity",
        parameters=IDENTITY_PARAMETERS,
        request=UpdateItemQuantitySerializer,
        responses={200: CartReadSerializer, 400: ERROR_RESPONSE, 404: ERROR_RESPONSE},
        examples=[CART_EXAMPLE],
    )
    def patch(self, request, item_id):
        serializer = UpdateItemQuantitySerializer(
            data=request.data,
            context={"identity": self.get_identity(), "item_id": item_id},
        )
        serializer.is_valid(raise_exception=True)
        cart = serializer.save()
        return self.cart_response(cart)

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Delete cart item",
        parameters=IDENTITY_PARAMETERS,
        responses={200: CartReadSerializer, 404: ERROR_RESPONSE},
        examples=[CART_EXAMPLE],
    )
    def delete(self, request, item_id):
        cart = remove_item(**self.get_identity().owner(), item_id=item_id)
        return self.cart_response(cart)


class CartClearView(CartAPIView):
    """Remove all items from the active cart."""

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Clear cart",
        parameters=IDENTITY_PARAMETERS,
        request=None,
        responses={200: CartReadSerializer, 404: ERROR_RESPONSE},
    )
    def post(self, request):
        cart = clear_cart(**self.get_identity().owner())
        return self.cart_response(cart)


class CartValidateView(CartAPIView):
    """Re-price every line against the catalog."""

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Validate cart",
        description=(
            "Refreshes prices and product details for every line. Lines that can no longer be "
            "resolved are left unchanged and listed in `skipped_items`."
        ),
        parameters=IDENTITY_PARAMETERS,
        request=None,
        responses={200: CartValidationSerializer, 404: ERROR_RESPONSE},
    )
    def post(self, request):
        validation = validate_cart(resolver=get_container().resolver, **self.get_identity().owner())
        return Response(CartValidationSerializer.from_validation(validation=validation).data)


class CartCompleteView(CartAPIView):
    """Mark the active cart completed; called by the order service after checkout."""

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Complete cart",
        parameters=IDENTITY_PARAMETERS,
        request=None,
        responses={200: CartReadSerializer, 404: ERROR_RESPONSE},
    )
    def post(self, request):
        cart = complete_cart(**self.get_identity().owner())
        return self.cart_response(cart)


class CartMergeView(CartAPIView):
    """Merge the guest cart named by `X-Session-ID` into the user's cart."""

    permission_classes = [IsAuthenticated]
    require_user = True

    @extend_schema(
        tags=["Cart Endpoints"],
        summary="Merge guest cart into user cart",
        description="Moves every guest line into the user's cart and marks the guest cart merged.",
        parameters=IDENTITY_PARAMETERS,
        request=None,
        responses={200: CartReadSerializer, 400: ERROR_RESPONSE, 401: ERROR_RESPONSE},
        examples=[CART_EXAMPLE],
    )
    def post(self, request):
        identity = self.get_identity()
        cart = merge_carts(tenant=identity.tenant, user_id=identity.user_id, session_id=identity.session_id)
        return self.cart_response(cart)
