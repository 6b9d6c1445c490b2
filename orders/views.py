"""Orders API endpoints.

All endpoints require an authenticated user and the `X-Tenant-ID` header.
Checkout and cancel are idempotent when `Idempotency-Key` is provided.
"""

from common.identity import TENANT_HEADER
from common.views import IdentityMixin, get_container
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import generics, status
from rest_framework.pagination import LimitOffsetPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .filters import OrderFilter
from .models import Order
from .selectors import get_order_for_user, orders_for_user
from .serializers import CheckoutSerializer, OrderSerializer
from .services import cancel_order, checkout, compute_request_hash, idempotency_scope, with_idempotency

TENANT_PARAMETER = OpenApiParameter(
    name=TENANT_HEADER,
    location=OpenApiParameter.HEADER,
    required=True,
    description="Tenant code",
    type=str,
)

IDEMPOTENCY_PARAMETER = OpenApiParameter(
    name="Idempotency-Key",
    location=OpenApiParameter.HEADER,
    required=False,
    description="Makes the request idempotent within tenant+user scope, path and method",
    type=str,
)

ORDER_EXAMPLE = OpenApiExample(
    "Order",
    response_only=True,
    value={
        "id": "c3a1f0d2-5b6e-4f7a-8b9c-0d1e2f3a4b5c",
        "order_number": "ORD-20250101-0001",
        "status": "confirmed",
        "subtotal": "25.00",
        "tax_amount": "0.00",
        "total": "25.00",
        "currency": "CHF",
        "items": [
            {
                "product_name": "Schraube M6",
                "sku": "SCR-M6",
                "quantity": 2,
                "unit_price": "10.00",
                "total_price": "20.00",
                "currency": "CHF",
            }
        ],
        "status_history": [
            {"from_status": None, "to_status": "confirmed", "note": "Order created from checkout"},
        ],
    },
)


class OrderAPIMixin(IdentityMixin):
    permission_classes = [IsAuthenticated]
    require_user = True

    def run_idempotent(self, request, handler):
        idem_key = request.headers.get("Idempotency-Key")
        if idem_key:
            body, code = with_idempotency(
                key=idem_key,
                scope=idempotency_scope(self.get_identity()),
                path=str(request.path),
                method=str(request.method),
                request_hash=compute_request_hash(getattr(request, "data", None)),
                handler=handler,
            )
            return Response(body, status=code)

        body, code = handler()
        return Response(body, status=code)


class OrderPagination(LimitOffsetPagination):
    default_limit = 50
    max_limit = 200


class OrderListView(OrderAPIMixin, generics.ListAPIView):
    """List the caller's orders, newest first."""

    serializer_class = OrderSerializer
    pagination_class = OrderPagination
    filter_backends = [DjangoFilterBackend]
    filterset_class = OrderFilter
    throttle_scope = "orders"

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        identity = self.get_identity()
        return orders_for_user(tenant=identity.tenant, user_id=identity.user_id)

    @extend_schema(
        tags=["Orders"],
        summary="List orders",
        description="List the current user's orders with limit/offset pagination and an optional status filter.",
        parameters=[TENANT_PARAMETER],
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class OrderCheckoutView(OrderAPIMixin, APIView):
    """Create an order from the caller's active cart."""

    throttle_scope = "orders_write"

    @extend_schema(
        tags=["Orders"],
        summary="Checkout",
        description=(
            "Validates the active cart, freezes it into a confirmed order and marks the cart completed. "
            "Idempotent when Idempotency-Key header is set."
        ),
        parameters=[TENANT_PARAMETER, IDEMPOTENCY_PARAMETER],
        request=CheckoutSerializer,
        responses={201: OrderSerializer},
        examples=[
            OpenApiExample(
                "Checkout",
                request_only=True,
                value={"shipping_address": {"street": "Bahnhofstrasse 1", "city": "Zürich"}, "notes": ""},
            ),
            ORDER_EXAMPLE,
        ],
    )
    def post(self, request):
        identity = self.get_identity()
        serializer = CheckoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        gateway = get_container().cart_gateway

        def _handler():
            order = checkout(identity=identity, gateway=gateway, **serializer.validated_data)
            return OrderSerializer(order).data, status.HTTP_201_CREATED

        return self.run_idempotent(request, _handler)


class OrderDetailView(OrderAPIMixin, APIView):
    """Retrieve a single order owned by the caller."""

    throttle_scope = "orders"

    @extend_schema(
        tags=["Orders"],
        summary="Get order detail",
        parameters=[TENANT_PARAMETER],
        responses={200: OrderSerializer},
        examples=[ORDER_EXAMPLE],
    )
    def get(self, request, order_id):
        identity = self.get_identity()
        order = get_order_for_user(tenant=identity.tenant, order_id=order_id, user_id=identity.user_id)
        return Response(OrderSerializer(order).data)


class OrderCancelView(OrderAPIMixin, APIView):
    """Cancel an order owned by the caller while it is pending or confirmed."""

    throttle_scope = "orders_write"

    @extend_schema(
        tags=["Orders"],
        summary="Cancel order",
        description="Cancels the order unless fulfilment has started. Idempotent when Idempotency-Key is set.",
        parameters=[TENANT_PARAMETER, IDEMPOTENCY_PARAMETER],
        request=None,
        responses={200: OrderSerializer},
        examples=[ORDER_EXAMPLE],
    )
    def post(self, request, order_id):
        identity = self.get_identity()

        def _handler():
            cancel_order(tenant=identity.tenant, order_id=order_id, user_id=identity.user_id)
            order = get_order_for_user(tenant=identity.tenant, order_id=order_id, user_id=identity.user_id)
            return OrderSerializer(order).data, status.HTTP_200_OK

        return self.run_idempotent(request, _handler)
