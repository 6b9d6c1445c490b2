"""Selectors for read-only order queries."""

from common.errors import Forbidden, OrderNotFound

from .models import Order


def orders_for_user(*, tenant, user_id):
    return (
        Order.objects.filter(tenant=tenant, user_id=user_id)
        .prefetch_related("items", "status_history")
        .order_by("-created_at")
    )


def get_order_for_user(*, tenant, order_id, user_id) -> Order:
    """Return the order when it belongs to the caller; `Forbidden` otherwise."""

    try:
        order = Order.objects.prefetch_related("items", "status_history").get(tenant=tenant, pk=order_id)
    except Order.DoesNotExist:
        raise OrderNotFound()
    if order.user_id != user_id:
        raise Forbidden("order belongs to another user")
    return order
