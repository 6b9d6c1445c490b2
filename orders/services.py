"""Order services: checkout, status transitions and idempotent replays."""

import hashlib
import json
import logging
import uuid
from datetime import timedelta
from decimal import Decimal
from typing import Callable, Optional, Tuple

from common.errors import (
    CartEmpty,
    CartValidationFailed,
    DomainError,
    Forbidden,
    InvalidStatusTransition,
    OrderCannotBeCancelled,
    OrderNotFound,
    Unauthorized,
)
from common.identity import Identity
from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from .gateways import CartSnapshot, complete_cart_quietly
from .models import IdempotencyKey, Order, OrderItem, OrderSequence, OrderStatusLog
from .transitions import INITIAL_STATUS, can_cancel, can_transition

logger = logging.getLogger("cartflow.orders")

CHECKOUT_NOTE = "Order created from checkout"
CANCEL_NOTE = "Order cancelled by user"


def next_order_number(*, tenant, day=None) -> str:
    """Issue the next `ORD-YYYYMMDD-NNNN` number for the tenant.

    The counter row stays locked until the surrounding transaction ends, so
    a rolled-back checkout does not consume a number.
    """

    day = day or timezone.localdate()
    with transaction.atomic():
        try:
            with transaction.atomic():
                OrderSequence.objects.get_or_create(tenant=tenant, day=day)
        except IntegrityError:
            # Another checkout created today's counter first.
            pass
        sequence = OrderSequence.objects.select_for_update().get(tenant=tenant, day=day)
        sequence.last_value += 1
        sequence.save(update_fields=["last_value"])
    return f"ORD-{day:%Y%m%d}-{sequence.last_value:04d}"


def _snapshot_totals(snapshot: CartSnapshot) -> Tuple[Decimal, str]:
    subtotal = sum((line.unit_price * line.quantity for line in snapshot.items), Decimal("0.00"))
    currency = next((line.currency for line in snapshot.items if line.currency), "") or settings.DEFAULT_CURRENCY
    return subtotal, currency


def checkout(
    *,
    identity: Identity,
    gateway,
    shipping_address: Optional[dict] = None,
    billing_address: Optional[dict] = None,
    notes: str = "",
) -> Order:
    """Turn the caller's active cart into a confirmed order.

    The cart is read and re-validated through `gateway`; the validated
    snapshot is what gets frozen into the order. Marking the cart completed
    happens after the order is committed and never fails the checkout.
    """

    if identity.user_id is None:
        raise Unauthorized("checkout requires an authenticated user")

    snapshot = gateway.fetch_cart(identity)
    if not snapshot.items:
        raise CartEmpty()

    try:
        snapshot = gateway.validate_cart(identity)
    except DomainError as exc:
        raise CartValidationFailed(f"cart validation failed: {exc.message}")
    if not snapshot.items:
        raise CartEmpty()

    subtotal, currency = _snapshot_totals(snapshot)
    tax_amount = Decimal("0.00")

    with transaction.atomic():
        order = Order.objects.create(
            tenant=identity.tenant,
            user_id=identity.user_id,
            order_number=next_order_number(tenant=identity.tenant),
            status=INITIAL_STATUS,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total=subtotal + tax_amount,
            currency=currency,
            shipping_address=shipping_address,
            billing_address=billing_address,
            notes=notes or "",
        )
        OrderItem.objects.bulk_create(
            [
                OrderItem(
                    order=order,
                    product_id=line.product_id,
                    variant_id=line.variant_id,
                    product_type=line.product_type,
                    product_name=line.product_name,
                    sku=line.sku,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    total_price=line.unit_price * line.quantity,
                    currency=line.currency or currency,
                    configuration=line.configuration,
                    position=position,
                )
                for position, line in enumerate(snapshot.items)
            ]
        )
        OrderStatusLog.objects.create(
            order=order,
            from_status=None,
            to_status=order.status,
            changed_by=identity.user_id,
            note=CHECKOUT_NOTE,
        )

    logger.info(
        "order.created",
        extra={
            "event": "order.created",
            "order_id": str(order.id),
            "order_number": order.order_number,
            "tenant": identity.tenant.code,
            "user_id": str(identity.user_id),
            "cart_id": snapshot.id,
            "items": len(snapshot.items),
            "total": str(order.total),
            "currency": order.currency,
        },
    )

    complete_cart_quietly(gateway, identity, order.order_number)
    return Order.objects.prefetch_related("items", "status_history").get(pk=order.pk)


@transaction.atomic
def transition_order(*, order: Order, to_status: str, actor_id=None, note: str = "") -> Order:
    """Move an order to `to_status` and append exactly one history row."""

    locked = Order.objects.select_for_update().get(pk=order.pk)
    from_status = locked.status
    if not can_transition(from_status, to_status):
        raise InvalidStatusTransition(f"cannot transition order from {from_status} to {to_status}")

    locked.status = to_status
    locked.save(update_fields=["status", "updated_at"])
    OrderStatusLog.objects.create(
        order=locked,
        from_status=from_status,
        to_status=to_status,
        changed_by=actor_id,
        note=note or "",
    )
    logger.info(
        "order_status_changed",
        extra={
            "event": "order_status_changed",
            "order_id": str(locked.id),
            "order_number": locked.order_number,
            "user_id": str(locked.user_id),
            "status_from": from_status,
            "status_to": to_status,
        },
    )
    return locked


@transaction.atomic
def cancel_order(*, tenant, order_id, user_id) -> Order:
    """Cancel the caller's own order while it is still pending or confirmed."""

    try:
        order = Order.objects.select_for_update().get(tenant=tenant, pk=order_id)
    except Order.DoesNotExist:
        raise OrderNotFound()
    if order.user_id != user_id:
        raise Forbidden("order belongs to another user")
    if not can_cancel(order.status):
        raise OrderCannotBeCancelled()
    return transition_order(order=order, to_status=Order.STATUS_CANCELLED, actor_id=user_id, note=CANCEL_NOTE)


def idempotency_scope(identity: Identity) -> str:
    return f"tenant:{identity.tenant.code}:user:{identity.user_id}"


def _json_safe(value):
    if isinstance(value, (Decimal, uuid.UUID)):
        return str(value)
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


def _conflict(message: str) -> dict:
    return {"error": {"code": "IDEMPOTENCY_CONFLICT", "message": message}}


def with_idempotency(
    *,
    key: str,
    scope: str,
    path: str,
    method: str,
    handler: Callable[[], Tuple[dict, int]],
    request_hash: Optional[str] = None,
) -> Tuple[dict, int]:
    """Run handler idempotently and persist its response for the given key and scope.

    - If a record exists and the stored `request_hash` differs from the provided one, returns 409.
    - If a record exists but response is not yet stored, returns 409 to indicate in-progress.
    - If the handler raises, the record is dropped so the client can retry with the same key.
    """

    method = str(method).upper()
    path = str(path)
    ttl = timedelta(hours=getattr(settings, "ORDER_IDEMPOTENCY_TTL_HOURS", 24))

    try:
        with transaction.atomic():
            idem = IdempotencyKey.objects.create(
                key=key,
                scope=scope,
                path=path,
                method=method,
                request_hash=request_hash,
                expires_at=timezone.now() + ttl,
            )
    except IntegrityError:
        idem = IdempotencyKey.objects.get(key=key, scope=scope, path=path, method=method)
        # Guard against key reuse with different fingerprints
        if idem.request_hash and request_hash and idem.request_hash != request_hash:
            return _conflict("Idempotency key reused with different request payload"), 409
        if idem.response_json is not None and idem.response_code is not None:
            return idem.response_json, int(idem.response_code)
        return _conflict("Request in progress"), 409

    try:
        body, code = handler()
    except Exception:
        IdempotencyKey.objects.filter(id=idem.id).delete()
        raise

    IdempotencyKey.objects.filter(id=idem.id).update(response_json=_json_safe(body), response_code=code)
    return body, code


def compute_request_hash(data: Optional[dict]) -> Optional[str]:
    """Compute a canonical SHA256 hash of the request body.

    Uses sorted keys JSON representation to stabilize the hash across equivalent payloads.
    Returns None when data is falsy.
    """
    if not data:
        return None
    try:
        payload = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        return None
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
