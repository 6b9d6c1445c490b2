"""Cart gateways used by checkout.

Checkout only needs three things from the cart side: read the active
cart, re-validate it and mark it completed. `LocalCartGateway` calls the
cart services in-process; `HttpCartGateway` calls a separately deployed
cart service over HTTP.
"""

import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

import httpx
from cart import selectors as cart_selectors
from cart import services as cart_services
from common.errors import CartNotFound, CartServiceError, DomainError
from common.identity import SESSION_HEADER, TENANT_HEADER, USER_HEADER, Identity
from django.db import DatabaseError

logger = logging.getLogger("cartflow.orders")


@dataclass(frozen=True)
class CartLine:
    id: str
    product_id: uuid.UUID
    variant_id: Optional[uuid.UUID]
    product_type: str
    product_name: str
    sku: str
    quantity: int
    unit_price: Decimal
    currency: str
    configuration: Optional[dict] = None


@dataclass(frozen=True)
class CartSnapshot:
    id: str
    items: tuple = field(default_factory=tuple)
    currency: str = ""


def snapshot_from_cart(cart) -> CartSnapshot:
    lines = tuple(
        CartLine(
            id=str(item.id),
            product_id=item.product_id,
            variant_id=item.variant_id,
            product_type=item.product_type,
            product_name=item.product_name,
            sku=item.sku,
            quantity=item.quantity,
            unit_price=item.unit_price,
            currency=item.currency,
            configuration=item.configuration,
        )
        for item in cart.items.all()
    )
    return CartSnapshot(id=str(cart.id), items=lines, currency=lines[0].currency if lines else "")


def _optional_uuid(value) -> Optional[uuid.UUID]:
    return uuid.UUID(str(value)) if value else None


def snapshot_from_json(body) -> CartSnapshot:
    """Parse the cart service's JSON cart representation."""

    try:
        lines = tuple(
            CartLine(
                id=str(item["id"]),
                product_id=uuid.UUID(str(item["product_id"])),
                variant_id=_optional_uuid(item.get("variant_id")),
                product_type=item.get("product_type") or "",
                product_name=item.get("product_name") or "",
                sku=item.get("sku") or "",
                quantity=int(item["quantity"]),
                unit_price=Decimal(str(item["unit_price"])),
                currency=item.get("currency") or "",
                configuration=item.get("configuration"),
            )
            for item in body.get("items") or []
        )
        return CartSnapshot(id=str(body["id"]), items=lines, currency=body.get("currency") or "")
    except (KeyError, TypeError, ValueError, ArithmeticError, AttributeError) as exc:
        raise CartServiceError(f"unexpected cart response: {exc}")


class LocalCartGateway:
    """Cart access through `cart.services` in the same process and database."""

    def __init__(self, resolver):
        self.resolver = resolver

    def fetch_cart(self, identity: Identity) -> CartSnapshot:
        cart = cart_selectors.get_active_cart(**identity.owner())
        return snapshot_from_cart(cart)

    def validate_cart(self, identity: Identity) -> CartSnapshot:
        validation = cart_services.validate_cart(resolver=self.resolver, **identity.owner())
        return snapshot_from_cart(validation.cart)

    def complete_cart(self, identity: Identity) -> None:
        cart_services.complete_cart(**identity.owner())


class HttpCartGateway:
    """Cart access through the cart service's REST API."""

    def __init__(self, base_url: str, timeout: float = 10.0, transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    @staticmethod
    def _headers(identity: Identity) -> dict:
        headers = {TENANT_HEADER: identity.tenant.code}
        if identity.user_id is not None:
            headers[USER_HEADER] = str(identity.user_id)
        if identity.session_id:
            headers[SESSION_HEADER] = identity.session_id
        return headers

    def _call(self, method: str, path: str, identity: Identity, json=None) -> httpx.Response:
        try:
            response = self._client.request(method, path, headers=self._headers(identity), json=json)
        except httpx.HTTPError as exc:
            raise CartServiceError(f"cart service request failed: {exc}")
        if response.status_code == httpx.codes.NOT_FOUND:
            raise CartNotFound()
        if response.status_code != httpx.codes.OK:
            raise CartServiceError(f"cart service returned status {response.status_code}: {response.text}")
        return response

    def _snapshot(self, response: httpx.Response) -> CartSnapshot:
        try:
            body = response.json()
        except ValueError:
            raise CartServiceError("failed to parse cart response")
        if not isinstance(body, dict):
            raise CartServiceError("unexpected cart response")
        return snapshot_from_json(body)

    def fetch_cart(self, identity: Identity) -> CartSnapshot:
        return self._snapshot(self._call("GET", "/api/v1/cart/", identity))

    def validate_cart(self, identity: Identity) -> CartSnapshot:
        return self._snapshot(self._call("POST", "/api/v1/cart/validate/", identity))

    def complete_cart(self, identity: Identity) -> None:
        self._call("POST", "/api/v1/cart/complete/", identity, json={})


def complete_cart_quietly(gateway, identity: Identity, order_number: str) -> None:
    """Best-effort completion: the order already exists, so failures are only logged."""

    try:
        gateway.complete_cart(identity)
    except (DomainError, DatabaseError) as exc:
        logger.warning(
            "order.cart_complete_failed",
            extra={
                "event": "order.cart_complete_failed",
                "order_number": order_number,
                "tenant": identity.tenant.code,
                "code": getattr(exc, "code", "DATABASE_ERROR"),
                "error": str(exc),
            },
        )
