import json
import logging
import uuid
from decimal import Decimal

import httpx
import pytest
from common.errors import CartEmpty, CartNotFound, CartServiceError
from common.identity import Identity
from orders.gateways import HttpCartGateway, complete_cart_quietly, snapshot_from_json
from orders.models import Order
from orders.services import checkout
from tenants.tests.factories import TenantFactory

USER_ID = uuid.UUID("6f1d3c2b-8a7e-4b5c-9d0e-1f2a3b4c5d6e")
CART_ID = "4f8a4bb6-8d36-4a43-9a7c-41cfa2b0b1f2"


def cart_body(*lines):
    return {
        "id": CART_ID,
        "status": "active",
        "currency": "CHF",
        "items": [
            {
                "id": str(uuid.uuid4()),
                "product_id": str(uuid.uuid4()),
                "variant_id": None,
                "product_type": "simple",
                "product_name": name,
                "sku": sku,
                "quantity": quantity,
                "unit_price": price,
                "currency": "CHF",
                "configuration": None,
            }
            for name, sku, quantity, price in lines
        ],
    }


class FakeCartService:
    def __init__(self, body=None, complete_status=200):
        self.body = body or cart_body()
        self.complete_status = complete_status
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/api/v1/cart/complete/":
            return httpx.Response(self.complete_status, json={**self.body, "status": "completed"})
        return httpx.Response(200, json=self.body)

    def gateway(self) -> HttpCartGateway:
        return HttpCartGateway("http://cart.test", transport=httpx.MockTransport(self.handler))


@pytest.fixture
def identity(db):
    return Identity(tenant=TenantFactory(code="acme"), user_id=USER_ID)


def test_snapshot_from_json_parses_lines():
    snapshot = snapshot_from_json(cart_body(("Schraube", "SCR-M6", 2, "10.00")))

    assert snapshot.id == CART_ID
    (line,) = snapshot.items
    assert line.quantity == 2
    assert line.unit_price == Decimal("10.00")
    assert line.variant_id is None


@pytest.mark.parametrize(
    "body",
    [
        {"items": []},
        {"id": CART_ID, "items": [{"id": "x", "product_id": "not-a-uuid", "quantity": 1, "unit_price": "1"}]},
        {"id": CART_ID, "items": [{"id": "x", "product_id": str(uuid.uuid4()), "quantity": 1, "unit_price": "abc"}]},
    ],
)
def test_snapshot_from_json_rejects_malformed_bodies(body):
    with pytest.raises(CartServiceError):
        snapshot_from_json(body)


def test_http_gateway_forwards_identity_headers(identity):
    service = FakeCartService(cart_body(("Schraube", "SCR-M6", 2, "10.00")))
    gateway = service.gateway()

    gateway.fetch_cart(identity)
    gateway.validate_cart(identity)
    gateway.complete_cart(identity)

    assert [(r.method, r.url.path) for r in service.requests] == [
        ("GET", "/api/v1/cart/"),
        ("POST", "/api/v1/cart/validate/"),
        ("POST", "/api/v1/cart/complete/"),
    ]
    for request in service.requests:
        assert request.headers["X-Tenant-ID"] == "acme"
        assert request.headers["X-User-ID"] == str(USER_ID)
        assert "X-Session-ID" not in request.headers


def test_http_gateway_maps_404_to_cart_not_found(identity):
    transport = httpx.MockTransport(lambda request: httpx.Response(404, json={"error": {"code": "NOT_FOUND"}}))
    gateway = HttpCartGateway("http://cart.test", transport=transport)

    with pytest.raises(CartNotFound):
        gateway.fetch_cart(identity)


def test_http_gateway_maps_other_failures(identity):
    transport = httpx.MockTransport(lambda request: httpx.Response(502, text="bad gateway"))
    gateway = HttpCartGateway("http://cart.test", transport=transport)

    with pytest.raises(CartServiceError) as excinfo:
        gateway.fetch_cart(identity)
    assert "502" in excinfo.value.message


def test_http_gateway_maps_transport_errors(identity):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    gateway = HttpCartGateway("http://cart.test", transport=httpx.MockTransport(refuse))

    with pytest.raises(CartServiceError):
        gateway.validate_cart(identity)


def test_http_gateway_rejects_non_json(identity):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>"))
    gateway = HttpCartGateway("http://cart.test", transport=transport)

    with pytest.raises(CartServiceError):
        gateway.fetch_cart(identity)


@pytest.mark.django_db
def test_checkout_through_http_gateway(identity):
    service = FakeCartService(cart_body(("Schraube", "SCR-M6", 2, "10.00"), ("Mutter", "NUT-M6", 1, "5.00")))

    order = checkout(identity=identity, gateway=service.gateway(), billing_address={"city": "Basel"})

    assert order.total == Decimal("25.00")
    assert order.items.count() == 2
    assert order.billing_address == {"city": "Basel"}
    assert service.requests[-1].url.path == "/api/v1/cart/complete/"
    assert json.loads(service.requests[-1].content) == {}


@pytest.mark.django_db
def test_checkout_survives_failed_completion(identity, caplog):
    service = FakeCartService(cart_body(("Schraube", "SCR-M6", 1, "10.00")), complete_status=500)

    with caplog.at_level(logging.WARNING, logger="cartflow.orders"):
        order = checkout(identity=identity, gateway=service.gateway())

    assert Order.objects.filter(pk=order.pk).exists()
    (record,) = [r for r in caplog.records if getattr(r, "event", None) == "order.cart_complete_failed"]
    assert record.order_number == order.order_number
    assert record.code == "CART_SERVICE_ERROR"


@pytest.mark.django_db
def test_checkout_with_empty_remote_cart(identity):
    service = FakeCartService(cart_body())

    with pytest.raises(CartEmpty):
        checkout(identity=identity, gateway=service.gateway())

    assert [r.url.path for r in service.requests] == ["/api/v1/cart/"]


def test_complete_cart_quietly_ignores_domain_errors(identity):
    class Broken:
        def complete_cart(self, identity):
            raise CartNotFound()

    complete_cart_quietly(Broken(), identity, "ORD-20250101-0001")
