import uuid
from decimal import Decimal

import pytest
from cart.models import Cart
from cart.tests.factories import CartFactory, CartItemFactory
from rest_framework.test import APIClient


@pytest.mark.django_db
def test_guest_without_session_is_issued_one(api_client):
    resp = api_client.get("/api/v1/cart/")

    assert resp.status_code == 200
    session_id = resp["X-Session-ID"]
    body = resp.json()
    assert body["session_id"] == session_id
    assert body["user_id"] is None
    assert body["items"] == []
    assert body["subtotal"] == "0.00"
    assert body["currency"] == "CHF"
    assert body["item_count"] == 0


@pytest.mark.django_db
def test_guest_session_is_reused(api_client):
    first = api_client.get("/api/v1/cart/")
    session_id = first["X-Session-ID"]

    second = api_client.get("/api/v1/cart/", HTTP_X_SESSION_ID=session_id)

    assert second.json()["id"] == first.json()["id"]
    assert second["X-Session-ID"] == session_id


@pytest.mark.django_db
def test_missing_tenant_header(container):
    resp = APIClient().get("/api/v1/cart/")

    assert resp.status_code == 400
    assert resp.json() == {"error": {"code": "TENANT_REQUIRED", "message": "X-Tenant-ID header is required"}}


@pytest.mark.django_db
def test_unknown_and_inactive_tenant(api_client, tenant):
    resp = APIClient().get("/api/v1/cart/", HTTP_X_TENANT_ID="nope")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "INVALID_TENANT"

    tenant.is_active = False
    tenant.save(update_fields=["is_active"])
    resp = api_client.get("/api/v1/cart/")
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "TENANT_INACTIVE"


@pytest.mark.django_db
def test_overlong_session_id_is_rejected(api_client):
    resp = api_client.get("/api/v1/cart/", HTTP_X_SESSION_ID="s" * 65)

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.django_db
def test_add_update_delete_flow(user_client, fake_catalog):
    product_id = fake_catalog.add_product(tiers=[(1, "10.00"), (5, "8.00")])

    resp = user_client.post("/api/v1/cart/items/", {"product_id": str(product_id), "quantity": 2}, format="json")
    assert resp.status_code == 201
    body = resp.json()
    (item,) = body["items"]
    assert item["unit_price"] == "10.00"
    assert item["total_price"] == "20.00"
    assert body["subtotal"] == "20.00"
    assert body["item_count"] == 2
    assert "X-Session-ID" not in resp

    resp = user_client.patch(f"/api/v1/cart/items/{item['id']}/", {"quantity": 5}, format="json")
    assert resp.status_code == 200
    assert resp.json()["items"][0]["quantity"] == 5
    # Price was fixed when the line was added
    assert resp.json()["subtotal"] == "50.00"

    resp = user_client.delete(f"/api/v1/cart/items/{item['id']}/")
    assert resp.status_code == 200
    assert resp.json()["items"] == []


@pytest.mark.django_db
def test_subtotal_is_sum_of_line_totals(user_client, fake_catalog):
    first = fake_catalog.add_product(tiers=[(1, "10.00")])
    second = fake_catalog.add_product(tiers=[(1, "5.00")], sku="SCR-M4")

    user_client.post("/api/v1/cart/items/", {"product_id": str(first), "quantity": 2}, format="json")
    resp = user_client.post("/api/v1/cart/items/", {"product_id": str(second), "quantity": 1}, format="json")

    body = resp.json()
    assert sum(Decimal(i["total_price"]) for i in body["items"]) == Decimal(body["subtotal"]) == Decimal("25.00")


@pytest.mark.django_db
def test_add_configured_items(user_client, fake_catalog):
    product_id = fake_catalog.add_parametric(unit_price="5.00")
    url = "/api/v1/cart/items/"

    snake = {"parameters": {"length": 120}}
    camel = {"parametricParams": {"parameters": {"length": 120}}}

    user_client.post(url, {"product_id": str(product_id), "quantity": 1, "configuration": snake}, format="json")
    resp = user_client.post(url, {"product_id": str(product_id), "quantity": 1, "configuration": camel}, format="json")
    assert len(resp.json()["items"]) == 1
    assert resp.json()["items"][0]["quantity"] == 2
    assert resp.json()["items"][0]["configuration"] == {
        "parametric_params": {"parameters": {"length": 120}, "selections": {}}
    }

    longer = {"parameters": {"length": 240}}
    resp = user_client.post(url, {"product_id": str(product_id), "quantity": 1, "configuration": longer}, format="json")
    assert len(resp.json()["items"]) == 2


@pytest.mark.django_db
def test_add_item_error_envelopes(user_client, fake_catalog):
    product_id = fake_catalog.add_product()

    resp = user_client.post("/api/v1/cart/items/", {"product_id": str(product_id), "quantity": 0}, format="json")
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_QUANTITY"

    resp = user_client.post("/api/v1/cart/items/", {"quantity": 1}, format="json")
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"
    assert "product_id" in resp.json()["error"]["details"]

    resp = user_client.post("/api/v1/cart/items/", {"product_id": str(uuid.uuid4()), "quantity": 1}, format="json")
    assert resp.status_code == 404

    fake_catalog.down = True
    resp = user_client.post("/api/v1/cart/items/", {"product_id": str(product_id), "quantity": 1}, format="json")
    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "CATALOG_UNAVAILABLE"


@pytest.mark.django_db
def test_unknown_item_is_not_found(user_client):
    resp = user_client.patch(f"/api/v1/cart/items/{uuid.uuid4()}/", {"quantity": 2}, format="json")

    assert resp.status_code == 404
    assert resp.json()["error"]["message"] == "cart item not found"


@pytest.mark.django_db
def test_clear_and_complete(user_client, tenant, user_id):
    cart = CartFactory(tenant=tenant, user_id=user_id)
    CartItemFactory.create_batch(2, cart=cart)

    resp = user_client.post("/api/v1/cart/clear/")
    assert resp.status_code == 200
    assert resp.json()["items"] == []
    assert resp.json()["status"] == "active"

    resp = user_client.post("/api/v1/cart/complete/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"

    resp = user_client.post("/api/v1/cart/complete/")
    assert resp.status_code == 404


@pytest.mark.django_db
def test_validate_reports_skipped_items(user_client, tenant, user_id, fake_catalog):
    product_id = fake_catalog.add_product(tiers=[(1, "11.00")])
    cart = CartFactory(tenant=tenant, user_id=user_id)
    CartItemFactory(cart=cart, product_id=product_id, unit_price=Decimal("10.00"))
    gone = CartItemFactory(cart=cart)

    resp = user_client.post("/api/v1/cart/validate/")

    assert resp.status_code == 200
    body = resp.json()
    assert body["subtotal"] == "21.00"
    assert [s["item_id"] for s in body["skipped_items"]] == [str(gone.id)]


@pytest.mark.django_db
def test_login_claims_guest_cart(api_client, tenant, user_id):
    guest = CartFactory(tenant=tenant, guest=True, session_id="sess-S")
    CartItemFactory(cart=guest)

    resp = api_client.get("/api/v1/cart/", HTTP_X_USER_ID=str(user_id), HTTP_X_SESSION_ID="sess-S")

    assert resp.json()["id"] == str(guest.id)
    assert resp.json()["user_id"] == str(user_id)
    assert resp.json()["session_id"] is None


@pytest.mark.django_db
def test_merge_requires_user(api_client):
    resp = api_client.post("/api/v1/cart/merge/", HTTP_X_SESSION_ID="sess-S")

    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "UNAUTHORIZED"


@pytest.mark.django_db
def test_merge_endpoint(api_client, tenant, user_id):
    own = CartFactory(tenant=tenant, user_id=user_id)
    guest = CartFactory(tenant=tenant, guest=True, session_id="sess-S")
    CartItemFactory(cart=guest)

    resp = api_client.post("/api/v1/cart/merge/", HTTP_X_USER_ID=str(user_id), HTTP_X_SESSION_ID="sess-S")

    assert resp.status_code == 200
    assert resp.json()["id"] == str(own.id)
    assert len(resp.json()["items"]) == 1
    assert Cart.objects.get(pk=guest.pk).status == Cart.STATUS_MERGED


@pytest.mark.django_db
def test_jwt_bearer_identifies_user(api_client, tenant, user_id):
    from rest_framework_simplejwt.tokens import AccessToken

    token = AccessToken()
    token["user_id"] = str(user_id)

    resp = api_client.get("/api/v1/cart/", HTTP_AUTHORIZATION=f"Bearer {token}")

    assert resp.status_code == 200
    assert resp.json()["user_id"] == str(user_id)


@pytest.mark.django_db
def test_invalid_internal_user_header(api_client):
    resp = api_client.get("/api/v1/cart/", HTTP_X_USER_ID="not-a-uuid")

    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "UNAUTHORIZED"
