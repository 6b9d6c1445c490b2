from common.errors import CartEmpty, CatalogUnavailable, Forbidden, OrderNotFound, TenantInactive, Unauthorized
from common.exceptions import api_exception_handler, error_body
from django.http import Http404
from rest_framework import exceptions


def test_domain_errors_map_to_status_by_category():
    cases = [
        (OrderNotFound(), 404, "NOT_FOUND"),
        (CartEmpty(), 400, "CART_EMPTY"),
        (Unauthorized(), 401, "UNAUTHORIZED"),
        (Forbidden(), 403, "FORBIDDEN"),
        (TenantInactive(), 403, "TENANT_INACTIVE"),
        (CatalogUnavailable(), 500, "CATALOG_UNAVAILABLE"),
    ]
    for exc, status_code, code in cases:
        response = api_exception_handler(exc, {})
        assert response.status_code == status_code
        assert response.data == error_body(code, exc.message)


def test_custom_message_is_kept():
    response = api_exception_handler(CartEmpty("nothing to check out"), {})

    assert response.data == {"error": {"code": "CART_EMPTY", "message": "nothing to check out"}}


def test_drf_validation_error_carries_details():
    exc = exceptions.ValidationError({"quantity": ["A valid integer is required."]})

    response = api_exception_handler(exc, {})

    assert response.status_code == 400
    assert response.data["error"]["code"] == "VALIDATION_ERROR"
    assert response.data["error"]["details"] == {"quantity": ["A valid integer is required."]}


def test_drf_errors_use_the_same_envelope():
    response = api_exception_handler(exceptions.Throttled(wait=3), {})
    assert response.status_code == 429
    assert response.data["error"]["code"] == "THROTTLED"

    response = api_exception_handler(Http404(), {})
    assert response.status_code == 404
    assert response.data["error"]["code"] == "NOT_FOUND"

    response = api_exception_handler(exceptions.PermissionDenied("staff only"), {})
    assert response.data == {"error": {"code": "FORBIDDEN", "message": "staff only"}}


def test_unhandled_exceptions_propagate():
    assert api_exception_handler(RuntimeError("boom"), {}) is None
