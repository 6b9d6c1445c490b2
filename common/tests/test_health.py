import pytest
from rest_framework.test import APIClient


@pytest.mark.django_db
def test_health_reports_database():
    resp = APIClient().get("/health/")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "database": "ok"}


@pytest.mark.django_db
def test_schema_is_served():
    resp = APIClient().get("/api/schema/", HTTP_ACCEPT="application/json")

    assert resp.status_code == 200
    assert "/api/v1/orders/checkout/" in resp.json()["paths"]
