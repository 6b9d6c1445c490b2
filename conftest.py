import uuid

import pytest
from cart.catalog import CatalogClient
from cart.pricing import PriceResolver
from cart.tests.fakes import FakeCatalog
from config.container import Container
from django.apps import apps
from orders.gateways import LocalCartGateway
from rest_framework.test import APIClient
from tenants.tests.factories import TenantFactory


@pytest.fixture
def tenant(db):
    return TenantFactory(code="acme", name="Acme AG")


@pytest.fixture
def user_id():
    return uuid.uuid4()


@pytest.fixture
def fake_catalog():
    return FakeCatalog()


@pytest.fixture
def catalog_client(fake_catalog):
    client = CatalogClient("http://catalog.test", transport=fake_catalog.transport())
    yield client
    client.close()


@pytest.fixture
def resolver(catalog_client):
    return PriceResolver(catalog_client, default_currency="CHF")


@pytest.fixture
def container(monkeypatch, catalog_client, resolver):
    """Swap the process-wide container for one backed by the fake catalog."""

    built = Container(catalog=catalog_client, resolver=resolver, cart_gateway=LocalCartGateway(resolver))
    monkeypatch.setattr(apps.get_app_config("common"), "container", built)
    return built


@pytest.fixture
def api_client(tenant, container):
    client = APIClient()
    client.credentials(HTTP_X_TENANT_ID=tenant.code)
    return client


@pytest.fixture
def user_client(api_client, user_id):
    """Client acting as an authenticated user via the trusted internal header."""

    api_client.credentials(HTTP_X_TENANT_ID="acme", HTTP_X_USER_ID=str(user_id))
    return api_client
