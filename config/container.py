"""Process-wide dependencies built once at startup.

`CommonConfig.ready()` stores the container on the app config; views pass
its members to services explicitly so tests can swap any of them.
"""

from dataclasses import dataclass

from cart.catalog import CatalogClient
from cart.pricing import PriceResolver
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from orders.gateways import HttpCartGateway, LocalCartGateway


@dataclass
class Container:
    catalog: CatalogClient
    resolver: PriceResolver
    cart_gateway: object


def build_container() -> Container:
    timeout = settings.UPSTREAM_TIMEOUT_SECONDS
    catalog = CatalogClient(settings.CATALOG_SERVICE_URL, timeout=timeout)
    resolver = PriceResolver(catalog, default_currency=settings.DEFAULT_CURRENCY)

    mode = str(settings.CART_GATEWAY).lower()
    if mode == "local":
        cart_gateway = LocalCartGateway(resolver)
    elif mode == "http":
        cart_gateway = HttpCartGateway(settings.CART_SERVICE_URL, timeout=timeout)
    else:
        raise ImproperlyConfigured(f"CART_GATEWAY must be 'local' or 'http', got {settings.CART_GATEWAY!r}")
    return Container(catalog=catalog, resolver=resolver, cart_gateway=cart_gateway)
