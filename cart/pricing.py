"""Price resolution against the catalog service.

Each product type is priced with its own strategy:

- simple / variant: quantity tiers from `GET /products/{id}/prices`;
- bundle: `POST /bundles/{id}/calculate-price` with the selected components;
- parametric: `POST /products/{id}/calculate-price` with parameters and selections.

The lookup id sent to the catalog is the variant id when one is given,
otherwise the product id.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Optional

from common.choices import ProductType
from common.errors import InvalidConfiguration, PriceNotAvailable, UnknownProductType, UpstreamError

from .catalog import CatalogClient
from .configuration import BundleConfiguration, Configuration, ParametricConfiguration

logger = logging.getLogger("cartflow.pricing")

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Convert a catalog number to a Decimal rounded half-up to cents."""

    if isinstance(value, bool) or value is None:
        raise UpstreamError("invalid price in catalog response")
    try:
        return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        raise UpstreamError("invalid price in catalog response")


@dataclass(frozen=True)
class PriceTier:
    min_quantity: int
    price: Decimal
    currency: str


@dataclass(frozen=True)
class PriceQuote:
    unit_price: Decimal
    currency: str
    product_type: str


@dataclass(frozen=True)
class ProductInfo:
    product_type: str
    name: str
    sku: str
    image_url: str
    unit_price: Decimal
    currency: str

    @property
    def quote(self) -> PriceQuote:
        return PriceQuote(unit_price=self.unit_price, currency=self.currency, product_type=self.product_type)


def select_tier(tiers: Iterable[PriceTier], quantity: int) -> PriceTier:
    """Pick the tier with the largest `min_quantity <= quantity`.

    When no tier qualifies the tier with the smallest `min_quantity` wins.
    """

    tiers = list(tiers)
    if not tiers:
        raise PriceNotAvailable()
    selected = None
    for tier in tiers:
        if tier.min_quantity <= quantity and (selected is None or tier.min_quantity > selected.min_quantity):
            selected = tier
    if selected is None:
        selected = tiers[0]
        for tier in tiers:
            if tier.min_quantity < selected.min_quantity:
                selected = tier
    return selected


def product_display_name(raw) -> str:
    """Product names are either plain strings or i18n maps; prefer de, then en."""

    if isinstance(raw, str):
        return raw
    if isinstance(raw, dict) and raw:
        for lang in ("de", "en"):
            if isinstance(raw.get(lang), str):
                return raw[lang]
        for value in raw.values():
            if isinstance(value, str):
                return value
    return ""


def bundle_payload(configuration: Optional[Configuration]) -> dict:
    components = []
    if isinstance(configuration, BundleConfiguration):
        for component in configuration.components:
            entry = {"quantity": component.quantity}
            if component.component_id is not None:
                entry["component_id"] = str(component.component_id)
            if component.parameters:
                entry["parameters"] = component.parameters
            if component.selections:
                entry["selections"] = component.selections
            components.append(entry)
    return {"components": components}


def parametric_payload(configuration: Optional[Configuration], quantity: int) -> dict:
    parameters, selections = {}, {}
    if isinstance(configuration, ParametricConfiguration):
        parameters = dict(configuration.parameters)
        selections = dict(configuration.selections)
    return {"selections": selections, "parameters": parameters, "quantity": quantity}


def check_shape(product_type: str, configuration: Optional[Configuration]) -> None:
    """Reject a configuration whose shape belongs to another product type."""

    if configuration is None:
        return
    if product_type == ProductType.BUNDLE and not isinstance(configuration, BundleConfiguration):
        raise InvalidConfiguration("bundle products take bundle_components")
    if product_type == ProductType.PARAMETRIC and not isinstance(configuration, ParametricConfiguration):
        raise InvalidConfiguration("parametric products take parameters and selections")


def _parse_tiers(rows) -> list:
    tiers = []
    for row in rows:
        if not isinstance(row, dict):
            raise UpstreamError("unexpected prices response")
        try:
            min_quantity = int(row.get("min_quantity") or 0)
        except (TypeError, ValueError):
            raise UpstreamError("unexpected prices response")
        tiers.append(
            PriceTier(min_quantity=min_quantity, price=to_money(row.get("price")), currency=row.get("currency") or "")
        )
    return tiers


class PriceResolver:
    """Resolve unit prices and display fields for cart items."""

    def __init__(self, catalog: CatalogClient, default_currency: str = "CHF"):
        self.catalog = catalog
        self.default_currency = default_currency

    def resolve_product(
        self,
        *,
        tenant_code: str,
        product_id,
        variant_id=None,
        quantity: int,
        configuration: Optional[Configuration] = None,
    ) -> ProductInfo:
        lookup_id = variant_id or product_id
        product = self.catalog.get_product(tenant_code=tenant_code, lookup_id=lookup_id)
        product_type = product.get("product_type") or ""
        check_shape(product_type, configuration)

        if product_type in (ProductType.SIMPLE, ProductType.VARIANT):
            rows = self.catalog.get_prices(tenant_code=tenant_code, lookup_id=lookup_id)
            tier = select_tier(_parse_tiers(rows), quantity)
            unit_price, currency = tier.price, tier.currency
        elif product_type == ProductType.BUNDLE:
            body = self.catalog.calculate_bundle_price(
                tenant_code=tenant_code, lookup_id=lookup_id, payload=bundle_payload(configuration)
            )
            unit_price = to_money(body.get("total"))
            currency = body.get("currency") or self.default_currency
        elif product_type == ProductType.PARAMETRIC:
            body = self.catalog.calculate_parametric_price(
                tenant_code=tenant_code, lookup_id=lookup_id, payload=parametric_payload(configuration, quantity)
            )
            unit_price = to_money(body.get("unit_price"))
            currency = body.get("currency") or ""
        else:
            raise UnknownProductType(f"unknown product type: {product_type}")

        logger.debug(
            "pricing.resolved",
            extra={
                "event": "pricing.resolved",
                "tenant": tenant_code,
                "lookup_id": str(lookup_id),
                "product_type": product_type,
                "quantity": quantity,
                "unit_price": str(unit_price),
            },
        )
        return ProductInfo(
            product_type=str(product_type),
            name=product_display_name(product.get("name")),
            sku=product.get("sku") or "",
            image_url=product.get("image_url") or "",
            unit_price=unit_price,
            currency=currency,
        )

    def resolve_price(
        self,
        *,
        tenant_code: str,
        product_id,
        variant_id=None,
        quantity: int,
        configuration: Optional[Configuration] = None,
    ) -> PriceQuote:
        return self.resolve_product(
            tenant_code=tenant_code,
            product_id=product_id,
            variant_id=variant_id,
            quantity=quantity,
            configuration=configuration,
        ).quote
