"""Normalization and fingerprinting of cart item configurations.

Clients send bundle selections and parametric values in either snake_case
or camelCase. Everything downstream works on the normalized dataclasses
below, and two items carry the same configuration exactly when their
fingerprints are equal.

Numbers inside parameter maps compare by value, so `1` and `1.0` are the
same setting. A payload without any configuration data, `{}` or empty
parameter and selection maps included, normalizes to None and so shares the
empty fingerprint of an unconfigured line.
"""

import hashlib
import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from common.errors import InvalidConfiguration


@dataclass(frozen=True)
class BundleComponent:
    component_id: Optional[uuid.UUID] = None
    product_id: Optional[uuid.UUID] = None
    variant_id: Optional[uuid.UUID] = None
    quantity: int = 1
    parameters: Optional[dict] = None
    selections: Optional[dict] = None


@dataclass(frozen=True)
class BundleConfiguration:
    components: tuple


@dataclass(frozen=True)
class ParametricConfiguration:
    parameters: dict = field(default_factory=dict)
    selections: dict = field(default_factory=dict)


Configuration = Union[BundleConfiguration, ParametricConfiguration]


def _first(data: Mapping, *keys):
    """Return the first non-empty value among `keys`."""

    for key in keys:
        value = data.get(key)
        if value not in (None, "", [], {}):
            return value
    return None


def _parse_uuid(value, label: str) -> Optional[uuid.UUID]:
    if value in (None, ""):
        return None
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise InvalidConfiguration(f"{label} is not a valid UUID")


def _plain_numbers(value):
    """Collapse integral floats to ints, recursively."""

    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, Mapping):
        return {key: _plain_numbers(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain_numbers(item) for item in value]
    return value


def _parse_parameters(value, label: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidConfiguration(f"{label} must be an object")
    return _plain_numbers(dict(value))


def _parse_selections(value, label: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidConfiguration(f"{label} must be an object")
    for key, selected in value.items():
        if not isinstance(key, str) or not isinstance(selected, str):
            raise InvalidConfiguration(f"{label} must map names to string values")
    return dict(value)


def _parse_quantity(value) -> int:
    if value is None:
        return 1
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidConfiguration("component quantity must be a positive integer")
    return value


def _parse_component(raw) -> BundleComponent:
    if not isinstance(raw, Mapping):
        raise InvalidConfiguration("bundle component must be an object")
    parameters = _parse_parameters(raw.get("parameters"), "component parameters")
    selections = _parse_selections(raw.get("selections"), "component selections")
    return BundleComponent(
        component_id=_parse_uuid(_first(raw, "component_id", "componentId"), "component_id"),
        product_id=_parse_uuid(_first(raw, "product_id", "productId"), "product_id"),
        variant_id=_parse_uuid(_first(raw, "variant_id", "variantId"), "variant_id"),
        quantity=_parse_quantity(raw.get("quantity")),
        parameters=parameters or None,
        selections=selections or None,
    )


def _parametric_from(raw: Mapping) -> Optional[ParametricConfiguration]:
    structured = _first(raw, "parametric_params", "parametricParams")
    if structured is not None:
        if not isinstance(structured, Mapping):
            raise InvalidConfiguration("parametric_params must be an object")
        if "parameters" in structured:
            parameters = structured["parameters"]
        else:
            parameters = {k: v for k, v in structured.items() if k != "selections"}
        return ParametricConfiguration(
            parameters=_parse_parameters(parameters, "parameters"),
            selections=_parse_selections(structured.get("selections"), "selections"),
        )
    if raw.get("parameters") is not None or raw.get("selections") is not None:
        return ParametricConfiguration(
            parameters=_parse_parameters(raw.get("parameters"), "parameters"),
            selections=_parse_selections(raw.get("selections"), "selections"),
        )
    return None


def normalize_configuration(raw: Any) -> Optional[Configuration]:
    """Turn a client configuration payload into its normalized form.

    Returns None when the payload carries no configuration at all. Raises
    `InvalidConfiguration` for malformed data, including payloads that mix
    bundle components with parametric values.
    """

    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise InvalidConfiguration("configuration must be an object")

    components = _first(raw, "bundle_components", "bundleComponents")
    if components is not None and not isinstance(components, (list, tuple)):
        raise InvalidConfiguration("bundle_components must be a list")
    parametric = _parametric_from(raw)
    if parametric is not None and not (parametric.parameters or parametric.selections):
        parametric = None

    if components and parametric is not None:
        raise InvalidConfiguration("configuration cannot be both a bundle and parametric")
    if components:
        return BundleConfiguration(components=tuple(_parse_component(c) for c in components))
    return parametric


def _component_to_dict(component: BundleComponent) -> dict:
    data = {"quantity": component.quantity}
    if component.component_id is not None:
        data["component_id"] = str(component.component_id)
    if component.product_id is not None:
        data["product_id"] = str(component.product_id)
    if component.variant_id is not None:
        data["variant_id"] = str(component.variant_id)
    if component.parameters:
        data["parameters"] = component.parameters
    if component.selections:
        data["selections"] = component.selections
    return data


def to_canonical(configuration: Optional[Configuration]) -> Optional[dict]:
    """JSON-ready canonical form, as stored on cart and order items."""

    if configuration is None:
        return None
    if isinstance(configuration, BundleConfiguration):
        return {"bundle_components": [_component_to_dict(c) for c in configuration.components]}
    return {
        "parametric_params": {
            "parameters": configuration.parameters,
            "selections": configuration.selections,
        }
    }


def fingerprint(configuration: Optional[Configuration]) -> str:
    """Content hash of a normalized configuration; "" when there is none."""

    canonical = to_canonical(configuration)
    if canonical is None:
        return ""
    encoded = json.dumps(canonical, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()
