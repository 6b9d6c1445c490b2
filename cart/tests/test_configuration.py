import uuid

import pytest
from cart.configuration import (
    BundleConfiguration,
    ParametricConfiguration,
    fingerprint,
    normalize_configuration,
    to_canonical,
)
from common.errors import InvalidConfiguration

COMPONENT_A = "5b6c7d8e-9f0a-4b1c-8d2e-3f4a5b6c7d8e"
COMPONENT_B = "0a1b2c3d-4e5f-4a6b-8c7d-9e0f1a2b3c4d"
VALUES = {"parameters": {"length": 120}, "selections": {"ends": "open"}}


def test_none_means_no_configuration():
    assert normalize_configuration(None) is None
    assert fingerprint(None) == ""
    assert to_canonical(None) is None


def test_non_mapping_is_rejected():
    with pytest.raises(InvalidConfiguration):
        normalize_configuration(["bundle_components"])


def test_snake_and_camel_bundles_have_equal_fingerprints():
    snake = normalize_configuration(
        {"bundle_components": [{"component_id": COMPONENT_A, "quantity": 2, "selections": {"color": "red"}}]}
    )
    camel = normalize_configuration(
        {"bundleComponents": [{"componentId": COMPONENT_A, "quantity": 2, "selections": {"color": "red"}}]}
    )

    assert isinstance(snake, BundleConfiguration)
    assert snake == camel
    assert fingerprint(snake) == fingerprint(camel)
    assert snake.components[0].component_id == uuid.UUID(COMPONENT_A)


def test_snake_and_camel_parametric_have_equal_fingerprints():
    snake = normalize_configuration({"parametric_params": VALUES})
    camel = normalize_configuration({"parametricParams": VALUES})

    assert isinstance(snake, ParametricConfiguration)
    assert fingerprint(snake) == fingerprint(camel)


def test_flat_parametric_payload_matches_structured_one():
    flat = normalize_configuration(VALUES)
    structured = normalize_configuration({"parametric_params": VALUES})

    assert fingerprint(flat) == fingerprint(structured)


def test_key_order_does_not_change_fingerprint():
    first = normalize_configuration({"parameters": {"length": 120, "width": 4}})
    second = normalize_configuration({"parameters": {"width": 4, "length": 120}})

    assert fingerprint(first) == fingerprint(second)


def test_integral_floats_match_ints():
    ints = normalize_configuration({"parameters": {"width": 1, "sizes": [2, 3.5]}})
    floats = normalize_configuration({"parametricParams": {"parameters": {"width": 1.0, "sizes": [2.0, 3.5]}}})

    assert fingerprint(ints) == fingerprint(floats)
    assert floats.parameters == {"width": 1, "sizes": [2, 3.5]}
    assert fingerprint(ints) != fingerprint(normalize_configuration({"parameters": {"width": 1.5}}))


def test_different_values_change_fingerprint():
    short = normalize_configuration({"parameters": {"length": 120}})
    long = normalize_configuration({"parameters": {"length": 240}})

    assert fingerprint(short) != fingerprint(long)


def test_component_order_is_significant():
    ab = normalize_configuration({"bundle_components": [{"component_id": COMPONENT_A}, {"component_id": COMPONENT_B}]})
    ba = normalize_configuration({"bundle_components": [{"component_id": COMPONENT_B}, {"component_id": COMPONENT_A}]})

    assert fingerprint(ab) != fingerprint(ba)


def test_empty_parametric_payload_is_no_configuration():
    assert normalize_configuration({"parametric_params": {"parameters": {}, "selections": {}}}) is None
    assert normalize_configuration({}) is None
    assert fingerprint(normalize_configuration({"parameters": {}})) == ""


def test_mixed_bundle_and_parametric_is_rejected():
    with pytest.raises(InvalidConfiguration):
        normalize_configuration(
            {"bundle_components": [{"component_id": COMPONENT_A}], "parameters": {"length": 120}}
        )


@pytest.mark.parametrize(
    "payload",
    [
        {"bundle_components": "not-a-list"},
        {"bundle_components": [{"component_id": "not-a-uuid"}]},
        {"bundleComponents": [{"componentId": COMPONENT_A, "productId": "not-a-uuid"}]},
        {"bundle_components": [{"component_id": COMPONENT_A, "quantity": 0}]},
        {"bundle_components": [{"component_id": COMPONENT_A, "quantity": True}]},
        {"parameters": "length=120"},
        {"selections": {"color": 3}},
    ],
)
def test_malformed_payloads_are_rejected(payload):
    with pytest.raises(InvalidConfiguration):
        normalize_configuration(payload)


def test_canonical_form_defaults_component_quantity():
    cfg = normalize_configuration({"bundleComponents": [{"componentId": COMPONENT_A, "productId": COMPONENT_B}]})

    assert to_canonical(cfg) == {
        "bundle_components": [{"component_id": COMPONENT_A, "quantity": 1, "product_id": COMPONENT_B}]
    }


def test_component_without_id_normalizes():
    cfg = normalize_configuration({"bundleComponents": [{"quantity": 2}]})

    assert isinstance(cfg, BundleConfiguration)
    assert cfg.components[0].component_id is None
    assert to_canonical(cfg) == {"bundle_components": [{"quantity": 2}]}
