"""Application tests for the ConfigureVariants command handler."""

import json

import pytest
from catalogue.variants.configuration import ConfigureVariants
from catalogue.variants.product_variants import ProductVariants
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

OPTIONS = [
    {"type": "SIZE", "values": [{"value": "S"}, {"value": "M"}, {"value": "L"}]},
    {"type": "COLOR", "values": [{"value": "Red", "hex_color": "#FF0000"}, {"value": "Blue"}]},
]


def _configure(product_id="prod-001", options=OPTIONS, **overrides):
    command = ConfigureVariants(product_id=product_id, seller_id="seller-001", options=json.dumps(options), **overrides)
    return current_domain.process(command, asynchronous=False)


class TestConfigureVariantsHandler:
    def test_configure_persists_options_and_combinations(self):
        result = _configure(default_sku="SHIRT", default_price=25.0, default_quantity=3)

        assert result["product_id"] == "prod-001"
        assert result["options_created"] == 5
        assert len(result["combinations_created"]) == 6

        product_variants = current_domain.repository_for(ProductVariants).get("prod-001")
        assert product_variants.types == ["SIZE", "COLOR"]
        assert len(product_variants.combinations) == 6
        assert str(product_variants.seller_id) == "seller-001"

        combination = product_variants.find_combination("COLOR:Red|SIZE:S")
        assert combination.price == 25.0
        assert combination.quantity == 3
        assert combination.sku == "SHIRT-1"

    def test_result_lists_keys_and_skus(self):
        result = _configure(default_sku="SHIRT")

        keys = [c["combination_key"] for c in result["combinations_created"]]
        assert keys[0] == "COLOR:Red|SIZE:S"
        assert keys[1] == "COLOR:Blue|SIZE:S"
        assert all(c["sku"].startswith("SHIRT-") for c in result["combinations_created"])

    def test_second_run_is_a_no_op(self):
        _configure()
        result = _configure()

        assert result["options_created"] == 0
        assert result["combinations_created"] == []
        product_variants = current_domain.repository_for(ProductVariants).get("prod-001")
        assert len(product_variants.combinations) == 6

    def test_adding_a_value_generates_only_new_combinations(self):
        _configure()
        extended = [OPTIONS[0], {"type": "COLOR", "values": ["Red", "Blue", "Green"]}]

        result = _configure(options=extended)

        assert result["options_created"] == 1
        assert sorted(c["combination_key"] for c in result["combinations_created"]) == [
            "COLOR:Green|SIZE:L",
            "COLOR:Green|SIZE:M",
            "COLOR:Green|SIZE:S",
        ]

    def test_options_only(self):
        result = _configure(generate_combinations=False)

        assert result["options_created"] == 5
        assert result["combinations_created"] == []

    def test_untracked_combinations(self):
        _configure(inventory_tracked=False)

        product_variants = current_domain.repository_for(ProductVariants).get("prod-001")
        assert all(c.inventory_tracked is False for c in product_variants.combinations)

    def test_too_many_dimensions_rejected(self):
        options = [{"type": name, "values": ["x"]} for name in ("A", "B", "C", "D")]
        with pytest.raises(ValidationError):
            _configure(options=options)

    def test_repeated_values_rejected(self):
        with pytest.raises(ValidationError):
            _configure(options=[{"type": "SIZE", "values": ["S", "S"]}])

    def test_changing_types_after_generation_rejected(self):
        _configure()
        with pytest.raises(ValidationError):
            _configure(options=[{"type": "MATERIAL", "values": ["Cotton"]}])
