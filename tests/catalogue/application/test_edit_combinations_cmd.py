"""Application tests for bulk and single variant combination edits."""

import json

import pytest
from catalogue.variants.configuration import ConfigureVariants
from catalogue.variants.editing import BulkUpdateVariantCombinations, UpdateVariantCombination
from catalogue.variants.product_variants import ProductVariants
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain


@pytest.fixture()
def product_id():
    options = [
        {"type": "COLOR", "values": ["Black", "White"]},
        {"type": "SIZE", "values": ["S", "M", "L"]},
    ]
    current_domain.process(
        ConfigureVariants(product_id="prod-100", options=json.dumps(options), default_price=10.0),
        asynchronous=False,
    )
    return "prod-100"


def _get(product_id):
    return current_domain.repository_for(ProductVariants).get(product_id)


class TestBulkUpdate:
    def test_by_option_value(self, product_id):
        updated = current_domain.process(
            BulkUpdateVariantCombinations(
                product_id=product_id,
                updates=json.dumps({"price": 15.0}),
                option_type="COLOR",
                option_value="White",
            ),
            asynchronous=False,
        )

        assert updated == 3
        product_variants = _get(product_id)
        assert product_variants.find_combination("COLOR:White|SIZE:L").price == 15.0
        assert product_variants.find_combination("COLOR:Black|SIZE:L").price == 10.0

    def test_by_keys(self, product_id):
        updated = current_domain.process(
            BulkUpdateVariantCombinations(
                product_id=product_id,
                updates=json.dumps({"available": False}),
                combination_keys=json.dumps(["COLOR:Black|SIZE:S", "COLOR:Black|SIZE:M"]),
            ),
            asynchronous=False,
        )

        assert updated == 2
        assert _get(product_id).find_combination("COLOR:Black|SIZE:M").available is False

    def test_apply_to_all_quantity(self, product_id):
        updated = current_domain.process(
            BulkUpdateVariantCombinations(
                product_id=product_id,
                updates=json.dumps({"quantity": 9}),
                apply_to_all=True,
            ),
            asynchronous=False,
        )

        assert updated == 6
        assert all(c.quantity == 9 and c.in_stock for c in _get(product_id).combinations)

    def test_unknown_product(self):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(
                BulkUpdateVariantCombinations(product_id="missing", updates=json.dumps({"price": 1.0})),
                asynchronous=False,
            )

    def test_non_editable_field_rejected(self, product_id):
        with pytest.raises(ValidationError):
            current_domain.process(
                BulkUpdateVariantCombinations(
                    product_id=product_id,
                    updates=json.dumps({"option_values": "{}"}),
                    apply_to_all=True,
                ),
                asynchronous=False,
            )


class TestUpdateSingleCombination:
    def test_update_one(self, product_id):
        combination = _get(product_id).find_combination("COLOR:Black|SIZE:S")

        returned_id = current_domain.process(
            UpdateVariantCombination(
                product_id=product_id,
                combination_id=str(combination.id),
                updates=json.dumps({"quantity": 0, "compare_at_price": 20.0}),
            ),
            asynchronous=False,
        )

        assert returned_id == str(combination.id)
        refreshed = _get(product_id).find_combination("COLOR:Black|SIZE:S")
        assert refreshed.quantity == 0
        assert refreshed.in_stock is False
        assert refreshed.compare_at_price == 20.0

    def test_unknown_combination(self, product_id):
        with pytest.raises(ValidationError):
            current_domain.process(
                UpdateVariantCombination(
                    product_id=product_id,
                    combination_id="not-there",
                    updates=json.dumps({"price": 1.0}),
                ),
                asynchronous=False,
            )
