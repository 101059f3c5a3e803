"""Shared BDD fixtures and step definitions for the Inventory domain."""

import pytest
from inventory.stock.ledger import StockKind
from pytest_bdd import given, parsers, then


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def entity_id():
    return "variant_combination:combo-001"


# ---------------------------------------------------------------------------
# Given steps — set up ledger state
# ---------------------------------------------------------------------------
@given(parsers.cfparse("a stock entity with {quantity:d} units"))
def _(reservation_engine, entity_id, quantity):
    reservation_engine.ledger.track(entity_id, StockKind.VARIANT_COMBINATION, quantity=quantity)


@given(parsers.cfparse("{quantity:d} units were reserved"))
def _(reservation_engine, entity_id, quantity):
    assert reservation_engine.reserve(entity_id, quantity).success


@given(parsers.cfparse("{quantity:d} units were committed"))
def _(reservation_engine, entity_id, quantity):
    assert reservation_engine.commit(entity_id, quantity).success


# ---------------------------------------------------------------------------
# Then steps — shared assertions
# ---------------------------------------------------------------------------
@then(
    parsers.cfparse(
        "the stock levels are {quantity:d} total, {available:d} available, "
        "{on_hold:d} on hold, {committed:d} committed"
    )
)
def _(reservation_engine, entity_id, quantity, available, on_hold, committed):
    entity = reservation_engine.ledger.get(entity_id)
    assert entity.quantity == quantity
    assert entity.quantity_available == available
    assert entity.quantity_on_hold == on_hold
    assert entity.quantity_committed == committed
    assert entity.is_consistent()
