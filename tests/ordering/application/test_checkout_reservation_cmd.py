"""Application tests for reserving a cart's stock at checkout."""

import pytest
from inventory.stock.engine import StockOperationResult, StockOutcome
from inventory.stock.exceptions import InvariantViolation
from inventory.stock.ledger import StockKind
from ordering.cart.cart import CartStatus, ShoppingCart
from ordering.cart.events import CartStockReservationFailed, CartStockReserved
from ordering.cart.items import AddToCart
from ordering.cart.management import CreateCart
from ordering.checkout.reservation import ReserveCartStock
from protean import current_domain
from protean.exceptions import ValidationError


@pytest.fixture()
def ledger(reservation_engine):
    ledger = reservation_engine.ledger
    ledger.track("variant_combination:c1", StockKind.VARIANT_COMBINATION, quantity=5)
    ledger.track("variant_combination:c2", StockKind.VARIANT_COMBINATION, quantity=3)
    return ledger


@pytest.fixture()
def cart_id(ledger):
    cart_id = current_domain.process(CreateCart(customer_id="cust-001"), asynchronous=False)
    for combination_id, quantity in (("c1", 2), ("c2", 3)):
        current_domain.process(
            AddToCart(
                cart_id=cart_id,
                seller_id="seller-1",
                product_id="prod-1",
                variant_combination_id=combination_id,
                quantity=quantity,
            ),
            asynchronous=False,
        )
    return cart_id


def _reserve(cart_id):
    return current_domain.process(ReserveCartStock(cart_id=cart_id, reference="order-1"), asynchronous=False)


def _on_hold(ledger, entity_id):
    return ledger.get(entity_id).quantity_on_hold


class TestReserveCartStock:
    def test_reserves_every_line_and_converts_the_cart(self, ledger, cart_id):
        result = _reserve(cart_id)

        assert result.success
        assert len(result.reserved) == 2
        assert _on_hold(ledger, "variant_combination:c1") == 2
        assert _on_hold(ledger, "variant_combination:c2") == 3

        cart = current_domain.repository_for(ShoppingCart).get(cart_id)
        assert cart.status == CartStatus.CONVERTED.value

    def test_failed_line_releases_earlier_lines(self, ledger, cart_id):
        # Someone else takes the last units of c2 after the items were added
        ledger.set_total("variant_combination:c2", 1)

        result = _reserve(cart_id)

        assert not result
        assert result.failed_entity_id == "variant_combination:c2"
        assert result.outcome == "insufficient_stock"
        assert (result.requested, result.available) == (3, 1)
        assert result.message == "Only 1 available"

        assert _on_hold(ledger, "variant_combination:c1") == 0
        assert ledger.get("variant_combination:c1").quantity_available == 5
        assert _on_hold(ledger, "variant_combination:c2") == 0

        cart = current_domain.repository_for(ShoppingCart).get(cart_id)
        assert cart.status == CartStatus.ACTIVE.value

    def test_cart_can_be_reserved_again_after_restock(self, ledger, cart_id):
        ledger.set_total("variant_combination:c2", 1)
        assert not _reserve(cart_id)

        ledger.set_total("variant_combination:c2", 3)
        assert _reserve(cart_id).success

    def test_empty_cart_rejected(self, ledger):
        cart_id = current_domain.process(CreateCart(customer_id="cust-002"), asynchronous=False)
        with pytest.raises(ValidationError):
            _reserve(cart_id)

    def test_converted_cart_cannot_be_reserved_twice(self, ledger, cart_id):
        _reserve(cart_id)
        with pytest.raises(ValidationError):
            _reserve(cart_id)
        assert _on_hold(ledger, "variant_combination:c1") == 2


class TestCheckoutEvents:
    def test_success_raises_stock_reserved(self, ledger, cart_id):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(cart_id)
        cart.ensure_ready_for_checkout()
        cart.record_stock_reserved(reference="order-1")

        event = cart._events[-1]
        assert isinstance(event, CartStockReserved)
        assert event.reference == "order-1"

    def test_failure_raises_reservation_failed(self, ledger, cart_id, reservation_engine):
        cart = current_domain.repository_for(ShoppingCart).get(cart_id)
        item = cart.items[0]
        ledger.set_total(item.stock_entity_id, 0)
        result = reservation_engine.reserve(item.stock_entity_id, item.quantity)

        cart.record_stock_reservation_failed(item, result)

        event = cart._events[-1]
        assert isinstance(event, CartStockReservationFailed)
        assert event.outcome == "insufficient_stock"
        assert event.available == 0


class TestCompensation:
    def test_failed_release_is_reported(self, ledger, cart_id, reservation_engine, monkeypatch):
        ledger.set_total("variant_combination:c2", 1)
        monkeypatch.setattr(
            reservation_engine,
            "release",
            lambda entity_id, quantity: StockOperationResult(
                entity_id, "release", quantity, StockOutcome.UNAVAILABLE
            ),
        )

        result = _reserve(cart_id)

        assert not result
        assert result.outcome == "insufficient_stock"
        assert result.unreleased == [{"entity_id": "variant_combination:c1", "quantity": 2}]
        assert _on_hold(ledger, "variant_combination:c1") == 2

    def test_successful_release_reports_nothing_unreleased(self, ledger, cart_id):
        ledger.set_total("variant_combination:c2", 1)
        assert _reserve(cart_id).unreleased == []

    def test_invariant_violation_releases_earlier_lines(self, ledger, cart_id, reservation_engine, monkeypatch):
        reserve = reservation_engine.reserve

        def reserve_then_fail(entity_id, quantity):
            if entity_id == "variant_combination:c2":
                raise InvariantViolation(entity_id, "counters out of balance")
            return reserve(entity_id, quantity)

        monkeypatch.setattr(reservation_engine, "reserve", reserve_then_fail)

        with pytest.raises(InvariantViolation):
            _reserve(cart_id)

        assert _on_hold(ledger, "variant_combination:c1") == 0
        cart = current_domain.repository_for(ShoppingCart).get(cart_id)
        assert cart.status == CartStatus.ACTIVE.value
