"""Integration tests for the reservation engine over a real SQLite ledger."""

import pytest
from inventory.stock.engine import StockOutcome, StockReservationEngine
from inventory.stock.exceptions import InvariantViolation
from inventory.stock.ledger import StockKind, StockLedger
from protean.exceptions import ValidationError

ENTITY = "variant_combination:c1"


def _counters(entity):
    return (entity.quantity, entity.quantity_available, entity.quantity_on_hold, entity.quantity_committed)


@pytest.fixture()
def engine(reservation_engine):
    reservation_engine.ledger.track(ENTITY, StockKind.VARIANT_COMBINATION, quantity=10)
    return reservation_engine


class TestStockLifecycle:
    def test_reserve_commit_adjust(self, engine):
        reserved = engine.reserve(ENTITY, 3)
        assert reserved.success
        assert reserved.outcome == StockOutcome.APPLIED
        assert _counters(reserved.entity) == (10, 7, 3, 0)

        committed = engine.commit(ENTITY, 3)
        assert _counters(committed.entity) == (10, 7, 0, 3)

        adjusted = engine.adjust_total(ENTITY, 12)
        assert _counters(adjusted.entity) == (12, 9, 0, 3)
        assert adjusted.previous.quantity == 10

    def test_reserve_then_release_restores_levels(self, engine):
        engine.reserve(ENTITY, 4)
        released = engine.release(ENTITY, 4)

        assert released.success
        assert _counters(released.entity) == (10, 10, 0, 0)

    def test_every_step_keeps_the_counters_consistent(self, engine):
        for step in (
            lambda: engine.reserve(ENTITY, 5),
            lambda: engine.commit(ENTITY, 2),
            lambda: engine.release(ENTITY, 1),
            lambda: engine.adjust_total(ENTITY, 3),
            lambda: engine.reserve(ENTITY, 1),
        ):
            result = step()
            assert result.entity.is_consistent()


class TestCheckAvailability:
    def test_partially_reserved_entity(self, reservation_engine):
        ledger = reservation_engine.ledger
        ledger.track(ENTITY, "variant_combination", quantity=5)
        reservation_engine.reserve(ENTITY, 3)

        check = reservation_engine.check_availability(ENTITY, 3)

        assert check.available is False
        assert check.quantity == 2
        assert not check

    def test_enough_stock(self, engine):
        check = engine.check_availability(ENTITY, 10)
        assert check.available is True
        assert check.tracked is True

    def test_missing_record_is_treated_as_untracked(self, reservation_engine):
        check = reservation_engine.check_availability("product:unknown", 7)

        assert check.available is True
        assert check.tracked is False
        assert check.quantity == 7

    def test_untracked_entity(self, reservation_engine):
        reservation_engine.ledger.track("product:p2", "product", inventory_tracked=False)
        check = reservation_engine.check_availability("product:p2", 100)
        assert check.available is True
        assert check.tracked is False

    def test_check_does_not_change_levels(self, engine):
        engine.check_availability(ENTITY, 4)
        assert _counters(engine.ledger.get(ENTITY)) == (10, 10, 0, 0)

    @pytest.mark.parametrize("quantity", [0, -2, 1.5])
    def test_invalid_quantity(self, engine, quantity):
        with pytest.raises(ValidationError):
            engine.check_availability(ENTITY, quantity)


class TestReserve:
    def test_insufficient_stock_is_a_result(self, engine):
        result = engine.reserve(ENTITY, 11)

        assert not result
        assert result.outcome == StockOutcome.INSUFFICIENT_STOCK
        assert result.available == 10
        assert result.message == "Only 10 available"
        assert _counters(engine.ledger.get(ENTITY)) == (10, 10, 0, 0)

    def test_exact_remaining_quantity(self, engine):
        result = engine.reserve(ENTITY, 10)
        assert result.success
        assert result.entity.quantity_available == 0

    def test_untracked_entity_is_a_successful_no_op(self, reservation_engine):
        reservation_engine.ledger.track("product:p2", "product", quantity=0, inventory_tracked=False)

        result = reservation_engine.reserve("product:p2", 50)

        assert result.success
        assert result.outcome == StockOutcome.UNTRACKED
        assert _counters(reservation_engine.ledger.get("product:p2")) == (0, 0, 0, 0)

    def test_missing_record_is_treated_as_untracked(self, reservation_engine):
        result = reservation_engine.reserve("product:unknown", 2)
        assert result.success
        assert result.outcome == StockOutcome.UNTRACKED
        assert result.entity is None

    def test_zero_quantity_rejected(self, engine):
        with pytest.raises(ValidationError):
            engine.reserve(ENTITY, 0)


class TestCommitAndRelease:
    def test_commit_more_than_on_hold_is_an_invariant_violation(self, engine):
        engine.reserve(ENTITY, 2)

        with pytest.raises(InvariantViolation):
            engine.commit(ENTITY, 3)

        assert _counters(engine.ledger.get(ENTITY)) == (10, 8, 2, 0)

    def test_release_without_reservation_is_an_invariant_violation(self, engine):
        with pytest.raises(InvariantViolation):
            engine.release(ENTITY, 1)

    def test_commit_unknown_entity(self, reservation_engine):
        result = reservation_engine.commit("product:unknown", 1)
        assert result.outcome == StockOutcome.NOT_FOUND
        assert not result

    def test_release_on_untracked_entity(self, reservation_engine):
        reservation_engine.ledger.track("product:p2", "product", inventory_tracked=False)
        result = reservation_engine.release("product:p2", 3)
        assert result.outcome == StockOutcome.UNTRACKED


class TestAdjustTotal:
    def test_floor_clamp_when_below_units_in_flight(self, engine):
        engine.reserve(ENTITY, 6)

        result = engine.adjust_total(ENTITY, 4)

        assert result.success
        assert _counters(result.entity) == (4, 0, 6, 0)

    def test_restock_to_zero(self, engine):
        result = engine.adjust_total(ENTITY, 0)
        assert _counters(result.entity) == (0, 0, 0, 0)

    def test_untracked_entity_is_a_no_op(self, reservation_engine):
        reservation_engine.ledger.track("product:p2", "product", quantity=5, inventory_tracked=False)

        result = reservation_engine.adjust_total("product:p2", 40)

        assert result.outcome == StockOutcome.UNTRACKED
        assert reservation_engine.ledger.get("product:p2").quantity == 5

    def test_tracking_switched_off_after_read_is_a_no_op(self, engine, monkeypatch):
        snapshot = engine.ledger.get(ENTITY)
        engine.ledger.set_tracking(ENTITY, False)
        monkeypatch.setattr(engine.ledger, "find", lambda entity_id: snapshot)

        result = engine.adjust_total(ENTITY, 40)

        assert result.outcome == StockOutcome.UNTRACKED
        assert engine.ledger.get(ENTITY).quantity == 10

    def test_unknown_entity(self, reservation_engine):
        assert reservation_engine.adjust_total("product:unknown", 3).outcome == StockOutcome.NOT_FOUND

    def test_negative_total_rejected(self, engine):
        with pytest.raises(ValidationError):
            engine.adjust_total(ENTITY, -1)


class TestUnavailableLedger:
    @pytest.fixture()
    def broken_engine(self, tmp_path):
        # No schema: every statement fails with an OperationalError
        ledger = StockLedger.from_url(f"sqlite:///{tmp_path / 'broken.db'}", lock_timeout=1)
        yield StockReservationEngine(ledger)
        ledger.dispose()

    def test_check_reports_unreachable(self, broken_engine):
        check = broken_engine.check_availability(ENTITY, 1)
        assert check.available is False
        assert check.reachable is False

    def test_reserve_reports_unavailable(self, broken_engine):
        result = broken_engine.reserve(ENTITY, 1)
        assert result.outcome == StockOutcome.UNAVAILABLE
        assert not result

    def test_commit_reports_unavailable(self, broken_engine):
        assert broken_engine.commit(ENTITY, 1).outcome == StockOutcome.UNAVAILABLE

    def test_adjust_reports_unavailable(self, broken_engine):
        assert broken_engine.adjust_total(ENTITY, 1).outcome == StockOutcome.UNAVAILABLE
