"""Integration tests for Inventory API endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from inventory.api.routes import inventory_router
from inventory.stock.engine import StockReservationEngine, configure_stock_engine
from inventory.stock.ledger import StockLedger
from shared.http import register_error_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(inventory_router)
    return TestClient(app)


@pytest.fixture()
def unreachable_store(reservation_engine, tmp_path):
    # No schema: every statement fails with an OperationalError
    ledger = StockLedger.from_url(f"sqlite:///{tmp_path / 'broken.db'}", lock_timeout=1)
    previous = configure_stock_engine(StockReservationEngine(ledger))
    yield
    configure_stock_engine(previous)
    ledger.dispose()


def _track(client, **overrides):
    """Helper: POST /inventory and return the entity_id."""
    payload = {"product_id": "prod-001", "variant_combination_id": "combo-001", "quantity": 10}
    payload.update(overrides)
    response = client.post("/inventory", json=payload)
    assert response.status_code == 201
    return response.json()["entity_id"]


class TestTrackStock:
    def test_track_variant_combination(self, client):
        response = client.post(
            "/inventory", json={"product_id": "prod-001", "variant_combination_id": "combo-001", "quantity": 10}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["entity_id"] == "variant_combination:combo-001"
        assert data["kind"] == "variant_combination"
        assert data["quantity_available"] == 10

    def test_track_simple_product(self, client):
        entity_id = _track(client, variant_combination_id=None, quantity=3)
        assert entity_id == "product:prod-001"

    def test_negative_quantity_rejected(self, client):
        response = client.post("/inventory", json={"product_id": "prod-001", "quantity": -1})
        assert response.status_code == 422


class TestStockLevels:
    def test_get_levels(self, client):
        entity_id = _track(client)

        response = client.get(f"/inventory/{entity_id}")

        assert response.status_code == 200
        assert response.json()["quantity_on_hold"] == 0

    def test_unknown_entity(self, client):
        response = client.get("/inventory/product:missing")
        assert response.status_code == 404

    def test_low_stock(self, client):
        _track(client, variant_combination_id="low", quantity=1)
        _track(client, variant_combination_id="plenty", quantity=100)

        response = client.get("/inventory/low-stock")

        assert response.status_code == 200
        assert [item["entity_id"] for item in response.json()["items"]] == ["variant_combination:low"]

    def test_low_stock_for_one_seller(self, client):
        _track(client, variant_combination_id="mine", quantity=1, seller_id="seller-1")
        _track(client, variant_combination_id="theirs", quantity=1, seller_id="seller-2")

        response = client.get("/inventory/low-stock", params={"seller_id": "seller-1"})

        items = response.json()["items"]
        assert [item["entity_id"] for item in items] == ["variant_combination:mine"]
        assert items[0]["seller_id"] == "seller-1"

    def test_malformed_entity_id(self, client):
        assert client.get("/inventory/warehouse:w1").status_code == 400
        assert client.post("/inventory/c1/reserve", json={"quantity": 1}).status_code == 400


class TestAvailability:
    def test_check(self, client):
        entity_id = _track(client, quantity=5)

        response = client.post(f"/inventory/{entity_id}/check", json={"quantity": 6})

        assert response.status_code == 200
        data = response.json()
        assert data["available"] is False
        assert data["quantity"] == 5
        assert data["reachable"] is True

    def test_check_when_store_is_unreachable(self, client, unreachable_store):
        response = client.post("/inventory/product:p1/check", json={"quantity": 1})

        assert response.status_code == 503
        assert response.json()["error"] == "unavailable"


class TestReservationLifecycle:
    def test_reserve_commit(self, client):
        entity_id = _track(client)

        reserved = client.post(f"/inventory/{entity_id}/reserve", json={"quantity": 3, "reference": "order-1"})
        assert reserved.status_code == 200
        assert reserved.json()["levels"]["quantity_on_hold"] == 3

        committed = client.post(f"/inventory/{entity_id}/commit", json={"quantity": 3})
        assert committed.status_code == 200
        assert committed.json()["levels"]["quantity_committed"] == 3

    def test_release(self, client):
        entity_id = _track(client)
        client.post(f"/inventory/{entity_id}/reserve", json={"quantity": 2})

        response = client.post(f"/inventory/{entity_id}/release", json={"quantity": 2})

        assert response.status_code == 200
        assert response.json()["levels"]["quantity_available"] == 10

    def test_insufficient_stock(self, client):
        entity_id = _track(client, quantity=2)

        response = client.post(f"/inventory/{entity_id}/reserve", json={"quantity": 3})

        assert response.status_code == 409
        assert response.json() == {
            "error": "insufficient_stock",
            "message": "Only 2 available",
            "available": 2,
        }

    def test_commit_more_than_reserved(self, client):
        entity_id = _track(client)

        response = client.post(f"/inventory/{entity_id}/commit", json={"quantity": 1})

        assert response.status_code == 500
        assert response.json()["error"] == "invariant_violation"

    def test_commit_unknown_entity(self, client):
        response = client.post("/inventory/product:missing/commit", json={"quantity": 1})
        assert response.status_code == 404

    def test_zero_quantity_rejected(self, client):
        entity_id = _track(client)
        response = client.post(f"/inventory/{entity_id}/reserve", json={"quantity": 0})
        assert response.status_code == 422


class TestAdjustAndTracking:
    def test_adjust_total(self, client):
        entity_id = _track(client)
        client.post(f"/inventory/{entity_id}/reserve", json={"quantity": 4})

        response = client.put(f"/inventory/{entity_id}/total", json={"new_quantity": 2})

        assert response.status_code == 200
        levels = response.json()["levels"]
        assert (levels["quantity"], levels["quantity_available"], levels["quantity_on_hold"]) == (2, 0, 4)

    def test_disable_tracking(self, client):
        entity_id = _track(client, quantity=0)

        response = client.put(f"/inventory/{entity_id}/tracking", json={"enabled": False})
        assert response.status_code == 200
        assert response.json()["inventory_tracked"] is False

        reserved = client.post(f"/inventory/{entity_id}/reserve", json={"quantity": 50})
        assert reserved.status_code == 200
        assert reserved.json()["outcome"] == "untracked"
