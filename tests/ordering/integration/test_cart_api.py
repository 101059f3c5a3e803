"""Integration tests for Cart API endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from inventory.stock.ledger import StockKind
from ordering.api.routes import cart_router
from shared.http import register_error_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(cart_router)
    return TestClient(app)


@pytest.fixture()
def ledger(reservation_engine):
    ledger = reservation_engine.ledger
    ledger.track("variant_combination:c1", StockKind.VARIANT_COMBINATION, quantity=5)
    ledger.track("product:simple", StockKind.PRODUCT, quantity=2)
    return ledger


def _create_cart(client):
    response = client.post("/carts", json={"customer_id": "cust-001"})
    assert response.status_code == 201
    return response.json()["cart_id"]


def _add(client, cart_id, **overrides):
    payload = {"seller_id": "seller-1", "product_id": "prod-1", "variant_combination_id": "c1", "quantity": 1}
    payload.update(overrides)
    return client.post(f"/carts/{cart_id}/items", json=payload)


class TestCartItems:
    def test_add_and_get(self, client, ledger):
        cart_id = _create_cart(client)

        added = _add(client, cart_id, quantity=2)
        assert added.status_code == 201

        cart = client.get(f"/carts/{cart_id}").json()
        assert cart["seller_id"] == "seller-1"
        assert cart["items"][0]["item_id"] == added.json()["item_id"]
        assert cart["items"][0]["stock_entity_id"] == "variant_combination:c1"

    def test_add_beyond_stock(self, client, ledger):
        cart_id = _create_cart(client)

        response = _add(client, cart_id, quantity=6)

        assert response.status_code == 409
        assert response.json() == {"error": "insufficient_stock", "available": 5, "message": "Only 5 available"}

    def test_add_from_another_seller(self, client, ledger):
        cart_id = _create_cart(client)
        _add(client, cart_id)

        response = _add(client, cart_id, seller_id="seller-2", product_id="simple", variant_combination_id=None)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["reason"] == "different_seller"
        assert error["current_seller_id"] == "seller-1"
        assert error["attempted_seller_id"] == "seller-2"

    def test_add_above_quantity_cap(self, client, ledger):
        cart_id = _create_cart(client)
        response = _add(client, cart_id, quantity=11)
        assert response.status_code == 400
        assert response.json()["error"]["reason"] == "quantity_cap"

    def test_update_and_remove(self, client, ledger):
        cart_id = _create_cart(client)
        item_id = _add(client, cart_id).json()["item_id"]

        assert client.put(f"/carts/{cart_id}/items/{item_id}", json={"new_quantity": 3}).status_code == 200
        assert client.get(f"/carts/{cart_id}").json()["items"][0]["quantity"] == 3

        assert client.delete(f"/carts/{cart_id}/items/{item_id}").status_code == 200
        cart = client.get(f"/carts/{cart_id}").json()
        assert cart["items"] == []
        assert cart["seller_id"] is None

    def test_clear(self, client, ledger):
        cart_id = _create_cart(client)
        _add(client, cart_id)

        assert client.delete(f"/carts/{cart_id}/items").status_code == 200

        assert client.get(f"/carts/{cart_id}").json()["items"] == []

    def test_unknown_cart(self, client):
        assert client.get("/carts/does-not-exist").status_code == 404


class TestCartReservation:
    def test_reserve(self, client, ledger):
        cart_id = _create_cart(client)
        _add(client, cart_id, quantity=2)

        response = client.post(f"/carts/{cart_id}/reserve", json={"reference": "order-1"})

        assert response.status_code == 200
        assert response.json()["reserved"] == [
            {"stock_entity_id": "variant_combination:c1", "quantity": 2, "outcome": "applied"}
        ]
        assert ledger.get("variant_combination:c1").quantity_on_hold == 2
        assert client.get(f"/carts/{cart_id}").json()["status"] == "Converted"

    def test_reserve_failure_holds_nothing(self, client, ledger):
        cart_id = _create_cart(client)
        _add(client, cart_id, quantity=2)
        _add(client, cart_id, product_id="simple", variant_combination_id=None, quantity=2)
        ledger.set_total("product:simple", 1)

        response = client.post(f"/carts/{cart_id}/reserve", json={})

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "insufficient_stock"
        assert body["stock_entity_id"] == "product:simple"
        assert body["available"] == 1
        assert body["unreleased"] == []
        assert ledger.get("variant_combination:c1").quantity_on_hold == 0

    def test_reserve_empty_cart(self, client, ledger):
        cart_id = _create_cart(client)
        assert client.post(f"/carts/{cart_id}/reserve", json={}).status_code == 400
