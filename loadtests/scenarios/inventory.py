"""Inventory domain load test scenarios.

Many shoppers race for the few units of one hot item. Every reservation
either succeeds or reports insufficient stock; at the end the units on
hold plus committed must never exceed what was stocked.
"""

import random

import requests
from locust import HttpUser, SequentialTaskSet, between, events, task

from loadtests.data_generators import order_reference, track_stock_data
from loadtests.helpers.response import extract_error_detail, is_insufficient_stock
from loadtests.helpers.state import StockState

HOT_PRODUCT_ID = "prod-lt-hot-item"
HOT_ENTITY_ID = f"product:{HOT_PRODUCT_ID}"
HOT_STOCK = 50


@events.test_start.add_listener
def track_hot_item(environment, **_kwargs):
    """Create the contended ledger row once per run (tracking is idempotent)."""
    if environment.host:
        requests.post(
            f"{environment.host}/inventory",
            json=track_stock_data(HOT_PRODUCT_ID, quantity=HOT_STOCK),
            timeout=10,
        )


class HotItemReservationJourney(SequentialTaskSet):
    """Reserve -> (Commit | Release).

    Models an order placed for the hot item, then either shipped or
    cancelled. Running out of stock is an expected outcome, not a failure.
    """

    def on_start(self):
        self.state = StockState(entity_id=HOT_ENTITY_ID, reference=order_reference())

    @task
    def reserve(self):
        quantity = random.randint(1, 3)
        with self.client.post(
            f"/inventory/{self.state.entity_id}/reserve",
            json={"quantity": quantity, "reference": self.state.reference},
            catch_response=True,
            name="POST /inventory/{id}/reserve",
        ) as resp:
            if resp.status_code == 200:
                self.state.on_hold = quantity
            elif is_insufficient_stock(resp):
                resp.success()
                self.interrupt()
            else:
                resp.failure(f"Reserve failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def commit_or_release(self):
        operation = "commit" if random.random() < 0.7 else "release"
        with self.client.post(
            f"/inventory/{self.state.entity_id}/{operation}",
            json={"quantity": self.state.on_hold, "reference": self.state.reference},
            catch_response=True,
            name=f"POST /inventory/{{id}}/{operation}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"{operation.capitalize()} failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def check_levels(self):
        with self.client.get(
            f"/inventory/{self.state.entity_id}",
            catch_response=True,
            name="GET /inventory/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Get levels failed: {resp.status_code} — {extract_error_detail(resp)}")
                return
            levels = resp.json()
            if levels["quantity_on_hold"] + levels["quantity_committed"] > levels["quantity"]:
                resp.failure(f"Oversold: {levels}")

    @task
    def done(self):
        self.interrupt()


class InventoryContentionUser(HttpUser):
    """Shoppers competing for a single scarce stock entity."""

    tasks = [HotItemReservationJourney]
    wait_time = between(0.1, 0.5)
