"""Ordering domain load test scenarios.

A shopper stocks a product of their own seller, fills a cart, tries an
item from a second seller (which must be refused) and reserves the cart
at checkout.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import cart_data, cart_item_data, product_id, seller_id, track_stock_data
from loadtests.helpers.response import extract_error_detail, is_insufficient_stock
from loadtests.helpers.state import CartState


class CartCheckoutJourney(SequentialTaskSet):
    """Track Stock -> Create Cart -> Add Items -> Other Seller (refused) -> Reserve."""

    def on_start(self):
        self.state = CartState(seller_id=seller_id())
        self.products = [product_id() for _ in range(2)]

    @task
    def track_stock(self):
        for product in self.products:
            with self.client.post(
                "/inventory",
                json=track_stock_data(product, quantity=random.randint(1, 10)),
                catch_response=True,
                name="POST /inventory",
            ) as resp:
                if resp.status_code != 201:
                    resp.failure(f"Track stock failed: {resp.status_code} — {extract_error_detail(resp)}")
                    self.interrupt()

    @task
    def create_cart(self):
        with self.client.post(
            "/carts",
            json=cart_data(),
            catch_response=True,
            name="POST /carts",
        ) as resp:
            if resp.status_code == 201:
                self.state.cart_id = resp.json()["cart_id"]
            else:
                resp.failure(f"Create cart failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def add_items(self):
        for product in self.products:
            with self.client.post(
                f"/carts/{self.state.cart_id}/items",
                json=cart_item_data(self.state.seller_id, product, quantity=1),
                catch_response=True,
                name="POST /carts/{id}/items",
            ) as resp:
                if resp.status_code == 201:
                    self.state.item_ids.append(resp.json()["item_id"])
                elif is_insufficient_stock(resp):
                    resp.success()
                else:
                    resp.failure(f"Add item failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def add_item_from_other_seller(self):
        with self.client.post(
            f"/carts/{self.state.cart_id}/items",
            json=cart_item_data("seller-lt-other", product_id(), quantity=1),
            catch_response=True,
            name="POST /carts/{id}/items (other seller)",
        ) as resp:
            if not self.state.item_ids:
                resp.success()
            elif resp.status_code == 400 and resp.json()["error"].get("reason") == "different_seller":
                resp.success()
            else:
                resp.failure(f"Expected a different-seller refusal, got {resp.status_code}")

    @task
    def reserve(self):
        if not self.state.item_ids:
            self.interrupt()
        with self.client.post(
            f"/carts/{self.state.cart_id}/reserve",
            json={},
            catch_response=True,
            name="POST /carts/{id}/reserve",
        ) as resp:
            if resp.status_code == 200:
                self.state.reserved_lines = [(line["stock_entity_id"], line["quantity"]) for line in resp.json()["reserved"]]
            elif is_insufficient_stock(resp):
                resp.success()
            else:
                resp.failure(f"Reserve cart failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class ShopperUser(HttpUser):
    """Shoppers filling single-seller carts and checking out."""

    tasks = [CartCheckoutJourney]
    wait_time = between(1, 3)
