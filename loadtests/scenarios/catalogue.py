"""Catalogue domain load test scenarios.

A vendor configures variant options for a new product, re-runs the
configuration (which must create nothing), reprices one option value and
reads the combinations back.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import bulk_price_update_data, configure_variants_data, product_id, seller_id
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import VariantProductState


class VariantConfigurationJourney(SequentialTaskSet):
    """Configure Variants -> Re-configure (idempotent) -> Bulk Reprice -> List Combinations."""

    def on_start(self):
        self.state = VariantProductState(product_id=product_id(), seller_id=seller_id())
        self.payload = configure_variants_data(self.state.seller_id)

    @task
    def configure_variants(self):
        with self.client.post(
            f"/products/{self.state.product_id}/variants",
            json=self.payload,
            catch_response=True,
            name="POST /products/{id}/variants",
        ) as resp:
            if resp.status_code == 201:
                self.state.option_types = [group["type"] for group in self.payload["options"]]
                self.state.combination_ids = {
                    c["combination_key"]: c["combination_id"] for c in resp.json()["combinations_created"]
                }
            else:
                resp.failure(f"Configure variants failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def reconfigure_variants(self):
        with self.client.post(
            f"/products/{self.state.product_id}/variants",
            json=self.payload,
            catch_response=True,
            name="POST /products/{id}/variants (again)",
        ) as resp:
            if resp.status_code != 201:
                resp.failure(f"Re-configure failed: {resp.status_code} — {extract_error_detail(resp)}")
            elif resp.json()["combinations_created"]:
                resp.failure("Re-configuring with the same options created combinations")

    @task
    def reprice_first_value(self):
        group = self.payload["options"][0]
        with self.client.patch(
            f"/products/{self.state.product_id}/variants/bulk",
            json=bulk_price_update_data(group["type"], group["values"][0]["value"]),
            catch_response=True,
            name="PATCH /products/{id}/variants/bulk",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Bulk update failed: {resp.status_code} — {extract_error_detail(resp)}")

    @task
    def list_combinations(self):
        with self.client.get(
            f"/products/{self.state.product_id}/variants/combinations",
            catch_response=True,
            name="GET /products/{id}/variants/combinations",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"List combinations failed: {resp.status_code} — {extract_error_detail(resp)}")
            elif len(resp.json()["combinations"]) != len(self.state.combination_ids):
                resp.failure("Combination count changed after re-configuration")

    @task
    def done(self):
        self.interrupt()


class CatalogueUser(HttpUser):
    """Vendors configuring product variants."""

    tasks = [VariantConfigurationJourney]
    wait_time = between(1, 3)
