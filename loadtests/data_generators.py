"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the API's Pydantic request
schemas and the domain's own rules (at most three variant dimensions,
no repeated values, line quantities within the cart cap).
"""

import random
import uuid

from faker import Faker

fake = Faker()

COLORS = ["Black", "White", "Navy", "Olive", "Sand", "Burgundy"]
SIZES = ["XS", "S", "M", "L", "XL"]
MATERIALS = ["Cotton", "Linen", "Wool"]

# ---------- Catalogue Domain ----------


def product_id() -> str:
    """Generate product IDs like 'prod-lt-a1b2c3d4'."""
    return f"prod-lt-{uuid.uuid4().hex[:8]}"


def seller_id() -> str:
    return f"seller-lt-{random.randint(1, 20)}"


def variant_options(dimensions: int = 2) -> list[dict]:
    """Option groups for ``dimensions`` variant types with distinct values."""
    groups = [
        ("COLOR", random.sample(COLORS, k=random.randint(2, 4))),
        ("SIZE", random.sample(SIZES, k=random.randint(2, 4))),
        ("MATERIAL", random.sample(MATERIALS, k=2)),
    ][:dimensions]
    return [
        {
            "type": option_type,
            "values": [{"value": value, "display_name": value.upper()} for value in values],
        }
        for option_type, values in groups
    ]


def configure_variants_data(seller: str, default_quantity: int | None = None) -> dict:
    """Generate a ConfigureVariantsRequest payload."""
    return {
        "seller_id": seller,
        "options": variant_options(dimensions=random.choice([1, 2, 2, 3])),
        "default_price": round(random.uniform(9.99, 149.99), 2),
        "default_quantity": default_quantity if default_quantity is not None else random.randint(0, 50),
        "default_sku": fake.bothify("LT-????").upper(),
    }


def bulk_price_update_data(option_type: str, option_value: str) -> dict:
    return {
        "updates": {"price": round(random.uniform(9.99, 149.99), 2)},
        "option_type": option_type,
        "option_value": option_value,
    }


# ---------- Inventory Domain ----------


def track_stock_data(product: str, combination_id: str | None = None, quantity: int = 100) -> dict:
    """Generate a TrackStockRequest payload."""
    return {
        "product_id": product,
        "variant_combination_id": combination_id,
        "quantity": quantity,
        "low_stock_threshold": random.choice([None, 2, 5]),
    }


def order_reference() -> str:
    return f"ORD-LT-{uuid.uuid4().hex[:8]}"


# ---------- Ordering Domain ----------


def cart_data() -> dict:
    """Generate a CreateCartRequest payload, half of them guest carts."""
    if random.random() < 0.5:
        return {"session_id": f"sess-{uuid.uuid4().hex[:12]}"}
    return {"customer_id": f"cust-lt-{uuid.uuid4().hex[:8]}"}


def cart_item_data(seller: str, product: str, combination_id: str | None = None, quantity: int = 1) -> dict:
    """Generate an AddToCartRequest payload."""
    return {
        "seller_id": seller,
        "product_id": product,
        "variant_combination_id": combination_id,
        "quantity": quantity,
    }
