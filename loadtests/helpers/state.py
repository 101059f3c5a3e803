"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state — no cross-user sharing.
State tracks entity IDs returned by creation endpoints so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class VariantProductState:
    """Tracks one vendor's product and the combinations generated for it."""

    product_id: str | None = None
    seller_id: str | None = None
    option_types: list[str] = field(default_factory=list)
    combination_ids: dict[str, str] = field(default_factory=dict)  # key -> id


@dataclass
class StockState:
    """Tracks reservations a simulated order holds on one stock entity."""

    entity_id: str | None = None
    reference: str | None = None
    on_hold: int = 0


@dataclass
class CartState:
    """Tracks state for a shopping cart lifecycle."""

    cart_id: str | None = None
    seller_id: str | None = None
    item_ids: list[str] = field(default_factory=list)
    reserved_lines: list[tuple[str, int]] = field(default_factory=list)
