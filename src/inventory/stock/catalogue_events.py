"""Inbound cross-domain event handler — Inventory reacts to Catalogue events.

Listens for VariantCombinationsGenerated to create one ledger row per new
variant combination, and for VariantQuantitiesChanged to apply restocks and
corrections through the reservation engine.

Cross-domain events are imported from shared.events.catalogue and registered
as external events via inventory.register_external_event().
"""

import json

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.catalogue import VariantCombinationsGenerated, VariantQuantitiesChanged

from inventory.domain import inventory
from inventory.stock.engine import StockOutcome
from inventory.stock.ledger import StockableRef, StockKind
from inventory.stock.movement import StockMovement

logger = structlog.get_logger(__name__)

# Register external events so Protean can deserialize them
inventory.register_external_event(VariantCombinationsGenerated, "Catalogue.VariantCombinationsGenerated.v1")
inventory.register_external_event(VariantQuantitiesChanged, "Catalogue.VariantQuantitiesChanged.v1")


@inventory.event_handler(part_of=StockMovement, stream_category="catalogue::product_variants")
class CatalogueInventoryEventHandler:
    """Reacts to Catalogue domain events to keep variant stock in the ledger."""

    @handle(VariantCombinationsGenerated)
    def on_combinations_generated(self, event: VariantCombinationsGenerated) -> None:
        """Track stock for every newly generated combination."""
        from inventory.stock.initialization import TrackStock

        combinations = json.loads(event.combinations)
        logger.info(
            "Tracking stock for new variant combinations",
            product_id=str(event.product_id),
            count=len(combinations),
        )

        for combination in combinations:
            current_domain.process(
                TrackStock(
                    entity_id=StockableRef.variant_combination(combination["combination_id"]).entity_id,
                    kind=StockKind.VARIANT_COMBINATION.value,
                    quantity=combination.get("quantity") or 0,
                    inventory_tracked=combination.get("inventory_tracked", True),
                    low_stock_threshold=combination.get("low_stock_threshold"),
                    seller_id=str(event.seller_id) if event.seller_id else None,
                    product_id=str(event.product_id),
                ),
                asynchronous=False,
            )

    @handle(VariantQuantitiesChanged)
    def on_quantities_changed(self, event: VariantQuantitiesChanged) -> None:
        """Apply the vendor's new totals without touching units in flight."""
        from inventory.stock.adjustment import AdjustStockTotal

        for combination_id, quantity in json.loads(event.quantities).items():
            entity_id = StockableRef.variant_combination(combination_id).entity_id
            result = current_domain.process(
                AdjustStockTotal(entity_id=entity_id, new_quantity=quantity, reference=str(event.product_id)),
                asynchronous=False,
            )
            if result.outcome == StockOutcome.NOT_FOUND:
                logger.warning(
                    "Quantity change for combination without stock record",
                    product_id=str(event.product_id),
                    combination_id=combination_id,
                )
