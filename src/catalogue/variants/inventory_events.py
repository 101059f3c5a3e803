"""Inbound cross-domain event handler — Catalogue reacts to Inventory events.

Listens for StockTotalAdjusted so a combination's ``in_stock`` and
``available`` flags follow the ledger once a restock or correction lands,
including units still on hold or committed to orders.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.inventory import StockTotalAdjusted

from catalogue.domain import catalogue
from catalogue.variants.product_variants import ProductVariants

logger = structlog.get_logger(__name__)

catalogue.register_external_event(StockTotalAdjusted, "Inventory.StockTotalAdjusted.v1")

COMBINATION_PREFIX = "variant_combination:"


@catalogue.event_handler(part_of=ProductVariants, stream_category="inventory::stock_movement")
class InventoryStockEventHandler:
    @handle(StockTotalAdjusted)
    def on_stock_total_adjusted(self, event: StockTotalAdjusted) -> None:
        if not event.product_id or not event.entity_id.startswith(COMBINATION_PREFIX):
            return
        combination_id = event.entity_id[len(COMBINATION_PREFIX) :]

        repo = current_domain.repository_for(ProductVariants)
        try:
            product_variants = repo.get(event.product_id)
        except ObjectNotFoundError:
            logger.warning(
                "Stock adjusted for product without variants",
                product_id=str(event.product_id),
                entity_id=event.entity_id,
            )
            return

        if product_variants.sync_stock_levels(combination_id, event.new_quantity, event.available_after) is None:
            logger.warning(
                "Stock adjusted for unknown combination",
                product_id=str(event.product_id),
                combination_id=combination_id,
            )
            return
        repo.add(product_variants)
