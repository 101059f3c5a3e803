"""Inventory bounded context — stock ledger and reservation engine.

Tracks available / on-hold / committed quantities per stockable entity
(a simple product or a variant combination) and records an audit trail of
every applied stock movement.
"""

import structlog
from protean.domain import Domain

inventory = Domain(name="inventory")

logger = structlog.get_logger(__name__)
