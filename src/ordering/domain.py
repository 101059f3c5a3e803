"""Ordering bounded context — Shopping Cart.

Handles single-seller shopping carts, the per-line quantity cap, and the
checkout step that reserves stock for every cart line.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
