"""Stock ledger exceptions.

``InsufficientStock`` and ``StockNotFound`` are expected outcomes that the
reservation engine turns into structured results. ``InvariantViolation`` is
the only one that escapes the engine.
"""


class StockError(Exception):
    """Base class for stock ledger failures."""


class InsufficientStock(StockError):
    """A counter would go negative. ``bucket`` names the counter that is short."""

    def __init__(self, entity_id, requested, available, bucket="available"):
        self.entity_id = entity_id
        self.requested = requested
        self.available = available
        self.bucket = bucket
        super().__init__(f"Only {available} {bucket.replace('_', ' ')} for {entity_id}, {requested} requested")


class StockNotFound(StockError):
    def __init__(self, entity_id):
        self.entity_id = entity_id
        super().__init__(f"No stock record for {entity_id}")


class InvariantViolation(StockError):
    """Counters are, or would become, inconsistent. The operation is aborted."""

    def __init__(self, entity_id, message):
        self.entity_id = entity_id
        super().__init__(f"{entity_id}: {message}")


class StockLedgerUnavailable(StockError):
    """The backing store timed out or could not be reached. Nothing was written."""
