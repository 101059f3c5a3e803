"""StockLedger — per-entity quantity counters with atomic conditional updates.

Every stockable entity (a simple product or one variant combination) owns one
row in ``stock_entities`` with four counters:

    quantity:            total units the seller owns
    quantity_available:  unreserved, can be sold
    quantity_on_hold:    reserved by an order, not yet fulfilled
    quantity_committed:  fulfilled and shipped

A tracked row is consistent when all counters are non-negative and
``available == max(0, quantity - on_hold - committed)``. Outside of a restock
that set ``quantity`` below the in-flight units this is simply
``quantity == available + on_hold + committed``.

All counter mutations go through a single conditional ``UPDATE`` so that
concurrent callers are serialised by the database's row write lock rather
than by a read-then-write in Python. On SQLite the transaction is opened with
``BEGIN IMMEDIATE`` so the write lock is taken before the statement runs.
"""

from contextlib import contextmanager
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import NamedTuple

import structlog
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    case,
    create_engine,
    delete,
    event,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.pool import StaticPool

from inventory.stock.exceptions import (
    InsufficientStock,
    InvariantViolation,
    StockLedgerUnavailable,
    StockNotFound,
)
from shared.config import settings

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Stockable references
# ---------------------------------------------------------------------------
class StockKind(Enum):
    PRODUCT = "product"
    VARIANT_COMBINATION = "variant_combination"


@dataclass(frozen=True)
class StockableRef:
    """A product or a variant combination, resolved to one opaque ledger id."""

    kind: StockKind
    id: str

    @classmethod
    def product(cls, product_id):
        return cls(StockKind.PRODUCT, str(product_id))

    @classmethod
    def variant_combination(cls, combination_id):
        return cls(StockKind.VARIANT_COMBINATION, str(combination_id))

    @classmethod
    def for_item(cls, product_id, variant_combination_id=None):
        """The combination when the item has one, otherwise the product itself."""
        if variant_combination_id:
            return cls.variant_combination(variant_combination_id)
        return cls.product(product_id)

    @classmethod
    def parse(cls, entity_id):
        """Inverse of ``entity_id``. Raises ValueError for a malformed id."""
        kind, separator, identifier = entity_id.partition(":")
        if not separator or not identifier:
            raise ValueError(f"Malformed stock entity id: {entity_id!r}")
        return cls(StockKind(kind), identifier)

    @property
    def entity_id(self):
        return f"{self.kind.value}:{self.id}"


@dataclass(frozen=True)
class StockableEntity:
    """Snapshot of one ledger row."""

    entity_id: str
    kind: StockKind
    quantity: int
    quantity_available: int
    quantity_on_hold: int
    quantity_committed: int
    inventory_tracked: bool
    low_stock_threshold: int | None = None
    seller_id: str | None = None
    product_id: str | None = None
    version: int = 1
    updated_at: datetime | None = None

    def is_consistent(self):
        if not self.inventory_tracked:
            return True
        counters = (self.quantity, self.quantity_available, self.quantity_on_hold, self.quantity_committed)
        if any(value < 0 for value in counters):
            return False
        return self.quantity_available == max(0, self.quantity - self.quantity_on_hold - self.quantity_committed)

    @property
    def is_low_stock(self):
        threshold = self.low_stock_threshold
        if threshold is None:
            threshold = settings.low_stock_threshold
        return self.inventory_tracked and self.quantity_available <= threshold

    def to_dict(self):
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


class StockDelta(NamedTuple):
    """Signed changes to the three buckets, applied in one conditional update."""

    available: int = 0
    on_hold: int = 0
    committed: int = 0

    @classmethod
    def reserve(cls, quantity):
        return cls(available=-quantity, on_hold=quantity)

    @classmethod
    def commit(cls, quantity):
        return cls(on_hold=-quantity, committed=quantity)

    @classmethod
    def release(cls, quantity):
        return cls(available=quantity, on_hold=-quantity)


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------
metadata = MetaData()

stock_entities = Table(
    "stock_entities",
    metadata,
    Column("entity_id", String(120), primary_key=True),
    Column("kind", String(30), nullable=False),
    Column("quantity", Integer, nullable=False, default=0),
    Column("quantity_available", Integer, nullable=False, default=0),
    Column("quantity_on_hold", Integer, nullable=False, default=0),
    Column("quantity_committed", Integer, nullable=False, default=0),
    Column("inventory_tracked", Boolean, nullable=False, default=True),
    Column("low_stock_threshold", Integer, nullable=True),
    Column("seller_id", String(120), nullable=True, index=True),
    Column("product_id", String(120), nullable=True),
    Column("version", Integer, nullable=False, default=1),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    CheckConstraint("quantity >= 0", name="ck_stock_quantity_non_negative"),
    CheckConstraint("quantity_available >= 0", name="ck_stock_available_non_negative"),
    CheckConstraint("quantity_on_hold >= 0", name="ck_stock_on_hold_non_negative"),
    CheckConstraint("quantity_committed >= 0", name="ck_stock_committed_non_negative"),
)


def _floored(expression):
    return case((expression < 0, 0), else_=expression)


def _entity_from_row(row):
    data = dict(row._mapping)
    data["kind"] = StockKind(data["kind"])
    return StockableEntity(**data)


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------
class StockLedger:
    def __init__(self, engine):
        self.engine = engine

    @classmethod
    def from_url(cls, url, echo=False, lock_timeout=None):
        """Build a ledger on its own engine.

        ``lock_timeout`` (seconds) bounds how long a writer waits for a
        competing transaction on the same database before the operation
        fails with ``StockLedgerUnavailable``.
        """
        lock_timeout = lock_timeout if lock_timeout is not None else settings.stock_lock_timeout

        if url.startswith("sqlite"):
            engine_kwargs = {"connect_args": {"timeout": lock_timeout, "check_same_thread": False}}
            if url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool
            engine = create_engine(url, echo=echo, **engine_kwargs)
            _use_immediate_transactions(engine)
        elif url.startswith("postgresql"):
            engine = create_engine(
                url,
                echo=echo,
                pool_pre_ping=True,
                connect_args={"options": f"-c lock_timeout={int(lock_timeout * 1000)}"},
            )
        else:
            engine = create_engine(url, echo=echo, pool_pre_ping=True)

        return cls(engine)

    def create_schema(self):
        metadata.create_all(self.engine)

    def drop_schema(self):
        metadata.drop_all(self.engine)

    def dispose(self):
        self.engine.dispose()

    # -------------------------------------------------------------------
    # Rows
    # -------------------------------------------------------------------
    def track(
        self,
        entity_id,
        kind,
        quantity=0,
        inventory_tracked=True,
        low_stock_threshold=None,
        seller_id=None,
        product_id=None,
    ):
        """Create the ledger row for an entity. An existing row is returned untouched.

        ``seller_id`` scopes the low-stock report. ``product_id`` names the
        product a variant combination belongs to.
        """
        if quantity < 0:
            raise ValueError("quantity must be zero or more")

        try:
            with self._transaction() as conn:
                existing = self._select(conn, entity_id)
                if existing is not None:
                    return existing
                conn.execute(
                    insert(stock_entities).values(
                        entity_id=entity_id,
                        kind=StockKind(kind).value,
                        quantity=quantity,
                        quantity_available=quantity,
                        quantity_on_hold=0,
                        quantity_committed=0,
                        inventory_tracked=inventory_tracked,
                        low_stock_threshold=low_stock_threshold,
                        seller_id=str(seller_id) if seller_id else None,
                        product_id=str(product_id) if product_id else None,
                        version=1,
                        updated_at=datetime.now(UTC),
                    )
                )
                entity = self._select(conn, entity_id)
        except IntegrityError:
            # A concurrent caller created the row first
            return self.get(entity_id)

        logger.info(
            "Stock entity tracked",
            entity_id=entity_id,
            seller_id=seller_id,
            quantity=quantity,
            inventory_tracked=inventory_tracked,
        )
        return entity

    def set_tracking(self, entity_id, enabled, quantity=None):
        """Switch inventory tracking on or off.

        Switching it on re-initialises the counters from ``quantity`` (or the
        stored total): everything available, nothing on hold or committed.
        Switching on a row that is already tracked changes nothing.
        """
        t = stock_entities
        with self._transaction() as conn:
            if enabled:
                total = quantity if quantity is not None else t.c.quantity
                stmt = (
                    update(t)
                    .where(t.c.entity_id == entity_id, t.c.inventory_tracked.is_(False))
                    .values(
                        inventory_tracked=True,
                        quantity=total,
                        quantity_available=total,
                        quantity_on_hold=0,
                        quantity_committed=0,
                        version=t.c.version + 1,
                        updated_at=datetime.now(UTC),
                    )
                )
            else:
                stmt = (
                    update(t)
                    .where(t.c.entity_id == entity_id)
                    .values(inventory_tracked=False, version=t.c.version + 1, updated_at=datetime.now(UTC))
                )
            conn.execute(stmt)
            entity = self._select(conn, entity_id)
            if entity is None:
                raise StockNotFound(entity_id)
            return entity

    def get(self, entity_id):
        with self._transaction() as conn:
            entity = self._select(conn, entity_id)
        if entity is None:
            raise StockNotFound(entity_id)
        self._ensure_consistent(entity)
        return entity

    def find(self, entity_id):
        try:
            return self.get(entity_id)
        except StockNotFound:
            return None

    def remove(self, entity_id):
        with self._transaction() as conn:
            result = conn.execute(delete(stock_entities).where(stock_entities.c.entity_id == entity_id))
        return result.rowcount > 0

    def low_stock(self, seller_id=None, limit=None):
        """Tracked entities whose available quantity is at or below their threshold.

        With ``seller_id`` only that seller's entities are listed.
        """
        t = stock_entities
        threshold = func.coalesce(t.c.low_stock_threshold, settings.low_stock_threshold)
        stmt = (
            select(t)
            .where(t.c.inventory_tracked.is_(True), t.c.quantity_available <= threshold)
            .order_by(t.c.quantity_available, t.c.entity_id)
        )
        if seller_id:
            stmt = stmt.where(t.c.seller_id == str(seller_id))
        if limit:
            stmt = stmt.limit(limit)
        with self._transaction() as conn:
            return [_entity_from_row(row) for row in conn.execute(stmt)]

    # -------------------------------------------------------------------
    # Counter mutations
    # -------------------------------------------------------------------
    def apply_delta(self, entity_id, delta):
        """Apply ``delta`` to a tracked row, or fail without writing anything.

        Raises ``InsufficientStock`` when any bucket would go negative and
        ``StockNotFound`` when there is no row. Untracked rows are returned
        unchanged. The new available count never exceeds
        ``quantity - on_hold - committed`` so a floor-clamped row stays
        consistent.
        """
        t = stock_entities
        delta = StockDelta(*delta)

        new_on_hold = t.c.quantity_on_hold + delta.on_hold
        new_committed = t.c.quantity_committed + delta.committed
        raw_available = t.c.quantity_available + delta.available
        ceiling = t.c.quantity - new_on_hold - new_committed

        stmt = (
            update(t)
            .where(
                t.c.entity_id == entity_id,
                t.c.inventory_tracked.is_(True),
                raw_available >= 0,
                new_on_hold >= 0,
                new_committed >= 0,
            )
            .values(
                quantity_available=case((ceiling < 0, 0), (raw_available > ceiling, ceiling), else_=raw_available),
                quantity_on_hold=new_on_hold,
                quantity_committed=new_committed,
                version=t.c.version + 1,
                updated_at=datetime.now(UTC),
            )
        )

        with self._transaction() as conn:
            result = conn.execute(stmt)
            entity = self._select(conn, entity_id)
            if entity is None:
                raise StockNotFound(entity_id)
            if result.rowcount == 0:
                if not entity.inventory_tracked:
                    return entity
                raise _shortfall(entity, delta)
            self._ensure_consistent(entity)
            return entity

    def set_total(self, entity_id, new_quantity):
        """Set the total quantity and recompute available, floored at zero.

        On-hold and committed units are in-flight order state and are never
        changed here. An untracked row is returned unchanged.
        """
        if new_quantity < 0:
            raise ValueError("new_quantity must be zero or more")

        t = stock_entities
        stmt = (
            update(t)
            .where(t.c.entity_id == entity_id, t.c.inventory_tracked.is_(True))
            .values(
                quantity=new_quantity,
                quantity_available=_floored(new_quantity - t.c.quantity_on_hold - t.c.quantity_committed),
                version=t.c.version + 1,
                updated_at=datetime.now(UTC),
            )
        )
        with self._transaction() as conn:
            result = conn.execute(stmt)
            entity = self._select(conn, entity_id)
            if entity is None:
                raise StockNotFound(entity_id)
            if result.rowcount == 0:
                return entity
            self._ensure_consistent(entity)
            return entity

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    @contextmanager
    def _transaction(self):
        try:
            with self.engine.begin() as conn:
                yield conn
        except OperationalError as exc:
            logger.warning("Stock ledger unavailable", error=str(exc.orig))
            raise StockLedgerUnavailable(str(exc.orig)) from exc

    @staticmethod
    def _select(conn, entity_id):
        row = conn.execute(select(stock_entities).where(stock_entities.c.entity_id == entity_id)).first()
        return _entity_from_row(row) if row is not None else None

    @staticmethod
    def _ensure_consistent(entity):
        if not entity.is_consistent():
            logger.error("Stock counters are inconsistent", **entity.to_dict())
            raise InvariantViolation(
                entity.entity_id,
                f"quantity={entity.quantity} available={entity.quantity_available} "
                f"on_hold={entity.quantity_on_hold} committed={entity.quantity_committed}",
            )


def _shortfall(entity, delta):
    """The InsufficientStock error for a delta that the row could not absorb."""
    if entity.quantity_available + delta.available < 0:
        return InsufficientStock(entity.entity_id, -delta.available, entity.quantity_available)
    if entity.quantity_on_hold + delta.on_hold < 0:
        return InsufficientStock(entity.entity_id, -delta.on_hold, entity.quantity_on_hold, bucket="on_hold")
    return InsufficientStock(entity.entity_id, -delta.committed, entity.quantity_committed, bucket="committed")


def _use_immediate_transactions(engine):
    """Let SQLAlchemy emit BEGIN itself and take the write lock up front."""

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")
