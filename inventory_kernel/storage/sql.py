"""
Module: inventory_kernel.storage.sql
Responsibility: SQLAlchemy implementation of InventoryStorage.
Architecture position: Kernel > Storage.  Imports db/ and models/.

Invariants enforced:
    - Stock CAS: ``update_stock`` issues
      ``UPDATE stocks ... WHERE item_id = :i AND location_id = :l AND version = :expected``
      and raises VersionMismatchError when zero rows are affected.
    - Creation race: the (item_id, location_id) primary key turns a second
      concurrent insert into IntegrityError, surfaced as VersionMismatchError.
    - Alert resolution: ``UPDATE ... WHERE id = :id AND is_active`` so only
      one resolver wins.
    - Journal rows are append-only (ORM listeners from db/immutability.py are
      registered when the backend is built).

Failure modes:
    - StorageError wraps every SQLAlchemyError; the driver exception is kept
      as ``cause`` and ``__cause__``.

Audit relevance:
    Each method is its own transaction (session_scope commits or rolls back),
    so a primary stock write is durable before any journal write is attempted.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, or_, select, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from inventory_kernel.db.engine import build_engine, create_tables, session_scope
from inventory_kernel.db.immutability import register_immutability_listeners
from inventory_kernel.domain.types import (
    Item,
    JournalEntry,
    Location,
    Lot,
    StockAlert,
    StockRecord,
    TransferIntent,
    TransferStatus,
)
from inventory_kernel.exceptions import (
    DuplicateItemError,
    DuplicateLocationError,
    DuplicateLotError,
    InventoryKernelError,
    ItemNotFoundError,
    LocationNotFoundError,
    StorageError,
    VersionMismatchError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.alert import StockAlertModel, TransferIntentModel
from inventory_kernel.models.catalog import ItemModel, LocationModel, LotModel
from inventory_kernel.models.journal import JournalEntryModel
from inventory_kernel.models.stock import StockModel
from inventory_kernel.storage.base import InventoryStorage

logger = get_logger("storage.sql")


class SqlAlchemyStorage(InventoryStorage):
    """
    InventoryStorage on a SQLAlchemy engine (PostgreSQL or SQLite).

    Contract:
        One short-lived session per call.  The caller owns the engine; use
        ``from_url`` to build engine, schema and listeners in one step.
    """

    def __init__(self, engine: Engine):
        self._engine = engine
        self._session_factory: sessionmaker[Session] = sessionmaker(
            bind=engine, expire_on_commit=False,
        )
        register_immutability_listeners()

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> SqlAlchemyStorage:
        """Build an engine for ``database_url`` and create any missing tables."""
        engine = build_engine(database_url, echo=echo)
        create_tables(engine)
        return cls(engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def _session(
        self,
        operation: str,
        on_integrity_error: InventoryKernelError | None = None,
    ) -> Iterator[Session]:
        try:
            with session_scope(self._session_factory) as session:
                yield session
        except InventoryKernelError:
            raise
        except IntegrityError as exc:
            if on_integrity_error is not None:
                raise on_integrity_error from exc
            raise StorageError(operation, "integrity constraint violated", exc) from exc
        except SQLAlchemyError as exc:
            logger.error(
                "storage_operation_failed",
                extra={"operation": operation, "error": str(exc)},
            )
            raise StorageError(operation, type(exc).__name__, exc) from exc

    # -- items -------------------------------------------------------------

    def create_item(self, item: Item) -> None:
        with self._session("create_item", DuplicateItemError(item.item_id)) as session:
            session.add(ItemModel.from_dto(item))

    def get_item(self, item_id: str) -> Item | None:
        with self._session("get_item") as session:
            model = session.get(ItemModel, item_id)
            return model.to_dto() if model is not None else None

    def update_item(self, item: Item) -> None:
        with self._session("update_item") as session:
            model = session.get(ItemModel, item.item_id)
            if model is None:
                raise ItemNotFoundError(item.item_id)
            model.name = item.name
            model.sku = item.sku
            model.category = item.category
            model.description = item.description
            model.unit_cost = item.unit_cost
            model.updated_at = item.updated_at

    def delete_item(self, item_id: str) -> None:
        with self._session("delete_item") as session:
            model = session.get(ItemModel, item_id)
            if model is None:
                raise ItemNotFoundError(item_id)
            session.delete(model)

    def list_items(self, offset: int = 0, limit: int = 100) -> list[Item]:
        with self._session("list_items") as session:
            rows = session.scalars(
                select(ItemModel).order_by(ItemModel.item_id).offset(offset).limit(limit)
            ).all()
            return [r.to_dto() for r in rows]

    def search_items(self, query: str) -> list[Item]:
        pattern = f"%{query.lower()}%"
        with self._session("search_items") as session:
            rows = session.scalars(
                select(ItemModel)
                .where(
                    or_(
                        func.lower(ItemModel.name).like(pattern),
                        func.lower(ItemModel.sku).like(pattern),
                        func.lower(ItemModel.category).like(pattern),
                        func.lower(ItemModel.description).like(pattern),
                    )
                )
                .order_by(ItemModel.item_id)
            ).all()
            return [r.to_dto() for r in rows]

    # -- locations ---------------------------------------------------------

    def create_location(self, location: Location) -> None:
        duplicate = DuplicateLocationError(location.location_id)
        with self._session("create_location", duplicate) as session:
            session.add(LocationModel.from_dto(location))

    def get_location(self, location_id: str) -> Location | None:
        with self._session("get_location") as session:
            model = session.get(LocationModel, location_id)
            return model.to_dto() if model is not None else None

    def update_location(self, location: Location) -> None:
        with self._session("update_location") as session:
            model = session.get(LocationModel, location.location_id)
            if model is None:
                raise LocationNotFoundError(location.location_id)
            model.name = location.name
            model.location_type = location.location_type
            model.address = location.address
            model.capacity = location.capacity
            model.is_active = location.is_active
            model.updated_at = location.updated_at

    def delete_location(self, location_id: str) -> None:
        with self._session("delete_location") as session:
            model = session.get(LocationModel, location_id)
            if model is None:
                raise LocationNotFoundError(location_id)
            session.delete(model)

    def list_locations(self, offset: int = 0, limit: int = 100) -> list[Location]:
        with self._session("list_locations") as session:
            rows = session.scalars(
                select(LocationModel)
                .order_by(LocationModel.location_id)
                .offset(offset)
                .limit(limit)
            ).all()
            return [r.to_dto() for r in rows]

    # -- lots --------------------------------------------------------------

    def create_lot(self, lot: Lot) -> None:
        with self._session("create_lot", DuplicateLotError(str(lot.lot_id))) as session:
            session.add(LotModel.from_dto(lot))

    def get_lot(self, lot_id: UUID) -> Lot | None:
        with self._session("get_lot") as session:
            model = session.get(LotModel, lot_id)
            return model.to_dto() if model is not None else None

    def list_lots_by_item(self, item_id: str) -> list[Lot]:
        with self._session("list_lots_by_item") as session:
            rows = session.scalars(
                select(LotModel)
                .where(LotModel.item_id == item_id)
                .order_by(LotModel.created_at)
            ).all()
            return [r.to_dto() for r in rows]

    def list_lots(self) -> list[Lot]:
        with self._session("list_lots") as session:
            rows = session.scalars(select(LotModel).order_by(LotModel.created_at)).all()
            return [r.to_dto() for r in rows]

    # -- stock -------------------------------------------------------------

    def create_stock(self, record: StockRecord) -> None:
        lost_race = VersionMismatchError(record.item_id, record.location_id, 0)
        with self._session("create_stock", lost_race) as session:
            session.add(StockModel.from_dto(record))

    def get_stock(self, item_id: str, location_id: str) -> StockRecord | None:
        with self._session("get_stock") as session:
            model = session.get(StockModel, (item_id, location_id))
            return model.to_dto() if model is not None else None

    def update_stock(self, record: StockRecord, expected_version: int) -> None:
        with self._session("update_stock") as session:
            result = session.execute(
                update(StockModel)
                .where(
                    StockModel.item_id == record.item_id,
                    StockModel.location_id == record.location_id,
                    StockModel.version == expected_version,
                )
                .values(
                    quantity=record.quantity,
                    reserved=record.reserved,
                    available=record.available,
                    version=record.version,
                    updated_at=record.updated_at,
                    updated_by=record.updated_by,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise VersionMismatchError(
                    record.item_id, record.location_id, expected_version,
                )

    def list_stock_by_location(self, location_id: str) -> list[StockRecord]:
        with self._session("list_stock_by_location") as session:
            rows = session.scalars(
                select(StockModel)
                .where(StockModel.location_id == location_id)
                .order_by(StockModel.item_id)
            ).all()
            return [r.to_dto() for r in rows]

    def list_stock_by_item(self, item_id: str) -> list[StockRecord]:
        with self._session("list_stock_by_item") as session:
            rows = session.scalars(
                select(StockModel)
                .where(StockModel.item_id == item_id)
                .order_by(StockModel.location_id)
            ).all()
            return [r.to_dto() for r in rows]

    # -- journal -----------------------------------------------------------

    def append_entry(self, entry: JournalEntry) -> JournalEntry:
        with self._session("append_entry") as session:
            model = JournalEntryModel.from_dto(entry)
            session.add(model)
            session.flush()
            return model.to_dto()

    def _newest_first(self, stmt, limit: int | None):
        stmt = stmt.order_by(
            JournalEntryModel.created_at.desc(), JournalEntryModel.seq.desc(),
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return stmt

    def entries_for_item(self, item_id: str, limit: int | None = None) -> list[JournalEntry]:
        with self._session("entries_for_item") as session:
            stmt = select(JournalEntryModel).where(JournalEntryModel.item_id == item_id)
            rows = session.scalars(self._newest_first(stmt, limit)).all()
            return [r.to_dto() for r in rows]

    def entries_for_location(self, location_id: str, limit: int | None = None) -> list[JournalEntry]:
        with self._session("entries_for_location") as session:
            stmt = select(JournalEntryModel).where(
                or_(
                    JournalEntryModel.from_location == location_id,
                    JournalEntryModel.to_location == location_id,
                )
            )
            rows = session.scalars(self._newest_first(stmt, limit)).all()
            return [r.to_dto() for r in rows]

    def entries_for_item_between(
        self, item_id: str, start: datetime, end: datetime,
    ) -> list[JournalEntry]:
        with self._session("entries_for_item_between") as session:
            stmt = select(JournalEntryModel).where(
                JournalEntryModel.item_id == item_id,
                JournalEntryModel.created_at >= start,
                JournalEntryModel.created_at <= end,
            )
            rows = session.scalars(self._newest_first(stmt, None)).all()
            return [r.to_dto() for r in rows]

    # -- alerts ------------------------------------------------------------

    def create_alert(self, alert: StockAlert) -> None:
        with self._session("create_alert") as session:
            session.add(StockAlertModel.from_dto(alert))

    def get_alert(self, alert_id: UUID) -> StockAlert | None:
        with self._session("get_alert") as session:
            model = session.get(StockAlertModel, alert_id)
            return model.to_dto() if model is not None else None

    def list_active_alerts(self, location_id: str | None = None) -> list[StockAlert]:
        with self._session("list_active_alerts") as session:
            stmt = select(StockAlertModel).where(StockAlertModel.is_active.is_(True))
            if location_id is not None:
                stmt = stmt.where(StockAlertModel.location_id == location_id)
            rows = session.scalars(stmt.order_by(StockAlertModel.created_at.desc())).all()
            return [r.to_dto() for r in rows]

    def resolve_alert(self, alert_id: UUID, resolved_at: datetime) -> bool:
        with self._session("resolve_alert") as session:
            result = session.execute(
                update(StockAlertModel)
                .where(
                    StockAlertModel.id == alert_id,
                    StockAlertModel.is_active.is_(True),
                )
                .values(is_active=False, resolved_at=resolved_at)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    # -- transfer intents --------------------------------------------------

    def save_transfer_intent(self, intent: TransferIntent) -> None:
        with self._session("save_transfer_intent") as session:
            session.merge(TransferIntentModel.from_dto(intent))

    def get_transfer_intent(self, intent_id: UUID) -> TransferIntent | None:
        with self._session("get_transfer_intent") as session:
            model = session.get(TransferIntentModel, intent_id)
            return model.to_dto() if model is not None else None

    def list_transfer_intents(
        self, statuses: Iterable[TransferStatus] | None = None,
    ) -> list[TransferIntent]:
        with self._session("list_transfer_intents") as session:
            stmt = select(TransferIntentModel)
            if statuses is not None:
                stmt = stmt.where(
                    TransferIntentModel.status.in_([s.value for s in statuses])
                )
            rows = session.scalars(stmt.order_by(TransferIntentModel.created_at)).all()
            return [r.to_dto() for r in rows]

    # -- lifecycle ---------------------------------------------------------

    def ping(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("storage_ping_failed", exc_info=True)
            return False
        return True

    def close(self) -> None:
        self._engine.dispose()
        logger.debug("storage_closed", extra={"backend": self._engine.dialect.name})
