"""
Batch result stores.

``get_batch_status`` must answer for batches run by another executor
instance, so results are saved outside the executor: in memory for tests
and single-process use, or in the ``batch_operations`` table.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from uuid import UUID

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from inventory_batch.domain.types import BatchOperation
from inventory_batch.models.batch import BatchOperationModel
from inventory_kernel.db.engine import session_scope
from inventory_kernel.exceptions import StorageError
from inventory_kernel.logging_config import get_logger

logger = get_logger("batch.store")


class BatchStore(ABC):
    @abstractmethod
    def save(self, batch: BatchOperation) -> None:
        """Insert or replace a batch result."""

    @abstractmethod
    def get(self, batch_id: UUID) -> BatchOperation | None: ...


class InMemoryBatchStore(BatchStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._batches: dict[UUID, BatchOperation] = {}

    def save(self, batch: BatchOperation) -> None:
        with self._lock:
            self._batches[batch.batch_id] = batch

    def get(self, batch_id: UUID) -> BatchOperation | None:
        with self._lock:
            return self._batches.get(batch_id)


class SqlBatchStore(BatchStore):
    """Batch results in the ``batch_operations`` table (created if missing)."""

    def __init__(self, engine: Engine):
        self._session_factory: sessionmaker[Session] = sessionmaker(
            bind=engine, expire_on_commit=False,
        )
        try:
            BatchOperationModel.__table__.create(engine, checkfirst=True)
        except SQLAlchemyError as exc:
            raise StorageError("create_batch_table", type(exc).__name__, exc) from exc

    def save(self, batch: BatchOperation) -> None:
        try:
            with session_scope(self._session_factory) as session:
                session.merge(BatchOperationModel.from_dto(batch))
        except SQLAlchemyError as exc:
            logger.error(
                "batch_save_failed",
                extra={"batch_id": str(batch.batch_id), "error": str(exc)},
            )
            raise StorageError("save_batch", type(exc).__name__, exc) from exc

    def get(self, batch_id: UUID) -> BatchOperation | None:
        try:
            with session_scope(self._session_factory) as session:
                model = session.get(BatchOperationModel, batch_id)
                return model.to_dto() if model is not None else None
        except SQLAlchemyError as exc:
            raise StorageError("get_batch", type(exc).__name__, exc) from exc
