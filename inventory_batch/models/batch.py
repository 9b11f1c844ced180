"""
ORM model for batch results.

Contract:
    BatchOperationModel persists one executed batch: its operations, counts,
    status and per-operation errors.  ``to_dto()`` / ``from_dto()`` round-trip
    the domain BatchOperation.

Architecture: inventory_batch/models.  Imports from inventory_kernel.db.base
    only, so the table lives in the same metadata as the kernel tables.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDPrimaryKey

if TYPE_CHECKING:
    from inventory_batch.domain.types import BatchOperation


class BatchOperationModel(UUIDPrimaryKey, Base):
    """Persistent batch result."""

    __tablename__ = "batch_operations"

    __table_args__ = (
        Index("ix_batch_operations_status", "status"),
        Index("ix_batch_operations_created_at", "created_at"),
    )

    status: Mapped[str] = mapped_column(String(20), nullable=False)
    operations: Mapped[list] = mapped_column(JSON, nullable=False)
    success_count: Mapped[int] = mapped_column(nullable=False, default=0)
    failure_count: Mapped[int] = mapped_column(nullable=False, default=0)
    errors: Mapped[list] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)

    def to_dto(self) -> BatchOperation:
        from inventory_batch.domain.types import (
            BatchOperation,
            BatchOperationError,
            BatchStatus,
            InventoryOperation,
        )

        return BatchOperation(
            batch_id=self.id,
            status=BatchStatus(self.status),
            operations=tuple(InventoryOperation.from_dict(o) for o in self.operations),
            success_count=self.success_count,
            failure_count=self.failure_count,
            errors=tuple(BatchOperationError.from_dict(e) for e in self.errors),
            created_at=self.created_at,
            created_by=self.created_by,
            completed_at=self.completed_at,
        )

    @classmethod
    def from_dto(cls, dto: BatchOperation) -> BatchOperationModel:
        return cls(
            id=dto.batch_id,
            status=dto.status.value,
            operations=[o.to_dict() for o in dto.operations],
            success_count=dto.success_count,
            failure_count=dto.failure_count,
            errors=[e.to_dict() for e in dto.errors],
            created_at=dto.created_at,
            completed_at=dto.completed_at,
            created_by=dto.created_by,
        )
