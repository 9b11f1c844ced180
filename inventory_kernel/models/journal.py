"""
ORM model for the append-only movement journal.

Contract:
    JournalEntryModel rows are written once and never updated or deleted
    (enforced by the listeners in ``inventory_kernel.db.immutability``).
    ``seq`` is a database-assigned monotonic key used to order entries that
    share a timestamp; ``entry_id`` is the public identifier.

Architecture: inventory_kernel/models. Imports from inventory_kernel.db.base only.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import JSON, BigInteger, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString

if TYPE_CHECKING:
    from inventory_kernel.domain.types import JournalEntry


class JournalEntryModel(Base):
    """One recorded stock movement."""

    __tablename__ = "transactions"

    __table_args__ = (
        Index("ix_transactions_item_created", "item_id", "created_at"),
        Index("ix_transactions_from_location", "from_location"),
        Index("ix_transactions_to_location", "to_location"),
    )

    # SQLite only autoincrements an INTEGER PRIMARY KEY
    seq: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    entry_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False, unique=True)
    movement_type: Mapped[str] = mapped_column(String(20), nullable=False)
    item_id: Mapped[str] = mapped_column(String(255), nullable=False)
    from_location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    to_location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    quantity: Mapped[int] = mapped_column(nullable=False)
    unit_cost: Mapped[Decimal | None] = mapped_column(nullable=True)
    reference: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    lot_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    expiry_date: Mapped[datetime | None] = mapped_column(nullable=True)
    # "metadata" is reserved on declarative classes
    entry_metadata: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)

    def to_dto(self) -> JournalEntry:
        from inventory_kernel.domain.types import JournalEntry, MovementType

        return JournalEntry(
            entry_id=self.entry_id,
            movement_type=MovementType(self.movement_type),
            item_id=self.item_id,
            quantity=self.quantity,
            reference=self.reference,
            created_at=self.created_at,
            created_by=self.created_by,
            from_location=self.from_location,
            to_location=self.to_location,
            unit_cost=Decimal(self.unit_cost) if self.unit_cost is not None else None,
            lot_number=self.lot_number,
            expiry_date=self.expiry_date,
            metadata=dict(self.entry_metadata or {}),
            seq=self.seq,
        )

    @classmethod
    def from_dto(cls, dto: JournalEntry) -> JournalEntryModel:
        return cls(
            entry_id=dto.entry_id,
            movement_type=dto.movement_type.value,
            item_id=dto.item_id,
            from_location=dto.from_location,
            to_location=dto.to_location,
            quantity=dto.quantity,
            unit_cost=dto.unit_cost,
            reference=dto.reference,
            lot_number=dto.lot_number,
            expiry_date=dto.expiry_date,
            entry_metadata=dict(dto.metadata) or None,
            created_at=dto.created_at,
            created_by=dto.created_by,
        )
