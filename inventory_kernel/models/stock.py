"""
ORM model for per-(item, location) stock records.

Contract:
    One row per (item_id, location_id).  ``version`` is the optimistic
    concurrency token: storage only ever updates a row with
    ``WHERE version = :expected`` and treats zero affected rows as a lost race.
    ``available`` is written from quantity - reserved on every write so SQL
    readers see the same figure the domain computes.

Architecture: inventory_kernel/models. Imports from inventory_kernel.db.base only.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base

if TYPE_CHECKING:
    from inventory_kernel.domain.types import StockRecord


class StockModel(Base):
    """Versioned stock record."""

    __tablename__ = "stocks"

    __table_args__ = (
        Index("ix_stocks_location", "location_id"),
    )

    item_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("items.item_id"), primary_key=True,
    )
    location_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("locations.location_id"), primary_key=True,
    )
    quantity: Mapped[int] = mapped_column(nullable=False)
    reserved: Mapped[int] = mapped_column(nullable=False, default=0)
    available: Mapped[int] = mapped_column(nullable=False)
    version: Mapped[int] = mapped_column(nullable=False)
    updated_at: Mapped[datetime] = mapped_column(nullable=False)
    updated_by: Mapped[str] = mapped_column(String(255), nullable=False)

    def to_dto(self) -> StockRecord:
        from inventory_kernel.domain.types import StockRecord

        return StockRecord(
            item_id=self.item_id,
            location_id=self.location_id,
            quantity=self.quantity,
            reserved=self.reserved,
            version=self.version,
            updated_at=self.updated_at,
            updated_by=self.updated_by,
        )

    @classmethod
    def from_dto(cls, dto: StockRecord) -> StockModel:
        return cls(
            item_id=dto.item_id,
            location_id=dto.location_id,
            quantity=dto.quantity,
            reserved=dto.reserved,
            available=dto.available,
            version=dto.version,
            updated_at=dto.updated_at,
            updated_by=dto.updated_by,
        )
