"""ORM models for stock alerts and transfer intents."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDPrimaryKey

if TYPE_CHECKING:
    from inventory_kernel.domain.types import StockAlert, TransferIntent


class StockAlertModel(UUIDPrimaryKey, Base):
    """Alert raised by a stock rule; resolved by flipping ``is_active``."""

    __tablename__ = "stock_alerts"

    __table_args__ = (
        Index("ix_stock_alerts_location_active", "location_id", "is_active"),
    )

    alert_type: Mapped[str] = mapped_column(String(20), nullable=False)
    item_id: Mapped[str] = mapped_column(String(255), nullable=False)
    location_id: Mapped[str] = mapped_column(String(255), nullable=False)
    current_quantity: Mapped[int] = mapped_column(nullable=False)
    threshold: Mapped[int] = mapped_column(nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def to_dto(self) -> StockAlert:
        from inventory_kernel.domain.types import AlertType, StockAlert

        return StockAlert(
            alert_id=self.id,
            alert_type=AlertType(self.alert_type),
            item_id=self.item_id,
            location_id=self.location_id,
            current_quantity=self.current_quantity,
            threshold=self.threshold,
            message=self.message,
            created_at=self.created_at,
            is_active=self.is_active,
            resolved_at=self.resolved_at,
        )

    @classmethod
    def from_dto(cls, dto: StockAlert) -> StockAlertModel:
        return cls(
            id=dto.alert_id,
            alert_type=dto.alert_type.value,
            item_id=dto.item_id,
            location_id=dto.location_id,
            current_quantity=dto.current_quantity,
            threshold=dto.threshold,
            message=dto.message,
            is_active=dto.is_active,
            created_at=dto.created_at,
            resolved_at=dto.resolved_at,
        )


class TransferIntentModel(UUIDPrimaryKey, Base):
    """Progress record for a two-leg transfer."""

    __tablename__ = "transfer_intents"

    __table_args__ = (
        Index("ix_transfer_intents_status", "status"),
    )

    item_id: Mapped[str] = mapped_column(String(255), nullable=False)
    from_location: Mapped[str] = mapped_column(String(255), nullable=False)
    to_location: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(nullable=False)
    reference: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(30), nullable=False)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    updated_at: Mapped[datetime] = mapped_column(nullable=False)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)

    def to_dto(self) -> TransferIntent:
        from inventory_kernel.domain.types import TransferIntent, TransferStatus

        return TransferIntent(
            intent_id=self.id,
            item_id=self.item_id,
            from_location=self.from_location,
            to_location=self.to_location,
            quantity=self.quantity,
            reference=self.reference,
            status=TransferStatus(self.status),
            created_at=self.created_at,
            updated_at=self.updated_at,
            created_by=self.created_by,
            error=self.error,
        )

    @classmethod
    def from_dto(cls, dto: TransferIntent) -> TransferIntentModel:
        return cls(
            id=dto.intent_id,
            item_id=dto.item_id,
            from_location=dto.from_location,
            to_location=dto.to_location,
            quantity=dto.quantity,
            reference=dto.reference,
            status=dto.status.value,
            error=dto.error,
            created_at=dto.created_at,
            updated_at=dto.updated_at,
            created_by=dto.created_by,
        )
