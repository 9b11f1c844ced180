"""
ORM models for the catalog: items, locations and lots.

Contract:
    ItemModel, LocationModel and LotModel persist catalog entities.  Each has
    ``to_dto()`` / ``from_dto()`` round-trip methods against the frozen
    records in ``inventory_kernel.domain.types``.

Architecture: inventory_kernel/models. Imports from inventory_kernel.db.base only.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDPrimaryKey

if TYPE_CHECKING:
    from inventory_kernel.domain.types import Item, Location, Lot


class ItemModel(Base):
    """Catalog item keyed by its caller-supplied id."""

    __tablename__ = "items"

    __table_args__ = (
        Index("ix_items_sku", "sku"),
        Index("ix_items_category", "category"),
    )

    item_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    sku: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    category: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    unit_cost: Mapped[Decimal] = mapped_column(nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def to_dto(self) -> Item:
        from inventory_kernel.domain.types import Item

        return Item(
            item_id=self.item_id,
            name=self.name,
            sku=self.sku,
            category=self.category,
            description=self.description,
            unit_cost=Decimal(self.unit_cost),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_dto(cls, dto: Item) -> ItemModel:
        return cls(
            item_id=dto.item_id,
            name=dto.name,
            sku=dto.sku,
            category=dto.category,
            description=dto.description,
            unit_cost=dto.unit_cost,
            created_at=dto.created_at,
            updated_at=dto.updated_at,
        )


class LocationModel(Base):
    """Stock-holding location keyed by its caller-supplied id."""

    __tablename__ = "locations"

    __table_args__ = (
        Index("ix_locations_active", "is_active"),
    )

    location_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    location_type: Mapped[str] = mapped_column(String(50), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False, default="")
    capacity: Mapped[int] = mapped_column(nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime | None] = mapped_column(nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def to_dto(self) -> Location:
        from inventory_kernel.domain.types import Location

        return Location(
            location_id=self.location_id,
            name=self.name,
            location_type=self.location_type,
            address=self.address,
            capacity=self.capacity,
            is_active=self.is_active,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_dto(cls, dto: Location) -> LocationModel:
        return cls(
            location_id=dto.location_id,
            name=dto.name,
            location_type=dto.location_type,
            address=dto.address,
            capacity=dto.capacity,
            is_active=dto.is_active,
            created_at=dto.created_at,
            updated_at=dto.updated_at,
        )


class LotModel(UUIDPrimaryKey, Base):
    """A tracked lot of one item."""

    __tablename__ = "lots"

    __table_args__ = (
        Index("ix_lots_item", "item_id"),
        Index("ix_lots_expiry", "expiry_date"),
    )

    lot_number: Mapped[str] = mapped_column(String(100), nullable=False)
    item_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("items.item_id"), nullable=False,
    )
    quantity: Mapped[int] = mapped_column(nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(nullable=False)
    expiry_date: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)

    def to_dto(self) -> Lot:
        from inventory_kernel.domain.types import Lot

        return Lot(
            lot_id=self.id,
            lot_number=self.lot_number,
            item_id=self.item_id,
            quantity=self.quantity,
            unit_cost=Decimal(self.unit_cost),
            expiry_date=self.expiry_date,
            created_at=self.created_at,
        )

    @classmethod
    def from_dto(cls, dto: Lot) -> LotModel:
        return cls(
            id=dto.lot_id,
            lot_number=dto.lot_number,
            item_id=dto.item_id,
            quantity=dto.quantity,
            unit_cost=dto.unit_cost,
            expiry_date=dto.expiry_date,
            created_at=dto.created_at,
        )
