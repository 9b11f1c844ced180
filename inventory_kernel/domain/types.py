"""
inventory_kernel.domain.types -- Pure frozen dataclasses for the stock ledger.

ZERO I/O.  Every record handed across the storage boundary is one of these
immutable values; storage backends convert to and from their own row types.

Invariants enforced:
    - StockRecord.available is derived (quantity - reserved), never stored
      independently on the domain object.
    - StockRecord.version starts at 1 and each mutation produces a record
      whose version is exactly one higher.
    - JournalEntry is immutable; the journal is append-only.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Mapping
from uuid import UUID


# =============================================================================
# Enums
# =============================================================================


class MovementType(str, Enum):
    """Kind of stock movement recorded in the journal."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"
    TRANSFER = "transfer"
    ADJUST = "adjust"


class AlertType(str, Enum):
    """Rule that produced a stock alert."""

    LOW_STOCK = "low_stock"
    EXPIRING = "expiring"
    EXPIRED = "expired"
    OVER_STOCK = "over_stock"
    DISCREPANCY = "discrepancy"


class ValuationMethod(str, Enum):
    """Costing convention for pricing on-hand stock."""

    FIFO = "fifo"
    LIFO = "lifo"
    WEIGHTED_AVERAGE = "average"
    STANDARD = "standard"


class TransferStatus(str, Enum):
    """Progress of a two-leg transfer."""

    PENDING = "pending"  # Intent written; remove leg outcome not recorded
    ABORTED = "aborted"  # Remove leg rejected, nothing moved
    SOURCE_DEBITED = "source_debited"  # Remove leg done, add leg outstanding
    COMPLETED = "completed"
    COMPENSATED = "compensated"  # Add leg failed, source credited back
    COMPENSATION_FAILED = "compensation_failed"  # Source debited, nothing credited

    @property
    def is_open(self) -> bool:
        return self in (
            TransferStatus.PENDING,
            TransferStatus.SOURCE_DEBITED,
            TransferStatus.COMPENSATION_FAILED,
        )


class ABCClass(str, Enum):
    """Pareto value tier."""

    A = "A"
    B = "B"
    C = "C"


# =============================================================================
# Catalog
# =============================================================================


@dataclass(frozen=True)
class Item:
    """Catalog entry for a stockable good."""

    item_id: str
    name: str
    sku: str = ""
    category: str = ""
    description: str = ""
    unit_cost: Decimal = Decimal("0")
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class Location:
    """A place stock can be held (warehouse, store, bin)."""

    location_id: str
    name: str
    location_type: str = "warehouse"
    address: str = ""
    capacity: int = 0  # 0 means unbounded
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class Lot:
    """A tracked batch of an item sharing an expiry date and unit cost."""

    lot_id: UUID
    lot_number: str
    item_id: str
    quantity: int
    unit_cost: Decimal
    created_at: datetime
    expiry_date: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        return self.expiry_date is not None and self.expiry_date < now

    def is_expiring_within(self, now: datetime, window: timedelta) -> bool:
        if self.expiry_date is None or self.expiry_date < now:
            return False
        return self.expiry_date <= now + window


# =============================================================================
# Stock
# =============================================================================


@dataclass(frozen=True)
class StockRecord:
    """Quantity state for one (item, location) pair."""

    item_id: str
    location_id: str
    quantity: int
    reserved: int
    version: int
    updated_at: datetime
    updated_by: str

    @property
    def available(self) -> int:
        return self.quantity - self.reserved

    def next(
        self,
        *,
        quantity: int | None = None,
        reserved: int | None = None,
        updated_at: datetime,
        updated_by: str,
    ) -> StockRecord:
        """Return the successor record with version incremented by one."""
        return replace(
            self,
            quantity=self.quantity if quantity is None else quantity,
            reserved=self.reserved if reserved is None else reserved,
            version=self.version + 1,
            updated_at=updated_at,
            updated_by=updated_by,
        )


@dataclass(frozen=True)
class JournalEntry:
    """Immutable audit record of one stock movement.

    A missing ``from_location`` means stock came from outside the system;
    a missing ``to_location`` means it left the system.  ``seq`` is assigned
    by storage on append and breaks ties between entries with equal
    timestamps.
    """

    entry_id: UUID
    movement_type: MovementType
    item_id: str
    quantity: int
    reference: str
    created_at: datetime
    created_by: str
    from_location: str | None = None
    to_location: str | None = None
    unit_cost: Decimal | None = None
    lot_number: str | None = None
    expiry_date: datetime | None = None
    metadata: Mapping[str, str] = field(default_factory=dict)
    seq: int | None = None

    def involves(self, location_id: str) -> bool:
        return location_id in (self.from_location, self.to_location)

    def is_priced_receipt(self, location_id: str | None = None) -> bool:
        """True if this entry credited stock at a positive unit cost.

        With ``location_id`` given, the credit must land on that location.
        """
        if self.movement_type not in (MovementType.INBOUND, MovementType.TRANSFER):
            return False
        if self.unit_cost is None or self.unit_cost <= 0:
            return False
        if location_id is not None and self.to_location != location_id:
            return False
        return True


@dataclass(frozen=True)
class StockAlert:
    """An alert raised by one of the alerting rules."""

    alert_id: UUID
    alert_type: AlertType
    item_id: str
    location_id: str
    current_quantity: int
    threshold: int
    message: str
    created_at: datetime
    is_active: bool = True
    resolved_at: datetime | None = None


@dataclass(frozen=True)
class TransferIntent:
    """Durable progress record for a two-leg transfer."""

    intent_id: UUID
    item_id: str
    from_location: str
    to_location: str
    quantity: int
    reference: str
    status: TransferStatus
    created_at: datetime
    updated_at: datetime
    created_by: str
    error: str | None = None

    def with_status(
        self, status: TransferStatus, at: datetime, error: str | None = None,
    ) -> TransferIntent:
        return replace(self, status=status, updated_at=at, error=error)


@dataclass(frozen=True)
class AuditTrail:
    """Movements and lots for one item over a time window."""

    item_id: str
    start: datetime
    end: datetime
    entries: tuple[JournalEntry, ...]
    lots: tuple[Lot, ...]
    generated_at: datetime
