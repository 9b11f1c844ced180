"""Stock notifications and the publisher port they are delivered through.

Publishing is fire-and-forget: the ledger calls the publisher after the
primary write has succeeded and logs (never propagates) any failure.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable
from uuid import UUID

from inventory_kernel.domain.types import MovementType


@dataclass(frozen=True)
class StockChanged:
    item_id: str
    location_id: str
    old_quantity: int
    new_quantity: int
    change_type: MovementType
    reference: str
    timestamp: datetime
    actor: str
    entry_id: UUID | None = None


@dataclass(frozen=True)
class LowStockAlert:
    item_id: str
    location_id: str
    current_quantity: int
    threshold: int
    timestamp: datetime


@dataclass(frozen=True)
class ItemTransferred:
    item_id: str
    from_location: str
    to_location: str
    quantity: int
    reference: str
    timestamp: datetime
    actor: str
    transfer_id: UUID | None = None


@runtime_checkable
class EventPublisher(Protocol):
    """Receives stock notifications.  Implementations may raise; callers log."""

    def publish_stock_changed(self, event: StockChanged) -> None: ...

    def publish_low_stock_alert(self, event: LowStockAlert) -> None: ...

    def publish_item_transferred(self, event: ItemTransferred) -> None: ...


class NullEventPublisher:
    """Publisher that drops every event."""

    def publish_stock_changed(self, event: StockChanged) -> None:
        pass

    def publish_low_stock_alert(self, event: LowStockAlert) -> None:
        pass

    def publish_item_transferred(self, event: ItemTransferred) -> None:
        pass


class RecordingEventPublisher:
    """Publisher that keeps every event in memory, in arrival order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.events: list[StockChanged | LowStockAlert | ItemTransferred] = []

    def _append(self, event) -> None:
        with self._lock:
            self.events.append(event)

    def publish_stock_changed(self, event: StockChanged) -> None:
        self._append(event)

    def publish_low_stock_alert(self, event: LowStockAlert) -> None:
        self._append(event)

    def publish_item_transferred(self, event: ItemTransferred) -> None:
        self._append(event)

    def of_type(self, event_type: type) -> list:
        with self._lock:
            return [e for e in self.events if isinstance(e, event_type)]
