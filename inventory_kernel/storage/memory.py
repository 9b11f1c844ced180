"""
InMemoryStorage -- process-local InventoryStorage backend.

Responsibility:
    Dict-backed storage for tests, demos and single-process tooling.

Concurrency:
    A single lock guards every read-modify-write inside this backend, which
    is what makes ``update_stock`` an atomic compare-and-swap.  The lock is
    never held across calls, so the ledger itself stays lock-free.
"""

from __future__ import annotations

import itertools
import threading
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime
from uuid import UUID

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
    ItemNotFoundError,
    LocationNotFoundError,
    VersionMismatchError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.storage.base import InventoryStorage

logger = get_logger("storage.memory")


def _newest_first(entries: Iterable[JournalEntry]) -> list[JournalEntry]:
    return sorted(entries, key=lambda e: (e.created_at, e.seq or 0), reverse=True)


def _limited(entries: list[JournalEntry], limit: int | None) -> list[JournalEntry]:
    return entries if limit is None else entries[:limit]


class InMemoryStorage(InventoryStorage):
    """Dict-backed storage with lock-guarded compare-and-swap."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: dict[str, Item] = {}
        self._locations: dict[str, Location] = {}
        self._lots: dict[UUID, Lot] = {}
        self._stocks: dict[tuple[str, str], StockRecord] = {}
        self._journal: list[JournalEntry] = []
        self._alerts: dict[UUID, StockAlert] = {}
        self._intents: dict[UUID, TransferIntent] = {}
        self._seq = itertools.count(1)
        self._closed = False

    # -- items -------------------------------------------------------------

    def create_item(self, item: Item) -> None:
        with self._lock:
            if item.item_id in self._items:
                raise DuplicateItemError(item.item_id)
            self._items[item.item_id] = item

    def get_item(self, item_id: str) -> Item | None:
        with self._lock:
            return self._items.get(item_id)

    def update_item(self, item: Item) -> None:
        with self._lock:
            if item.item_id not in self._items:
                raise ItemNotFoundError(item.item_id)
            self._items[item.item_id] = item

    def delete_item(self, item_id: str) -> None:
        with self._lock:
            if self._items.pop(item_id, None) is None:
                raise ItemNotFoundError(item_id)

    def list_items(self, offset: int = 0, limit: int = 100) -> list[Item]:
        with self._lock:
            ordered = sorted(self._items.values(), key=lambda i: i.item_id)
        return ordered[offset:offset + limit]

    def search_items(self, query: str) -> list[Item]:
        needle = query.lower()
        with self._lock:
            items = list(self._items.values())
        return sorted(
            (
                i for i in items
                if any(
                    needle in field.lower()
                    for field in (i.name, i.sku, i.category, i.description)
                )
            ),
            key=lambda i: i.item_id,
        )

    # -- locations ---------------------------------------------------------

    def create_location(self, location: Location) -> None:
        with self._lock:
            if location.location_id in self._locations:
                raise DuplicateLocationError(location.location_id)
            self._locations[location.location_id] = location

    def get_location(self, location_id: str) -> Location | None:
        with self._lock:
            return self._locations.get(location_id)

    def update_location(self, location: Location) -> None:
        with self._lock:
            if location.location_id not in self._locations:
                raise LocationNotFoundError(location.location_id)
            self._locations[location.location_id] = location

    def delete_location(self, location_id: str) -> None:
        with self._lock:
            if self._locations.pop(location_id, None) is None:
                raise LocationNotFoundError(location_id)

    def list_locations(self, offset: int = 0, limit: int = 100) -> list[Location]:
        with self._lock:
            ordered = sorted(self._locations.values(), key=lambda loc: loc.location_id)
        return ordered[offset:offset + limit]

    # -- lots --------------------------------------------------------------

    def create_lot(self, lot: Lot) -> None:
        with self._lock:
            if lot.lot_id in self._lots:
                raise DuplicateLotError(str(lot.lot_id))
            self._lots[lot.lot_id] = lot

    def get_lot(self, lot_id: UUID) -> Lot | None:
        with self._lock:
            return self._lots.get(lot_id)

    def list_lots_by_item(self, item_id: str) -> list[Lot]:
        with self._lock:
            lots = [lot for lot in self._lots.values() if lot.item_id == item_id]
        return sorted(lots, key=lambda lot: lot.created_at)

    def list_lots(self) -> list[Lot]:
        with self._lock:
            lots = list(self._lots.values())
        return sorted(lots, key=lambda lot: lot.created_at)

    # -- stock -------------------------------------------------------------

    def create_stock(self, record: StockRecord) -> None:
        key = (record.item_id, record.location_id)
        with self._lock:
            if key in self._stocks:
                raise VersionMismatchError(record.item_id, record.location_id, 0)
            self._stocks[key] = record

    def get_stock(self, item_id: str, location_id: str) -> StockRecord | None:
        with self._lock:
            return self._stocks.get((item_id, location_id))

    def update_stock(self, record: StockRecord, expected_version: int) -> None:
        key = (record.item_id, record.location_id)
        with self._lock:
            current = self._stocks.get(key)
            if current is None or current.version != expected_version:
                raise VersionMismatchError(
                    record.item_id, record.location_id, expected_version,
                )
            self._stocks[key] = record

    def list_stock_by_location(self, location_id: str) -> list[StockRecord]:
        with self._lock:
            records = [r for r in self._stocks.values() if r.location_id == location_id]
        return sorted(records, key=lambda r: r.item_id)

    def list_stock_by_item(self, item_id: str) -> list[StockRecord]:
        with self._lock:
            records = [r for r in self._stocks.values() if r.item_id == item_id]
        return sorted(records, key=lambda r: r.location_id)

    # -- journal -----------------------------------------------------------

    def append_entry(self, entry: JournalEntry) -> JournalEntry:
        with self._lock:
            stored = replace(entry, seq=next(self._seq))
            self._journal.append(stored)
        return stored

    def entries_for_item(self, item_id: str, limit: int | None = None) -> list[JournalEntry]:
        with self._lock:
            matched = [e for e in self._journal if e.item_id == item_id]
        return _limited(_newest_first(matched), limit)

    def entries_for_location(self, location_id: str, limit: int | None = None) -> list[JournalEntry]:
        with self._lock:
            matched = [e for e in self._journal if e.involves(location_id)]
        return _limited(_newest_first(matched), limit)

    def entries_for_item_between(
        self, item_id: str, start: datetime, end: datetime,
    ) -> list[JournalEntry]:
        with self._lock:
            matched = [
                e for e in self._journal
                if e.item_id == item_id and start <= e.created_at <= end
            ]
        return _newest_first(matched)

    # -- alerts ------------------------------------------------------------

    def create_alert(self, alert: StockAlert) -> None:
        with self._lock:
            self._alerts[alert.alert_id] = alert

    def get_alert(self, alert_id: UUID) -> StockAlert | None:
        with self._lock:
            return self._alerts.get(alert_id)

    def list_active_alerts(self, location_id: str | None = None) -> list[StockAlert]:
        with self._lock:
            alerts = [
                a for a in self._alerts.values()
                if a.is_active and (location_id is None or a.location_id == location_id)
            ]
        return sorted(alerts, key=lambda a: a.created_at, reverse=True)

    def resolve_alert(self, alert_id: UUID, resolved_at: datetime) -> bool:
        with self._lock:
            alert = self._alerts.get(alert_id)
            if alert is None or not alert.is_active:
                return False
            self._alerts[alert_id] = replace(alert, is_active=False, resolved_at=resolved_at)
            return True

    # -- transfer intents --------------------------------------------------

    def save_transfer_intent(self, intent: TransferIntent) -> None:
        with self._lock:
            self._intents[intent.intent_id] = intent

    def get_transfer_intent(self, intent_id: UUID) -> TransferIntent | None:
        with self._lock:
            return self._intents.get(intent_id)

    def list_transfer_intents(
        self, statuses: Iterable[TransferStatus] | None = None,
    ) -> list[TransferIntent]:
        wanted = set(statuses) if statuses is not None else None
        with self._lock:
            intents = [
                i for i in self._intents.values()
                if wanted is None or i.status in wanted
            ]
        return sorted(intents, key=lambda i: i.created_at)

    # -- lifecycle ---------------------------------------------------------

    def ping(self) -> bool:
        return not self._closed

    def close(self) -> None:
        self._closed = True
        logger.debug("storage_closed", extra={"backend": "memory"})
