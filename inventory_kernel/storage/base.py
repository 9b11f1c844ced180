"""
Module: inventory_kernel.storage.base
Responsibility: The persistence boundary the ledger relies on.  Every backend
    (in-memory, SQLAlchemy) implements InventoryStorage and exchanges only
    frozen domain records.
Architecture position: Kernel > Storage.  Imports domain types and
    exceptions.  Services depend on this ABC, never on a concrete backend.

Invariants enforced:
    - Compare-and-swap on StockRecord.version: ``update_stock`` writes only
      if the stored version equals ``expected_version`` and raises
      VersionMismatchError otherwise.  ``create_stock`` on an existing key
      raises VersionMismatchError (the version 0 -> 1 race was lost).
    - The journal is append-only: the contract exposes no update or delete
      for entries.
    - Alert resolution is conditional on ``is_active`` so two resolvers
      cannot both succeed.

Failure modes:
    - StorageError wraps any backend failure, preserving the cause.
    - Duplicate*Error on catalog key collisions.
    - Lookups return None for missing rows; services decide which
      NotFoundError to raise.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
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


class InventoryStorage(ABC):
    """
    Storage contract for the inventory kernel.

    Contract:
        All methods are synchronous and safe to call from multiple threads.
        Journal queries return entries newest-first, ordered by
        (created_at, seq) descending.

    Non-goals:
        - No multi-record transactions.  Each call is its own unit of work.
        - No retry on VersionMismatchError.
    """

    # -- items -------------------------------------------------------------

    @abstractmethod
    def create_item(self, item: Item) -> None:
        """Raises DuplicateItemError if the id exists."""

    @abstractmethod
    def get_item(self, item_id: str) -> Item | None: ...

    @abstractmethod
    def update_item(self, item: Item) -> None:
        """Raises ItemNotFoundError if the id does not exist."""

    @abstractmethod
    def delete_item(self, item_id: str) -> None:
        """Raises ItemNotFoundError if the id does not exist."""

    @abstractmethod
    def list_items(self, offset: int = 0, limit: int = 100) -> list[Item]: ...

    @abstractmethod
    def search_items(self, query: str) -> list[Item]:
        """Case-insensitive substring match on name, sku, category, description."""

    # -- locations ---------------------------------------------------------

    @abstractmethod
    def create_location(self, location: Location) -> None:
        """Raises DuplicateLocationError if the id exists."""

    @abstractmethod
    def get_location(self, location_id: str) -> Location | None: ...

    @abstractmethod
    def update_location(self, location: Location) -> None:
        """Raises LocationNotFoundError if the id does not exist."""

    @abstractmethod
    def delete_location(self, location_id: str) -> None:
        """Raises LocationNotFoundError if the id does not exist."""

    @abstractmethod
    def list_locations(self, offset: int = 0, limit: int = 100) -> list[Location]: ...

    # -- lots --------------------------------------------------------------

    @abstractmethod
    def create_lot(self, lot: Lot) -> None:
        """Raises DuplicateLotError if the id exists."""

    @abstractmethod
    def get_lot(self, lot_id: UUID) -> Lot | None: ...

    @abstractmethod
    def list_lots_by_item(self, item_id: str) -> list[Lot]: ...

    @abstractmethod
    def list_lots(self) -> list[Lot]: ...

    # -- stock -------------------------------------------------------------

    @abstractmethod
    def create_stock(self, record: StockRecord) -> None:
        """Insert a version-1 record.

        Raises:
            VersionMismatchError: A record for (item, location) already exists.
        """

    @abstractmethod
    def get_stock(self, item_id: str, location_id: str) -> StockRecord | None: ...

    @abstractmethod
    def update_stock(self, record: StockRecord, expected_version: int) -> None:
        """Compare-and-swap write of ``record``.

        Raises:
            VersionMismatchError: Stored version differs from
                ``expected_version`` (or the record vanished).
        """

    @abstractmethod
    def list_stock_by_location(self, location_id: str) -> list[StockRecord]: ...

    @abstractmethod
    def list_stock_by_item(self, item_id: str) -> list[StockRecord]: ...

    # -- journal -----------------------------------------------------------

    @abstractmethod
    def append_entry(self, entry: JournalEntry) -> JournalEntry:
        """Persist ``entry`` and return it with ``seq`` assigned."""

    @abstractmethod
    def entries_for_item(self, item_id: str, limit: int | None = None) -> list[JournalEntry]: ...

    @abstractmethod
    def entries_for_location(self, location_id: str, limit: int | None = None) -> list[JournalEntry]:
        """Entries where the location is either the source or the target."""

    @abstractmethod
    def entries_for_item_between(
        self, item_id: str, start: datetime, end: datetime,
    ) -> list[JournalEntry]:
        """Inclusive on both bounds."""

    # -- alerts ------------------------------------------------------------

    @abstractmethod
    def create_alert(self, alert: StockAlert) -> None: ...

    @abstractmethod
    def get_alert(self, alert_id: UUID) -> StockAlert | None: ...

    @abstractmethod
    def list_active_alerts(self, location_id: str | None = None) -> list[StockAlert]: ...

    @abstractmethod
    def resolve_alert(self, alert_id: UUID, resolved_at: datetime) -> bool:
        """Flip an active alert to inactive.  False if it was not active."""

    # -- transfer intents --------------------------------------------------

    @abstractmethod
    def save_transfer_intent(self, intent: TransferIntent) -> None:
        """Insert or overwrite by ``intent_id``."""

    @abstractmethod
    def get_transfer_intent(self, intent_id: UUID) -> TransferIntent | None: ...

    @abstractmethod
    def list_transfer_intents(
        self, statuses: Iterable[TransferStatus] | None = None,
    ) -> list[TransferIntent]: ...

    # -- lifecycle ---------------------------------------------------------

    @abstractmethod
    def ping(self) -> bool: ...

    @abstractmethod
    def close(self) -> None: ...
