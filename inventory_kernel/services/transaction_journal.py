"""
TransactionJournal -- append-only record of stock movements.

Responsibility:
    Appends one JournalEntry per successful ledger mutation and answers
    history queries over those entries.

Architecture position:
    Kernel > Services.  Written to by StockLedger; read by ValuationEngine,
    the analytics services and audit tooling.

Invariants enforced:
    - Append-only: there is no update or delete path.  On the SQL backend
      the ORM listeners in ``db/immutability.py`` also reject UPDATE/DELETE.
    - History queries are newest-first, ties broken by storage sequence.
    - Date-range bounds are inclusive.

Failure modes:
    - ValidationError: malformed ids, reversed or naive date range.
    - ItemNotFoundError / LocationNotFoundError: unknown scope.
    - StorageError: backend failure (surfaced to the caller here; the ledger
      decides whether a failed append is fatal).
"""

from __future__ import annotations

from datetime import datetime

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.policy import LedgerPolicy
from inventory_kernel.domain.types import AuditTrail, JournalEntry
from inventory_kernel.domain.validation import require_date_range
from inventory_kernel.exceptions import StorageError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.catalog_service import CatalogService
from inventory_kernel.storage.base import InventoryStorage

logger = get_logger("services.journal")


class TransactionJournal:
    """
    Append-only movement journal.

    Contract:
        ``record()`` persists an entry and returns it with its sequence
        number.  Queries return frozen JournalEntry values.

    Non-goals:
        - Does NOT validate movement semantics; StockLedger builds entries.
    """

    def __init__(
        self,
        storage: InventoryStorage,
        catalog: CatalogService,
        clock: Clock | None = None,
        policy: LedgerPolicy | None = None,
    ):
        self._storage = storage
        self._catalog = catalog
        self._clock = clock or SystemClock()
        self._policy = policy or LedgerPolicy()

    def record(self, entry: JournalEntry) -> JournalEntry:
        stored = self._storage.append_entry(entry)
        logger.debug(
            "journal_entry_recorded",
            extra={
                "entry_id": str(stored.entry_id),
                "movement_type": stored.movement_type.value,
                "item_id": stored.item_id,
                "quantity": stored.quantity,
                "seq": stored.seq,
            },
        )
        return stored

    def _limit(self, limit: int) -> int:
        return limit if limit > 0 else self._policy.history_default_limit

    def history_for_item(self, item_id: str, limit: int = 0) -> list[JournalEntry]:
        """Newest-first entries for an item; ``limit <= 0`` uses the default cap."""
        self._catalog.require_item(item_id)
        return self._storage.entries_for_item(item_id, self._limit(limit))

    def history_for_location(self, location_id: str, limit: int = 0) -> list[JournalEntry]:
        """Newest-first entries moving stock into or out of a location."""
        self._catalog.require_location(location_id)
        return self._storage.entries_for_location(location_id, self._limit(limit))

    def history_for_date_range(
        self, item_id: str, start: datetime, end: datetime,
    ) -> list[JournalEntry]:
        """Newest-first entries for an item with ``start <= created_at <= end``."""
        require_date_range(start, end)
        self._catalog.require_item(item_id)
        return self._storage.entries_for_item_between(item_id, start, end)

    def inbound_entries(
        self, item_id: str, location_id: str | None = None,
    ) -> list[JournalEntry]:
        """Priced receipts for an item, oldest first.

        With ``location_id`` only receipts credited to that location are
        returned.  These are the cost layers valuation consumes.
        """
        entries = [
            e for e in self._storage.entries_for_item(item_id)
            if e.is_priced_receipt(location_id)
        ]
        entries.sort(key=lambda e: (e.created_at, e.seq or 0))
        return entries

    def audit_trail(self, item_id: str, start: datetime, end: datetime) -> AuditTrail:
        """Movements in the window plus every lot of the item.

        A failed lot lookup is logged and yields an empty lot list; the
        movement history is still returned.
        """
        entries = self.history_for_date_range(item_id, start, end)
        try:
            lots = tuple(self._storage.list_lots_by_item(item_id))
        except StorageError:
            logger.error(
                "audit_trail_lots_unavailable",
                extra={"item_id": item_id},
                exc_info=True,
            )
            lots = ()
        return AuditTrail(
            item_id=item_id,
            start=start,
            end=end,
            entries=tuple(entries),
            lots=lots,
            generated_at=self._clock.now(),
        )
