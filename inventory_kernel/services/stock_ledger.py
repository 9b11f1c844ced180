"""
StockLedger -- the only writer of stock quantities.

Responsibility:
    add / remove / transfer / adjust / reserve / release_reservation on
    per-(item, location) StockRecords, each followed by its journal entry,
    notification and alert checks.

Architecture position:
    Kernel > Services -- imperative shell over InventoryStorage.
    Called directly by clients and by ``inventory_batch`` for batches.

Invariants enforced:
    - Optimistic concurrency: every mutation reads the record and its
      version, computes the successor (version + 1) and hands storage a
      compare-and-swap.  A lost race raises VersionMismatchError.  The
      ledger holds no locks and never retries.
    - Validation and business-rule checks run before any write.
    - One journal entry per successful add / remove / adjust.  Reservations
      are not movements and write no entry.  A completed transfer writes
      its outbound and inbound legs plus one transfer entry.
    - ``available`` (quantity - reserved) bounds removals and reservations.

Failure modes:
    - ValidationError, ItemNotFoundError, LocationNotFoundError: before any
      stock read.
    - InsufficientStockError / InsufficientReservationError /
      NegativeStockViolationError: state unchanged.
    - VersionMismatchError: another writer won; caller re-reads and retries.
    - StorageError on the primary stock write: surfaced, nothing recorded.
    - Journal, alert and event failures AFTER the primary write are logged
      and swallowed.  The stock change stands even if its journal entry was
      lost; ``journal_write_failed`` in the logs marks every such gap.

Transfers:
    A transfer is two independent record writes.  A TransferIntent is saved
    before the first leg and advanced after each one:

        pending --remove ok--> source_debited --add ok--> completed
           |                        |
           +--remove fails--> aborted
                                    +--add fails, credit back ok--> compensated
                                    +--add fails, credit back fails--> compensation_failed

    Intents left in source_debited or compensation_failed are listed by
    ``pending_transfers()`` and can be settled with ``recover_transfer()``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.events import (
    EventPublisher,
    ItemTransferred,
    NullEventPublisher,
    StockChanged,
)
from inventory_kernel.domain.policy import LedgerPolicy
from inventory_kernel.domain.types import (
    JournalEntry,
    MovementType,
    StockRecord,
    TransferIntent,
    TransferStatus,
)
from inventory_kernel.domain.validation import (
    MAX_LOT_NUMBER_LENGTH,
    require_aware,
    require_code,
    require_id,
    require_metadata,
    require_positive_quantity,
    require_quantity,
    require_reference,
    require_unit_cost,
    require_uuid,
)
from inventory_kernel.exceptions import (
    InsufficientReservationError,
    InsufficientStockError,
    InventoryKernelError,
    NegativeStockViolationError,
    StockNotFoundError,
    TransferIntentNotFoundError,
    TransferStateError,
    ValidationError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.services.alert_engine import AlertEngine
from inventory_kernel.services.catalog_service import CatalogService
from inventory_kernel.services.event_dispatch import dispatch
from inventory_kernel.services.transaction_journal import TransactionJournal
from inventory_kernel.storage.base import InventoryStorage

logger = get_logger("services.stock_ledger")

ROLLBACK_SUFFIX = "_ROLLBACK"

_RECOVERABLE = (TransferStatus.SOURCE_DEBITED, TransferStatus.COMPENSATION_FAILED)


class StockLedger:
    """
    Versioned stock mutations with journaling.

    Contract:
        Every mutating method takes the acting user as the keyword
        ``actor``; None falls back to ``LedgerPolicy.default_actor``.
        Returns the StockRecord as written (or the TransferIntent for
        transfers).

    Non-goals:
        - Does NOT retry VersionMismatchError.
        - Does NOT make transfers atomic; see the module docstring.
    """

    def __init__(
        self,
        storage: InventoryStorage,
        catalog: CatalogService,
        journal: TransactionJournal,
        alerts: AlertEngine,
        publisher: EventPublisher | None = None,
        clock: Clock | None = None,
        policy: LedgerPolicy | None = None,
    ):
        self._storage = storage
        self._catalog = catalog
        self._journal = journal
        self._alerts = alerts
        self._publisher = publisher or NullEventPublisher()
        self._clock = clock or SystemClock()
        self._policy = policy or LedgerPolicy()

    @property
    def policy(self) -> LedgerPolicy:
        return self._policy

    def _actor(self, actor: str | None) -> str:
        if actor is None:
            return self._policy.default_actor
        if not isinstance(actor, str) or not actor.strip():
            raise ValidationError("actor", "must be a non-empty string", actor)
        return actor

    # -------------------------------------------------------------------------
    # Add
    # -------------------------------------------------------------------------

    def add(
        self,
        item_id: str,
        location_id: str,
        quantity: int,
        reference: str = "",
        *,
        actor: str | None = None,
        unit_cost: Decimal | None = None,
        lot_number: str | None = None,
        expiry_date: datetime | None = None,
        metadata: dict[str, str] | None = None,
    ) -> StockRecord:
        """Receive ``quantity`` units into a location.

        ``unit_cost`` on the inbound entry makes it a cost layer for FIFO,
        LIFO and weighted-average valuation.

        Postconditions: quantity += quantity; version = previous + 1, or a
            new record at version 1.  One inbound journal entry.

        Raises:
            ValidationError, ItemNotFoundError, LocationNotFoundError,
            VersionMismatchError, StorageError.
        """
        actor = self._actor(actor)
        require_positive_quantity(quantity)
        reference = require_reference(reference)
        cost = require_unit_cost(unit_cost) if unit_cost is not None else None
        if lot_number is not None:
            require_code(lot_number, "lot_number", MAX_LOT_NUMBER_LENGTH)
        if expiry_date is not None:
            require_aware(expiry_date, "expiry_date")
        extra_metadata = require_metadata(metadata)
        self._catalog.require_item(item_id)
        location = self._catalog.require_location(location_id)

        now = self._clock.now()
        current = self._storage.get_stock(item_id, location_id)
        if current is None:
            old_quantity = 0
            record = StockRecord(
                item_id=item_id,
                location_id=location_id,
                quantity=quantity,
                reserved=0,
                version=1,
                updated_at=now,
                updated_by=actor,
            )
            self._storage.create_stock(record)
        else:
            old_quantity = current.quantity
            record = current.next(
                quantity=current.quantity + quantity, updated_at=now, updated_by=actor,
            )
            self._storage.update_stock(record, expected_version=current.version)

        logger.info(
            "stock_added",
            extra={
                "item_id": item_id,
                "location_id": location_id,
                "quantity": quantity,
                "new_quantity": record.quantity,
                "version": record.version,
                "reference": reference,
                "actor": actor,
            },
        )
        entry = self._record_entry(
            JournalEntry(
                entry_id=uuid4(),
                movement_type=MovementType.INBOUND,
                item_id=item_id,
                quantity=quantity,
                reference=reference,
                created_at=now,
                created_by=actor,
                to_location=location_id,
                unit_cost=cost,
                lot_number=lot_number,
                expiry_date=expiry_date,
                metadata=extra_metadata,
            )
        )
        self._publish_change(
            record, old_quantity, MovementType.INBOUND, reference, actor, entry,
        )
        self._alerts.check_overstock(item_id, location)
        return record

    # -------------------------------------------------------------------------
    # Remove
    # -------------------------------------------------------------------------

    def remove(
        self,
        item_id: str,
        location_id: str,
        quantity: int,
        reference: str = "",
        *,
        actor: str | None = None,
    ) -> StockRecord:
        """Ship ``quantity`` units out of a location.

        Bounded by ``available``, so reserved units cannot be removed.

        Raises:
            InsufficientStockError: No record, or available < quantity.
            NegativeStockViolationError: Result would be negative and the
                policy forbids it.
            ValidationError, ItemNotFoundError, LocationNotFoundError,
            VersionMismatchError, StorageError.
        """
        actor = self._actor(actor)
        require_positive_quantity(quantity)
        reference = require_reference(reference)
        self._catalog.require_item(item_id)
        self._catalog.require_location(location_id)

        current = self._storage.get_stock(item_id, location_id)
        available = current.available if current is not None else 0
        if current is None or available < quantity:
            logger.warning(
                "insufficient_stock",
                extra={
                    "item_id": item_id,
                    "location_id": location_id,
                    "requested": quantity,
                    "available": available,
                },
            )
            raise InsufficientStockError(item_id, location_id, quantity, available)

        new_quantity = current.quantity - quantity
        if new_quantity < 0 and not self._policy.allow_negative_stock:
            raise NegativeStockViolationError(item_id, location_id, new_quantity)

        now = self._clock.now()
        record = current.next(quantity=new_quantity, updated_at=now, updated_by=actor)
        self._storage.update_stock(record, expected_version=current.version)

        logger.info(
            "stock_removed",
            extra={
                "item_id": item_id,
                "location_id": location_id,
                "quantity": quantity,
                "new_quantity": record.quantity,
                "version": record.version,
                "reference": reference,
                "actor": actor,
            },
        )
        entry = self._record_entry(
            JournalEntry(
                entry_id=uuid4(),
                movement_type=MovementType.OUTBOUND,
                item_id=item_id,
                quantity=quantity,
                reference=reference,
                created_at=now,
                created_by=actor,
                from_location=location_id,
            )
        )
        self._publish_change(
            record, current.quantity, MovementType.OUTBOUND, reference, actor, entry,
        )
        self._alerts.check_low_stock(item_id, location_id, record.quantity)
        return record

    # -------------------------------------------------------------------------
    # Transfer
    # -------------------------------------------------------------------------

    def transfer(
        self,
        item_id: str,
        from_location_id: str,
        to_location_id: str,
        quantity: int,
        reference: str = "",
        *,
        actor: str | None = None,
    ) -> TransferIntent:
        """Move stock between locations as remove(from) then add(to).

        If the add leg fails the source is credited back under
        ``reference + "_ROLLBACK"`` and the original error is re-raised.
        The intent records how far the transfer got.

        Raises:
            ValidationError: quantity <= 0 or from == to.
            Any error of ``remove`` (nothing moved) or ``add`` (after
            compensation was attempted).
        """
        actor = self._actor(actor)
        require_positive_quantity(quantity)
        reference = require_reference(reference)
        require_id(from_location_id, "from_location_id")
        require_id(to_location_id, "to_location_id")
        if from_location_id == to_location_id:
            raise ValidationError(
                "to_location_id", "must differ from from_location_id", to_location_id,
            )
        self._catalog.require_item(item_id)
        self._catalog.require_location(from_location_id)
        self._catalog.require_location(to_location_id)

        now = self._clock.now()
        intent = TransferIntent(
            intent_id=uuid4(),
            item_id=item_id,
            from_location=from_location_id,
            to_location=to_location_id,
            quantity=quantity,
            reference=reference,
            status=TransferStatus.PENDING,
            created_at=now,
            updated_at=now,
            created_by=actor,
        )
        self._storage.save_transfer_intent(intent)

        with LogContext.bind(transfer_id=str(intent.intent_id)):
            try:
                self.remove(item_id, from_location_id, quantity, reference, actor=actor)
            except InventoryKernelError as exc:
                self._advance(intent, TransferStatus.ABORTED, error=str(exc))
                raise
            intent = self._advance(intent, TransferStatus.SOURCE_DEBITED)

            try:
                self.add(item_id, to_location_id, quantity, reference, actor=actor)
            except InventoryKernelError as exc:
                self._compensate(intent, exc, actor)
                raise

            intent = self._advance(intent, TransferStatus.COMPLETED)
            done = self._clock.now()
            self._record_entry(
                JournalEntry(
                    entry_id=uuid4(),
                    movement_type=MovementType.TRANSFER,
                    item_id=item_id,
                    quantity=quantity,
                    reference=reference,
                    created_at=done,
                    created_by=actor,
                    from_location=from_location_id,
                    to_location=to_location_id,
                    metadata={"transfer_id": str(intent.intent_id)},
                )
            )
            dispatch(
                self._publisher.publish_item_transferred,
                ItemTransferred(
                    item_id=item_id,
                    from_location=from_location_id,
                    to_location=to_location_id,
                    quantity=quantity,
                    reference=reference,
                    timestamp=done,
                    actor=actor,
                    transfer_id=intent.intent_id,
                ),
            )
            logger.info(
                "stock_transferred",
                extra={
                    "item_id": item_id,
                    "from_location": from_location_id,
                    "to_location": to_location_id,
                    "quantity": quantity,
                    "reference": reference,
                    "actor": actor,
                },
            )
        return intent

    def _compensate(self, intent: TransferIntent, cause: Exception, actor: str) -> None:
        rollback_reference = intent.reference + ROLLBACK_SUFFIX
        try:
            self.add(
                intent.item_id,
                intent.from_location,
                intent.quantity,
                rollback_reference,
                actor=actor,
            )
        except InventoryKernelError:
            logger.error(
                "transfer_compensation_failed",
                extra={
                    "item_id": intent.item_id,
                    "from_location": intent.from_location,
                    "to_location": intent.to_location,
                    "quantity": intent.quantity,
                    "reference": rollback_reference,
                },
                exc_info=True,
            )
            self._advance(intent, TransferStatus.COMPENSATION_FAILED, error=str(cause))
        else:
            logger.warning(
                "transfer_compensated",
                extra={
                    "item_id": intent.item_id,
                    "from_location": intent.from_location,
                    "to_location": intent.to_location,
                    "quantity": intent.quantity,
                    "error": str(cause),
                },
            )
            self._advance(intent, TransferStatus.COMPENSATED, error=str(cause))

    def _advance(
        self, intent: TransferIntent, status: TransferStatus, error: str | None = None,
    ) -> TransferIntent:
        """Persist the next intent status; a failed save is logged only."""
        updated = intent.with_status(status, self._clock.now(), error=error or intent.error)
        try:
            self._storage.save_transfer_intent(updated)
        except InventoryKernelError:
            logger.error(
                "transfer_intent_write_failed",
                extra={"intent_id": str(intent.intent_id), "status": status.value},
                exc_info=True,
            )
        return updated

    def pending_transfers(self) -> list[TransferIntent]:
        """Transfers that did not reach a settled state.

        A ``pending`` intent means the process stopped before the remove
        leg's outcome was recorded.  ``recover_transfer`` refuses it; check
        the journal for an outbound entry with the transfer's reference to
        see whether the source was debited.
        """
        return self._storage.list_transfer_intents(
            [s for s in TransferStatus if s.is_open]
        )

    def recover_transfer(self, intent_id: UUID | str, *, actor: str | None = None) -> TransferIntent:
        """Credit the source back for a transfer stuck after its remove leg.

        Raises:
            TransferIntentNotFoundError: No such intent.
            TransferStateError: Intent is not source_debited or
                compensation_failed (including ``pending``, whose remove
                leg may never have run).
            Any error of ``add``.
        """
        actor = self._actor(actor)
        intent_uuid = require_uuid(intent_id, "intent_id")
        intent = self._storage.get_transfer_intent(intent_uuid)
        if intent is None:
            raise TransferIntentNotFoundError(str(intent_uuid))
        if intent.status not in _RECOVERABLE:
            raise TransferStateError(str(intent_uuid), intent.status.value, "recover")

        with LogContext.bind(transfer_id=str(intent_uuid)):
            self.add(
                intent.item_id,
                intent.from_location,
                intent.quantity,
                intent.reference + ROLLBACK_SUFFIX,
                actor=actor,
            )
            recovered = intent.with_status(
                TransferStatus.COMPENSATED, self._clock.now(), error=intent.error,
            )
            self._storage.save_transfer_intent(recovered)
            logger.warning(
                "transfer_recovered",
                extra={"item_id": intent.item_id, "from_location": intent.from_location},
            )
        return recovered

    # -------------------------------------------------------------------------
    # Adjust
    # -------------------------------------------------------------------------

    def adjust(
        self,
        item_id: str,
        location_id: str,
        new_quantity: int,
        reference: str = "",
        *,
        actor: str | None = None,
    ) -> StockRecord:
        """Set on-hand quantity to an absolute value (stock count).

        The journal entry records the delta (new - old), which may be
        negative.  Reservations are left as they are, even if the new
        quantity is below them.

        Raises:
            ValidationError: Negative target while the policy forbids it.
            ItemNotFoundError, LocationNotFoundError, VersionMismatchError,
            StorageError.
        """
        actor = self._actor(actor)
        require_quantity(new_quantity, "new_quantity")
        if new_quantity < 0 and not self._policy.allow_negative_stock:
            raise ValidationError("new_quantity", "must not be negative", new_quantity)
        reference = require_reference(reference)
        self._catalog.require_item(item_id)
        self._catalog.require_location(location_id)

        now = self._clock.now()
        current = self._storage.get_stock(item_id, location_id)
        if current is None:
            old_quantity = 0
            record = StockRecord(
                item_id=item_id,
                location_id=location_id,
                quantity=new_quantity,
                reserved=0,
                version=1,
                updated_at=now,
                updated_by=actor,
            )
            self._storage.create_stock(record)
        else:
            old_quantity = current.quantity
            record = current.next(quantity=new_quantity, updated_at=now, updated_by=actor)
            self._storage.update_stock(record, expected_version=current.version)

        delta = new_quantity - old_quantity
        logger.info(
            "stock_adjusted",
            extra={
                "item_id": item_id,
                "location_id": location_id,
                "old_quantity": old_quantity,
                "new_quantity": new_quantity,
                "delta": delta,
                "version": record.version,
                "reference": reference,
                "actor": actor,
            },
        )
        entry = self._record_entry(
            JournalEntry(
                entry_id=uuid4(),
                movement_type=MovementType.ADJUST,
                item_id=item_id,
                quantity=delta,
                reference=reference,
                created_at=now,
                created_by=actor,
                to_location=location_id,
            )
        )
        self._publish_change(
            record, old_quantity, MovementType.ADJUST, reference, actor, entry,
        )
        self._alerts.check_discrepancy(item_id, location_id, old_quantity, new_quantity)
        return record

    # -------------------------------------------------------------------------
    # Reservations
    # -------------------------------------------------------------------------

    def reserve(
        self,
        item_id: str,
        location_id: str,
        quantity: int,
        reference: str = "",
        *,
        actor: str | None = None,
    ) -> StockRecord:
        """Hold ``quantity`` units against future removal.

        Raises:
            InsufficientStockError: No record, or quantity > available.
        """
        actor = self._actor(actor)
        require_positive_quantity(quantity)
        reference = require_reference(reference)
        self._catalog.require_item(item_id)
        self._catalog.require_location(location_id)

        current = self._storage.get_stock(item_id, location_id)
        available = current.available if current is not None else 0
        if current is None or quantity > available:
            logger.warning(
                "insufficient_stock_for_reservation",
                extra={
                    "item_id": item_id,
                    "location_id": location_id,
                    "requested": quantity,
                    "available": available,
                },
            )
            raise InsufficientStockError(item_id, location_id, quantity, available)

        record = current.next(
            reserved=current.reserved + quantity,
            updated_at=self._clock.now(),
            updated_by=actor,
        )
        self._storage.update_stock(record, expected_version=current.version)
        logger.info(
            "stock_reserved",
            extra={
                "item_id": item_id,
                "location_id": location_id,
                "quantity": quantity,
                "reserved": record.reserved,
                "version": record.version,
                "reference": reference,
                "actor": actor,
            },
        )
        return record

    def release_reservation(
        self,
        item_id: str,
        location_id: str,
        quantity: int,
        reference: str = "",
        *,
        actor: str | None = None,
    ) -> StockRecord:
        """Return reserved units to available.

        Raises:
            InsufficientReservationError: No record, or quantity > reserved.
        """
        actor = self._actor(actor)
        require_positive_quantity(quantity)
        reference = require_reference(reference)
        self._catalog.require_item(item_id)
        self._catalog.require_location(location_id)

        current = self._storage.get_stock(item_id, location_id)
        reserved = current.reserved if current is not None else 0
        if current is None or quantity > reserved:
            raise InsufficientReservationError(item_id, location_id, quantity, reserved)

        record = current.next(
            reserved=current.reserved - quantity,
            updated_at=self._clock.now(),
            updated_by=actor,
        )
        self._storage.update_stock(record, expected_version=current.version)
        logger.info(
            "reservation_released",
            extra={
                "item_id": item_id,
                "location_id": location_id,
                "quantity": quantity,
                "reserved": record.reserved,
                "version": record.version,
                "reference": reference,
                "actor": actor,
            },
        )
        return record

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_stock(self, item_id: str, location_id: str) -> StockRecord:
        self._catalog.require_item(item_id)
        self._catalog.require_location(location_id)
        record = self._storage.get_stock(item_id, location_id)
        if record is None:
            raise StockNotFoundError(item_id, location_id)
        return record

    def get_total_stock(self, item_id: str) -> int:
        """On-hand quantity of an item summed over every location."""
        self._catalog.require_item(item_id)
        return sum(r.quantity for r in self._storage.list_stock_by_item(item_id))

    def get_stock_by_location(self, location_id: str) -> list[StockRecord]:
        self._catalog.require_location(location_id)
        return self._storage.list_stock_by_location(location_id)

    # -------------------------------------------------------------------------
    # Secondary writes
    # -------------------------------------------------------------------------

    def _record_entry(self, entry: JournalEntry) -> JournalEntry | None:
        try:
            return self._journal.record(entry)
        except InventoryKernelError:
            logger.error(
                "journal_write_failed",
                extra={
                    "entry_id": str(entry.entry_id),
                    "movement_type": entry.movement_type.value,
                    "item_id": entry.item_id,
                    "quantity": entry.quantity,
                    "reference": entry.reference,
                },
                exc_info=True,
            )
            return None

    def _publish_change(
        self,
        record: StockRecord,
        old_quantity: int,
        change_type: MovementType,
        reference: str,
        actor: str,
        entry: JournalEntry | None,
    ) -> None:
        dispatch(
            self._publisher.publish_stock_changed,
            StockChanged(
                item_id=record.item_id,
                location_id=record.location_id,
                old_quantity=old_quantity,
                new_quantity=record.quantity,
                change_type=change_type,
                reference=reference,
                timestamp=record.updated_at,
                actor=actor,
                entry_id=entry.entry_id if entry is not None else None,
            ),
        )
