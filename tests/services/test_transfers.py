"""
Tests for StockLedger.transfer and transfer recovery.

A transfer is remove(from) then add(to) with a durable TransferIntent
tracking how far it got.  FlakyStorage lets a test refuse stock writes for
chosen locations to drive the compensation paths.
"""

from uuid import uuid4

import pytest

from inventory_kernel.domain.events import ItemTransferred
from inventory_kernel.domain.types import MovementType, TransferIntent, TransferStatus
from inventory_kernel.exceptions import (
    InsufficientStockError,
    StorageError,
    TransferIntentNotFoundError,
    TransferStateError,
    ValidationError,
)
from inventory_kernel.services.stock_ledger import ROLLBACK_SUFFIX
from inventory_kernel.storage.memory import InMemoryStorage


class FlakyStorage(InMemoryStorage):
    """InMemoryStorage whose stock writes can be rationed per location.

    ``allowed_writes[location_id]`` is the number of further stock writes
    permitted there; locations not listed are unlimited.
    """

    def __init__(self) -> None:
        super().__init__()
        self.allowed_writes: dict[str, int] = {}

    def _spend(self, location_id: str, operation: str) -> None:
        if location_id not in self.allowed_writes:
            return
        if self.allowed_writes[location_id] <= 0:
            raise StorageError(operation, f"writes to {location_id} refused")
        self.allowed_writes[location_id] -= 1

    def create_stock(self, record):
        self._spend(record.location_id, "create_stock")
        super().create_stock(record)

    def update_stock(self, record, expected_version):
        self._spend(record.location_id, "update_stock")
        super().update_stock(record, expected_version)


@pytest.fixture
def storage():
    return FlakyStorage()


@pytest.fixture
def stocked(system):
    system.ledger.add("WIDGET", "L1", 100, "PO-1", actor="alice")
    return system


class TestTransferSuccess:

    def test_moves_stock(self, stocked):
        intent = stocked.ledger.transfer("WIDGET", "L1", "L2", 40, "T-1", actor="bob")
        assert intent.status == TransferStatus.COMPLETED
        assert stocked.ledger.get_stock("WIDGET", "L1").quantity == 60
        assert stocked.ledger.get_stock("WIDGET", "L2").quantity == 40
        assert stocked.ledger.get_total_stock("WIDGET") == 100

    def test_journal_has_both_legs_and_transfer_entry(self, stocked):
        intent = stocked.ledger.transfer("WIDGET", "L1", "L2", 40, "T-1", actor="bob")
        transfer, inbound, outbound, _receipt = stocked.journal.history_for_item("WIDGET")
        assert transfer.movement_type == MovementType.TRANSFER
        assert (transfer.from_location, transfer.to_location) == ("L1", "L2")
        assert transfer.metadata == {"transfer_id": str(intent.intent_id)}
        assert inbound.movement_type == MovementType.INBOUND
        assert inbound.to_location == "L2"
        assert outbound.movement_type == MovementType.OUTBOUND
        assert outbound.from_location == "L1"

    def test_intent_persisted_as_completed(self, stocked, storage):
        intent = stocked.ledger.transfer("WIDGET", "L1", "L2", 40, "T-1")
        saved = storage.get_transfer_intent(intent.intent_id)
        assert saved.status == TransferStatus.COMPLETED
        assert saved.created_by == "system"
        assert stocked.ledger.pending_transfers() == []

    def test_publishes_item_transferred(self, stocked, publisher):
        intent = stocked.ledger.transfer("WIDGET", "L1", "L2", 5, "T-1", actor="bob")
        [event] = publisher.of_type(ItemTransferred)
        assert event.transfer_id == intent.intent_id
        assert event.quantity == 5
        assert event.actor == "bob"

    def test_leg_logs_carry_transfer_id(self, stocked, captured_logs):
        intent = stocked.ledger.transfer("WIDGET", "L1", "L2", 5, "T-1")
        records = captured_logs()
        removed = [r for r in records if r["message"] == "stock_removed"]
        assert removed[0]["transfer_id"] == str(intent.intent_id)
        assert any(r["message"] == "stock_transferred" for r in records)


class TestTransferRejected:

    def test_same_location_rejected(self, stocked, storage):
        with pytest.raises(ValidationError) as exc_info:
            stocked.ledger.transfer("WIDGET", "L1", "L1", 5)
        assert exc_info.value.field == "to_location_id"
        assert storage.list_transfer_intents() == []

    def test_zero_quantity_rejected(self, stocked):
        with pytest.raises(ValidationError):
            stocked.ledger.transfer("WIDGET", "L1", "L2", 0)

    def test_insufficient_source_aborts(self, stocked, storage):
        with pytest.raises(InsufficientStockError):
            stocked.ledger.transfer("WIDGET", "L1", "L2", 500, "T-9")
        [intent] = storage.list_transfer_intents()
        assert intent.status == TransferStatus.ABORTED
        assert "Insufficient stock" in intent.error
        assert stocked.ledger.get_stock("WIDGET", "L1").quantity == 100
        assert storage.get_stock("WIDGET", "L2") is None
        assert stocked.ledger.pending_transfers() == []


class TestCompensation:

    def test_failed_destination_credits_source_back(self, stocked, storage, captured_logs):
        storage.allowed_writes["L2"] = 0
        with pytest.raises(StorageError):
            stocked.ledger.transfer("WIDGET", "L1", "L2", 30, "T-2", actor="bob")

        assert stocked.ledger.get_stock("WIDGET", "L1").quantity == 100
        assert storage.get_stock("WIDGET", "L2") is None
        [intent] = storage.list_transfer_intents()
        assert intent.status == TransferStatus.COMPENSATED
        assert "refused" in intent.error

        rollback = stocked.journal.history_for_item("WIDGET")[0]
        assert rollback.movement_type == MovementType.INBOUND
        assert rollback.reference == "T-2" + ROLLBACK_SUFFIX
        assert rollback.to_location == "L1"

        compensated = [r for r in captured_logs() if r["message"] == "transfer_compensated"]
        assert compensated[0]["level"] == "WARNING"

    def test_failed_compensation_leaves_open_intent(self, stocked, storage, captured_logs):
        storage.allowed_writes["L2"] = 0
        storage.allowed_writes["L1"] = 1  # the remove leg only
        with pytest.raises(StorageError):
            stocked.ledger.transfer("WIDGET", "L1", "L2", 30, "T-3")

        assert stocked.ledger.get_stock("WIDGET", "L1").quantity == 70
        [intent] = stocked.ledger.pending_transfers()
        assert intent.status == TransferStatus.COMPENSATION_FAILED
        assert any(r["message"] == "transfer_compensation_failed" for r in captured_logs())

    def test_recover_after_failed_compensation(self, stocked, storage):
        storage.allowed_writes["L2"] = 0
        storage.allowed_writes["L1"] = 1
        with pytest.raises(StorageError):
            stocked.ledger.transfer("WIDGET", "L1", "L2", 30, "T-3")
        storage.allowed_writes.clear()

        [stuck] = stocked.ledger.pending_transfers()
        recovered = stocked.ledger.recover_transfer(str(stuck.intent_id), actor="ops")
        assert recovered.status == TransferStatus.COMPENSATED
        assert stocked.ledger.get_stock("WIDGET", "L1").quantity == 100
        assert stocked.ledger.pending_transfers() == []
        latest = stocked.journal.history_for_item("WIDGET")[0]
        assert latest.reference == "T-3" + ROLLBACK_SUFFIX
        assert latest.created_by == "ops"


class TestRecoverTransfer:

    def test_recover_source_debited_intent(self, stocked, storage, clock):
        stocked.ledger.remove("WIDGET", "L1", 20, "T-4")
        now = clock.now()
        stuck = TransferIntent(
            intent_id=uuid4(),
            item_id="WIDGET",
            from_location="L1",
            to_location="L2",
            quantity=20,
            reference="T-4",
            status=TransferStatus.SOURCE_DEBITED,
            created_at=now,
            updated_at=now,
            created_by="bob",
        )
        storage.save_transfer_intent(stuck)
        assert stocked.ledger.pending_transfers() == [stuck]

        stocked.ledger.recover_transfer(stuck.intent_id)
        assert stocked.ledger.get_stock("WIDGET", "L1").quantity == 100
        assert storage.get_transfer_intent(stuck.intent_id).status == TransferStatus.COMPENSATED

    def test_pending_intent_is_listed_but_not_recoverable(self, stocked, storage, clock):
        now = clock.now()
        pending = TransferIntent(
            intent_id=uuid4(),
            item_id="WIDGET",
            from_location="L1",
            to_location="L2",
            quantity=20,
            reference="T-5",
            status=TransferStatus.PENDING,
            created_at=now,
            updated_at=now,
            created_by="bob",
        )
        storage.save_transfer_intent(pending)
        assert stocked.ledger.pending_transfers() == [pending]

        with pytest.raises(TransferStateError) as exc_info:
            stocked.ledger.recover_transfer(pending.intent_id)
        assert exc_info.value.status == "pending"
        assert stocked.ledger.get_stock("WIDGET", "L1").quantity == 100
        assert storage.get_transfer_intent(pending.intent_id).status == TransferStatus.PENDING

    def test_completed_transfer_cannot_be_recovered(self, stocked):
        intent = stocked.ledger.transfer("WIDGET", "L1", "L2", 5)
        with pytest.raises(TransferStateError) as exc_info:
            stocked.ledger.recover_transfer(intent.intent_id)
        assert exc_info.value.status == "completed"

    def test_unknown_intent(self, stocked):
        with pytest.raises(TransferIntentNotFoundError):
            stocked.ledger.recover_transfer(uuid4())

    def test_malformed_intent_id(self, stocked):
        with pytest.raises(ValidationError):
            stocked.ledger.recover_transfer("not-a-uuid")
