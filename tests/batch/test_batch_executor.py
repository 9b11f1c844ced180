"""
Tests for BatchExecutor: best-effort execution and status lookup.
"""

from uuid import uuid4

import pytest

from inventory_batch import BatchExecutor, InMemoryBatchStore, SqlBatchStore
from inventory_batch.domain.types import (
    BatchStatus,
    InventoryOperation,
    OperationType,
)
from inventory_batch.services.executor import UNHANDLED_ERROR_CODE
from inventory_kernel.exceptions import BatchNotFoundError, StorageError, ValidationError


@pytest.fixture
def executor(system, clock):
    return BatchExecutor(system.ledger, clock=clock)


def _op(op_type, item_id="WIDGET", location_id="L1", quantity=1, **kwargs):
    return InventoryOperation(op_type, item_id, location_id, quantity, **kwargs)


class TestExecute:

    def test_all_operations_succeed(self, system, executor):
        batch = executor.execute(
            [
                _op(OperationType.ADD, quantity=10, reference="PO-1"),
                _op(OperationType.REMOVE, quantity=3, reference="SO-1"),
                _op(OperationType.TRANSFER, quantity=2, to_location_id="L2"),
                _op(OperationType.ADJUST, location_id="L2", quantity=5),
            ],
            actor="loader",
        )
        assert batch.status == BatchStatus.COMPLETED
        assert (batch.success_count, batch.failure_count, batch.total) == (4, 0, 4)
        assert batch.errors == ()
        assert batch.created_by == "loader"
        assert system.ledger.get_stock("WIDGET", "L1").quantity == 5
        assert system.ledger.get_stock("WIDGET", "L2").quantity == 5

    def test_failures_do_not_undo_earlier_successes(self, system, executor):
        batch = executor.execute(
            [
                _op(OperationType.ADD, quantity=5),
                _op(OperationType.REMOVE, quantity=50),
                _op(OperationType.TRANSFER, quantity=1),
                _op("teleport"),
                _op(OperationType.ADD, item_id="GADGET", quantity=2),
            ]
        )
        assert batch.status == BatchStatus.FAILED
        assert (batch.success_count, batch.failure_count) == (2, 3)
        assert batch.failed_indexes == (1, 2, 3)
        assert [e.error_code for e in batch.errors] == [
            "INSUFFICIENT_STOCK",
            "VALIDATION_ERROR",
            "VALIDATION_ERROR",
        ]
        assert system.ledger.get_stock("WIDGET", "L1").quantity == 5
        assert system.ledger.get_stock("GADGET", "L1").quantity == 2

    def test_unknown_item_reported_by_code(self, executor):
        batch = executor.execute([_op(OperationType.ADD, item_id="GHOST")])
        [error] = batch.errors
        assert error.operation_index == 0
        assert error.error_code == "ITEM_NOT_FOUND"
        assert "GHOST" in error.message

    def test_unexpected_exception_is_recorded(self, system, executor, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(system.ledger, "add", boom)
        batch = executor.execute([_op(OperationType.ADD), _op(OperationType.ADJUST, quantity=7)])
        assert batch.failed_indexes == (0,)
        assert batch.errors[0].error_code == UNHANDLED_ERROR_CODE
        assert batch.errors[0].message == "disk on fire"
        assert system.ledger.get_stock("WIDGET", "L1").quantity == 7

    def test_empty_batch_completes(self, executor):
        batch = executor.execute([])
        assert batch.status == BatchStatus.COMPLETED
        assert (batch.success_count, batch.failure_count) == (0, 0)

    def test_default_actor_from_policy(self, executor):
        assert executor.execute([]).created_by == "system"

    @pytest.mark.parametrize(
        "operations",
        [None, "add WIDGET", {"op": "add"}, [{"op_type": "add"}]],
    )
    def test_rejects_non_operation_input(self, executor, operations):
        with pytest.raises(ValidationError) as exc_info:
            executor.execute(operations)
        assert exc_info.value.field == "operations"


class TestLogging:

    def test_batch_id_bound_to_operation_logs(self, executor, captured_logs):
        batch = executor.execute(
            [_op(OperationType.ADD, quantity=3), _op(OperationType.REMOVE, quantity=9)],
            actor="loader",
        )
        logs = captured_logs()
        added = [r for r in logs if r["message"] == "stock_added"]
        assert added and added[0]["batch_id"] == str(batch.batch_id)
        assert added[0]["actor_id"] == "loader"

        [failed] = [r for r in logs if r["message"] == "batch_operation_failed"]
        assert failed["level"] == "WARNING"
        assert failed["operation_index"] == 1
        assert failed["error_code"] == "INSUFFICIENT_STOCK"

        [finished] = [r for r in logs if r["message"] == "batch_finished"]
        assert finished["status"] == "failed"
        assert finished["success_count"] == 1

    def test_context_cleared_after_batch(self, executor, captured_logs, system):
        executor.execute([])
        system.ledger.add("WIDGET", "L1", 1)
        [added] = [r for r in captured_logs() if r["message"] == "stock_added"]
        assert "batch_id" not in added


class TestBatchStatus:

    def test_lookup_by_uuid_and_string(self, executor):
        batch = executor.execute([_op(OperationType.ADD)])
        assert executor.get_batch_status(batch.batch_id) == batch
        assert executor.get_batch_status(str(batch.batch_id)) == batch

    @pytest.mark.parametrize("batch_id", [None, "", "   "])
    def test_blank_id(self, executor, batch_id):
        with pytest.raises(ValidationError):
            executor.get_batch_status(batch_id)

    def test_malformed_id(self, executor):
        with pytest.raises(ValidationError):
            executor.get_batch_status("not-a-uuid")

    def test_unknown_id(self, executor):
        with pytest.raises(BatchNotFoundError):
            executor.get_batch_status(uuid4())

    def test_shared_store_across_executors(self, system, clock):
        store = InMemoryBatchStore()
        batch = BatchExecutor(system.ledger, store, clock).execute([_op(OperationType.ADD)])
        other = BatchExecutor(system.ledger, store, clock)
        assert other.get_batch_status(batch.batch_id).success_count == 1


class TestSqlBatchStore:

    def test_round_trip(self, sql_system, sql_storage, clock):
        store = SqlBatchStore(sql_storage.engine)
        executor = BatchExecutor(sql_system.ledger, store, clock)
        batch = executor.execute(
            [
                _op(OperationType.ADD, quantity=4, reference="PO-9"),
                _op(OperationType.TRANSFER, quantity=1, to_location_id="L2"),
                _op("teleport"),
            ]
        )
        loaded = SqlBatchStore(sql_storage.engine).get(batch.batch_id)
        assert loaded == batch
        assert loaded.operations[2].op_type == "teleport"
        assert loaded.operations[1].op_type == OperationType.TRANSFER
        assert loaded.created_at.tzinfo is not None

    def test_missing_batch(self, sql_storage):
        assert SqlBatchStore(sql_storage.engine).get(uuid4()) is None


class BrokenStore(InMemoryBatchStore):
    def save(self, batch):
        raise StorageError("save_batch", "db down")


class TestUnsavedResult:

    def test_store_failure_still_returns_counts(self, system, clock, captured_logs):
        executor = BatchExecutor(system.ledger, BrokenStore(), clock)
        batch = executor.execute(
            [_op(OperationType.ADD, quantity=5), _op(OperationType.REMOVE, quantity=50)],
        )
        assert (batch.success_count, batch.failure_count) == (1, 1)
        assert system.ledger.get_stock("WIDGET", "L1").quantity == 5

        [record] = [r for r in captured_logs() if r["message"] == "batch_save_failed"]
        assert record["level"] == "ERROR"
        assert record["error_code"] == "STORAGE_ERROR"
        assert record["batch_id"] == str(batch.batch_id)
        assert any(r["message"] == "batch_finished" for r in captured_logs())

        with pytest.raises(BatchNotFoundError):
            executor.get_batch_status(batch.batch_id)
