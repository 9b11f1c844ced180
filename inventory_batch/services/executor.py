"""
BatchExecutor -- best-effort execution of a list of stock operations.

Contract:
    ``execute()`` runs each operation against the StockLedger in order.
    A failed operation is recorded and the next one still runs; earlier
    successes are never undone.  ``get_batch_status()`` reads a saved result.

Architecture: inventory_batch/services.  Imports from inventory_batch.domain,
    the batch store, and kernel services.  The kernel never imports this.

Invariants enforced:
    - Status is COMPLETED iff failure_count == 0, FAILED otherwise.
    - One BatchOperationError per failed operation, in operation order.
    - success_count + failure_count == number of operations.
    - No all-or-nothing mode: there is no cross-operation rollback.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from uuid import UUID, uuid4

from inventory_batch.domain.types import (
    BatchOperation,
    BatchOperationError,
    BatchStatus,
    InventoryOperation,
    OperationType,
)
from inventory_batch.services.batch_store import BatchStore, InMemoryBatchStore
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.validation import require_uuid
from inventory_kernel.exceptions import (
    BatchNotFoundError,
    InventoryKernelError,
    ValidationError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.services.stock_ledger import StockLedger

logger = get_logger("batch.executor")

UNHANDLED_ERROR_CODE = "UNHANDLED_EXCEPTION"


class BatchExecutor:
    """Best-effort batch runner over a StockLedger.

    Non-goals:
        - Does NOT retry failed operations.
        - Does NOT run operations concurrently.
    """

    def __init__(
        self,
        ledger: StockLedger,
        store: BatchStore | None = None,
        clock: Clock | None = None,
    ):
        self._ledger = ledger
        self._store = store or InMemoryBatchStore()
        self._clock = clock or SystemClock()

    # -------------------------------------------------------------------------
    # Execute
    # -------------------------------------------------------------------------

    def execute(
        self,
        operations: Sequence[InventoryOperation],
        *,
        actor: str | None = None,
    ) -> BatchOperation:
        """Run every operation; return and save the batch result.

        Saving is a secondary write: a store failure is logged and the batch
        is still returned, but ``get_batch_status`` will not find it.

        Raises:
            ValidationError: ``operations`` is not a list or tuple of
                InventoryOperation.  Per-operation problems never raise.
        """
        if not isinstance(operations, (list, tuple)) or not all(
            isinstance(op, InventoryOperation) for op in operations
        ):
            raise ValidationError(
                "operations", "must be a sequence of InventoryOperation", operations,
            )
        actor = actor or self._ledger.policy.default_actor
        batch_id = uuid4()
        created_at = self._clock.now()
        start_time = time.monotonic()

        succeeded = 0
        errors: list[BatchOperationError] = []

        with LogContext.bind(batch_id=str(batch_id), actor_id=actor):
            logger.info(
                "batch_started",
                extra={"batch_id": str(batch_id), "operation_count": len(operations)},
            )
            for index, operation in enumerate(operations):
                try:
                    self._run(operation, actor)
                except InventoryKernelError as exc:
                    errors.append(BatchOperationError(index, exc.code, str(exc)))
                    logger.warning(
                        "batch_operation_failed",
                        extra={
                            "operation_index": index,
                            "error_code": exc.code,
                            "error": str(exc),
                        },
                    )
                except Exception as exc:
                    errors.append(BatchOperationError(index, UNHANDLED_ERROR_CODE, str(exc)))
                    logger.error(
                        "batch_operation_crashed",
                        extra={"operation_index": index},
                        exc_info=True,
                    )
                else:
                    succeeded += 1

            status = BatchStatus.FAILED if errors else BatchStatus.COMPLETED
            batch = BatchOperation(
                batch_id=batch_id,
                status=status,
                operations=tuple(operations),
                success_count=succeeded,
                failure_count=len(errors),
                errors=tuple(errors),
                created_at=created_at,
                created_by=actor,
                completed_at=self._clock.now(),
            )
            try:
                self._store.save(batch)
            except InventoryKernelError as exc:
                # Operations are already committed.
                logger.error(
                    "batch_save_failed",
                    extra={
                        "batch_id": str(batch_id),
                        "error_code": exc.code,
                        "error": str(exc),
                    },
                )
            logger.info(
                "batch_finished",
                extra={
                    "batch_id": str(batch_id),
                    "status": status.value,
                    "success_count": succeeded,
                    "failure_count": len(errors),
                    "duration_ms": int((time.monotonic() - start_time) * 1000),
                },
            )
        return batch

    def _run(self, operation: InventoryOperation, actor: str) -> None:
        op_type = operation.op_type
        if op_type == OperationType.ADD:
            self._ledger.add(
                operation.item_id, operation.location_id, operation.quantity,
                operation.reference, actor=actor,
            )
        elif op_type == OperationType.REMOVE:
            self._ledger.remove(
                operation.item_id, operation.location_id, operation.quantity,
                operation.reference, actor=actor,
            )
        elif op_type == OperationType.TRANSFER:
            if not operation.to_location_id:
                raise ValidationError(
                    "to_location_id", "is required for transfer operations", None,
                )
            self._ledger.transfer(
                operation.item_id, operation.location_id, operation.to_location_id,
                operation.quantity, operation.reference, actor=actor,
            )
        elif op_type == OperationType.ADJUST:
            self._ledger.adjust(
                operation.item_id, operation.location_id, operation.quantity,
                operation.reference, actor=actor,
            )
        else:
            raise ValidationError("op_type", f"unknown operation type: {op_type}", op_type)

    # -------------------------------------------------------------------------
    # Query
    # -------------------------------------------------------------------------

    def get_batch_status(self, batch_id: UUID | str) -> BatchOperation:
        """Saved result of an earlier ``execute()``.

        Raises:
            ValidationError: Empty or malformed batch id.
            BatchNotFoundError: No batch with that id.
        """
        if batch_id is None or (isinstance(batch_id, str) and not batch_id.strip()):
            raise ValidationError("batch_id", "is required", batch_id)
        batch_uuid = require_uuid(batch_id, "batch_id")
        batch = self._store.get(batch_uuid)
        if batch is None:
            raise BatchNotFoundError(str(batch_uuid))
        return batch
