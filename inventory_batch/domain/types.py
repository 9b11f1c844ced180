"""
inventory_batch.domain.types -- Pure frozen dataclasses for batch stock operations.

ZERO I/O.  Frozen dataclasses with enum status fields and tuples for
immutable collections.

Invariants enforced:
    - A BatchOperation is COMPLETED only when failure_count == 0; any failed
      operation makes the whole batch FAILED, even with partial success.
    - success_count + failure_count == len(operations) once executed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class OperationType(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    TRANSFER = "transfer"
    ADJUST = "adjust"


class BatchStatus(str, Enum):
    """Batch-level status."""

    PENDING = "pending"  # Accepted, not yet executed
    COMPLETED = "completed"  # Every operation succeeded
    FAILED = "failed"  # At least one operation failed


@dataclass(frozen=True)
class InventoryOperation:
    """One requested stock operation.

    ``op_type`` is kept as given; an unrecognised value fails that operation
    alone when the batch runs.  For ``adjust`` the quantity is the new
    absolute on-hand figure.
    """

    op_type: OperationType | str
    item_id: str
    location_id: str
    quantity: int
    reference: str = ""
    to_location_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        op_type = self.op_type.value if isinstance(self.op_type, OperationType) else self.op_type
        return {
            "op_type": op_type,
            "item_id": self.item_id,
            "location_id": self.location_id,
            "quantity": self.quantity,
            "reference": self.reference,
            "to_location_id": self.to_location_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InventoryOperation:
        raw_type = data["op_type"]
        try:
            op_type: OperationType | str = OperationType(raw_type)
        except ValueError:
            op_type = raw_type
        return cls(
            op_type=op_type,
            item_id=data["item_id"],
            location_id=data["location_id"],
            quantity=data["quantity"],
            reference=data.get("reference", ""),
            to_location_id=data.get("to_location_id"),
        )


@dataclass(frozen=True)
class BatchOperationError:
    """Why the operation at ``operation_index`` failed."""

    operation_index: int  # 0-indexed position in the batch
    error_code: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation_index": self.operation_index,
            "error_code": self.error_code,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BatchOperationError:
        return cls(
            operation_index=data["operation_index"],
            error_code=data["error_code"],
            message=data["message"],
        )


@dataclass(frozen=True)
class BatchOperation:
    """Immutable result of executing a batch.

    The binary ``status`` hides partial success; read the counts and
    ``errors`` for detail.
    """

    batch_id: UUID
    status: BatchStatus
    operations: tuple[InventoryOperation, ...]
    success_count: int
    failure_count: int
    errors: tuple[BatchOperationError, ...]
    created_at: datetime
    created_by: str
    completed_at: datetime | None = None

    @property
    def total(self) -> int:
        return len(self.operations)

    @property
    def failed_indexes(self) -> tuple[int, ...]:
        return tuple(e.operation_index for e in self.errors)
