"""
inventory_batch.domain -- Pure types for batch stock operations.

ZERO I/O.  All types are frozen dataclasses.
"""

from inventory_batch.domain.types import (
    BatchOperation,
    BatchOperationError,
    BatchStatus,
    InventoryOperation,
    OperationType,
)

__all__ = [
    "BatchOperation",
    "BatchOperationError",
    "BatchStatus",
    "InventoryOperation",
    "OperationType",
]
