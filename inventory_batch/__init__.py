"""
inventory_batch -- Best-effort batch execution of stock operations.

Runs a list of add / remove / transfer / adjust operations through the
StockLedger one by one, recording per-operation failures without undoing
earlier successes.

Architecture:
    inventory_batch/ is a top-level package.  Nothing in kernel/, engines/
    or services/ imports from inventory_batch.
"""

from inventory_batch.services import (
    BatchExecutor,
    BatchStore,
    InMemoryBatchStore,
    SqlBatchStore,
)

__all__ = ["BatchExecutor", "BatchStore", "InMemoryBatchStore", "SqlBatchStore"]
