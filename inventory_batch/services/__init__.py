from inventory_batch.services.batch_store import (
    BatchStore,
    InMemoryBatchStore,
    SqlBatchStore,
)
from inventory_batch.services.executor import BatchExecutor

__all__ = ["BatchExecutor", "BatchStore", "InMemoryBatchStore", "SqlBatchStore"]
