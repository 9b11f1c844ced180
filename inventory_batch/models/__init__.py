"""
inventory_batch.models -- ORM model for batch results.

Architecture: inventory_batch/models. Imports from inventory_kernel.db.base only.
"""

from inventory_batch.models.batch import BatchOperationModel

__all__ = ["BatchOperationModel"]
