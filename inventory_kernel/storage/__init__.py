"""Storage backends behind the InventoryStorage contract."""

from inventory_kernel.storage.base import InventoryStorage
from inventory_kernel.storage.memory import InMemoryStorage
from inventory_kernel.storage.sql import SqlAlchemyStorage

__all__ = ["InMemoryStorage", "InventoryStorage", "SqlAlchemyStorage"]
