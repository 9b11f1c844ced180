"""
Kernel services.

Stateful services over an InventoryStorage backend.  Each is constructed with
its collaborators passed in; ``inventory_services.inventory_system`` wires
them together.
"""

from inventory_kernel.services.alert_engine import ALL_LOCATIONS, AlertEngine
from inventory_kernel.services.catalog_service import CatalogService
from inventory_kernel.services.lot_service import LotService
from inventory_kernel.services.stock_ledger import ROLLBACK_SUFFIX, StockLedger
from inventory_kernel.services.transaction_journal import TransactionJournal

__all__ = [
    "ALL_LOCATIONS",
    "AlertEngine",
    "CatalogService",
    "LotService",
    "ROLLBACK_SUFFIX",
    "StockLedger",
    "TransactionJournal",
]
