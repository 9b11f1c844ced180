"""SQLAlchemy ORM models for the SQL storage backend."""

from inventory_kernel.models.alert import StockAlertModel, TransferIntentModel
from inventory_kernel.models.catalog import ItemModel, LocationModel, LotModel
from inventory_kernel.models.journal import JournalEntryModel
from inventory_kernel.models.stock import StockModel

__all__ = [
    "ItemModel",
    "JournalEntryModel",
    "LocationModel",
    "LotModel",
    "StockAlertModel",
    "StockModel",
    "TransferIntentModel",
    "import_all_models",
]


def import_all_models() -> None:
    """Import every kernel model module so Base.metadata lists their tables.

    Idempotent; repeated calls are harmless.
    """
    import inventory_kernel.models.alert  # noqa: F401
    import inventory_kernel.models.catalog  # noqa: F401
    import inventory_kernel.models.journal  # noqa: F401
    import inventory_kernel.models.stock  # noqa: F401
