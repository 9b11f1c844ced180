"""
Pure domain layer.

Immutable records, the clock abstraction, event shapes, validation rules and
ledger policy.  Nothing here touches the ORM, the database or I/O.
"""

from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.events import (
    EventPublisher,
    ItemTransferred,
    LowStockAlert,
    NullEventPublisher,
    RecordingEventPublisher,
    StockChanged,
)
from inventory_kernel.domain.policy import LedgerPolicy
from inventory_kernel.domain.types import (
    ABCClass,
    AlertType,
    AuditTrail,
    Item,
    JournalEntry,
    Location,
    Lot,
    MovementType,
    StockAlert,
    StockRecord,
    TransferIntent,
    TransferStatus,
    ValuationMethod,
)

__all__ = [
    "ABCClass",
    "AlertType",
    "AuditTrail",
    "Clock",
    "DeterministicClock",
    "EventPublisher",
    "Item",
    "ItemTransferred",
    "JournalEntry",
    "LedgerPolicy",
    "Location",
    "Lot",
    "LowStockAlert",
    "MovementType",
    "NullEventPublisher",
    "RecordingEventPublisher",
    "StockAlert",
    "StockChanged",
    "StockRecord",
    "SystemClock",
    "TransferIntent",
    "TransferStatus",
    "ValuationMethod",
]
