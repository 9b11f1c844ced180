"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Stock mutations fail for very different reasons: a caller asked for more than
is available, another writer won the race for the same record, the database
went away. Callers must be able to tell these apart without parsing strings.

Every error in this module:
  1. Has its own TYPED exception class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message string)

Example - WRONG way to handle errors:
    try:
        ledger.remove("WIDGET", "L1", 5, "SO-1", actor="alice")
    except Exception as e:
        if "insufficient" in str(e):   # FRAGILE
            backorder()

Example - RIGHT way:
    try:
        ledger.remove("WIDGET", "L1", 5, "SO-1", actor="alice")
    except InsufficientStockError as e:
        backorder(shortfall=e.requested - e.available)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from InventoryKernelError:

    InventoryKernelError (base)
    |
    +-- ValidationError
    |
    +-- BusinessRuleError
    |   +-- NegativeStockViolationError
    |   +-- StandardCostNotSetError
    |   +-- InsufficientCostDataError
    |   +-- LotExpiryNotSetError
    |
    +-- ConcurrencyError
    |   +-- VersionMismatchError
    |
    +-- StorageError
    |
    +-- NotFoundError
    |   +-- ItemNotFoundError
    |   +-- LocationNotFoundError
    |   +-- StockNotFoundError
    |   +-- LotNotFoundError
    |   +-- AlertNotFoundError
    |   +-- BatchNotFoundError
    |   +-- TransferIntentNotFoundError
    |
    +-- DuplicateError
    |   +-- DuplicateItemError
    |   +-- DuplicateLocationError
    |   +-- DuplicateLotError
    |
    +-- InsufficientStockError
    +-- InsufficientReservationError
    +-- ExpiredLotError
    +-- AlertAlreadyResolvedError
    +-- TransferStateError
    +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | VALIDATION_ERROR            | Malformed input, before any state read
----------------|-----------------------------|-----------------------------------------
Business rule   | BUSINESS_RULE_VIOLATION     | Generic rule breach
                | NEGATIVE_STOCK              | Remove would go below zero (policy)
                | STANDARD_COST_NOT_SET       | STANDARD valuation, item cost is zero
                | INSUFFICIENT_COST_DATA      | No priced inbound movements
                | LOT_EXPIRY_NOT_SET          | Expiry alert for lot without expiry
----------------|-----------------------------|-----------------------------------------
Concurrency     | VERSION_MISMATCH            | Stock record changed since read
----------------|-----------------------------|-----------------------------------------
Storage         | STORAGE_ERROR               | Backend failure (cause preserved)
----------------|-----------------------------|-----------------------------------------
Not found       | ITEM_NOT_FOUND              | Unknown item id
                | LOCATION_NOT_FOUND          | Unknown location id
                | STOCK_NOT_FOUND             | No stock record for (item, location)
                | LOT_NOT_FOUND               | Unknown lot id
                | ALERT_NOT_FOUND             | Unknown alert id
                | BATCH_NOT_FOUND             | Unknown batch id
                | TRANSFER_NOT_FOUND          | Unknown transfer intent id
----------------|-----------------------------|-----------------------------------------
Duplicate       | DUPLICATE_ITEM              | Item id already exists
                | DUPLICATE_LOCATION          | Location id already exists
                | DUPLICATE_LOT               | Lot id already exists
----------------|-----------------------------|-----------------------------------------
Stock           | INSUFFICIENT_STOCK          | Remove/reserve exceeds available
                | INSUFFICIENT_RESERVATION    | Release exceeds reserved
                | EXPIRED_LOT                 | Lot past its expiry date
----------------|-----------------------------|-----------------------------------------
Alert           | ALERT_ALREADY_RESOLVED      | Resolving an inactive alert
----------------|-----------------------------|-----------------------------------------
Transfer        | TRANSFER_STATE_ERROR        | Intent not in a recoverable state
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | UPDATE/DELETE of a journal entry

===============================================================================
HANDLING PATTERNS
===============================================================================

1. CONCURRENCY CONFLICTS ARE THE CALLER'S TO RETRY:

    while True:
        try:
            ledger.add(item, loc, 1, ref, actor=user)
            break
        except VersionMismatchError:
            continue

   The kernel never retries on its own.

2. NOT-FOUND AS A GROUP:

    except NotFoundError as e:
        return {"error": e.code}, 404

3. STORAGE ERRORS KEEP THEIR CAUSE:

    except StorageError as e:
        log.error("backend down", extra={"operation": e.operation})
        raise   # e.__cause__ is the driver exception
"""

from typing import Any


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Validation


class ValidationError(InventoryKernelError):
    """Input failed validation before any stock state was read."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str, value: Any = None):
        self.field = field
        self.message = message
        self.value = value
        super().__init__(f"validation failed for field '{field}': {message}")


# Business rules


class BusinessRuleError(InventoryKernelError):
    """A domain rule was violated."""

    code: str = "BUSINESS_RULE_VIOLATION"

    def __init__(
        self,
        rule: str,
        message: str,
        context: dict[str, Any] | None = None,
    ):
        self.rule = rule
        self.message = message
        self.context = dict(context or {})
        super().__init__(f"business rule violation '{rule}': {message}")


class NegativeStockViolationError(BusinessRuleError):
    """Removal would drive on-hand quantity below zero."""

    code: str = "NEGATIVE_STOCK"

    def __init__(self, item_id: str, location_id: str, resulting_quantity: int):
        self.item_id = item_id
        self.location_id = location_id
        self.resulting_quantity = resulting_quantity
        super().__init__(
            "negative_stock",
            "stock cannot go negative",
            {
                "item_id": item_id,
                "location_id": location_id,
                "resulting_quantity": resulting_quantity,
            },
        )


class StandardCostNotSetError(BusinessRuleError):
    """STANDARD valuation requested for an item without a standard cost."""

    code: str = "STANDARD_COST_NOT_SET"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(
            "standard_cost",
            f"standard cost not set for item {item_id}",
            {"item_id": item_id},
        )


class InsufficientCostDataError(BusinessRuleError):
    """No priced inbound movements exist for an item."""

    code: str = "INSUFFICIENT_COST_DATA"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(
            "cost_data",
            f"no cost data found for item {item_id}",
            {"item_id": item_id},
        )


class LotExpiryNotSetError(BusinessRuleError):
    """An expiry alert was requested for a lot that never expires."""

    code: str = "LOT_EXPIRY_NOT_SET"

    def __init__(self, lot_id: str):
        self.lot_id = lot_id
        super().__init__(
            "lot_expiry",
            f"lot {lot_id} has no expiry date",
            {"lot_id": lot_id},
        )


# Concurrency


class ConcurrencyError(InventoryKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class VersionMismatchError(ConcurrencyError):
    """Compare-and-swap on a stock record lost the race."""

    code: str = "VERSION_MISMATCH"

    def __init__(self, item_id: str, location_id: str, expected_version: int):
        self.item_id = item_id
        self.location_id = location_id
        self.expected_version = expected_version
        super().__init__(
            f"Version mismatch on stock {item_id}@{location_id}: "
            f"expected version {expected_version}, "
            "record was modified by another writer"
        )


# Storage


class StorageError(InventoryKernelError):
    """
    Backend failure on a primary write or read.

    The driver exception is available both as ``cause`` and ``__cause__``.
    """

    code: str = "STORAGE_ERROR"

    def __init__(self, operation: str, message: str, cause: BaseException | None = None):
        self.operation = operation
        self.message = message
        self.cause = cause
        detail = f"storage error in {operation}: {message}"
        if cause is not None:
            detail = f"{detail} (caused by: {cause})"
        super().__init__(detail)


# Not found


class NotFoundError(InventoryKernelError):
    """Base exception for missing entities."""

    code: str = "NOT_FOUND"


class ItemNotFoundError(NotFoundError):
    """Item with given ID was not found."""

    code: str = "ITEM_NOT_FOUND"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item not found: {item_id}")


class LocationNotFoundError(NotFoundError):
    """Location with given ID was not found."""

    code: str = "LOCATION_NOT_FOUND"

    def __init__(self, location_id: str):
        self.location_id = location_id
        super().__init__(f"Location not found: {location_id}")


class StockNotFoundError(NotFoundError):
    """No stock record exists for the (item, location) pair."""

    code: str = "STOCK_NOT_FOUND"

    def __init__(self, item_id: str, location_id: str):
        self.item_id = item_id
        self.location_id = location_id
        super().__init__(f"Stock not found: {item_id}@{location_id}")


class LotNotFoundError(NotFoundError):
    """Lot with given ID was not found."""

    code: str = "LOT_NOT_FOUND"

    def __init__(self, lot_id: str):
        self.lot_id = lot_id
        super().__init__(f"Lot not found: {lot_id}")


class AlertNotFoundError(NotFoundError):
    """Alert with given ID was not found."""

    code: str = "ALERT_NOT_FOUND"

    def __init__(self, alert_id: str):
        self.alert_id = alert_id
        super().__init__(f"Alert not found: {alert_id}")


class BatchNotFoundError(NotFoundError):
    """Batch with given ID was not found."""

    code: str = "BATCH_NOT_FOUND"

    def __init__(self, batch_id: str):
        self.batch_id = batch_id
        super().__init__(f"Batch not found: {batch_id}")


class TransferIntentNotFoundError(NotFoundError):
    """Transfer intent with given ID was not found."""

    code: str = "TRANSFER_NOT_FOUND"

    def __init__(self, intent_id: str):
        self.intent_id = intent_id
        super().__init__(f"Transfer intent not found: {intent_id}")


# Duplicates


class DuplicateError(InventoryKernelError):
    """Base exception for unique-key collisions."""

    code: str = "DUPLICATE"


class DuplicateItemError(DuplicateError):
    """Item with given ID already exists."""

    code: str = "DUPLICATE_ITEM"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item already exists: {item_id}")


class DuplicateLocationError(DuplicateError):
    """Location with given ID already exists."""

    code: str = "DUPLICATE_LOCATION"

    def __init__(self, location_id: str):
        self.location_id = location_id
        super().__init__(f"Location already exists: {location_id}")


class DuplicateLotError(DuplicateError):
    """Lot with given ID already exists."""

    code: str = "DUPLICATE_LOT"

    def __init__(self, lot_id: str):
        self.lot_id = lot_id
        super().__init__(f"Lot already exists: {lot_id}")


# Stock levels


class InsufficientStockError(InventoryKernelError):
    """Requested quantity exceeds available stock."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, item_id: str, location_id: str, requested: int, available: int):
        self.item_id = item_id
        self.location_id = location_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {item_id}@{location_id}: "
            f"requested {requested}, available {available}"
        )


class InsufficientReservationError(InventoryKernelError):
    """Release quantity exceeds what is reserved."""

    code: str = "INSUFFICIENT_RESERVATION"

    def __init__(self, item_id: str, location_id: str, requested: int, reserved: int):
        self.item_id = item_id
        self.location_id = location_id
        self.requested = requested
        self.reserved = reserved
        super().__init__(
            f"Insufficient reservation for {item_id}@{location_id}: "
            f"requested {requested}, reserved {reserved}"
        )


class ExpiredLotError(InventoryKernelError):
    """Lot is past its expiry date."""

    code: str = "EXPIRED_LOT"

    def __init__(self, lot_id: str, lot_number: str, expiry_date: Any):
        self.lot_id = lot_id
        self.lot_number = lot_number
        self.expiry_date = expiry_date
        super().__init__(f"Lot {lot_number} expired on {expiry_date}")


# Alerts


class AlertAlreadyResolvedError(InventoryKernelError):
    """Alert is already inactive."""

    code: str = "ALERT_ALREADY_RESOLVED"

    def __init__(self, alert_id: str):
        self.alert_id = alert_id
        super().__init__(f"Alert already resolved: {alert_id}")


# Transfers


class TransferStateError(InventoryKernelError):
    """Transfer intent is not in a state that allows the requested action."""

    code: str = "TRANSFER_STATE_ERROR"

    def __init__(self, intent_id: str, status: str, action: str):
        self.intent_id = intent_id
        self.status = status
        self.action = action
        super().__init__(
            f"Cannot {action} transfer {intent_id} in status {status}"
        )


# Immutability


class ImmutabilityViolationError(InventoryKernelError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
