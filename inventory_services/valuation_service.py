"""
inventory_services.valuation_service -- On-hand stock valuation.

Responsibility:
    Price on-hand stock by FIFO, LIFO, weighted average or standard cost.
    Cost layers are the priced receipts in the transaction journal.

Architecture position:
    Services -- reads kernel storage and the journal, delegates the math to
    inventory_engines.valuation.  Never mutates state.

Invariants enforced:
    - FIFO / LIFO layers are receipts credited to the requested
      (item, location) with a positive unit cost.
    - Weighted average is item-wide: it averages receipts at EVERY location
      and applies that cost to the on-hand quantity of the one requested
      location.  This differs from FIFO / LIFO scoping and is kept that way
      so figures match the historical reports built on it.
    - Transfers carry no unit cost, so stock that arrived by transfer has no
      layer at its new location.  FIFO / LIFO leave such units unvalued.
    - On-hand quantity <= 0 values to Decimal("0") without consulting layers.

Failure modes:
    - ValidationError: unknown valuation method, malformed ids.
    - ItemNotFoundError / LocationNotFoundError / StockNotFoundError.
    - StandardCostNotSetError: STANDARD with a zero item cost.
    - InsufficientCostDataError: weighted average with no priced receipts.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from inventory_engines.valuation import (
    CostLayer,
    LayerValuation,
    standard_value,
    value_layers,
    weighted_average_cost,
)
from inventory_kernel.domain.types import JournalEntry, ValuationMethod
from inventory_kernel.exceptions import (
    InsufficientCostDataError,
    InventoryKernelError,
    StandardCostNotSetError,
    StockNotFoundError,
    ValidationError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.catalog_service import CatalogService
from inventory_kernel.services.transaction_journal import TransactionJournal
from inventory_kernel.storage.base import InventoryStorage

logger = get_logger("services.valuation")

ZERO = Decimal("0")


def parse_method(method: Any) -> ValuationMethod:
    """Accept a ValuationMethod or its string value."""
    if isinstance(method, ValuationMethod):
        return method
    try:
        return ValuationMethod(method)
    except ValueError:
        raise ValidationError(
            "method",
            f"must be one of {', '.join(m.value for m in ValuationMethod)}",
            method,
        ) from None


def _layers(entries: list[JournalEntry]) -> list[CostLayer]:
    return [
        CostLayer(
            quantity=e.quantity,
            unit_cost=e.unit_cost,
            received_at=e.created_at,
            source_id=e.entry_id,
        )
        for e in entries
    ]


class ValuationEngine:
    """
    Read-only inventory valuation.

    Contract:
        Every figure is a Decimal.  ``calculate_total_value`` never fails on
        a single item; it logs the failure and leaves the item out.
    """

    def __init__(
        self,
        storage: InventoryStorage,
        catalog: CatalogService,
        journal: TransactionJournal,
    ):
        self._storage = storage
        self._catalog = catalog
        self._journal = journal

    def calculate_value(self, item_id: str, location_id: str, method: Any) -> Decimal:
        valuation_method = parse_method(method)
        item = self._catalog.require_item(item_id)
        self._catalog.require_location(location_id)
        stock = self._storage.get_stock(item_id, location_id)
        if stock is None:
            raise StockNotFoundError(item_id, location_id)
        if stock.quantity <= 0:
            return ZERO

        if valuation_method in (ValuationMethod.FIFO, ValuationMethod.LIFO):
            value = self._consume(item_id, location_id, stock.quantity, valuation_method).value
        elif valuation_method == ValuationMethod.WEIGHTED_AVERAGE:
            value = self.get_average_cost(item_id) * stock.quantity
        else:
            if item.unit_cost <= 0:
                raise StandardCostNotSetError(item_id)
            value = standard_value(item.unit_cost, stock.quantity)

        logger.debug(
            "stock_valued",
            extra={
                "item_id": item_id,
                "location_id": location_id,
                "method": valuation_method.value,
                "quantity": stock.quantity,
                "value": value,
            },
        )
        return value

    def calculate_total_value(self, location_id: str, method: Any) -> Decimal:
        valuation_method = parse_method(method)
        self._catalog.require_location(location_id)
        total = ZERO
        skipped = 0
        for stock in self._storage.list_stock_by_location(location_id):
            if stock.quantity <= 0:
                continue
            try:
                total += self.calculate_value(stock.item_id, location_id, valuation_method)
            except InventoryKernelError as exc:
                skipped += 1
                logger.warning(
                    "item_valuation_skipped",
                    extra={
                        "item_id": stock.item_id,
                        "location_id": location_id,
                        "method": valuation_method.value,
                        "error_code": exc.code,
                        "error": str(exc),
                    },
                )
        logger.info(
            "location_valued",
            extra={
                "location_id": location_id,
                "method": valuation_method.value,
                "total_value": total,
                "items_skipped": skipped,
            },
        )
        return total

    def get_average_cost(self, item_id: str) -> Decimal:
        """Average unit cost over every priced receipt of the item, all locations.

        Raises:
            InsufficientCostDataError: No receipt with a positive unit cost.
        """
        self._catalog.require_item(item_id)
        layers = _layers(self._journal.inbound_entries(item_id))
        if not layers:
            raise InsufficientCostDataError(item_id)
        return weighted_average_cost(layers)

    def value_breakdown(self, item_id: str, location_id: str, method: Any) -> LayerValuation:
        """The layers FIFO or LIFO consumed to value the on-hand quantity."""
        valuation_method = parse_method(method)
        if valuation_method not in (ValuationMethod.FIFO, ValuationMethod.LIFO):
            raise ValidationError("method", "breakdown is only available for fifo and lifo", method)
        self._catalog.require_item(item_id)
        self._catalog.require_location(location_id)
        stock = self._storage.get_stock(item_id, location_id)
        if stock is None:
            raise StockNotFoundError(item_id, location_id)
        return self._consume(item_id, location_id, max(stock.quantity, 0), valuation_method)

    def _consume(
        self, item_id: str, location_id: str, quantity: int, method: ValuationMethod,
    ) -> LayerValuation:
        layers = _layers(self._journal.inbound_entries(item_id, location_id))
        result = value_layers(layers=layers, quantity=quantity, method=method)
        if result.unvalued_quantity:
            logger.warning(
                "cost_layers_short",
                extra={
                    "item_id": item_id,
                    "location_id": location_id,
                    "method": method.value,
                    "on_hand": quantity,
                    "unvalued_quantity": result.unvalued_quantity,
                },
            )
        return result
