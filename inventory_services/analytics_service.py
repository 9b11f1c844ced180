"""
inventory_services.analytics_service -- ABC classification, turnover and reports.

Responsibility:
    Rank a location's items into A/B/C classes, estimate turnover, find
    slow-moving stock and render tabular reports (CSV or XLSX).

Architecture position:
    Services -- reads kernel storage and the journal; ranking math lives in
    inventory_engines.abc.  Never mutates state.

Invariants enforced:
    - Annual value is estimated as on-hand quantity x turnover multiplier x
      catalog unit cost.  No sales history is consulted.
    - Items whose catalog record cannot be read are left out of the ranking.
    - Turnover uses the item's current total stock as the average inventory
      figure and annualises over 365 days.  Zero stock gives turnover 0.

Failure modes:
    - ValidationError: unknown report type or format, non-positive periods.
    - LocationNotFoundError / ItemNotFoundError for unknown scopes.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from enum import Enum
from typing import Any

from openpyxl import Workbook

from inventory_engines.abc import (
    DEFAULT_A_PERCENT,
    DEFAULT_B_PERCENT,
    DEFAULT_TURNOVER_MULTIPLIER,
    ItemClassification,
    classify_abc,
    estimate_annual_value,
)
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.types import MovementType, ValuationMethod
from inventory_kernel.domain.validation import require_positive_days
from inventory_kernel.exceptions import InventoryKernelError, ValidationError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.catalog_service import CatalogService
from inventory_kernel.services.transaction_journal import TransactionJournal
from inventory_kernel.storage.base import InventoryStorage
from inventory_services.valuation_service import ValuationEngine, parse_method

logger = get_logger("services.analytics")

DAYS_PER_YEAR = 365


class ReportType(str, Enum):
    STOCK = "stock"
    MOVEMENT = "movement"
    VALUATION = "valuation"
    ABC = "abc"
    TURNOVER = "turnover"


class ReportFormat(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"


@dataclass(frozen=True)
class AnalyticsSettings:
    """Tunables for ABC ranking and turnover reports."""

    turnover_multiplier: int = DEFAULT_TURNOVER_MULTIPLIER
    class_a_percent: Decimal = DEFAULT_A_PERCENT
    class_b_percent: Decimal = DEFAULT_B_PERCENT
    turnover_period_days: int = DAYS_PER_YEAR


def _parse_enum(enum_cls: type[Enum], value: Any, field: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(
            field, f"must be one of {', '.join(m.value for m in enum_cls)}", value,
        ) from None


class ABCClassifier:
    """
    Inventory analytics over one location.

    Contract:
        ``calculate_abc_classification`` maps item id to "A", "B" or "C".
        ``rank_items`` returns the same ranking with values and shares.
    """

    def __init__(
        self,
        storage: InventoryStorage,
        catalog: CatalogService,
        journal: TransactionJournal,
        valuation: ValuationEngine,
        clock: Clock | None = None,
        settings: AnalyticsSettings | None = None,
    ):
        self._storage = storage
        self._catalog = catalog
        self._journal = journal
        self._valuation = valuation
        self._clock = clock or SystemClock()
        self._settings = settings or AnalyticsSettings()

    # -------------------------------------------------------------------------
    # ABC
    # -------------------------------------------------------------------------

    def rank_items(self, location_id: str) -> list[ItemClassification]:
        self._catalog.require_location(location_id)
        values: dict[str, Decimal] = {}
        for stock in self._storage.list_stock_by_location(location_id):
            try:
                item = self._storage.get_item(stock.item_id)
            except InventoryKernelError:
                logger.warning(
                    "abc_item_lookup_failed",
                    extra={"item_id": stock.item_id, "location_id": location_id},
                    exc_info=True,
                )
                continue
            if item is None:
                continue
            values[stock.item_id] = estimate_annual_value(
                stock.quantity, item.unit_cost, self._settings.turnover_multiplier,
            )
        ranking = classify_abc(
            values=values,
            a_percent=self._settings.class_a_percent,
            b_percent=self._settings.class_b_percent,
        )
        logger.info(
            "abc_classification_computed",
            extra={"location_id": location_id, "item_count": len(ranking)},
        )
        return ranking

    def calculate_abc_classification(self, location_id: str) -> dict[str, str]:
        return {c.item_id: c.abc_class.value for c in self.rank_items(location_id)}

    # -------------------------------------------------------------------------
    # Movement analytics
    # -------------------------------------------------------------------------

    def get_turnover_rate(self, item_id: str, period_days: int) -> Decimal:
        """Annualised turnover: outbound units in the period over current stock."""
        require_positive_days(period_days, "period_days")
        self._catalog.require_item(item_id)
        now = self._clock.now()
        entries = self._journal.history_for_date_range(
            item_id, now - timedelta(days=period_days), now,
        )
        outbound = sum(
            e.quantity for e in entries if e.movement_type == MovementType.OUTBOUND
        )
        on_hand = sum(r.quantity for r in self._storage.list_stock_by_item(item_id))
        if on_hand <= 0:
            return Decimal("0")
        return Decimal(outbound * DAYS_PER_YEAR) / Decimal(on_hand * period_days)

    def get_slow_moving_items(self, location_id: str, threshold_days: int) -> list[str]:
        """Items with stock at the location and no shipment from it in the window."""
        require_positive_days(threshold_days, "threshold_days")
        self._catalog.require_location(location_id)
        cutoff = self._clock.now() - timedelta(days=threshold_days)
        slow: list[str] = []
        for stock in self._storage.list_stock_by_location(location_id):
            if stock.quantity <= 0:
                continue
            recent = self._journal.history_for_date_range(stock.item_id, cutoff, self._clock.now())
            shipped = any(
                e.movement_type == MovementType.OUTBOUND and e.from_location == location_id
                for e in recent
            )
            if not shipped:
                slow.append(stock.item_id)
        return slow

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    def generate_report(
        self,
        location_id: str,
        report_type: Any,
        *,
        report_format: Any = ReportFormat.CSV,
        method: Any = ValuationMethod.FIFO,
    ) -> bytes:
        """Render a location report.

        ``method`` only applies to the valuation report.  XLSX output is a
        single-sheet workbook named after the report type.
        """
        kind = _parse_enum(ReportType, report_type, "report_type")
        fmt = _parse_enum(ReportFormat, report_format, "report_format")
        self._catalog.require_location(location_id)

        if kind == ReportType.STOCK:
            header, rows = self._stock_rows(location_id)
        elif kind == ReportType.MOVEMENT:
            header, rows = self._movement_rows(location_id)
        elif kind == ReportType.VALUATION:
            header, rows = self._valuation_rows(location_id, parse_method(method))
        elif kind == ReportType.ABC:
            header, rows = self._abc_rows(location_id)
        else:
            header, rows = self._turnover_rows(location_id)

        logger.info(
            "report_generated",
            extra={
                "location_id": location_id,
                "report_type": kind.value,
                "report_format": fmt.value,
                "rows": len(rows),
            },
        )
        if fmt == ReportFormat.XLSX:
            return _render_xlsx(kind.value, header, rows)
        return _render_csv(header, rows)

    def _stock_rows(self, location_id: str) -> tuple[list[str], list[list[Any]]]:
        header = ["item_id", "quantity", "reserved", "available", "version", "updated_at"]
        rows = [
            [r.item_id, r.quantity, r.reserved, r.available, r.version, r.updated_at.isoformat()]
            for r in self._storage.list_stock_by_location(location_id)
        ]
        return header, rows

    def _movement_rows(self, location_id: str) -> tuple[list[str], list[list[Any]]]:
        header = [
            "entry_id", "created_at", "movement_type", "item_id", "quantity",
            "from_location", "to_location", "unit_cost", "reference", "created_by",
        ]
        rows = [
            [
                str(e.entry_id),
                e.created_at.isoformat(),
                e.movement_type.value,
                e.item_id,
                e.quantity,
                e.from_location or "",
                e.to_location or "",
                "" if e.unit_cost is None else str(e.unit_cost),
                e.reference,
                e.created_by,
            ]
            for e in self._journal.history_for_location(location_id)
        ]
        return header, rows

    def _valuation_rows(
        self, location_id: str, method: ValuationMethod,
    ) -> tuple[list[str], list[list[Any]]]:
        header = ["item_id", "quantity", "method", "value", "error"]
        rows: list[list[Any]] = []
        for stock in self._storage.list_stock_by_location(location_id):
            try:
                value = str(self._valuation.calculate_value(stock.item_id, location_id, method))
                error = ""
            except InventoryKernelError as exc:
                value = ""
                error = exc.code
            rows.append([stock.item_id, stock.quantity, method.value, value, error])
        return header, rows

    def _abc_rows(self, location_id: str) -> tuple[list[str], list[list[Any]]]:
        header = ["rank", "item_id", "annual_value", "cumulative_percent", "class"]
        rows = [
            [
                c.rank,
                c.item_id,
                str(c.annual_value),
                str(c.cumulative_percent.quantize(Decimal("0.01"))),
                c.abc_class.value,
            ]
            for c in self.rank_items(location_id)
        ]
        return header, rows

    def _turnover_rows(self, location_id: str) -> tuple[list[str], list[list[Any]]]:
        period = self._settings.turnover_period_days
        header = ["item_id", "quantity", "period_days", "turnover_rate"]
        rows = [
            [
                r.item_id,
                r.quantity,
                period,
                str(self.get_turnover_rate(r.item_id, period).quantize(Decimal("0.0001"))),
            ]
            for r in self._storage.list_stock_by_location(location_id)
        ]
        return header, rows


def _render_csv(header: list[str], rows: list[list[Any]]) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue().encode("utf-8")


def _render_xlsx(title: str, header: list[str], rows: list[list[Any]]) -> bytes:
    wb = Workbook(write_only=True)
    ws = wb.create_sheet(title=title)
    ws.append(header)
    for row in rows:
        ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
