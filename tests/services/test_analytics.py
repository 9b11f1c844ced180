"""Tests for ABCClassifier: classification, turnover, slow movers and reports."""

import csv
import io
from datetime import timedelta
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from inventory_kernel.exceptions import LocationNotFoundError, ValidationError
from inventory_services.analytics_service import AnalyticsSettings, ReportFormat, ReportType
from inventory_services.inventory_system import InventorySystem


def _stock(system):
    """Annual values at L1: WIDGET 8000, GADGET 1500, BOLT 500."""
    system.ledger.add("WIDGET", "L1", 100, "PO-1", unit_cost=Decimal("10"))
    system.ledger.remove("WIDGET", "L1", 20, "SO-1")
    system.ledger.add("GADGET", "L1", 6, "PO-2", unit_cost=Decimal("25"))
    system.ledger.add("BOLT", "L1", 100, "PO-3")
    return system


@pytest.fixture
def stocked(system):
    return _stock(system)


def _csv_rows(data: bytes) -> list[list[str]]:
    return list(csv.reader(io.StringIO(data.decode("utf-8"))))


class TestABCClassification:

    def test_classes(self, stocked):
        assert stocked.analytics.calculate_abc_classification("L1") == {
            "WIDGET": "A",
            "GADGET": "B",
            "BOLT": "C",
        }

    def test_ranking_detail(self, stocked):
        ranking = stocked.analytics.rank_items("L1")
        assert [c.item_id for c in ranking] == ["WIDGET", "GADGET", "BOLT"]
        assert [c.rank for c in ranking] == [1, 2, 3]
        assert ranking[0].annual_value == Decimal("8000")
        assert ranking[1].cumulative_percent == Decimal("95")

    def test_empty_location(self, stocked):
        assert stocked.analytics.calculate_abc_classification("L3") == {}

    def test_unknown_location(self, stocked):
        with pytest.raises(LocationNotFoundError):
            stocked.analytics.calculate_abc_classification("NOWHERE")

    def test_custom_split(self, storage, clock):
        system = InventorySystem(
            storage,
            clock=clock,
            analytics_settings=AnalyticsSettings(
                class_a_percent=Decimal("50"), class_b_percent=Decimal("30"),
            ),
        )
        system.catalog.create_item("WIDGET", "Widget", unit_cost=Decimal("10.00"))
        system.catalog.create_item("GADGET", "Gadget", unit_cost=Decimal("25.00"))
        system.catalog.create_item("BOLT", "Bolt", unit_cost=Decimal("0.50"))
        system.catalog.create_location("L1", "Main warehouse")
        _stock(system)
        assert system.analytics.calculate_abc_classification("L1") == {
            "WIDGET": "B",
            "GADGET": "C",
            "BOLT": "C",
        }


class TestTurnover:

    def test_annualised_rate(self, stocked):
        rate = stocked.analytics.get_turnover_rate("WIDGET", 30)
        assert rate == Decimal(20 * 365) / Decimal(80 * 30)

    def test_shipments_outside_period_ignored(self, stocked, clock):
        clock.advance_days(31)
        assert stocked.analytics.get_turnover_rate("WIDGET", 30) == Decimal("0")

    def test_zero_stock(self, system):
        system.ledger.add("WIDGET", "L1", 5)
        system.ledger.remove("WIDGET", "L1", 5)
        assert system.analytics.get_turnover_rate("WIDGET", 30) == Decimal("0")

    def test_bad_period(self, stocked):
        with pytest.raises(ValidationError):
            stocked.analytics.get_turnover_rate("WIDGET", 0)


class TestSlowMoving:

    def test_items_without_recent_shipments(self, stocked):
        assert stocked.analytics.get_slow_moving_items("L1", 30) == ["BOLT", "GADGET"]

    def test_everything_slow_after_window(self, stocked, clock):
        clock.advance_days(45)
        assert stocked.analytics.get_slow_moving_items("L1", 30) == ["BOLT", "GADGET", "WIDGET"]

    def test_shipment_elsewhere_does_not_count(self, stocked):
        stocked.ledger.add("GADGET", "L2", 5)
        stocked.ledger.remove("GADGET", "L2", 1)
        assert "GADGET" in stocked.analytics.get_slow_moving_items("L1", 30)


class TestReports:

    def test_stock_csv(self, stocked):
        rows = _csv_rows(stocked.analytics.generate_report("L1", "stock"))
        assert rows[0] == ["item_id", "quantity", "reserved", "available", "version", "updated_at"]
        assert [r[0] for r in rows[1:]] == ["BOLT", "GADGET", "WIDGET"]
        widget = rows[3]
        assert widget[1:5] == ["80", "0", "80", "2"]

    def test_movement_csv(self, stocked):
        rows = _csv_rows(stocked.analytics.generate_report("L1", ReportType.MOVEMENT))
        assert rows[0][:5] == ["entry_id", "created_at", "movement_type", "item_id", "quantity"]
        assert len(rows) == 1 + 4
        assert {r[2] for r in rows[1:]} == {"inbound", "outbound"}

    def test_valuation_csv_reports_errors_per_item(self, stocked):
        rows = _csv_rows(
            stocked.analytics.generate_report("L1", "valuation", method="standard"),
        )
        assert rows[0] == ["item_id", "quantity", "method", "value", "error"]
        by_item = {r[0]: r for r in rows[1:]}
        assert by_item["WIDGET"][3] == "800.00"
        assert by_item["WIDGET"][4] == ""

    def test_abc_xlsx(self, stocked):
        data = stocked.analytics.generate_report(
            "L1", ReportType.ABC, report_format=ReportFormat.XLSX,
        )
        workbook = load_workbook(io.BytesIO(data))
        sheet = workbook["abc"]
        rows = list(sheet.iter_rows(values_only=True))
        assert rows[0] == ("rank", "item_id", "annual_value", "cumulative_percent", "class")
        assert [(r[1], r[4]) for r in rows[1:]] == [("WIDGET", "A"), ("GADGET", "B"), ("BOLT", "C")]
        assert rows[1][3] == "80.00"

    def test_turnover_csv(self, stocked):
        rows = _csv_rows(stocked.analytics.generate_report("L1", "turnover", report_format="csv"))
        assert rows[0] == ["item_id", "quantity", "period_days", "turnover_rate"]
        by_item = {r[0]: r for r in rows[1:]}
        assert by_item["WIDGET"][2] == "365"
        assert Decimal(by_item["WIDGET"][3]) == Decimal("0.2500")

    def test_unknown_report_type(self, stocked):
        with pytest.raises(ValidationError) as exc_info:
            stocked.analytics.generate_report("L1", "forecast")
        assert exc_info.value.field == "report_type"

    def test_unknown_format(self, stocked):
        with pytest.raises(ValidationError):
            stocked.analytics.generate_report("L1", "stock", report_format="pdf")

    def test_report_logged(self, stocked, captured_logs):
        stocked.analytics.generate_report("L1", "stock")
        [record] = [r for r in captured_logs() if r["message"] == "report_generated"]
        assert record["rows"] == 3
        assert record["report_format"] == "csv"


def test_slow_moving_window_edge(stocked, clock):
    """A shipment exactly at the window start still counts as recent."""
    clock.advance(int(timedelta(days=30).total_seconds()))
    assert "WIDGET" not in stocked.analytics.get_slow_moving_items("L1", 30)
