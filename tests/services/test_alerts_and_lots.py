"""Tests for AlertEngine expiry alerts, alert lifecycle and LotService."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from inventory_kernel.domain.types import AlertType
from inventory_kernel.exceptions import (
    AlertAlreadyResolvedError,
    AlertNotFoundError,
    DuplicateLotError,
    ExpiredLotError,
    ItemNotFoundError,
    LotExpiryNotSetError,
    LotNotFoundError,
    ValidationError,
)
from inventory_kernel.services.alert_engine import ALL_LOCATIONS


@pytest.fixture
def now(clock):
    return clock.now()


class TestLotService:

    def test_create_and_get(self, system, now):
        lot = system.lots.create_lot(
            "WIDGET", "LOT-2024-01", 50, Decimal("4.25"), now + timedelta(days=30),
        )
        assert lot.created_at == now
        assert system.lots.get_lot(lot.lot_id) == lot
        assert system.lots.get_lot(str(lot.lot_id)) == lot

    def test_lot_for_unknown_item(self, system):
        with pytest.raises(ItemNotFoundError):
            system.lots.create_lot("NOPE", "LOT-1", 1, Decimal("1"))

    def test_naive_expiry_rejected(self, system):
        with pytest.raises(ValidationError):
            system.lots.create_lot("WIDGET", "LOT-1", 1, Decimal("1"), datetime(2024, 2, 1))

    def test_unknown_lot(self, system):
        with pytest.raises(LotNotFoundError):
            system.lots.get_lot(uuid4())

    def test_lots_by_item(self, system):
        system.lots.create_lot("WIDGET", "LOT-A", 1, Decimal("1"))
        system.lots.create_lot("WIDGET", "LOT-B", 2, Decimal("1"))
        system.lots.create_lot("GADGET", "LOT-C", 3, Decimal("1"))
        numbers = sorted(lot.lot_number for lot in system.lots.get_lots_by_item("WIDGET"))
        assert numbers == ["LOT-A", "LOT-B"]

    def test_expiring_and_expired(self, system, now):
        soon = system.lots.create_lot("WIDGET", "SOON", 1, Decimal("1"), now + timedelta(days=3))
        system.lots.create_lot("WIDGET", "LATER", 1, Decimal("1"), now + timedelta(days=60))
        gone = system.lots.create_lot("WIDGET", "GONE", 1, Decimal("1"), now - timedelta(days=1))
        system.lots.create_lot("WIDGET", "NEVER", 1, Decimal("1"))

        assert [lot.lot_id for lot in system.lots.get_expiring_lots(7)] == [soon.lot_id]
        assert [lot.lot_id for lot in system.lots.get_expired_lots()] == [gone.lot_id]

    def test_validate_lot_expiry(self, system, clock, now):
        lot = system.lots.create_lot("WIDGET", "LOT-1", 1, Decimal("1"), now + timedelta(days=1))
        assert system.lots.validate_lot_expiry(lot.lot_id) == lot
        clock.advance_days(2)
        with pytest.raises(ExpiredLotError) as exc_info:
            system.lots.validate_lot_expiry(lot.lot_id)
        assert exc_info.value.lot_number == "LOT-1"

    def test_duplicate_lot_id(self, system, storage, now):
        lot = system.lots.create_lot("WIDGET", "LOT-1", 1, Decimal("1"))
        with pytest.raises(DuplicateLotError):
            storage.create_lot(lot)


class TestExpiryAlerts:

    def test_expiring_alert_message(self, system, now):
        lot = system.lots.create_lot("WIDGET", "LOT-7", 12, Decimal("1"), now + timedelta(days=5))
        alert = system.alerts.create_expiry_alert(lot.lot_id, 5)
        assert alert.alert_type == AlertType.EXPIRING
        assert alert.message == "Lot LOT-7 expires in 5 days"
        assert alert.location_id == ALL_LOCATIONS
        assert alert.current_quantity == 12
        assert alert.is_active

    @pytest.mark.parametrize("days", [0, -2])
    def test_expired_alert_message(self, system, now, days):
        lot = system.lots.create_lot("WIDGET", "LOT-8", 1, Decimal("1"), now)
        alert = system.alerts.create_expiry_alert(str(lot.lot_id), days)
        assert alert.alert_type == AlertType.EXPIRED
        assert alert.message == f"Lot LOT-8 expired ({days} days until expiry)"

    def test_lot_without_expiry(self, system):
        lot = system.lots.create_lot("WIDGET", "LOT-9", 1, Decimal("1"))
        with pytest.raises(LotExpiryNotSetError):
            system.alerts.create_expiry_alert(lot.lot_id, 3)

    def test_unknown_lot(self, system):
        with pytest.raises(LotNotFoundError):
            system.alerts.create_expiry_alert(uuid4(), 3)

    def test_scan_raises_for_lots_in_window(self, system, now):
        system.lots.create_lot("WIDGET", "SOON", 1, Decimal("1"), now + timedelta(hours=36))
        system.lots.create_lot("WIDGET", "OLD", 1, Decimal("1"), now - timedelta(days=1))
        system.lots.create_lot("WIDGET", "FAR", 1, Decimal("1"), now + timedelta(days=90))
        system.lots.create_lot("WIDGET", "NONE", 1, Decimal("1"))

        raised = system.alerts.raise_expiry_alerts(7)
        by_message = sorted(a.message for a in raised)
        assert by_message == [
            "Lot OLD expired (-1 days until expiry)",
            "Lot SOON expires in 2 days",
        ]

    def test_scan_rejects_bad_window(self, system):
        with pytest.raises(ValidationError):
            system.alerts.raise_expiry_alerts(0)


class TestAlertLifecycle:

    def _low_stock(self, system):
        system.ledger.add("WIDGET", "L1", 5)
        system.ledger.remove("WIDGET", "L1", 1)
        [alert] = system.alerts.get_active_alerts("L1")
        return alert

    def test_resolve(self, system, clock):
        alert = self._low_stock(system)
        clock.advance(60)
        resolved = system.alerts.resolve_alert(alert.alert_id)
        assert not resolved.is_active
        assert resolved.resolved_at == clock.now()
        assert system.alerts.get_active_alerts() == []

    def test_resolve_twice(self, system):
        alert = self._low_stock(system)
        system.alerts.resolve_alert(alert.alert_id)
        with pytest.raises(AlertAlreadyResolvedError):
            system.alerts.resolve_alert(alert.alert_id)

    def test_resolve_unknown(self, system):
        with pytest.raises(AlertNotFoundError):
            system.alerts.resolve_alert(uuid4())

    def test_active_alerts_filtered_by_location(self, system):
        self._low_stock(system)
        system.ledger.add("GADGET", "L2", 3)
        system.ledger.remove("GADGET", "L2", 1)
        assert len(system.alerts.get_active_alerts()) == 2
        [l2_alert] = system.alerts.get_active_alerts("L2")
        assert l2_alert.item_id == "GADGET"
