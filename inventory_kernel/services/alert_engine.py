"""
AlertEngine -- alerting rules derived from stock levels and lot expiry.

Responsibility:
    Creates, lists and resolves StockAlerts.  Rules:

    low_stock    A removal left quantity at or below the policy threshold.
                 A new alert is raised every time; active duplicates for the
                 same item and location are NOT merged.
    expiring /   Explicitly requested for one lot and a day count, or by
    expired      ``raise_expiry_alerts`` over every lot in a window.  Never
                 scheduled by the engine itself.
    over_stock   An add pushed a location past its capacity (policy flag).
    discrepancy  An adjustment moved quantity by at least the policy
                 threshold.

Failure modes:
    - Rule checks called by the ledger (low_stock, over_stock, discrepancy)
      are secondary writes: storage failures are logged and swallowed and
      the check returns None.
    - Explicit calls (expiry alerts, resolve) raise: LotNotFoundError,
      LotExpiryNotSetError, AlertNotFoundError, AlertAlreadyResolvedError,
      StorageError.
"""

from __future__ import annotations

import math
from datetime import timedelta
from uuid import UUID, uuid4

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.events import (
    EventPublisher,
    LowStockAlert,
    NullEventPublisher,
)
from inventory_kernel.domain.policy import LedgerPolicy
from inventory_kernel.domain.types import AlertType, Location, Lot, StockAlert
from inventory_kernel.domain.validation import require_positive_days, require_uuid
from inventory_kernel.exceptions import (
    AlertAlreadyResolvedError,
    AlertNotFoundError,
    InventoryKernelError,
    LotExpiryNotSetError,
    LotNotFoundError,
    ValidationError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.event_dispatch import dispatch
from inventory_kernel.storage.base import InventoryStorage

logger = get_logger("services.alerts")

ALL_LOCATIONS = "ALL"


class AlertEngine:
    """Stock alert rules and alert lifecycle."""

    def __init__(
        self,
        storage: InventoryStorage,
        publisher: EventPublisher | None = None,
        clock: Clock | None = None,
        policy: LedgerPolicy | None = None,
    ):
        self._storage = storage
        self._publisher = publisher or NullEventPublisher()
        self._clock = clock or SystemClock()
        self._policy = policy or LedgerPolicy()

    @property
    def low_stock_threshold(self) -> int:
        return self._policy.low_stock_threshold

    # -------------------------------------------------------------------------
    # Ledger-triggered rules (secondary writes)
    # -------------------------------------------------------------------------

    def check_low_stock(self, item_id: str, location_id: str, quantity: int) -> StockAlert | None:
        threshold = self._policy.low_stock_threshold
        if quantity > threshold:
            return None
        now = self._clock.now()
        alert = self._store_secondary(
            StockAlert(
                alert_id=uuid4(),
                alert_type=AlertType.LOW_STOCK,
                item_id=item_id,
                location_id=location_id,
                current_quantity=quantity,
                threshold=threshold,
                message=(
                    f"Low stock: item {item_id} at location {location_id} "
                    f"has {quantity} units (threshold {threshold})"
                ),
                created_at=now,
            )
        )
        dispatch(
            self._publisher.publish_low_stock_alert,
            LowStockAlert(
                item_id=item_id,
                location_id=location_id,
                current_quantity=quantity,
                threshold=threshold,
                timestamp=now,
            ),
        )
        return alert

    def check_overstock(self, item_id: str, location: Location) -> StockAlert | None:
        """Alert when total stock at ``location`` exceeds its capacity."""
        if not self._policy.overstock_alerts_enabled or location.capacity <= 0:
            return None
        try:
            total = sum(
                r.quantity
                for r in self._storage.list_stock_by_location(location.location_id)
            )
        except InventoryKernelError:
            logger.error(
                "overstock_check_failed",
                extra={"location_id": location.location_id},
                exc_info=True,
            )
            return None
        if total <= location.capacity:
            return None
        return self._store_secondary(
            StockAlert(
                alert_id=uuid4(),
                alert_type=AlertType.OVER_STOCK,
                item_id=item_id,
                location_id=location.location_id,
                current_quantity=total,
                threshold=location.capacity,
                message=(
                    f"Over stock: location {location.location_id} holds {total} units "
                    f"(capacity {location.capacity})"
                ),
                created_at=self._clock.now(),
            )
        )

    def check_discrepancy(
        self, item_id: str, location_id: str, old_quantity: int, new_quantity: int,
    ) -> StockAlert | None:
        """Alert when an adjustment moves quantity by at least the threshold."""
        threshold = self._policy.discrepancy_alert_threshold
        delta = new_quantity - old_quantity
        if threshold is None or abs(delta) < threshold:
            return None
        return self._store_secondary(
            StockAlert(
                alert_id=uuid4(),
                alert_type=AlertType.DISCREPANCY,
                item_id=item_id,
                location_id=location_id,
                current_quantity=new_quantity,
                threshold=threshold,
                message=(
                    f"Stock discrepancy: item {item_id} at location {location_id} "
                    f"adjusted from {old_quantity} to {new_quantity} ({delta:+d})"
                ),
                created_at=self._clock.now(),
            )
        )

    def _store_secondary(self, alert: StockAlert) -> StockAlert | None:
        try:
            self._storage.create_alert(alert)
        except InventoryKernelError:
            logger.error(
                "alert_write_failed",
                extra={
                    "alert_type": alert.alert_type.value,
                    "item_id": alert.item_id,
                    "location_id": alert.location_id,
                },
                exc_info=True,
            )
            return None
        logger.warning(
            "stock_alert_raised",
            extra={
                "alert_id": str(alert.alert_id),
                "alert_type": alert.alert_type.value,
                "item_id": alert.item_id,
                "location_id": alert.location_id,
                "current_quantity": alert.current_quantity,
                "threshold": alert.threshold,
            },
        )
        return alert

    # -------------------------------------------------------------------------
    # Expiry
    # -------------------------------------------------------------------------

    def create_expiry_alert(self, lot_id: UUID | str, days_until_expiry: int) -> StockAlert:
        """Raise an alert for one lot.

        ``days_until_expiry <= 0`` produces an ``expired`` alert, anything
        else an ``expiring`` alert.  The message carries the lot number and
        the day count.

        Raises:
            ValidationError: Malformed lot id or non-integer day count.
            LotNotFoundError: No such lot.
            LotExpiryNotSetError: Lot has no expiry date.
        """
        lot_uuid = require_uuid(lot_id, "lot_id")
        if isinstance(days_until_expiry, bool) or not isinstance(days_until_expiry, int):
            raise ValidationError("days_until_expiry", "must be an integer", days_until_expiry)
        lot = self._storage.get_lot(lot_uuid)
        if lot is None:
            raise LotNotFoundError(str(lot_uuid))
        return self._expiry_alert(lot, days_until_expiry)

    def _expiry_alert(self, lot: Lot, days: int) -> StockAlert:
        if lot.expiry_date is None:
            raise LotExpiryNotSetError(str(lot.lot_id))
        if days > 0:
            alert_type = AlertType.EXPIRING
            message = f"Lot {lot.lot_number} expires in {days} days"
        else:
            alert_type = AlertType.EXPIRED
            message = f"Lot {lot.lot_number} expired ({days} days until expiry)"
        alert = StockAlert(
            alert_id=uuid4(),
            alert_type=alert_type,
            item_id=lot.item_id,
            location_id=ALL_LOCATIONS,
            current_quantity=lot.quantity,
            threshold=days,
            message=message,
            created_at=self._clock.now(),
        )
        self._storage.create_alert(alert)
        logger.warning(
            "expiry_alert_raised",
            extra={
                "alert_id": str(alert.alert_id),
                "lot_id": str(lot.lot_id),
                "lot_number": lot.lot_number,
                "days_until_expiry": days,
            },
        )
        return alert

    def raise_expiry_alerts(self, within_days: int) -> list[StockAlert]:
        """Alert on every lot that is expired or expires within ``within_days``.

        Day counts round up, so a lot expiring in 12 hours counts as 1 day.
        """
        require_positive_days(within_days, "within_days")
        now = self._clock.now()
        window = timedelta(days=within_days)
        raised: list[StockAlert] = []
        for lot in self._storage.list_lots():
            if lot.expiry_date is None or lot.expiry_date > now + window:
                continue
            days = math.ceil((lot.expiry_date - now).total_seconds() / 86400)
            raised.append(self._expiry_alert(lot, days))
        logger.info(
            "expiry_scan_completed",
            extra={"within_days": within_days, "alerts_raised": len(raised)},
        )
        return raised

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def get_active_alerts(self, location_id: str | None = None) -> list[StockAlert]:
        return self._storage.list_active_alerts(location_id)

    def resolve_alert(self, alert_id: UUID | str) -> StockAlert:
        """Mark an active alert inactive.

        Raises:
            AlertNotFoundError: No such alert.
            AlertAlreadyResolvedError: Alert is already inactive (including
                when a concurrent resolver won).
        """
        alert_uuid = require_uuid(alert_id, "alert_id")
        alert = self._storage.get_alert(alert_uuid)
        if alert is None:
            raise AlertNotFoundError(str(alert_uuid))
        if not alert.is_active:
            raise AlertAlreadyResolvedError(str(alert_uuid))
        now = self._clock.now()
        if not self._storage.resolve_alert(alert_uuid, now):
            raise AlertAlreadyResolvedError(str(alert_uuid))
        logger.info(
            "alert_resolved",
            extra={"alert_id": str(alert_uuid), "alert_type": alert.alert_type.value},
        )
        return self._storage.get_alert(alert_uuid)
