"""
LotService -- lot creation, lookup and expiry checks.

A lot records a batch of an item sharing an expiry date and unit cost.  Lots
are tracking records only: creating one never moves stock.  Stock for a lot
arrives through ``StockLedger.add(..., lot_number=..., expiry_date=...)``.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.types import Lot
from inventory_kernel.domain.validation import (
    MAX_LOT_NUMBER_LENGTH,
    require_aware,
    require_code,
    require_positive_days,
    require_positive_quantity,
    require_unit_cost,
    require_uuid,
)
from inventory_kernel.exceptions import ExpiredLotError, LotNotFoundError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.catalog_service import CatalogService
from inventory_kernel.storage.base import InventoryStorage

logger = get_logger("services.lots")


class LotService:
    """Lot tracking."""

    def __init__(
        self,
        storage: InventoryStorage,
        catalog: CatalogService,
        clock: Clock | None = None,
    ):
        self._storage = storage
        self._catalog = catalog
        self._clock = clock or SystemClock()

    def create_lot(
        self,
        item_id: str,
        lot_number: str,
        quantity: int,
        unit_cost: Decimal,
        expiry_date: datetime | None = None,
    ) -> Lot:
        require_code(lot_number, "lot_number", MAX_LOT_NUMBER_LENGTH)
        require_positive_quantity(quantity)
        cost = require_unit_cost(unit_cost)
        if expiry_date is not None:
            require_aware(expiry_date, "expiry_date")
        self._catalog.require_item(item_id)
        lot = Lot(
            lot_id=uuid4(),
            lot_number=lot_number,
            item_id=item_id,
            quantity=quantity,
            unit_cost=cost,
            expiry_date=expiry_date,
            created_at=self._clock.now(),
        )
        self._storage.create_lot(lot)
        logger.info(
            "lot_created",
            extra={
                "lot_id": str(lot.lot_id),
                "lot_number": lot_number,
                "item_id": item_id,
                "quantity": quantity,
            },
        )
        return lot

    def get_lot(self, lot_id: UUID | str) -> Lot:
        lot_uuid = require_uuid(lot_id, "lot_id")
        lot = self._storage.get_lot(lot_uuid)
        if lot is None:
            raise LotNotFoundError(str(lot_uuid))
        return lot

    def get_lots_by_item(self, item_id: str) -> list[Lot]:
        self._catalog.require_item(item_id)
        return self._storage.list_lots_by_item(item_id)

    def get_expiring_lots(self, within_days: int) -> list[Lot]:
        """Lots not yet expired whose expiry falls within the window."""
        require_positive_days(within_days, "within_days")
        now = self._clock.now()
        window = timedelta(days=within_days)
        return [
            lot for lot in self._storage.list_lots()
            if lot.is_expiring_within(now, window)
        ]

    def get_expired_lots(self) -> list[Lot]:
        now = self._clock.now()
        return [lot for lot in self._storage.list_lots() if lot.is_expired(now)]

    def validate_lot_expiry(self, lot_id: UUID | str) -> Lot:
        """Return the lot if it is usable.

        Raises:
            LotNotFoundError: No such lot.
            ExpiredLotError: Lot is past its expiry date.
        """
        lot = self.get_lot(lot_id)
        if lot.is_expired(self._clock.now()):
            logger.warning(
                "expired_lot_rejected",
                extra={"lot_id": str(lot.lot_id), "lot_number": lot.lot_number},
            )
            raise ExpiredLotError(str(lot.lot_id), lot.lot_number, lot.expiry_date)
        return lot
