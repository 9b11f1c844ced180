"""
CatalogService -- items and locations.

Responsibility:
    Validated create/read/update/delete for the catalog the ledger depends
    on.  Every ledger operation resolves its item and location through
    ``require_item`` / ``require_location`` so a missing entity always
    surfaces as the matching NotFoundError.

Failure modes:
    - ValidationError: malformed id, name, sku, cost or capacity.
    - DuplicateItemError / DuplicateLocationError on create.
    - ItemNotFoundError / LocationNotFoundError on lookups.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.types import Item, Location
from inventory_kernel.domain.validation import (
    MAX_DESCRIPTION_LENGTH,
    MAX_ID_LENGTH,
    MAX_SKU_LENGTH,
    optional_text,
    require_capacity,
    require_code,
    require_id,
    require_name,
    require_unit_cost,
)
from inventory_kernel.exceptions import (
    ItemNotFoundError,
    LocationNotFoundError,
    ValidationError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.storage.base import InventoryStorage

logger = get_logger("services.catalog")

_MAX_PAGE = 1000


def _page(offset: int, limit: int) -> tuple[int, int]:
    if offset < 0:
        raise ValidationError("offset", "must not be negative", offset)
    if limit <= 0 or limit > _MAX_PAGE:
        raise ValidationError("limit", f"must be between 1 and {_MAX_PAGE}", limit)
    return offset, limit


class CatalogService:
    """Catalog of items and locations."""

    def __init__(self, storage: InventoryStorage, clock: Clock | None = None):
        self._storage = storage
        self._clock = clock or SystemClock()

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    def create_item(
        self,
        item_id: str,
        name: str,
        *,
        sku: str = "",
        category: str = "",
        description: str = "",
        unit_cost: Decimal = Decimal("0"),
    ) -> Item:
        require_id(item_id, "item_id")
        require_name(name)
        if sku:
            require_code(sku, "sku", MAX_SKU_LENGTH)
        now = self._clock.now()
        item = Item(
            item_id=item_id,
            name=name,
            sku=sku,
            category=optional_text(category, "category", MAX_ID_LENGTH),
            description=optional_text(description, "description", MAX_DESCRIPTION_LENGTH),
            unit_cost=require_unit_cost(unit_cost),
            created_at=now,
            updated_at=now,
        )
        self._storage.create_item(item)
        logger.info("item_created", extra={"item_id": item_id, "sku": sku})
        return item

    def get_item(self, item_id: str) -> Item:
        return self.require_item(item_id)

    def require_item(self, item_id: str) -> Item:
        """Validate ``item_id`` and return the item.

        Raises:
            ValidationError: Malformed id.
            ItemNotFoundError: No such item.
        """
        require_id(item_id, "item_id")
        item = self._storage.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    def update_item(
        self,
        item_id: str,
        *,
        name: str | None = None,
        sku: str | None = None,
        category: str | None = None,
        description: str | None = None,
        unit_cost: Decimal | None = None,
    ) -> Item:
        """Change the given fields; omitted fields keep their value."""
        current = self.require_item(item_id)
        changes: dict = {}
        if name is not None:
            changes["name"] = require_name(name)
        if sku is not None:
            changes["sku"] = require_code(sku, "sku", MAX_SKU_LENGTH) if sku else ""
        if category is not None:
            changes["category"] = optional_text(category, "category", MAX_ID_LENGTH)
        if description is not None:
            changes["description"] = optional_text(
                description, "description", MAX_DESCRIPTION_LENGTH,
            )
        if unit_cost is not None:
            changes["unit_cost"] = require_unit_cost(unit_cost)
        updated = replace(current, updated_at=self._clock.now(), **changes)
        self._storage.update_item(updated)
        logger.info(
            "item_updated",
            extra={"item_id": item_id, "fields": sorted(changes)},
        )
        return updated

    def delete_item(self, item_id: str) -> None:
        require_id(item_id, "item_id")
        self._storage.delete_item(item_id)
        logger.info("item_deleted", extra={"item_id": item_id})

    def list_items(self, offset: int = 0, limit: int = 100) -> list[Item]:
        return self._storage.list_items(*_page(offset, limit))

    def search_items(self, query: str) -> list[Item]:
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("query", "is required", query)
        return self._storage.search_items(query.strip())

    # -------------------------------------------------------------------------
    # Locations
    # -------------------------------------------------------------------------

    def create_location(
        self,
        location_id: str,
        name: str,
        *,
        location_type: str = "warehouse",
        address: str = "",
        capacity: int = 0,
        is_active: bool = True,
    ) -> Location:
        require_id(location_id, "location_id")
        require_name(name)
        now = self._clock.now()
        location = Location(
            location_id=location_id,
            name=name,
            location_type=require_id(location_type, "location_type"),
            address=optional_text(address, "address", MAX_DESCRIPTION_LENGTH),
            capacity=require_capacity(capacity),
            is_active=bool(is_active),
            created_at=now,
            updated_at=now,
        )
        self._storage.create_location(location)
        logger.info(
            "location_created",
            extra={"location_id": location_id, "location_type": location_type},
        )
        return location

    def get_location(self, location_id: str) -> Location:
        return self.require_location(location_id)

    def require_location(self, location_id: str) -> Location:
        """Validate ``location_id`` and return the location.

        Raises:
            ValidationError: Malformed id.
            LocationNotFoundError: No such location.
        """
        require_id(location_id, "location_id")
        location = self._storage.get_location(location_id)
        if location is None:
            raise LocationNotFoundError(location_id)
        return location

    def update_location(
        self,
        location_id: str,
        *,
        name: str | None = None,
        location_type: str | None = None,
        address: str | None = None,
        capacity: int | None = None,
        is_active: bool | None = None,
    ) -> Location:
        current = self.require_location(location_id)
        changes: dict = {}
        if name is not None:
            changes["name"] = require_name(name)
        if location_type is not None:
            changes["location_type"] = require_id(location_type, "location_type")
        if address is not None:
            changes["address"] = optional_text(address, "address", MAX_DESCRIPTION_LENGTH)
        if capacity is not None:
            changes["capacity"] = require_capacity(capacity)
        if is_active is not None:
            changes["is_active"] = bool(is_active)
        updated = replace(current, updated_at=self._clock.now(), **changes)
        self._storage.update_location(updated)
        logger.info(
            "location_updated",
            extra={"location_id": location_id, "fields": sorted(changes)},
        )
        return updated

    def delete_location(self, location_id: str) -> None:
        require_id(location_id, "location_id")
        self._storage.delete_location(location_id)
        logger.info("location_deleted", extra={"location_id": location_id})

    def list_locations(self, offset: int = 0, limit: int = 100) -> list[Location]:
        return self._storage.list_locations(*_page(offset, limit))
