"""
inventory_services.inventory_system -- Central DI container for inventory services.

Responsibility:
    Creates every service exactly once over one storage backend and wires
    them together.  No service constructs its own collaborators.

Architecture position:
    Services -- top of the service layer; the only place kernel services
    are constructed and composed.

Invariants enforced:
    - Single-instance lifecycle: one catalog, journal, alert engine and
      ledger per system; they share the same storage, clock, publisher
      and policy.
    - DI transparency: all wiring is visible in ``__init__``.

Failure modes:
    - StorageError from ``from_config`` if the database cannot be reached.

Usage:
    from inventory_services.inventory_system import InventorySystem

    system = InventorySystem(InMemoryStorage())
    system.catalog.create_item("WIDGET-1", "Widget", unit_cost=Decimal("2.50"))
    system.catalog.create_location("WH1", "Main warehouse")
    system.ledger.add("WIDGET-1", "WH1", 100, "PO-1", actor="alice")
    system.valuation.calculate_value("WIDGET-1", "WH1", "fifo")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.events import EventPublisher, NullEventPublisher
from inventory_kernel.domain.policy import LedgerPolicy
from inventory_kernel.logging_config import get_logger
from inventory_kernel.services.alert_engine import AlertEngine
from inventory_kernel.services.catalog_service import CatalogService
from inventory_kernel.services.lot_service import LotService
from inventory_kernel.services.stock_ledger import StockLedger
from inventory_kernel.services.transaction_journal import TransactionJournal
from inventory_kernel.storage.base import InventoryStorage
from inventory_kernel.storage.memory import InMemoryStorage
from inventory_kernel.storage.sql import SqlAlchemyStorage
from inventory_services.analytics_service import ABCClassifier, AnalyticsSettings
from inventory_services.valuation_service import ValuationEngine

if TYPE_CHECKING:
    from inventory_config.schema import InventoryConfig

logger = get_logger("services.inventory_system")


class InventorySystem:
    """Central factory for inventory services.

    Contract:
        Receives a storage backend and optional publisher, clock, policy and
        analytics settings.  Exposes the services as public attributes.

    Non-goals:
        - Does NOT build the batch executor (inventory_batch depends on
          this layer, not the other way round).  Pass ``system.ledger`` to
          ``BatchExecutor``.
    """

    def __init__(
        self,
        storage: InventoryStorage,
        publisher: EventPublisher | None = None,
        clock: Clock | None = None,
        policy: LedgerPolicy | None = None,
        analytics_settings: AnalyticsSettings | None = None,
    ) -> None:
        self.storage = storage
        self.publisher = publisher or NullEventPublisher()
        self.clock = clock or SystemClock()
        self.policy = policy or LedgerPolicy()

        # Foundational services
        self.catalog = CatalogService(storage, self.clock)
        self.journal = TransactionJournal(storage, self.catalog, self.clock, self.policy)
        self.alerts = AlertEngine(storage, self.publisher, self.clock, self.policy)
        self.lots = LotService(storage, self.catalog, self.clock)

        # Ledger (depends on catalog, journal, alerts)
        self.ledger = StockLedger(
            storage,
            self.catalog,
            self.journal,
            self.alerts,
            publisher=self.publisher,
            clock=self.clock,
            policy=self.policy,
        )

        # Read-only analytics
        self.valuation = ValuationEngine(storage, self.catalog, self.journal)
        self.analytics = ABCClassifier(
            storage,
            self.catalog,
            self.journal,
            self.valuation,
            clock=self.clock,
            settings=analytics_settings,
        )

    @classmethod
    def from_config(
        cls,
        config: InventoryConfig,
        publisher: EventPublisher | None = None,
        clock: Clock | None = None,
    ) -> InventorySystem:
        """Build storage, policy and settings from configuration.

        A ``database_url`` selects the SQL backend; otherwise storage is in
        memory.  The configured default location is created if missing.
        """
        from inventory_config.bridges import (
            analytics_settings_from_config,
            ledger_policy_from_config,
        )

        if config.database_url:
            storage: InventoryStorage = SqlAlchemyStorage.from_url(config.database_url)
        else:
            storage = InMemoryStorage()
        system = cls(
            storage,
            publisher=publisher,
            clock=clock,
            policy=ledger_policy_from_config(config),
            analytics_settings=analytics_settings_from_config(config),
        )
        if storage.get_location(config.default_location) is None:
            system.catalog.create_location(config.default_location, config.default_location)
        logger.info(
            "inventory_system_started",
            extra={
                "backend": type(storage).__name__,
                "default_location": config.default_location,
            },
        )
        return system

    def ping(self) -> bool:
        return self.storage.ping()

    def close(self) -> None:
        self.storage.close()
