"""
Pytest fixtures for the inventory kernel test suite.

Provides:
- Structured logging setup and a JSON log capture fixture
- A deterministic clock and a recording event publisher
- An in-memory InventorySystem seeded with a small catalog
- SQLite-backed storage for the SQLAlchemy backend tests
"""

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest

from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.domain.events import RecordingEventPublisher
from inventory_kernel.domain.policy import LedgerPolicy
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from inventory_kernel.storage.memory import InMemoryStorage
from inventory_kernel.storage.sql import SqlAlchemyStorage
from inventory_services.inventory_system import InventorySystem


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture inventory_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, system):
            system.ledger.add("WIDGET", "L1", 5)
            logs = captured_logs()
            assert any(r["message"] == "stock_added" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("inventory_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Core fixtures
# =============================================================================


@pytest.fixture
def clock():
    """Clock fixed at 2024-01-01 12:00 UTC."""
    return DeterministicClock()


@pytest.fixture
def publisher():
    return RecordingEventPublisher()


@pytest.fixture
def policy():
    return LedgerPolicy()


@pytest.fixture
def storage():
    return InMemoryStorage()


def seed_catalog(system: InventorySystem) -> None:
    """Items WIDGET / GADGET / BOLT and locations L1 / L2 / L3."""
    system.catalog.create_item("WIDGET", "Widget", sku="WID-001", unit_cost=Decimal("10.00"))
    system.catalog.create_item("GADGET", "Gadget", sku="GAD-001", unit_cost=Decimal("25.00"))
    system.catalog.create_item("BOLT", "Bolt", sku="BLT-001", unit_cost=Decimal("0.50"))
    system.catalog.create_location("L1", "Main warehouse")
    system.catalog.create_location("L2", "Store front", location_type="store")
    system.catalog.create_location("L3", "Overflow")


@pytest.fixture
def system(storage, publisher, clock, policy):
    """In-memory InventorySystem with the seeded catalog."""
    inventory = InventorySystem(storage, publisher=publisher, clock=clock, policy=policy)
    seed_catalog(inventory)
    return inventory


@pytest.fixture
def ledger(system):
    return system.ledger


# =============================================================================
# SQL fixtures
# =============================================================================


@pytest.fixture
def sql_storage():
    """Fresh in-memory SQLite database per test."""
    backend = SqlAlchemyStorage.from_url("sqlite://")
    yield backend
    backend.close()


@pytest.fixture
def sql_system(sql_storage, publisher, clock):
    inventory = InventorySystem(sql_storage, publisher=publisher, clock=clock)
    seed_catalog(inventory)
    return inventory
