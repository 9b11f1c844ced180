"""
Tests for SqlAlchemyStorage on SQLite.

Covers compare-and-swap on stock records, journal immutability, and
round-tripping the domain types through the ORM models.
"""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from inventory_kernel.domain.types import (
    Item,
    MovementType,
    StockRecord,
    TransferIntent,
    TransferStatus,
)
from inventory_kernel.exceptions import (
    DuplicateItemError,
    DuplicateLocationError,
    ImmutabilityViolationError,
    InsufficientStockError,
    ItemNotFoundError,
    ValidationError,
    VersionMismatchError,
)
from inventory_kernel.models.journal import JournalEntryModel


def _record(clock, version=1, quantity=10):
    return StockRecord(
        item_id="WIDGET",
        location_id="L1",
        quantity=quantity,
        reserved=0,
        version=version,
        updated_at=clock.now(),
        updated_by="alice",
    )


class TestCompareAndSwap:

    def test_stale_version_rejected(self, sql_system, sql_storage, clock):
        sql_system.ledger.add("WIDGET", "L1", 10)
        current = sql_storage.get_stock("WIDGET", "L1")
        winner = current.next(quantity=11, updated_at=clock.now(), updated_by="a")
        loser = current.next(quantity=99, updated_at=clock.now(), updated_by="b")

        sql_storage.update_stock(winner, expected_version=current.version)
        with pytest.raises(VersionMismatchError) as exc_info:
            sql_storage.update_stock(loser, expected_version=current.version)
        assert exc_info.value.expected_version == 1

        stored = sql_storage.get_stock("WIDGET", "L1")
        assert stored.quantity == 11
        assert stored.version == 2

    def test_create_existing_record_rejected(self, sql_system, sql_storage, clock):
        sql_storage.create_stock(_record(clock))
        with pytest.raises(VersionMismatchError):
            sql_storage.create_stock(_record(clock))

    def test_update_missing_record_rejected(self, sql_system, sql_storage, clock):
        with pytest.raises(VersionMismatchError):
            sql_storage.update_stock(_record(clock, version=2), expected_version=1)


class TestLedgerOnSql:

    def test_receive_ship_and_history(self, sql_system, clock):
        ledger = sql_system.ledger
        ledger.add("WIDGET", "L1", 100, "PO-1", actor="alice", unit_cost=Decimal("10"))
        clock.advance(60)
        ledger.add("WIDGET", "L1", 50, "PO-2", actor="alice", unit_cost=Decimal("20"))
        clock.advance(60)
        record = ledger.remove("WIDGET", "L1", 30, "SO-1", actor="bob")
        assert (record.quantity, record.version) == (120, 3)

        history = sql_system.journal.history_for_item("WIDGET")
        assert [e.reference for e in history] == ["SO-1", "PO-2", "PO-1"]
        assert history[0].created_at == clock.now()
        assert history[0].created_at.tzinfo is not None
        assert history[2].unit_cost == Decimal("10")

        with pytest.raises(InsufficientStockError):
            ledger.remove("WIDGET", "L1", 500)

    def test_fifo_valuation_on_sql(self, sql_system, clock):
        sql_system.ledger.add("WIDGET", "L1", 100, unit_cost=Decimal("10"))
        clock.advance(1)
        sql_system.ledger.add("WIDGET", "L1", 100, unit_cost=Decimal("20"))
        sql_system.ledger.remove("WIDGET", "L1", 50)
        assert sql_system.valuation.calculate_value("WIDGET", "L1", "fifo") == Decimal("2000")
        assert sql_system.valuation.calculate_value("WIDGET", "L1", "lifo") == Decimal("2500")

    def test_transfer_and_intent(self, sql_system, sql_storage):
        sql_system.ledger.add("WIDGET", "L1", 10)
        intent = sql_system.ledger.transfer("WIDGET", "L1", "L2", 4, "T-1")
        saved = sql_storage.get_transfer_intent(intent.intent_id)
        assert saved.status == TransferStatus.COMPLETED
        assert sql_storage.get_stock("WIDGET", "L2").quantity == 4
        transfer_entry = sql_system.journal.history_for_item("WIDGET")[0]
        assert transfer_entry.movement_type == MovementType.TRANSFER
        assert transfer_entry.metadata == {"transfer_id": str(intent.intent_id)}

    def test_date_range(self, sql_system, clock):
        start = clock.now()
        sql_system.ledger.add("WIDGET", "L1", 1, "IN")
        clock.advance_days(2)
        sql_system.ledger.add("WIDGET", "L1", 1, "OUT")
        entries = sql_system.journal.history_for_date_range(
            "WIDGET", start, start + timedelta(days=1),
        )
        assert [e.reference for e in entries] == ["IN"]


class TestJournalImmutability:

    def test_update_blocked(self, sql_system, sql_storage):
        sql_system.ledger.add("WIDGET", "L1", 5, "PO-1")
        with Session(sql_storage.engine) as session:
            row = session.scalars(select(JournalEntryModel)).one()
            row.quantity = 500
            with pytest.raises(ImmutabilityViolationError):
                session.flush()
            session.rollback()
        assert sql_system.journal.history_for_item("WIDGET")[0].quantity == 5

    def test_delete_blocked(self, sql_system, sql_storage):
        sql_system.ledger.add("WIDGET", "L1", 5, "PO-1")
        with Session(sql_storage.engine) as session:
            row = session.scalars(select(JournalEntryModel)).one()
            session.delete(row)
            with pytest.raises(ImmutabilityViolationError):
                session.flush()
            session.rollback()
        assert len(sql_system.journal.history_for_item("WIDGET")) == 1

    def test_unregister_allows_tampering(self, sql_system, sql_storage):
        sql_system.ledger.add("WIDGET", "L1", 5, "PO-1")
        unregister_immutability_listeners()
        try:
            with Session(sql_storage.engine) as session:
                row = session.scalars(select(JournalEntryModel)).one()
                row.reference = "EDITED"
                session.commit()
        finally:
            register_immutability_listeners()
        assert sql_system.journal.history_for_item("WIDGET")[0].reference == "EDITED"


class TestCatalogAndLifecycle:

    def test_duplicates(self, sql_system):
        with pytest.raises(DuplicateItemError):
            sql_system.catalog.create_item("WIDGET", "Again")
        with pytest.raises(DuplicateLocationError):
            sql_system.catalog.create_location("L1", "Again")

    def test_item_round_trip(self, sql_storage, clock):
        item = Item(
            item_id="NEW",
            name="New thing",
            sku="NEW-1",
            category="misc",
            unit_cost=Decimal("1.2345"),
            created_at=clock.now(),
            updated_at=clock.now(),
        )
        sql_storage.create_item(item)
        assert sql_storage.get_item("NEW") == item

    def test_update_unknown_item(self, sql_storage, clock):
        with pytest.raises(ItemNotFoundError):
            sql_storage.update_item(Item(item_id="GHOST", name="Ghost"))

    def test_search(self, sql_system):
        assert [i.item_id for i in sql_system.catalog.search_items("widget")] == ["WIDGET"]

    def test_lot_round_trip(self, sql_system, clock):
        lot = sql_system.lots.create_lot(
            "WIDGET", "LOT-1", 10, Decimal("3.50"), clock.now() + timedelta(days=5),
        )
        assert sql_system.lots.get_lot(lot.lot_id) == lot
        assert sql_system.lots.get_expiring_lots(7) == [lot]

    def test_alert_resolution(self, sql_system, clock):
        sql_system.ledger.add("WIDGET", "L1", 5)
        sql_system.ledger.remove("WIDGET", "L1", 1)
        [alert] = sql_system.alerts.get_active_alerts("L1")
        resolved = sql_system.alerts.resolve_alert(alert.alert_id)
        assert resolved.is_active is False
        assert sql_system.alerts.get_active_alerts() == []

    def test_open_transfer_intents(self, sql_storage, clock):
        now = clock.now()
        intent = TransferIntent(
            intent_id=uuid4(),
            item_id="WIDGET",
            from_location="L1",
            to_location="L2",
            quantity=3,
            reference="T-1",
            status=TransferStatus.SOURCE_DEBITED,
            created_at=now,
            updated_at=now,
            created_by="bob",
        )
        sql_storage.save_transfer_intent(intent)
        sql_storage.save_transfer_intent(intent.with_status(TransferStatus.COMPLETED, now))
        assert sql_storage.list_transfer_intents([TransferStatus.SOURCE_DEBITED]) == []
        [saved] = sql_storage.list_transfer_intents()
        assert saved.status == TransferStatus.COMPLETED

    def test_ping(self, sql_storage):
        assert sql_storage.ping() is True


class TestBackendsAgree:

    def _history(self, system, clock):
        system.ledger.add("WIDGET", "L1", 3, "PO-1", unit_cost=Decimal("1.0005"))
        clock.advance(1)
        system.ledger.add("WIDGET", "L1", 2, "PO-2", unit_cost=Decimal("2.1234"))
        clock.advance(1)
        system.ledger.remove("WIDGET", "L1", 1, "SO-1")

    @pytest.mark.parametrize("method", ["fifo", "lifo", "average", "standard"])
    def test_same_history_same_value(self, system, sql_system, clock, method):
        self._history(system, clock)
        self._history(sql_system, clock)
        memory_value = system.valuation.calculate_value("WIDGET", "L1", method)
        sql_value = sql_system.valuation.calculate_value("WIDGET", "L1", method)
        assert memory_value == sql_value

    def test_fifo_value_with_four_place_costs(self, system, sql_system, clock):
        self._history(system, clock)
        self._history(sql_system, clock)
        for s in (system, sql_system):
            assert s.valuation.calculate_value("WIDGET", "L1", "fifo") == Decimal("5.1249")

    def test_excess_precision_rejected_by_both(self, system, sql_system):
        for s in (system, sql_system):
            with pytest.raises(ValidationError):
                s.ledger.add("WIDGET", "L1", 3, unit_cost=Decimal("1.00005"))
            assert s.storage.get_stock("WIDGET", "L1") is None
