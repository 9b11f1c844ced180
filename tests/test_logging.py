"""Tests for inventory_kernel/logging_config.py: inventory context and error fields."""

import logging
from uuid import uuid4

import pytest

from inventory_kernel.exceptions import (
    InsufficientStockError,
    StorageError,
    VersionMismatchError,
)
from inventory_kernel.logging_config import LogContext, configure_logging, get_logger

logger = get_logger("tests.logging")


def _last(captured_logs, message: str) -> dict:
    return [r for r in captured_logs() if r["message"] == message][-1]


class TestInventoryContext:

    def test_stock_operation_fields(self, captured_logs):
        batch_id = str(uuid4())
        with LogContext.bind(actor_id="loader", batch_id=batch_id):
            logger.info("stock_added", extra={"item_id": "WIDGET", "quantity": 5})

        record = _last(captured_logs, "stock_added")
        assert record["logger"] == "inventory_kernel.tests.logging"
        assert record["actor_id"] == "loader"
        assert record["batch_id"] == batch_id
        assert record["quantity"] == 5
        assert "transfer_id" not in record

    def test_transfer_nested_inside_batch(self, captured_logs):
        with LogContext.bind(batch_id="b-1", actor_id="loader"):
            with LogContext.bind(transfer_id="t-1", actor_id="bob"):
                logger.info("transfer_leg")
            logger.info("batch_step")

        leg = _last(captured_logs, "transfer_leg")
        step = _last(captured_logs, "batch_step")
        assert (leg["batch_id"], leg["transfer_id"], leg["actor_id"]) == ("b-1", "t-1", "bob")
        assert step["actor_id"] == "loader"
        assert "transfer_id" not in step
        assert LogContext.get_all() == {}

    def test_bind_skips_none(self):
        LogContext.set(batch_id="keep")
        with LogContext.bind(batch_id=None, transfer_id="t-2"):
            assert LogContext.get_all() == {"batch_id": "keep", "transfer_id": "t-2"}
        assert LogContext.get_all() == {"batch_id": "keep"}


class TestErrorFields:

    def test_insufficient_stock(self, captured_logs):
        try:
            raise InsufficientStockError("WIDGET", "L1", 10, 4)
        except InsufficientStockError:
            logger.error("ship_failed", exc_info=True)

        record = _last(captured_logs, "ship_failed")
        assert record["exc_code"] == "INSUFFICIENT_STOCK"
        assert record["exc_item_id"] == "WIDGET"
        assert (record["exc_requested"], record["exc_available"]) == (10, 4)
        assert "traceback" in record

    def test_version_mismatch(self, captured_logs):
        try:
            raise VersionMismatchError("WIDGET", "L1", 3)
        except VersionMismatchError:
            logger.warning("cas_lost", exc_info=True)

        record = _last(captured_logs, "cas_lost")
        assert record["exc_code"] == "VERSION_MISMATCH"
        assert record["exc_expected_version"] == 3

    def test_storage_error_keeps_operation_and_cause(self, captured_logs):
        try:
            raise StorageError("update_stock", "write failed", RuntimeError("reset"))
        except StorageError:
            logger.error("stock_write_failed", exc_info=True)

        record = _last(captured_logs, "stock_write_failed")
        assert record["exc_code"] == "STORAGE_ERROR"
        assert record["exc_operation"] == "update_stock"
        assert record["exc_cause"] == "reset"

    def test_plain_exception_has_no_code(self, captured_logs):
        try:
            raise KeyError("WIDGET")
        except KeyError:
            logger.error("lookup_failed", exc_info=True)

        record = _last(captured_logs, "lookup_failed")
        assert record["exc_type"] == "KeyError"
        assert "exc_code" not in record


def test_configure_logging_is_idempotent():
    root = logging.getLogger("inventory_kernel")
    handlers = list(root.handlers)
    configure_logging(handler=logging.NullHandler(), level=logging.CRITICAL)
    assert root.handlers == handlers
    assert root.propagate is False


@pytest.mark.parametrize("name", ["services.stock_ledger", "batch.executor"])
def test_loggers_share_inventory_namespace(name):
    assert get_logger(name).name == f"inventory_kernel.{name}"
