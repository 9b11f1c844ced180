"""
ORM-Level Immutability Enforcement for the movement journal.

===============================================================================
WHY THIS EXISTS
===============================================================================

The journal is the audit trail for every stock change.  A movement that has
been recorded is never edited and never removed; corrections are new
movements (an adjustment) that leave a visible trail.

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database.  We register listeners on JournalEntryModel that raise
ImmutabilityViolationError, which aborts the flush:

    session.flush()
         |
         v
    [before_update event] --> _check_journal_entry_update() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _check_journal_entry_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (never reached for journal rows)

===============================================================================
USAGE
===============================================================================

    from inventory_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup

Tests that need to tamper on purpose:

    unregister_immutability_listeners()
    ...
    register_immutability_listeners()
"""

from sqlalchemy import event

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _check_journal_entry_update(mapper, connection, target):
    """Prevent any update to a recorded movement."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "JournalEntry",
            "entity_id": str(target.entry_id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="JournalEntry",
        entity_id=str(target.entry_id),
        reason="Journal entries are append-only and cannot be modified",
    )


def _check_journal_entry_delete(mapper, connection, target):
    """Prevent deletion of a recorded movement."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "JournalEntry",
            "entity_id": str(target.entry_id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="JournalEntry",
        entity_id=str(target.entry_id),
        reason="Journal entries cannot be deleted",
    )


def register_immutability_listeners():
    """Register the journal immutability listeners (idempotent)."""
    from inventory_kernel.models.journal import JournalEntryModel

    if not event.contains(JournalEntryModel, "before_update", _check_journal_entry_update):
        event.listen(JournalEntryModel, "before_update", _check_journal_entry_update)
    if not event.contains(JournalEntryModel, "before_delete", _check_journal_entry_delete):
        event.listen(JournalEntryModel, "before_delete", _check_journal_entry_delete)


def unregister_immutability_listeners():
    """
    Remove the journal immutability listeners.

    WARNING: Only use this in tests that intentionally violate immutability.
    """
    from inventory_kernel.models.journal import JournalEntryModel

    if event.contains(JournalEntryModel, "before_update", _check_journal_entry_update):
        event.remove(JournalEntryModel, "before_update", _check_journal_entry_update)
    if event.contains(JournalEntryModel, "before_delete", _check_journal_entry_delete):
        event.remove(JournalEntryModel, "before_delete", _check_journal_entry_delete)
