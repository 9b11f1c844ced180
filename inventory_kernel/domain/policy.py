"""
LedgerPolicy -- kernel-side rule settings for the stock ledger.

The kernel never reads configuration files.  ``inventory_config.bridges``
builds a LedgerPolicy from the loaded configuration and hands it in.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LedgerPolicy:
    """Rule settings consumed by StockLedger, AlertEngine and the journal.

    Attributes:
        allow_negative_stock: Permit removals and adjustments below zero.
        low_stock_threshold: A removal leaving quantity at or below this
            raises a low-stock alert.
        history_default_limit: Row cap used when a history query passes a
            non-positive limit.
        overstock_alerts_enabled: Raise an over_stock alert when an add
            pushes a location past its capacity.
        discrepancy_alert_threshold: Raise a discrepancy alert when an
            adjustment moves quantity by at least this much.  None disables.
        default_actor: Actor recorded when callers do not pass one.
    """

    allow_negative_stock: bool = False
    low_stock_threshold: int = 10
    history_default_limit: int = 100
    overstock_alerts_enabled: bool = False
    discrepancy_alert_threshold: int | None = None
    default_actor: str = "system"
