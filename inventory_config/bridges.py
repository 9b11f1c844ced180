"""
Config -> Kernel Bridges.

Functions that convert an InventoryConfig into kernel and service inputs.
They live here (the producer) because the kernel must NEVER import
inventory_config.

Usage:
    from inventory_config.bridges import ledger_policy_from_config

    config = load_config("inventory.yaml")
    policy = ledger_policy_from_config(config)
"""

from __future__ import annotations

import logging

from inventory_config.schema import InventoryConfig
from inventory_kernel.domain.policy import LedgerPolicy
from inventory_kernel.logging_config import configure_logging
from inventory_services.analytics_service import AnalyticsSettings


def ledger_policy_from_config(config: InventoryConfig) -> LedgerPolicy:
    return LedgerPolicy(
        allow_negative_stock=config.allow_negative_stock,
        low_stock_threshold=config.low_stock_threshold,
        history_default_limit=config.history_default_limit,
        overstock_alerts_enabled=config.overstock_alerts_enabled,
        discrepancy_alert_threshold=config.discrepancy_alert_threshold,
        default_actor=config.default_actor,
    )


def analytics_settings_from_config(config: InventoryConfig) -> AnalyticsSettings:
    return AnalyticsSettings(
        turnover_multiplier=config.abc_turnover_multiplier,
        class_a_percent=config.abc_class_a_percent,
        class_b_percent=config.abc_class_b_percent,
    )


def log_level_from_config(config: InventoryConfig) -> int:
    return logging.getLevelName(config.log_level.upper())


def configure_logging_from_config(config: InventoryConfig) -> None:
    """Apply the configured level (no-op if logging is already configured)."""
    configure_logging(level=log_level_from_config(config))
