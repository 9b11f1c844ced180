"""
inventory_config -- Inventory configuration: schema, YAML loader, kernel bridges.

The kernel never imports this package.  Callers load an InventoryConfig and
hand the bridged LedgerPolicy / AnalyticsSettings to the services, usually
through ``InventorySystem.from_config``.
"""

from inventory_config.loader import load_config, parse_config
from inventory_config.schema import InventoryConfig

__all__ = ["InventoryConfig", "load_config", "parse_config"]
