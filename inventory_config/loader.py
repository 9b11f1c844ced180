"""
Configuration Loader (``inventory_config.loader``).

Responsibility
--------------
Reads one YAML file and parses its ``inventory:`` section into an
``InventoryConfig``.  Environment variables and multi-file overlays are
not consulted.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong shape or out-of-range values  -> ``ValueError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from inventory_config.schema import InventoryConfig
from inventory_kernel.logging_config import get_logger

logger = get_logger("config.loader")

SECTION_KEY = "inventory"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file; an empty file yields an empty dict."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def parse_config(data: dict[str, Any]) -> InventoryConfig:
    """Parse a document dict; a missing ``inventory`` section means all defaults."""
    section = data.get(SECTION_KEY)
    if section is None:
        return InventoryConfig()
    if not isinstance(section, dict):
        raise ValueError(f"'{SECTION_KEY}' section must be a mapping")
    return InventoryConfig.from_dict(section)


def load_config(path: Path | str) -> InventoryConfig:
    config = parse_config(load_yaml_file(Path(path)))
    logger.info(
        "config_loaded",
        extra={
            "path": str(path),
            "default_location": config.default_location,
            "allow_negative_stock": config.allow_negative_stock,
            "low_stock_threshold": config.low_stock_threshold,
        },
    )
    return config
