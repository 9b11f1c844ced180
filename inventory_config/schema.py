"""
InventoryConfig schema.

The human-authored settings for one inventory deployment.  YAML files are
parsed into this type by ``inventory_config.loader``; ``bridges`` turns it
into kernel inputs (LedgerPolicy) and service settings.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from decimal import Decimal, InvalidOperation
from typing import Any

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def _to_decimal(value: Any, name: str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # YAML floats go through str() so 80.5 becomes Decimal("80.5") exactly.
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"{name} must be a number, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


@dataclass(frozen=True)
class InventoryConfig:
    """Validated inventory settings.

    Raises ValueError from ``__post_init__`` on any out-of-range value.
    """

    allow_negative_stock: bool = False
    default_location: str = "DEFAULT"
    low_stock_threshold: int = 10
    history_default_limit: int = 100
    abc_turnover_multiplier: int = 10
    abc_class_a_percent: Decimal = Decimal("80")
    abc_class_b_percent: Decimal = Decimal("15")
    overstock_alerts_enabled: bool = False
    discrepancy_alert_threshold: int | None = None
    default_actor: str = "system"
    database_url: str | None = None
    log_level: str = "info"

    def __post_init__(self) -> None:
        for name in ("allow_negative_stock", "overstock_alerts_enabled"):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be true or false")
        for name in ("low_stock_threshold", "history_default_limit", "abc_turnover_multiplier"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        if not isinstance(self.default_location, str) or not self.default_location.strip():
            raise ValueError("default_location must be a non-empty string")
        if not isinstance(self.default_actor, str) or not self.default_actor.strip():
            raise ValueError("default_actor must be a non-empty string")
        if self.low_stock_threshold < 0:
            raise ValueError("low_stock_threshold must be >= 0")
        if self.history_default_limit <= 0:
            raise ValueError("history_default_limit must be > 0")
        if self.abc_turnover_multiplier <= 0:
            raise ValueError("abc_turnover_multiplier must be > 0")

        # Percentages may arrive as YAML ints or strings; store them as Decimal.
        a = _to_decimal(self.abc_class_a_percent, "abc_class_a_percent")
        b = _to_decimal(self.abc_class_b_percent, "abc_class_b_percent")
        if a <= 0 or b < 0 or a + b > 100:
            raise ValueError(
                "abc_class_a_percent must be > 0, abc_class_b_percent >= 0, "
                "and together at most 100"
            )
        object.__setattr__(self, "abc_class_a_percent", a)
        object.__setattr__(self, "abc_class_b_percent", b)

        threshold = self.discrepancy_alert_threshold
        if threshold is not None and (
            isinstance(threshold, bool) or not isinstance(threshold, int) or threshold <= 0
        ):
            raise ValueError("discrepancy_alert_threshold must be a positive integer or null")
        if self.database_url is not None and not isinstance(self.database_url, str):
            raise ValueError("database_url must be a string or null")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InventoryConfig:
        """Build from a parsed mapping; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown inventory config keys: {', '.join(unknown)}")
        return cls(**data)

    def with_defaults(self, **overrides: Any) -> InventoryConfig:
        """Copy with selected fields replaced (validated again)."""
        return replace(self, **overrides)
