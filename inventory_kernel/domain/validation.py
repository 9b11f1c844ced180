"""
Domain validation helpers.

Pure checks with no I/O.  Every ledger and catalog operation validates its
inputs here before reading any stock state, so a ValidationError always
means nothing was touched.
"""

from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from inventory_kernel.exceptions import ValidationError

_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
_CODE_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]+$")

MAX_ID_LENGTH = 255
MAX_NAME_LENGTH = 500
MAX_DESCRIPTION_LENGTH = 2000
MAX_REFERENCE_LENGTH = 500
MAX_SKU_LENGTH = 100
MAX_LOT_NUMBER_LENGTH = 100
MAX_QUANTITY = 999_999_999
MAX_CAPACITY = 999_999_999_999
MAX_UNIT_COST = Decimal("999999.9999")
# Matches the Numeric(18, 4) money columns.
COST_DECIMAL_PLACES = 4


def require_id(value: Any, field: str) -> str:
    """Identifiers: non-empty, at most 255 chars of letters, digits, '_' or '-'."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "is required", value)
    if len(value) > MAX_ID_LENGTH:
        raise ValidationError(field, f"must be at most {MAX_ID_LENGTH} characters", value)
    if not _ID_PATTERN.match(value):
        raise ValidationError(
            field, "must contain only letters, digits, underscores and hyphens", value,
        )
    return value


def require_name(value: Any, field: str = "name") -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "is required", value)
    if len(value) > MAX_NAME_LENGTH:
        raise ValidationError(field, f"must be at most {MAX_NAME_LENGTH} characters", value)
    return value


def require_code(value: Any, field: str, max_length: int) -> str:
    """SKUs and lot numbers: like ids, but '.' is also allowed."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field, "is required", value)
    if len(value) > max_length:
        raise ValidationError(field, f"must be at most {max_length} characters", value)
    if not _CODE_PATTERN.match(value):
        raise ValidationError(
            field, "must contain only letters, digits, dots, underscores and hyphens", value,
        )
    return value


def optional_text(value: Any, field: str, max_length: int) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(field, "must be a string", value)
    if len(value) > max_length:
        raise ValidationError(field, f"must be at most {max_length} characters", value)
    return value


def require_reference(value: Any) -> str:
    return optional_text(value, "reference", MAX_REFERENCE_LENGTH)


def require_positive_quantity(value: Any, field: str = "quantity") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field, "must be an integer", value)
    if value <= 0:
        raise ValidationError(field, "must be positive", value)
    if value > MAX_QUANTITY:
        raise ValidationError(field, f"must not exceed {MAX_QUANTITY}", value)
    return value


def require_quantity(value: Any, field: str = "quantity") -> int:
    """Signed quantity within the ledger's supported range."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field, "must be an integer", value)
    if abs(value) > MAX_QUANTITY:
        raise ValidationError(field, f"must be within +/-{MAX_QUANTITY}", value)
    return value


def require_unit_cost(value: Any, field: str = "unit_cost") -> Decimal:
    if isinstance(value, (float, bool)) or not isinstance(value, (Decimal, int)):
        raise ValidationError(field, "must be a Decimal", value)
    cost = Decimal(value)
    if not cost.is_finite():
        raise ValidationError(field, "must be a finite number", value)
    if cost.normalize().as_tuple().exponent < -COST_DECIMAL_PLACES:
        raise ValidationError(
            field, f"must have at most {COST_DECIMAL_PLACES} decimal places", value,
        )
    if cost < 0:
        raise ValidationError(field, "must not be negative", value)
    if cost > MAX_UNIT_COST:
        raise ValidationError(field, f"must not exceed {MAX_UNIT_COST}", value)
    return cost


def require_capacity(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("capacity", "must be an integer", value)
    if value < 0:
        raise ValidationError("capacity", "must not be negative", value)
    if value > MAX_CAPACITY:
        raise ValidationError("capacity", f"must not exceed {MAX_CAPACITY}", value)
    return value


def require_aware(value: Any, field: str) -> datetime:
    if not isinstance(value, datetime):
        raise ValidationError(field, "must be a datetime", value)
    if value.tzinfo is None:
        raise ValidationError(field, "must be timezone-aware", value)
    return value


def require_date_range(start: datetime, end: datetime) -> None:
    require_aware(start, "start")
    require_aware(end, "end")
    if start > end:
        raise ValidationError("start", "must not be after end", start)


def require_metadata(value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise ValidationError("metadata", "must map strings to strings", value)
    return dict(value)


def require_uuid(value: Any, field: str) -> UUID:
    """Accept a UUID or its string form."""
    if isinstance(value, UUID):
        return value
    if isinstance(value, str):
        try:
            return UUID(value)
        except ValueError:
            pass
    raise ValidationError(field, "must be a UUID", value)


def require_positive_days(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(field, "must be a positive number of days", value)
    return value
