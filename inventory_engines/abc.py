"""
Module: inventory_engines.abc
Responsibility:
    Pareto (ABC) classification of items by estimated annual value.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Items are ranked by value, highest first; ties keep input order.
    - A cumulative share at or below ``a_percent`` is class A, at or below
      ``a_percent + b_percent`` class B, everything after class C.
    - A non-positive total classifies every item as C.
    - Decimal-only arithmetic.

Failure modes:
    - ValueError when the class percentages are out of range.

Usage:
    from inventory_engines.abc import classify_abc

    ranking = classify_abc(values={"A1": Decimal("800"), "B1": Decimal("200")})
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.types import ABCClass

HUNDRED = Decimal("100")
DEFAULT_A_PERCENT = Decimal("80")
DEFAULT_B_PERCENT = Decimal("15")
DEFAULT_TURNOVER_MULTIPLIER = 10


@dataclass(frozen=True)
class ItemClassification:
    """One item's place in an ABC ranking."""

    item_id: str
    rank: int
    annual_value: Decimal
    cumulative_percent: Decimal
    abc_class: ABCClass


def estimate_annual_value(
    quantity: int,
    unit_cost: Decimal,
    turnover_multiplier: int = DEFAULT_TURNOVER_MULTIPLIER,
) -> Decimal:
    """Annual sales proxy: on-hand quantity times a fixed turnover times cost.

    There is no sales history behind this figure; it ranks by stock value.
    """
    return Decimal(quantity * turnover_multiplier) * unit_cost


@traced_engine("abc", "1.0", fingerprint_fields=("values", "a_percent", "b_percent"))
def classify_abc(
    *,
    values: Mapping[str, Decimal],
    a_percent: Decimal = DEFAULT_A_PERCENT,
    b_percent: Decimal = DEFAULT_B_PERCENT,
) -> list[ItemClassification]:
    """Rank items and assign A/B/C classes.

    Args:
        values: Item id to annual value.  Iteration order breaks ties.
        a_percent: Cumulative share (percent) covered by class A.
        b_percent: Additional share covered by class B.

    Returns:
        Classifications in rank order.

    Raises:
        ValueError: a_percent <= 0, b_percent < 0 or a_percent + b_percent > 100.
    """
    a_limit = Decimal(a_percent)
    b_limit = a_limit + Decimal(b_percent)
    if a_limit <= 0 or b_percent < 0 or b_limit > HUNDRED:
        raise ValueError(
            f"Invalid ABC split: A={a_percent}%, B={b_percent}% (need A > 0, B >= 0, A + B <= 100)"
        )

    ranked = sorted(values.items(), key=lambda kv: kv[1], reverse=True)
    total = sum((v for _, v in ranked), Decimal("0"))

    result: list[ItemClassification] = []
    cumulative = Decimal("0")
    for rank, (item_id, value) in enumerate(ranked, start=1):
        if total <= 0:
            share = Decimal("0")
            abc_class = ABCClass.C
        else:
            cumulative += value
            share = cumulative * HUNDRED / total
            if share <= a_limit:
                abc_class = ABCClass.A
            elif share <= b_limit:
                abc_class = ABCClass.B
            else:
                abc_class = ABCClass.C
        result.append(
            ItemClassification(
                item_id=item_id,
                rank=rank,
                annual_value=value,
                cumulative_percent=share,
                abc_class=abc_class,
            )
        )
    return result
