"""
Module: inventory_engines
Responsibility:
    Pure calculation engines: cost-layer valuation and ABC classification.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import inventory_kernel domain types and logging.
    MUST NOT import inventory_services or inventory_batch.

Invariants enforced:
    - Purity: engines never read the clock; times are passed in.
    - Decimal-only arithmetic for monetary amounts.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine calls are traced via ``@traced_engine`` (see
    ``inventory_engines.tracer``).
"""

from inventory_engines.abc import ItemClassification, classify_abc, estimate_annual_value
from inventory_engines.valuation import (
    CostLayer,
    LayerConsumption,
    LayerValuation,
    standard_value,
    value_layers,
    weighted_average_cost,
)

__all__ = [
    "CostLayer",
    "ItemClassification",
    "LayerConsumption",
    "LayerValuation",
    "classify_abc",
    "estimate_annual_value",
    "standard_value",
    "value_layers",
    "weighted_average_cost",
]
