"""
Valuation - Pure cost layer objects for FIFO/LIFO/weighted-average costing.

The stateful ValuationEngine lives in inventory_services.valuation_service.
"""

from inventory_engines.valuation.cost_layer import (
    CostLayer,
    LayerConsumption,
    LayerValuation,
    standard_value,
    value_layers,
    weighted_average_cost,
)

__all__ = [
    "CostLayer",
    "LayerConsumption",
    "LayerValuation",
    "standard_value",
    "value_layers",
    "weighted_average_cost",
]
