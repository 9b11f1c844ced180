"""
inventory_engines.valuation.cost_layer -- Cost layers and layer consumption.

Responsibility:
    Value an on-hand quantity against a sequence of priced receipts (cost
    layers) by FIFO, LIFO or weighted average, and at a standard unit cost.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    The stateful ValuationEngine that reads layers out of the journal lives
    in inventory_services.valuation_service.

Invariants enforced:
    - Positive layer quantity, non-negative unit cost (CostLayer.__post_init__).
    - Decimal-only arithmetic; floats never enter a valuation.
    - Consumption never takes more than the requested quantity.  If the
      layers hold less than the on-hand quantity the uncovered remainder is
      left unvalued (reported as ``unvalued_quantity``).

Failure modes:
    - ValueError from CostLayer.__post_init__ on bad quantity or cost.
    - ValueError from weighted_average_cost on an empty layer set.
    - ValueError from value_layers for methods other than FIFO/LIFO.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.types import ValuationMethod
from inventory_kernel.logging_config import get_logger

logger = get_logger("engines.valuation.cost_layer")

ZERO = Decimal("0")


@dataclass(frozen=True, slots=True)
class CostLayer:
    """
    Units received together at one unit cost.

    ``received_at`` orders layers for FIFO/LIFO; callers pass layers already
    sorted oldest-first so that equal timestamps keep journal order.
    """

    quantity: int
    unit_cost: Decimal
    received_at: datetime
    source_id: UUID | None = None

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError(f"Layer quantity must be positive, got {self.quantity}")
        if self.unit_cost < 0:
            raise ValueError(f"Layer unit cost cannot be negative, got {self.unit_cost}")

    @property
    def total_cost(self) -> Decimal:
        return self.unit_cost * self.quantity


@dataclass(frozen=True, slots=True)
class LayerConsumption:
    """How much of one layer a valuation used."""

    layer: CostLayer
    quantity_used: int

    @property
    def value(self) -> Decimal:
        return self.layer.unit_cost * self.quantity_used

    @property
    def remaining_in_layer(self) -> int:
        return self.layer.quantity - self.quantity_used


@dataclass(frozen=True, slots=True)
class LayerValuation:
    """Result of valuing a quantity against ordered layers."""

    method: ValuationMethod
    quantity: int
    consumptions: tuple[LayerConsumption, ...]

    @property
    def value(self) -> Decimal:
        return sum((c.value for c in self.consumptions), ZERO)

    @property
    def valued_quantity(self) -> int:
        return sum(c.quantity_used for c in self.consumptions)

    @property
    def unvalued_quantity(self) -> int:
        return self.quantity - self.valued_quantity


@traced_engine("valuation", "1.0", fingerprint_fields=("method", "quantity"))
def value_layers(
    *,
    layers: Sequence[CostLayer],
    quantity: int,
    method: ValuationMethod,
) -> LayerValuation:
    """Consume ``quantity`` units from ``layers`` in method order.

    Preconditions:
        ``layers`` are oldest-first.  FIFO walks them as given, LIFO in
        reverse.  The last layer touched may be used partially.

    Raises:
        ValueError: ``method`` is not FIFO or LIFO.
    """
    if method == ValuationMethod.FIFO:
        ordered: Sequence[CostLayer] = layers
    elif method == ValuationMethod.LIFO:
        ordered = list(reversed(layers))
    else:
        raise ValueError(f"Layer consumption needs FIFO or LIFO, got {method}")

    consumptions: list[LayerConsumption] = []
    remaining = max(quantity, 0)
    for layer in ordered:
        if remaining <= 0:
            break
        used = min(layer.quantity, remaining)
        consumptions.append(LayerConsumption(layer=layer, quantity_used=used))
        remaining -= used

    if remaining > 0:
        logger.debug(
            "layers_exhausted",
            extra={"method": method.value, "quantity": quantity, "unvalued": remaining},
        )
    return LayerValuation(method=method, quantity=quantity, consumptions=tuple(consumptions))


@traced_engine("valuation.average", "1.0")
def weighted_average_cost(layers: Sequence[CostLayer]) -> Decimal:
    """Total cost over total quantity of every layer.

    Raises:
        ValueError: No layers (nothing to average).
    """
    total_quantity = sum(layer.quantity for layer in layers)
    if total_quantity == 0:
        raise ValueError("Weighted average cost needs at least one cost layer")
    total_cost = sum((layer.total_cost for layer in layers), ZERO)
    return total_cost / total_quantity


def standard_value(unit_cost: Decimal, quantity: int) -> Decimal:
    return unit_cost * quantity
