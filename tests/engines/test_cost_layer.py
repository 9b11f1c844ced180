"""Tests for inventory_engines.valuation.cost_layer (pure, no storage)."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from inventory_engines.valuation import (
    CostLayer,
    standard_value,
    value_layers,
    weighted_average_cost,
)
from inventory_kernel.domain.types import ValuationMethod

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _layers(*specs: tuple[int, str]) -> list[CostLayer]:
    return [
        CostLayer(quantity=q, unit_cost=Decimal(c), received_at=T0 + timedelta(hours=n))
        for n, (q, c) in enumerate(specs)
    ]


class TestCostLayer:

    def test_total_cost(self):
        assert CostLayer(4, Decimal("2.50"), T0).total_cost == Decimal("10.00")

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_quantity_must_be_positive(self, quantity):
        with pytest.raises(ValueError):
            CostLayer(quantity, Decimal("1"), T0)

    def test_cost_must_not_be_negative(self):
        with pytest.raises(ValueError):
            CostLayer(1, Decimal("-1"), T0)


class TestValueLayers:

    def test_fifo_consumes_oldest_first(self):
        result = value_layers(
            layers=_layers((100, "10"), (100, "20")), quantity=150, method=ValuationMethod.FIFO,
        )
        assert result.value == Decimal("2000")
        assert [c.quantity_used for c in result.consumptions] == [100, 50]
        assert result.consumptions[1].remaining_in_layer == 50

    def test_lifo_consumes_newest_first(self):
        result = value_layers(
            layers=_layers((100, "10"), (100, "20")), quantity=150, method=ValuationMethod.LIFO,
        )
        assert result.value == Decimal("2500")
        assert [c.layer.unit_cost for c in result.consumptions] == [Decimal("20"), Decimal("10")]

    def test_short_layers_leave_units_unvalued(self):
        result = value_layers(layers=_layers((10, "3")), quantity=25, method=ValuationMethod.FIFO)
        assert result.value == Decimal("30")
        assert result.valued_quantity == 10
        assert result.unvalued_quantity == 15

    def test_no_layers(self):
        result = value_layers(layers=[], quantity=5, method=ValuationMethod.LIFO)
        assert result.value == Decimal("0")
        assert result.unvalued_quantity == 5

    def test_other_methods_rejected(self):
        with pytest.raises(ValueError):
            value_layers(layers=_layers((1, "1")), quantity=1, method=ValuationMethod.STANDARD)

    def test_emits_engine_trace(self, captured_logs):
        value_layers(layers=_layers((1, "1")), quantity=1, method=ValuationMethod.FIFO)
        [trace] = [r for r in captured_logs() if r["message"] == "INVENTORY_ENGINE_TRACE"]
        assert trace["engine_name"] == "valuation"
        assert len(trace["input_fingerprint"]) == 16


class TestAverageAndStandard:

    def test_weighted_average(self):
        assert weighted_average_cost(_layers((100, "10"), (300, "30"))) == Decimal("25")

    def test_weighted_average_empty(self):
        with pytest.raises(ValueError):
            weighted_average_cost([])

    def test_standard_value(self):
        assert standard_value(Decimal("1.25"), 8) == Decimal("10.00")


layer_specs = st.lists(
    st.tuples(
        st.integers(min_value=1, max_value=1000),
        st.decimals(min_value=0, max_value=1000, places=2, allow_nan=False, allow_infinity=False),
    ),
    max_size=8,
)


@settings(max_examples=100, deadline=None)
@given(specs=layer_specs, quantity=st.integers(min_value=0, max_value=10_000))
def test_fifo_and_lifo_value_the_same_units(specs, quantity):
    layers = [
        CostLayer(quantity=q, unit_cost=c, received_at=T0 + timedelta(minutes=n))
        for n, (q, c) in enumerate(specs)
    ]
    fifo = value_layers(layers=layers, quantity=quantity, method=ValuationMethod.FIFO)
    lifo = value_layers(layers=layers, quantity=quantity, method=ValuationMethod.LIFO)
    available = sum(q for q, _ in specs)
    assert fifo.valued_quantity == lifo.valued_quantity == min(quantity, available)
    assert fifo.unvalued_quantity == quantity - fifo.valued_quantity
    if quantity >= available:
        assert fifo.value == lifo.value == sum((layer.total_cost for layer in layers), Decimal("0"))
