"""Unit tests for the aggregation engine."""

from __future__ import annotations

import pytest

from panelcalc.electrical.aggregation import (
    BTU_PER_WATT,
    PhaseLoading,
    aggregate,
    calculate_balance,
    calculate_heat,
    calculate_phase_loading,
    calculate_total_amperes,
    calculate_total_watts,
    is_three_phase,
    round2,
)
from panelcalc.electrical.resolution import ResolvedLineItem, resolve_with_variant
from panelcalc.models import ElectricalVariant, LineItem


def resolved(
    wattage: float = 0.0,
    amperage: float = 0.0,
    heat_btu: float = 0.0,
    qty: int = 1,
    utilization: float = 1.0,
    phase: str | None = None,
) -> ResolvedLineItem:
    item = LineItem(qty=qty, utilization_pct=utilization, phase_assignment=phase)
    return ResolvedLineItem(line_item=item, wattage=wattage, amperage=amperage, heat_btu=heat_btu)


class TestTotals:
    def test_watts_and_amperes_scale_by_qty_and_utilization(self):
        items = [
            resolved(wattage=100, amperage=2, qty=2, utilization=0.5),
            resolved(wattage=240, amperage=0.5, qty=3),
        ]

        assert calculate_total_watts(items) == 820.0
        assert calculate_total_amperes(items) == 3.5

    def test_empty_table_totals_are_zero(self):
        assert calculate_total_watts([]) == 0.0
        assert calculate_total_amperes([]) == 0.0
        assert calculate_heat([]) == 0.0

    def test_results_rounded_half_up(self):
        assert round2(2.675) == 2.68
        assert round2(1.005) == 1.01
        assert calculate_total_watts([resolved(wattage=0.125)]) == 0.13


class TestHeat:
    def test_direct_heat_used_when_positive(self):
        assert calculate_heat([resolved(wattage=100, heat_btu=50, qty=2)]) == 100.0

    def test_heat_override_scales_by_qty(self):
        item = LineItem(part_id=1, qty=2, heat_dissipation_override=10)
        variant = ElectricalVariant(
            part_id=1, voltage_type="24VDC", wattage=100, heat_dissipation_btu=50
        )

        assert calculate_heat([resolve_with_variant(item, variant)]) == 20.0

    def test_falls_back_to_watts_conversion(self):
        assert calculate_heat([resolved(wattage=100)]) == round2(100 * BTU_PER_WATT)

    def test_mixed_items(self):
        items = [
            resolved(wattage=240, heat_btu=50, qty=3),
            resolved(wattage=100, qty=2, utilization=0.5),
        ]
        assert calculate_heat(items) == round2(150 + 100 * 3.412)


class TestPhaseLoading:
    def test_only_line_phases_contribute(self):
        items = [
            resolved(wattage=100, phase="L1"),
            resolved(wattage=200, phase="L2", qty=2),
            resolved(wattage=50, phase="L3"),
            resolved(wattage=999, phase="N"),
            resolved(wattage=999, phase="UNK"),
            resolved(wattage=999),
        ]

        loading = calculate_phase_loading(items)

        assert loading.as_dict() == {"L1": 100.0, "L2": 400.0, "L3": 50.0}

    def test_balance_formula(self):
        assert calculate_balance(PhaseLoading(L1=100, L2=400, L3=50)) == 87.5
        assert calculate_balance(PhaseLoading(L1=100, L2=100, L3=100)) == 0.0

    def test_balance_with_an_idle_phase_is_full(self):
        assert calculate_balance(PhaseLoading(L1=100, L2=50, L3=0)) == 100.0

    def test_balance_is_none_without_load(self):
        assert calculate_balance(PhaseLoading()) is None

    def test_balance_within_bounds(self):
        for values in [(1, 2, 3), (0, 0, 5), (10, 0.01, 7)]:
            balance = calculate_balance(PhaseLoading(*values))
            assert 0 <= balance <= 100


class TestAggregate:
    @pytest.mark.parametrize(
        "voltage_type,expected",
        [
            ("480VAC_3PH", True),
            ("230VAC_3PH", True),
            ("600VAC_3PH", True),
            ("120VAC_1PH", False),
            ("480VAC_1PH", False),
            ("DC", False),
            ("LEGACY", False),
        ],
    )
    def test_is_three_phase(self, voltage_type, expected):
        assert is_three_phase(voltage_type) is expected

    def test_balance_only_for_three_phase(self):
        items = [resolved(wattage=100, phase="L1"), resolved(wattage=50, phase="L2")]

        three_phase = aggregate(items, "480VAC_3PH")
        single_phase = aggregate(items, "120VAC_1PH")

        assert three_phase.balance_pct == 100.0
        assert single_phase.balance_pct is None
        assert single_phase.total_watts == three_phase.total_watts == 150.0
        assert three_phase.item_count == 2

    def test_aggregate_is_deterministic(self):
        items = [resolved(wattage=33.333, amperage=0.3333, qty=3, phase="L3")]
        assert aggregate(items, "480VAC_3PH") == aggregate(items, "480VAC_3PH")
