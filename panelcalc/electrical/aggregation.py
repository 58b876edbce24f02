"""Aggregation engine for resolved line items.

Totals are ``qty x utilization x value`` summed over a table, rounded to
two decimal places. Heat uses a direct BTU/hr value when one is present and
falls back to converting watts.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from panelcalc.electrical.resolution import ResolvedLineItem
from panelcalc.models import LOADED_PHASES, PhaseAssignment

BTU_PER_WATT = 3.412

_CENT = Decimal("0.01")


def round2(value: float) -> float:
    """Round half-up to two decimal places."""
    return float(Decimal(repr(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


@dataclass
class PhaseLoading:
    """Per-phase loading in watts."""

    L1: float = 0.0
    L2: float = 0.0
    L3: float = 0.0

    def values(self) -> tuple[float, float, float]:
        return (self.L1, self.L2, self.L3)

    def as_dict(self) -> dict[str, float]:
        return {"L1": self.L1, "L2": self.L2, "L3": self.L3}


@dataclass
class TableCalculationResult:
    """Aggregate totals for one voltage table."""

    total_watts: float
    total_amperes: float
    total_btu: float
    phase_loading: PhaseLoading = field(default_factory=PhaseLoading)
    balance_pct: float | None = None  # None when not applicable
    item_count: int = 0


def is_three_phase(voltage_type: str) -> bool:
    """Is this a 3-phase voltage type?"""
    return "3PH" in voltage_type


def _load(r: ResolvedLineItem, value: float) -> float:
    return r.qty * r.utilization * value


def calculate_total_watts(resolved: Sequence[ResolvedLineItem]) -> float:
    return round2(sum(_load(r, r.wattage) for r in resolved))


def calculate_total_amperes(resolved: Sequence[ResolvedLineItem]) -> float:
    return round2(sum(_load(r, r.amperage) for r in resolved))


def calculate_heat(resolved: Sequence[ResolvedLineItem]) -> float:
    """Total heat dissipation in BTU/hr.

    Items with a positive direct heat value contribute ``qty x util x heat``;
    all others contribute ``qty x util x watts x 3.412``.
    """
    total = 0.0
    for r in resolved:
        if r.heat_btu > 0:
            total += _load(r, r.heat_btu)
        else:
            total += _load(r, r.wattage) * BTU_PER_WATT
    return round2(total)


def calculate_phase_loading(resolved: Sequence[ResolvedLineItem]) -> PhaseLoading:
    """Per-phase watts. Only items assigned to L1/L2/L3 contribute."""
    buckets = {phase: 0.0 for phase in LOADED_PHASES}
    for r in resolved:
        phase = r.line_item.phase_assignment
        if phase in buckets:
            buckets[phase] += _load(r, r.wattage)

    return PhaseLoading(
        L1=round2(buckets[PhaseAssignment.L1]),
        L2=round2(buckets[PhaseAssignment.L2]),
        L3=round2(buckets[PhaseAssignment.L3]),
    )


def calculate_balance(phase_loading: PhaseLoading) -> float | None:
    """Phase imbalance percentage: (max - min) / max x 100.

    Returns None when max is 0 (no phase-assigned load).
    """
    values = phase_loading.values()
    highest = max(values)
    lowest = min(values)
    if highest == 0:
        return None
    return round2((highest - lowest) / highest * 100)


def aggregate(
    resolved: Sequence[ResolvedLineItem], voltage_type: str
) -> TableCalculationResult:
    """Run all calculations for a table's resolved line items."""
    phase_loading = calculate_phase_loading(resolved)
    balance_pct = calculate_balance(phase_loading) if is_three_phase(voltage_type) else None

    return TableCalculationResult(
        total_watts=calculate_total_watts(resolved),
        total_amperes=calculate_total_amperes(resolved),
        total_btu=calculate_heat(resolved),
        phase_loading=phase_loading,
        balance_pct=balance_pct,
        item_count=len(resolved),
    )
