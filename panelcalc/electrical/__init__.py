"""Electrical resolution, aggregation and validation engines."""

from panelcalc.electrical.aggregation import (
    BTU_PER_WATT,
    PhaseLoading,
    TableCalculationResult,
    aggregate,
    calculate_balance,
    calculate_heat,
    calculate_phase_loading,
    calculate_total_amperes,
    calculate_total_watts,
    is_three_phase,
)
from panelcalc.electrical.resolution import (
    ResolvedLineItem,
    VariantIndex,
    resolve_line_item,
    resolve_line_items,
    resolve_with_variant,
)
from panelcalc.electrical.validation import has_errors, validate_line_items

__all__ = [
    "BTU_PER_WATT",
    "PhaseLoading",
    "ResolvedLineItem",
    "TableCalculationResult",
    "VariantIndex",
    "aggregate",
    "calculate_balance",
    "calculate_heat",
    "calculate_phase_loading",
    "calculate_total_amperes",
    "calculate_total_watts",
    "has_errors",
    "is_three_phase",
    "resolve_line_item",
    "resolve_line_items",
    "resolve_with_variant",
    "validate_line_items",
]
