"""PanelCalc Pydantic models for type-safe data validation.

These are the domain shapes passed between the engines. ORM rows from
``panelcalc.db.models`` convert into them with ``model_validate``.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PhaseAssignment(str, Enum):
    """AC conductor a load is wired to."""

    L1 = "L1"
    L2 = "L2"
    L3 = "L3"
    NEUTRAL = "N"
    UNASSIGNED = "UNK"


LOADED_PHASES = (PhaseAssignment.L1, PhaseAssignment.L2, PhaseAssignment.L3)


class IssueSeverity(str, Enum):
    """Validation issue severity levels."""

    ERROR = "error"  # Blocks the result from being treated as authoritative
    WARNING = "warning"  # Advisory only


class MatchState(str, Enum):
    """Lifecycle state of an imported row."""

    PENDING = "pending"
    MATCHED = "matched"
    UNMATCHED = "unmatched"
    MANUAL = "manual"
    SKIPPED = "skipped"


IMPORTABLE_STATES = (MatchState.MATCHED, MatchState.MANUAL)


def _non_negative(value: float | None) -> float | None:
    if value is not None and value < 0:
        raise ValueError("override values must be non-negative")
    return value


class VoltageTable(BaseModel):
    """A group of line items sharing one voltage/phase configuration."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    project_id: int | None = None
    location_id: int | None = None
    voltage_type: str
    is_locked: bool = False
    sort_order: int = 0

    @property
    def is_three_phase(self) -> bool:
        return "3PH" in self.voltage_type


class LineItem(BaseModel):
    """N units of a catalog part or manual entry within a voltage table."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    voltage_table_id: int | None = None
    part_id: int | None = None
    manual_part_number: str | None = None
    description: str | None = None
    qty: int = 1
    utilization_pct: float = 1.0  # ratio 0.0 - 1.0
    amperage_override: float | None = None
    wattage_override: float | None = None
    heat_dissipation_override: float | None = None
    power_group: str | None = None
    phase_assignment: PhaseAssignment | None = None
    sort_order: int = 0

    @field_validator("amperage_override", "wattage_override", "heat_dissipation_override")
    @classmethod
    def validate_override(cls, v: float | None) -> float | None:
        return _non_negative(v)

    @field_validator("phase_assignment", mode="before")
    @classmethod
    def blank_phase_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def label(self) -> str:
        """Human readable row label used in messages."""
        return self.manual_part_number or self.description or str(self.id)


class ElectricalVariant(BaseModel):
    """Electrical rating of a catalog part for one voltage type.

    Non-numeric stored values are coerced to ``None`` so that resolution can
    treat them as zero.
    """

    model_config = ConfigDict(from_attributes=True)

    part_id: int
    voltage_type: str
    amperage: float | None = None
    wattage: float | None = None
    heat_dissipation_btu: float | None = None
    default_utilization: float | None = None

    @field_validator(
        "amperage", "wattage", "heat_dissipation_btu", "default_utilization", mode="before"
    )
    @classmethod
    def coerce_numeric(cls, v: Any) -> float | None:
        if v is None or isinstance(v, bool):
            return None
        try:
            number = float(v)
        except (TypeError, ValueError):
            return None
        return None if math.isnan(number) else number


class CatalogPart(BaseModel):
    """Catalog part as seen by the matching engine."""

    id: int
    part_number: str
    manufacturer_name: str | None = None
    description: str | None = None


class ManualEntry(BaseModel):
    """Operator-supplied values for a row that has no catalog match."""

    part_number: str
    manufacturer: str | None = None
    amperage: float | None = None
    wattage: float | None = None
    heat_dissipation: float | None = None
    description: str | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "part_number": "MANUAL-001",
                "manufacturer": "Acme Controls",
                "amperage": 2.5,
                "wattage": 60,
                "heat_dissipation": 24,
                "description": "24VDC power supply",
            }
        }
    )


class MatchResult(BaseModel):
    """Matching outcome for one imported row. Never persisted."""

    row_index: int
    part_id: int | None = None
    confidence: float = 0.0  # 0-1
    state: MatchState = MatchState.PENDING
    matched_part_number: str | None = None
    matched_manufacturer: str | None = None
    manual_entry: ManualEntry | None = None

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, v: float) -> float:
        if not 0 <= v <= 1:
            raise ValueError("confidence must be between 0 and 1")
        return v

    @property
    def is_importable(self) -> bool:
        return self.state in IMPORTABLE_STATES


class ValidationIssue(BaseModel):
    """One problem found on a line item before calculation."""

    line_item_id: int | None
    field: str
    message: str
    severity: IssueSeverity

    @property
    def is_error(self) -> bool:
        return self.severity == IssueSeverity.ERROR


class PreviewLineItem(BaseModel):
    """Read-only projection of an importable row, shown before commit."""

    row_index: int
    source: Literal["matched", "manual"]
    part_id: int | None = None
    part_number: str
    manufacturer: str | None = None
    description: str | None = None
    qty: int = 1
    unit: str | None = None
    unit_price: float | None = None
    reference_designator: str | None = None
    power_group: str | None = None
    amperage_override: float | None = None
    wattage_override: float | None = None
    heat_dissipation_override: float | None = None
    confidence: float = Field(default=0.0, ge=0, le=1)
