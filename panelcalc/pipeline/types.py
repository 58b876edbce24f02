"""Shared types for the spreadsheet import pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ImportStep(str, Enum):
    """Stages of an import session, in order."""

    UPLOAD = "upload"
    MAPPING = "mapping"
    MATCHING = "matching"
    PREVIEW = "preview"
    COMPLETE = "complete"


@dataclass(frozen=True)
class ImportField:
    """A logical field that a source column can be mapped to."""

    id: str
    label: str
    required: bool = False


IMPORT_FIELDS: tuple[ImportField, ...] = (
    ImportField("part_number", "Part Number", required=True),
    ImportField("description", "Description", required=True),
    ImportField("manufacturer", "Manufacturer"),
    ImportField("qty", "Quantity"),
    ImportField("unit", "Unit"),
    ImportField("unit_price", "Unit Price"),
    ImportField("reference_designator", "Reference Designator"),
    ImportField("power_group", "Power Group"),
)

REQUIRED_FIELDS = tuple(f.id for f in IMPORT_FIELDS if f.required)
FIELD_IDS = frozenset(f.id for f in IMPORT_FIELDS)


@dataclass
class ImportStats:
    """Row counts by match state."""

    total: int = 0
    pending: int = 0
    matched: int = 0
    unmatched: int = 0
    manual: int = 0
    skipped: int = 0

    @property
    def importable(self) -> int:
        return self.matched + self.manual


@dataclass
class ImportSummary:
    """Result of committing an import session."""

    voltage_table_id: int
    inserted: int
    line_item_ids: list[int]
    skipped: int = 0
    unmatched: int = 0
