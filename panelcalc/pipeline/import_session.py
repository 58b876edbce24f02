"""Staged spreadsheet import into a voltage table.

An ``ImportSession`` walks upload -> mapping -> matching -> preview ->
complete. Only rows in the ``matched`` or ``manual`` state ever reach the
database, and the final write is a single bulk insert.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from panelcalc.config import MatchingConfig
from panelcalc.db.queries import bulk_create_line_items, fetch_voltage_table
from panelcalc.errors import ImportCommitError, ImportStageError
from panelcalc.ingestion.coercion import clean_text, parse_currency, parse_unit_quantity
from panelcalc.ingestion.spreadsheet import read_spreadsheet
from panelcalc.matching.catalog import CatalogSource
from panelcalc.matching import matcher
from panelcalc.matching.matcher import ProgressCallback
from panelcalc.models import ManualEntry, MatchResult, MatchState, PreviewLineItem
from panelcalc.pipeline.templates import MappingTemplate
from panelcalc.pipeline.types import (
    FIELD_IDS,
    REQUIRED_FIELDS,
    ImportStats,
    ImportStep,
    ImportSummary,
)

logger = logging.getLogger(__name__)


class ImportSession:
    """State of one spreadsheet import, from upload to commit."""

    def __init__(self, config: MatchingConfig | None = None):
        self.config = config or MatchingConfig()
        self.reset()

    def reset(self) -> None:
        """Return to the upload stage, discarding rows, mappings and matches."""
        self.step = ImportStep.UPLOAD
        self.source: str | None = None
        self.headers: list[str] = []
        self.rows: list[dict[str, str]] = []
        self.mappings: dict[str, str] = {}
        self.match_results: list[MatchResult] = []

    # Upload / mapping

    def load_rows(
        self,
        headers: Sequence[str],
        rows: Sequence[Mapping[str, Any]],
        source: str | None = None,
    ) -> None:
        """Load parsed rows and move to the mapping stage.

        Cell values are kept as strings; ``None`` becomes ``""``.
        """
        self.reset()
        self.source = source
        self.headers = [str(h).strip() for h in headers if str(h).strip()]
        self.rows = [
            {str(k).strip(): "" if v is None else str(v) for k, v in row.items()}
            for row in rows
        ]
        self.step = ImportStep.MAPPING
        logger.info(f"Loaded {len(self.rows)} rows for import from {source or 'memory'}")

    def load_file(self, path: Path) -> None:
        """Read a CSV/XLSX file and load its rows."""
        data = read_spreadsheet(Path(path))
        self.load_rows(data.headers, data.rows, source=data.source)

    def set_mapping(self, field: str, column: str | None) -> None:
        """Map a logical field to a source column, or clear it with ``None``.

        Raises:
            ValueError: If the field is unknown or the column is not a header
        """
        if field not in FIELD_IDS:
            raise ValueError(f"Unknown import field: {field}")
        if column is None:
            self.mappings.pop(field, None)
            return
        if column not in self.headers:
            raise ValueError(f"Column '{column}' not found in headers")
        self.mappings[field] = column

    def apply_template(self, template: MappingTemplate) -> list[str]:
        """Replace mappings with a template's.

        Entries for unknown fields or columns missing from this file are
        dropped; their field ids are returned.
        """
        self.mappings = {}
        dropped: list[str] = []
        for field, column in template.mappings.items():
            if field in FIELD_IDS and column in self.headers:
                self.mappings[field] = column
            else:
                dropped.append(field)

        if dropped:
            logger.warning(
                f"Template '{template.name}' fields not applicable to this file: {dropped}"
            )
        return dropped

    def missing_required_fields(self) -> list[str]:
        return [f for f in REQUIRED_FIELDS if not self.mappings.get(f)]

    def advance_to_matching(self) -> ImportStep:
        """Leave the mapping stage.

        Raises:
            ImportStageError: If no rows are loaded or required fields are unmapped
        """
        if self.step == ImportStep.UPLOAD:
            raise ImportStageError("No file loaded")

        missing = self.missing_required_fields()
        if missing:
            raise ImportStageError(f"Required fields not mapped: {', '.join(missing)}")

        self.step = ImportStep.MATCHING
        return self.step

    # Matching

    def _require_matching_stage(self) -> None:
        if self.step in (ImportStep.UPLOAD, ImportStep.MAPPING):
            raise ImportStageError("Column mapping must be completed before matching")

    async def run_matching(
        self,
        catalog: CatalogSource,
        on_progress: ProgressCallback | None = None,
    ) -> list[MatchResult]:
        """Match every row against ``catalog`` and move to preview."""
        self._require_matching_stage()

        self.match_results = await matcher.match_all_rows(
            self.rows,
            self.mappings["part_number"],
            self.mappings.get("manufacturer"),
            catalog,
            self.config,
            on_progress,
        )
        self.step = ImportStep.PREVIEW
        return self.match_results

    def _result_index(self, row_index: int) -> int | None:
        for position, result in enumerate(self.match_results):
            if result.row_index == row_index:
                return position
        return None

    async def rematch_row(self, row_index: int, catalog: CatalogSource) -> MatchResult | None:
        """Re-run matching for one row; returns None for unknown indexes."""
        self._require_matching_stage()
        position = self._result_index(row_index)
        if position is None:
            return None

        result = await matcher.rematch_row(
            self.match_results[position],
            self._row(row_index),
            self.mappings["part_number"],
            self.mappings.get("manufacturer"),
            catalog,
            self.config,
        )
        self.match_results[position] = result
        return result

    def save_manual_entry(self, row_index: int, entry: ManualEntry | None) -> MatchResult | None:
        """Attach manual values to a row. Unknown indexes and ``None`` are ignored."""
        position = self._result_index(row_index)
        if position is None or entry is None:
            return None

        result = matcher.save_manual_entry(self.match_results[position], entry, self.config)
        self.match_results[position] = result
        return result

    def skip_unmatched(self, row_indexes: Iterable[int] | None = None) -> int:
        """Mark rows as skipped.

        With no indexes, every unmatched row is skipped. Returns the number
        of rows changed.
        """
        wanted = None if row_indexes is None else set(row_indexes)
        skipped = 0
        for position, result in enumerate(self.match_results):
            if wanted is None:
                if result.state != MatchState.UNMATCHED:
                    continue
            elif result.row_index not in wanted:
                continue
            self.match_results[position] = matcher.skip_unmatched(result)
            skipped += 1
        return skipped

    # Preview / commit

    def _row(self, row_index: int) -> dict[str, str]:
        if 0 <= row_index < len(self.rows):
            return self.rows[row_index]
        return {}

    def _cell(self, row: Mapping[str, str], field: str) -> str | None:
        column = self.mappings.get(field)
        if not column:
            return None
        return clean_text(row.get(column))

    def preview_line_items(self) -> list[PreviewLineItem]:
        """Project matched and manual rows into line item previews, in row order."""
        previews: list[PreviewLineItem] = []
        for result in sorted(self.match_results, key=lambda r: r.row_index):
            if not result.is_importable:
                continue

            row = self._row(result.row_index)
            qty = parse_unit_quantity(self._cell(row, "qty"))
            power_group = self._cell(row, "power_group")
            sheet_values = {
                "unit": self._cell(row, "unit"),
                "unit_price": parse_currency(self._cell(row, "unit_price")),
                "reference_designator": self._cell(row, "reference_designator"),
            }

            if result.state == MatchState.MANUAL and result.manual_entry is not None:
                entry = result.manual_entry
                previews.append(
                    PreviewLineItem(
                        row_index=result.row_index,
                        source="manual",
                        part_number=entry.part_number,
                        manufacturer=entry.manufacturer,
                        description=entry.description or self._cell(row, "description"),
                        qty=qty,
                        power_group=power_group,
                        amperage_override=entry.amperage,
                        wattage_override=entry.wattage,
                        heat_dissipation_override=entry.heat_dissipation,
                        confidence=result.confidence,
                        **sheet_values,
                    )
                )
            elif result.state == MatchState.MATCHED:
                previews.append(
                    PreviewLineItem(
                        row_index=result.row_index,
                        source="matched",
                        part_id=result.part_id,
                        part_number=(
                            result.matched_part_number or self._cell(row, "part_number") or ""
                        ),
                        manufacturer=result.matched_manufacturer,
                        description=self._cell(row, "description"),
                        qty=qty,
                        power_group=power_group,
                        confidence=result.confidence,
                        **sheet_values,
                    )
                )
        return previews

    def build_line_item_payloads(self, voltage_table_id: int) -> list[dict[str, Any]]:
        """Line item creation payloads, ``sort_order`` = preview position."""
        payloads = []
        for position, preview in enumerate(self.preview_line_items()):
            manual = preview.source == "manual"
            payloads.append(
                {
                    "voltage_table_id": voltage_table_id,
                    "part_id": None if manual else preview.part_id,
                    "manual_part_number": preview.part_number if manual else None,
                    "description": preview.description,
                    "qty": preview.qty,
                    "utilization_pct": 1.0,
                    "amperage_override": preview.amperage_override if manual else None,
                    "wattage_override": preview.wattage_override if manual else None,
                    "heat_dissipation_override": (
                        preview.heat_dissipation_override if manual else None
                    ),
                    "power_group": preview.power_group,
                    "phase_assignment": None,
                    "sort_order": position,
                }
            )
        return payloads

    async def commit(
        self, session: AsyncSession, voltage_table_id: int | None
    ) -> ImportSummary:
        """Insert every eligible row into a voltage table in one bulk write.

        Raises:
            ImportStageError: If matching has not finished or the session was
                already committed (call ``reset()`` to start another import)
            ImportCommitError: If no table is selected, the table is missing or
                locked, nothing is eligible, or the insert fails
        """
        if self.step == ImportStep.COMPLETE:
            raise ImportStageError("Import already committed; reset the session first")
        if self.step != ImportStep.PREVIEW:
            raise ImportStageError("Matching must be completed before committing")

        if not voltage_table_id:
            raise ImportCommitError("No voltage table selected")

        table = await fetch_voltage_table(session, voltage_table_id)
        if table is None:
            raise ImportCommitError(f"Voltage table not found: {voltage_table_id}")
        if table.is_locked:
            raise ImportCommitError(f"Voltage table {voltage_table_id} is locked")

        payloads = self.build_line_item_payloads(voltage_table_id)
        if not payloads:
            raise ImportCommitError("No matched or manual rows to import")

        try:
            created = await bulk_create_line_items(session, payloads)
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Import into voltage table {voltage_table_id} failed: {e}")
            raise ImportCommitError(f"Failed to import line items: {e}") from e

        stats = self.stats()
        self.step = ImportStep.COMPLETE
        logger.info(f"Imported {len(created)} line items into voltage table {voltage_table_id}")
        return ImportSummary(
            voltage_table_id=voltage_table_id,
            inserted=len(created),
            line_item_ids=[m.id for m in created],
            skipped=stats.skipped,
            unmatched=stats.unmatched,
        )

    def stats(self) -> ImportStats:
        stats = ImportStats(total=len(self.match_results))
        for result in self.match_results:
            current = getattr(stats, result.state.value)
            setattr(stats, result.state.value, current + 1)
        return stats
