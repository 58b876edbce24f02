"""Calculation trigger: validate, aggregate and cache table totals."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from panelcalc.db.models import LoadCalcResultModel
from panelcalc.db.queries import fetch_line_items, fetch_voltage_table, load_variant_index
from panelcalc.electrical.aggregation import TableCalculationResult, aggregate
from panelcalc.electrical.resolution import VariantLookup, resolve_line_items
from panelcalc.electrical.validation import has_errors, validate_line_items
from panelcalc.models import LineItem, ValidationIssue, VoltageTable

logger = logging.getLogger(__name__)


@dataclass
class CalculationOutcome:
    """What a calculation request produced.

    ``calculated`` is False whenever blocking errors were found; ``result``
    is then None and nothing was cached.
    """

    voltage_table_id: int | None
    calculated: bool
    issues: list[ValidationIssue] = field(default_factory=list)
    result: TableCalculationResult | None = None

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.is_error]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if not i.is_error]


async def calculate_line_items(
    items: Sequence[LineItem],
    voltage_type: str,
    lookup: VariantLookup,
    voltage_table_id: int | None = None,
) -> CalculationOutcome:
    """Validate and, if no errors, aggregate the given line items."""
    issues = validate_line_items(items, voltage_type)
    if has_errors(issues):
        return CalculationOutcome(
            voltage_table_id=voltage_table_id, calculated=False, issues=issues
        )

    resolved = await resolve_line_items(items, voltage_type, lookup)
    return CalculationOutcome(
        voltage_table_id=voltage_table_id,
        calculated=True,
        issues=issues,
        result=aggregate(resolved, voltage_type),
    )


async def calculate_voltage_table(
    session: AsyncSession, voltage_table_id: int
) -> CalculationOutcome:
    """Run the calculation trigger for one voltage table.

    Loads the table and its line items, validates them and, when no blocking
    errors exist, aggregates and stores the totals in ``load_calc_results``.

    Raises:
        LookupError: If the voltage table does not exist
    """
    table_row = await fetch_voltage_table(session, voltage_table_id)
    if table_row is None:
        raise LookupError(f"Voltage table not found: {voltage_table_id}")

    table = VoltageTable.model_validate(table_row)
    items = [LineItem.model_validate(row) for row in await fetch_line_items(session, voltage_table_id)]
    lookup = await load_variant_index(
        session, table.voltage_type, (item.part_id for item in items)
    )

    outcome = await calculate_line_items(items, table.voltage_type, lookup, voltage_table_id)
    if not outcome.calculated:
        logger.info(
            f"Calculation blocked for voltage table {voltage_table_id}: "
            f"{len(outcome.errors)} error(s)"
        )
        return outcome

    await _store_result(session, table, outcome.result)
    logger.info(
        f"Calculated voltage table {voltage_table_id}: "
        f"{outcome.result.total_watts} W, {outcome.result.total_amperes} A, "
        f"{outcome.result.total_btu} BTU/hr"
    )
    return outcome


async def _store_result(
    session: AsyncSession, table: VoltageTable, result: TableCalculationResult
) -> None:
    existing = await session.execute(
        select(LoadCalcResultModel).where(LoadCalcResultModel.voltage_table_id == table.id)
    )
    row = existing.scalar_one_or_none()
    if row is None:
        row = LoadCalcResultModel(project_id=table.project_id, voltage_table_id=table.id)
        session.add(row)

    row.total_watts = result.total_watts
    row.total_amperes = result.total_amperes
    row.total_btu = result.total_btu
    row.calculated_at = datetime.now(timezone.utc)
    await session.flush()


async def set_table_lock(
    session: AsyncSession, voltage_table_id: int, is_locked: bool
) -> VoltageTable:
    """Lock or unlock a voltage table.

    Raises:
        LookupError: If the voltage table does not exist
    """
    table_row = await fetch_voltage_table(session, voltage_table_id)
    if table_row is None:
        raise LookupError(f"Voltage table not found: {voltage_table_id}")

    table_row.is_locked = is_locked
    await session.flush()
    return VoltageTable.model_validate(table_row)
