"""Project-level load reports.

Heat and loading reports read the cached totals written by the calculation
service, so tables that were never calculated contribute zero. The balance
report recomputes phase loading from line items because per-phase figures
are not cached.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from panelcalc.db.models import LoadCalcResultModel, LocationModel, VoltageTableModel
from panelcalc.db.queries import fetch_line_items, fetch_voltage_tables, load_variant_index
from panelcalc.electrical.aggregation import (
    calculate_balance,
    calculate_phase_loading,
    is_three_phase,
    round2,
)
from panelcalc.electrical.resolution import resolve_line_items
from panelcalc.models import LineItem

UNASSIGNED_LOCATION = "Unassigned"


@dataclass
class HeatReportRow:
    location_id: int | None
    location_name: str
    total_watts: float
    table_count: int


@dataclass
class LoadingReportRow:
    voltage_table_id: int
    voltage_type: str
    location_name: str
    total_watts: float
    total_amperes: float
    is_calculated: bool


@dataclass
class BalanceReportRow:
    voltage_table_id: int
    voltage_type: str
    location_name: str
    L1: float
    L2: float
    L3: float
    balance_pct: float | None
    is_calculated: bool


@dataclass
class ProjectReport:
    """All three reports for one project."""

    project_id: int
    heat: list[HeatReportRow] = field(default_factory=list)
    loading: list[LoadingReportRow] = field(default_factory=list)
    balance: list[BalanceReportRow] = field(default_factory=list)

    def as_dict(self) -> dict:
        return asdict(self)


async def heat_by_location(session: AsyncSession, project_id: int) -> list[HeatReportRow]:
    """Total heat load in watts per enclosure location, ordered by name."""
    location_name = func.coalesce(LocationModel.name, UNASSIGNED_LOCATION).label("location_name")
    stmt = (
        select(
            VoltageTableModel.location_id,
            location_name,
            func.sum(func.coalesce(LoadCalcResultModel.total_watts, 0)).label("total_watts"),
            func.count(VoltageTableModel.id).label("table_count"),
        )
        .outerjoin(
            LoadCalcResultModel, LoadCalcResultModel.voltage_table_id == VoltageTableModel.id
        )
        .outerjoin(LocationModel, LocationModel.id == VoltageTableModel.location_id)
        .where(VoltageTableModel.project_id == project_id)
        .group_by(VoltageTableModel.location_id, location_name)
        .order_by(location_name)
    )
    result = await session.execute(stmt)
    return [
        HeatReportRow(
            location_id=row.location_id,
            location_name=row.location_name,
            total_watts=round2(row.total_watts or 0),
            table_count=row.table_count,
        )
        for row in result.all()
    ]


async def loading_by_table(session: AsyncSession, project_id: int) -> list[LoadingReportRow]:
    """Cached watts and amperes per voltage table."""
    location_name = func.coalesce(LocationModel.name, UNASSIGNED_LOCATION).label("location_name")
    stmt = (
        select(
            VoltageTableModel.id,
            VoltageTableModel.voltage_type,
            location_name,
            LoadCalcResultModel.id.label("result_id"),
            LoadCalcResultModel.total_watts,
            LoadCalcResultModel.total_amperes,
        )
        .outerjoin(
            LoadCalcResultModel, LoadCalcResultModel.voltage_table_id == VoltageTableModel.id
        )
        .outerjoin(LocationModel, LocationModel.id == VoltageTableModel.location_id)
        .where(VoltageTableModel.project_id == project_id)
        .order_by(location_name, VoltageTableModel.voltage_type)
    )
    result = await session.execute(stmt)
    return [
        LoadingReportRow(
            voltage_table_id=row.id,
            voltage_type=row.voltage_type,
            location_name=row.location_name,
            total_watts=row.total_watts or 0.0,
            total_amperes=row.total_amperes or 0.0,
            is_calculated=row.result_id is not None,
        )
        for row in result.all()
    ]


async def three_phase_balance(session: AsyncSession, project_id: int) -> list[BalanceReportRow]:
    """Phase loading and imbalance for every three-phase table."""
    tables = [
        t for t in await fetch_voltage_tables(session, project_id) if is_three_phase(t.voltage_type)
    ]
    if not tables:
        return []

    calculated = set(
        (
            await session.execute(
                select(LoadCalcResultModel.voltage_table_id).where(
                    LoadCalcResultModel.voltage_table_id.in_([t.id for t in tables])
                )
            )
        ).scalars()
    )
    location_ids = {t.location_id for t in tables if t.location_id is not None}
    location_names: dict[int, str] = {}
    if location_ids:
        rows = await session.execute(
            select(LocationModel.id, LocationModel.name).where(LocationModel.id.in_(location_ids))
        )
        location_names = {row.id: row.name for row in rows.all()}

    report: list[BalanceReportRow] = []
    for table in tables:
        items = [LineItem.model_validate(row) for row in await fetch_line_items(session, table.id)]
        lookup = await load_variant_index(
            session, table.voltage_type, (item.part_id for item in items)
        )
        resolved = await resolve_line_items(items, table.voltage_type, lookup)
        loading = calculate_phase_loading(resolved)

        report.append(
            BalanceReportRow(
                voltage_table_id=table.id,
                voltage_type=table.voltage_type,
                location_name=location_names.get(table.location_id, UNASSIGNED_LOCATION),
                L1=loading.L1,
                L2=loading.L2,
                L3=loading.L3,
                balance_pct=calculate_balance(loading),
                is_calculated=table.id in calculated,
            )
        )
    return report


async def build_project_report(session: AsyncSession, project_id: int) -> ProjectReport:
    """Generate the heat, loading and balance reports for a project."""
    return ProjectReport(
        project_id=project_id,
        heat=await heat_by_location(session, project_id),
        loading=await loading_by_table(session, project_id),
        balance=await three_phase_balance(session, project_id),
    )
