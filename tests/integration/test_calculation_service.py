"""Integration tests for the calculation trigger and project reports."""

from __future__ import annotations

import io

import pytest
import pytest_asyncio
from openpyxl import load_workbook
from sqlalchemy import func, select

from panelcalc.db.models import (
    JobProjectModel,
    LineItemModel,
    LoadCalcResultModel,
    LocationModel,
    PackageModel,
    VoltageTableModel,
)
from panelcalc.electrical.service import calculate_voltage_table, set_table_lock
from panelcalc.reporting import build_project_report, export_report_to_excel
from panelcalc.reporting.reports import (
    UNASSIGNED_LOCATION,
    heat_by_location,
    loading_by_table,
    three_phase_balance,
)


@pytest_asyncio.fixture()
async def populated_table(db_session, seeded_catalog, voltage_table):
    """Table in 'Enclosure A' with two catalog items and one manual item."""
    job = JobProjectModel(project_number="JP-100")
    db_session.add(job)
    await db_session.flush()
    package = PackageModel(job_project_id=job.id, package_name="Main")
    db_session.add(package)
    await db_session.flush()
    location = LocationModel(package_id=package.id, name="Enclosure A")
    db_session.add(location)
    await db_session.flush()

    voltage_table.location_id = location.id
    db_session.add_all(
        [
            LineItemModel(
                voltage_table_id=voltage_table.id,
                part_id=seeded_catalog.part_ids["ABC-123"],
                qty=2,
                utilization_pct=0.5,
                phase_assignment="L1",
                sort_order=0,
            ),
            LineItemModel(
                voltage_table_id=voltage_table.id,
                part_id=seeded_catalog.part_ids["PS-24-10"],
                qty=3,
                phase_assignment="L2",
                sort_order=1,
            ),
            LineItemModel(
                voltage_table_id=voltage_table.id,
                manual_part_number="FAN-1",
                amperage_override=2.5,
                wattage_override=60,
                heat_dissipation_override=24,
                phase_assignment="L3",
                sort_order=2,
            ),
        ]
    )
    await db_session.commit()
    return voltage_table


async def count_results(db_session) -> int:
    return await db_session.scalar(select(func.count()).select_from(LoadCalcResultModel))


class TestCalculateVoltageTable:
    @pytest.mark.asyncio
    async def test_totals_are_computed_and_cached(self, db_session, populated_table):
        outcome = await calculate_voltage_table(db_session, populated_table.id)

        assert outcome.calculated
        assert outcome.errors == []
        assert outcome.result.total_watts == 880.0
        assert outcome.result.total_amperes == 6.0
        assert outcome.result.total_btu == 515.2
        assert outcome.result.phase_loading.as_dict() == {"L1": 100.0, "L2": 720.0, "L3": 60.0}
        assert outcome.result.balance_pct == 91.67

        cached = await db_session.scalar(
            select(LoadCalcResultModel).where(
                LoadCalcResultModel.voltage_table_id == populated_table.id
            )
        )
        assert (cached.total_watts, cached.total_amperes, cached.total_btu) == (880.0, 6.0, 515.2)
        assert cached.project_id == populated_table.project_id

    @pytest.mark.asyncio
    async def test_recalculation_replaces_cached_row(self, db_session, seeded_catalog, populated_table):
        await calculate_voltage_table(db_session, populated_table.id)
        db_session.add(
            LineItemModel(
                voltage_table_id=populated_table.id,
                part_id=seeded_catalog.part_ids["ABC-123"],
                qty=1,
                phase_assignment="L3",
                sort_order=3,
            )
        )
        await db_session.flush()

        outcome = await calculate_voltage_table(db_session, populated_table.id)

        assert outcome.result.total_watts == 980.0
        assert await count_results(db_session) == 1
        cached = await db_session.scalar(select(LoadCalcResultModel))
        assert cached.total_watts == 980.0

    @pytest.mark.asyncio
    async def test_errors_block_calculation(self, db_session, populated_table):
        db_session.add(
            LineItemModel(voltage_table_id=populated_table.id, manual_part_number="BAD", qty=0)
        )
        await db_session.flush()

        outcome = await calculate_voltage_table(db_session, populated_table.id)

        assert not outcome.calculated
        assert outcome.result is None
        assert [e.field for e in outcome.errors] == ["qty"]
        assert await count_results(db_session) == 0

    @pytest.mark.asyncio
    async def test_missing_phase_is_only_a_warning(self, db_session, seeded_catalog, voltage_table):
        db_session.add(
            LineItemModel(
                voltage_table_id=voltage_table.id,
                part_id=seeded_catalog.part_ids["ABC-123"],
                qty=1,
            )
        )
        await db_session.flush()

        outcome = await calculate_voltage_table(db_session, voltage_table.id)

        assert outcome.calculated
        assert [w.field for w in outcome.warnings] == ["phase_assignment"]
        assert outcome.result.phase_loading.as_dict() == {"L1": 0.0, "L2": 0.0, "L3": 0.0}
        assert outcome.result.balance_pct is None

    @pytest.mark.asyncio
    async def test_empty_table_calculates_zero(self, db_session, voltage_table):
        outcome = await calculate_voltage_table(db_session, voltage_table.id)

        assert outcome.calculated
        assert outcome.result.total_watts == 0.0
        assert await count_results(db_session) == 1

    @pytest.mark.asyncio
    async def test_unknown_table(self, db_session):
        with pytest.raises(LookupError):
            await calculate_voltage_table(db_session, 404)


@pytest.mark.asyncio
async def test_set_table_lock(db_session, voltage_table):
    locked = await set_table_lock(db_session, voltage_table.id, True)
    assert locked.is_locked

    unlocked = await set_table_lock(db_session, voltage_table.id, False)
    assert not unlocked.is_locked

    with pytest.raises(LookupError):
        await set_table_lock(db_session, 404, True)


class TestReports:
    @pytest_asyncio.fixture()
    async def second_table(self, db_session, populated_table):
        """Uncalculated single-phase table without a location."""
        table = VoltageTableModel(
            project_id=populated_table.project_id, voltage_type="120VAC_1PH", sort_order=1
        )
        db_session.add(table)
        await db_session.commit()
        return table

    @pytest.mark.asyncio
    async def test_heat_by_location(self, db_session, populated_table, second_table):
        await calculate_voltage_table(db_session, populated_table.id)

        rows = await heat_by_location(db_session, populated_table.project_id)

        assert [(r.location_name, r.total_watts, r.table_count) for r in rows] == [
            ("Enclosure A", 880.0, 1),
            (UNASSIGNED_LOCATION, 0.0, 1),
        ]

    @pytest.mark.asyncio
    async def test_loading_by_table(self, db_session, populated_table, second_table):
        await calculate_voltage_table(db_session, populated_table.id)

        rows = await loading_by_table(db_session, populated_table.project_id)

        by_table = {r.voltage_table_id: r for r in rows}
        assert by_table[populated_table.id].total_amperes == 6.0
        assert by_table[populated_table.id].is_calculated
        assert by_table[second_table.id].total_watts == 0.0
        assert not by_table[second_table.id].is_calculated

    @pytest.mark.asyncio
    async def test_balance_covers_three_phase_tables_only(
        self, db_session, populated_table, second_table
    ):
        rows = await three_phase_balance(db_session, populated_table.project_id)

        assert len(rows) == 1
        row = rows[0]
        assert row.voltage_table_id == populated_table.id
        assert row.location_name == "Enclosure A"
        assert (row.L1, row.L2, row.L3) == (100.0, 720.0, 60.0)
        assert row.balance_pct == 91.67
        assert not row.is_calculated

    @pytest.mark.asyncio
    async def test_unknown_project_reports_are_empty(self, db_session):
        report = await build_project_report(db_session, 404)

        assert report.as_dict() == {"project_id": 404, "heat": [], "loading": [], "balance": []}

    @pytest.mark.asyncio
    async def test_excel_export(self, db_session, populated_table, second_table):
        await calculate_voltage_table(db_session, populated_table.id)
        report = await build_project_report(db_session, populated_table.project_id)

        content = export_report_to_excel(report, "Line 1 Control Panel")

        assert content[:2] == b"PK"
        workbook = load_workbook(io.BytesIO(content))
        assert workbook.sheetnames == ["Export Info", "Heat", "Loading", "Balance"]
        assert workbook["Export Info"]["B3"].value == "Line 1 Control Panel"
        assert workbook["Heat"]["A2"].value == "Enclosure A"
