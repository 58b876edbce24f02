"""Pytest configuration and fixtures for PanelCalc tests.

Provides common fixtures for testing.
"""

from __future__ import annotations

from dataclasses import dataclass

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from panelcalc.config import MatchingConfig, reset_config
from panelcalc.db.connection import build_engine
from panelcalc.db.models import (
    Base,
    LoadCalcProjectModel,
    ManufacturerModel,
    PartElectricalModel,
    PartModel,
    VoltageTableModel,
)
from panelcalc.matching.catalog import CatalogSnapshot
from panelcalc.models import CatalogPart, ElectricalVariant, LineItem


@pytest.fixture(autouse=True)
def test_env(monkeypatch, tmp_path):
    """Isolated environment: in-memory database and a temp templates file."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("PANELCALC_TEMPLATES_PATH", str(tmp_path / "templates.json"))
    reset_config()
    yield
    reset_config()


@pytest.fixture
def matching_config() -> MatchingConfig:
    """Default matching configuration."""
    return MatchingConfig()


@pytest.fixture
def catalog_parts() -> list[CatalogPart]:
    """Small catalog with one part number shared by two manufacturers."""
    return [
        CatalogPart(id=1, part_number="ABC-123", manufacturer_name="Siemens", description="Motor starter"),
        CatalogPart(id=2, part_number="PS-24-10", manufacturer_name="Phoenix Contact", description="24VDC PSU"),
        CatalogPart(id=3, part_number="XYZ 789", manufacturer_name="ABB", description="Contactor"),
        CatalogPart(id=4, part_number="ABC-123", manufacturer_name="Allen-Bradley", description="Relay"),
    ]


@pytest.fixture
def catalog(catalog_parts: list[CatalogPart]) -> CatalogSnapshot:
    return CatalogSnapshot(catalog_parts)


@pytest.fixture
def sample_variants() -> list[ElectricalVariant]:
    """Electrical variants for parts 1 and 2 on 480VAC_3PH."""
    return [
        ElectricalVariant(
            part_id=1, voltage_type="480VAC_3PH", amperage=2.0, wattage=100.0, heat_dissipation_btu=0
        ),
        ElectricalVariant(
            part_id=2, voltage_type="480VAC_3PH", amperage=0.5, wattage=240.0, heat_dissipation_btu=50.0
        ),
        ElectricalVariant(
            part_id=1, voltage_type="120VAC_1PH", amperage=4.0, wattage=110.0, heat_dissipation_btu=None
        ),
    ]


@pytest.fixture
def sample_line_item() -> LineItem:
    return LineItem(
        id=1,
        voltage_table_id=1,
        part_id=1,
        description="Motor starter",
        qty=2,
        utilization_pct=0.5,
        phase_assignment="L1",
    )


@pytest_asyncio.fixture()
async def db_session() -> AsyncSession:
    """Create in-memory database for testing."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    SessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@dataclass
class SeededCatalog:
    part_ids: dict[str, int]


@pytest_asyncio.fixture()
async def seeded_catalog(db_session: AsyncSession) -> SeededCatalog:
    """Persist manufacturers, parts and 480VAC_3PH variants."""
    siemens = ManufacturerModel(name="Siemens")
    phoenix = ManufacturerModel(name="Phoenix Contact")
    abb = ManufacturerModel(name="ABB")
    db_session.add_all([siemens, phoenix, abb])
    await db_session.flush()

    parts = {
        "ABC-123": PartModel(manufacturer=siemens, part_number="ABC-123", description="Motor starter"),
        "PS-24-10": PartModel(manufacturer=phoenix, part_number="PS-24-10", description="24VDC PSU"),
        "XYZ 789": PartModel(manufacturer=abb, part_number="XYZ 789", description="Contactor"),
    }
    db_session.add_all(parts.values())
    await db_session.flush()

    db_session.add_all(
        [
            PartElectricalModel(
                part_id=parts["ABC-123"].id, voltage_type="480VAC_3PH", amperage=2.0, wattage=100.0
            ),
            PartElectricalModel(
                part_id=parts["PS-24-10"].id,
                voltage_type="480VAC_3PH",
                amperage=0.5,
                wattage=240.0,
                heat_dissipation_btu=50.0,
            ),
        ]
    )
    await db_session.commit()
    return SeededCatalog(part_ids={pn: p.id for pn, p in parts.items()})


@pytest_asyncio.fixture()
async def voltage_table(db_session: AsyncSession) -> VoltageTableModel:
    """A load calc project with one unlocked 480VAC_3PH table."""
    project = LoadCalcProjectModel(name="Line 1 Control Panel")
    db_session.add(project)
    await db_session.flush()

    table = VoltageTableModel(project_id=project.id, voltage_type="480VAC_3PH")
    db_session.add(table)
    await db_session.commit()
    return table
