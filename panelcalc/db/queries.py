"""Database queries shared by the calculation, import and package flows."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from panelcalc.db.models import (
    JobProjectModel,
    LineItemModel,
    LocationModel,
    PackageItemModel,
    PackageModel,
    PartElectricalModel,
    VoltageTableModel,
)
from panelcalc.electrical.resolution import VariantIndex
from panelcalc.models import ElectricalVariant


async def fetch_voltage_table(
    session: AsyncSession, voltage_table_id: int
) -> VoltageTableModel | None:
    result = await session.execute(
        select(VoltageTableModel).where(VoltageTableModel.id == voltage_table_id)
    )
    return result.scalar_one_or_none()


async def fetch_voltage_tables(
    session: AsyncSession, project_id: int
) -> list[VoltageTableModel]:
    result = await session.execute(
        select(VoltageTableModel)
        .where(VoltageTableModel.project_id == project_id)
        .order_by(VoltageTableModel.sort_order, VoltageTableModel.id)
    )
    return list(result.scalars().all())


async def fetch_line_items(
    session: AsyncSession, voltage_table_id: int
) -> list[LineItemModel]:
    """Line items of a table in display order."""
    result = await session.execute(
        select(LineItemModel)
        .where(LineItemModel.voltage_table_id == voltage_table_id)
        .order_by(LineItemModel.sort_order, LineItemModel.id)
    )
    return list(result.scalars().all())


async def load_variant_index(
    session: AsyncSession, voltage_type: str, part_ids: Iterable[int]
) -> VariantIndex:
    """Load every variant of ``part_ids`` for one voltage type in one query."""
    ids = sorted({pid for pid in part_ids if pid is not None})
    if not ids:
        return VariantIndex()

    result = await session.execute(
        select(PartElectricalModel).where(
            PartElectricalModel.voltage_type == voltage_type,
            PartElectricalModel.part_id.in_(ids),
        )
    )
    return VariantIndex(
        ElectricalVariant.model_validate(row) for row in result.scalars().all()
    )


async def bulk_create_line_items(
    session: AsyncSession, payloads: Sequence[dict[str, Any]]
) -> list[LineItemModel]:
    """Insert line item payloads in a single flush."""
    models = [LineItemModel(**payload) for payload in payloads]
    session.add_all(models)
    await session.flush()
    return models


async def bulk_create_package_items(
    session: AsyncSession, payloads: Sequence[dict[str, Any]]
) -> None:
    session.add_all(PackageItemModel(**payload) for payload in payloads)
    await session.flush()


async def delete_job_project(session: AsyncSession, job_project_id: int) -> None:
    """Delete a job project and everything under it.

    Children are deleted explicitly so the result does not depend on the
    backend enforcing ON DELETE CASCADE.
    """
    package_ids = select(PackageModel.id).where(
        PackageModel.job_project_id == job_project_id
    )
    await session.execute(
        delete(PackageItemModel).where(PackageItemModel.package_id.in_(package_ids))
    )
    await session.execute(
        delete(LocationModel).where(LocationModel.package_id.in_(package_ids))
    )
    await session.execute(
        delete(PackageModel).where(PackageModel.job_project_id == job_project_id)
    )
    await session.execute(
        delete(JobProjectModel).where(JobProjectModel.id == job_project_id)
    )
