"""Caller-owned catalog snapshots for the matching engine.

The matching engine never reaches into module state for catalog data: a
snapshot is loaded once per import session (or built from fixtures in tests)
and passed into every matching call.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from panelcalc.db.models import PartModel
from panelcalc.models import CatalogPart


class CatalogSource(Protocol):
    """Full-catalog retrieval contract used by the matcher."""

    async def get_parts(self) -> Sequence[CatalogPart]: ...


class CatalogSnapshot:
    """Immutable, ordered snapshot of catalog parts."""

    def __init__(self, parts: Iterable[CatalogPart] = ()) -> None:
        self._parts: tuple[CatalogPart, ...] = tuple(parts)

    async def get_parts(self) -> Sequence[CatalogPart]:
        return self._parts

    def __len__(self) -> int:
        return len(self._parts)

    def __iter__(self):
        return iter(self._parts)


async def load_catalog_snapshot(session: AsyncSession) -> CatalogSnapshot:
    """Load every catalog part (with manufacturer name) in id order."""
    result = await session.execute(select(PartModel).order_by(PartModel.id))
    parts = [
        CatalogPart(
            id=row.id,
            part_number=row.part_number,
            manufacturer_name=row.manufacturer.name if row.manufacturer else None,
            description=row.description,
        )
        for row in result.unique().scalars().all()
    ]
    return CatalogSnapshot(parts)
