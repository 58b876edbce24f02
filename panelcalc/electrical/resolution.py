"""Electrical resolution engine.

Resolves the effective wattage, amperage and heat of a single line item:
catalog variant values for the table's voltage type first, then manual
overrides on top.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol

from panelcalc.models import ElectricalVariant, LineItem


class VariantLookup(Protocol):
    """Anything that can fetch the electrical variant of a part."""

    async def get_variant(
        self, part_id: int, voltage_type: str
    ) -> ElectricalVariant | None: ...


@dataclass(frozen=True, slots=True)
class ResolvedLineItem:
    """Line item with its effective electrical values."""

    line_item: LineItem
    wattage: float
    amperage: float
    heat_btu: float

    @property
    def qty(self) -> int:
        return self.line_item.qty

    @property
    def utilization(self) -> float:
        return self.line_item.utilization_pct


class VariantIndex:
    """In-memory ``VariantLookup`` over a fixed set of variants.

    Built once per calculation (or per test) so that concurrent resolution
    never shares a database session.
    """

    def __init__(self, variants: Iterable[ElectricalVariant] = ()) -> None:
        self._variants: dict[tuple[int, str], ElectricalVariant] = {}
        for variant in variants:
            self.add(variant)

    def add(self, variant: ElectricalVariant) -> None:
        self._variants[(variant.part_id, variant.voltage_type)] = variant

    async def get_variant(
        self, part_id: int, voltage_type: str
    ) -> ElectricalVariant | None:
        return self._variants.get((part_id, voltage_type))

    def __len__(self) -> int:
        return len(self._variants)


def _seed(value: float | None) -> float:
    if value is None or value < 0:
        return 0.0
    return float(value)


def resolve_with_variant(
    item: LineItem, variant: ElectricalVariant | None
) -> ResolvedLineItem:
    """Apply overrides on top of an already fetched variant.

    A non-null override always wins, including an override of ``0``.
    """
    wattage = amperage = heat_btu = 0.0

    if item.part_id is not None and variant is not None:
        wattage = _seed(variant.wattage)
        amperage = _seed(variant.amperage)
        heat_btu = _seed(variant.heat_dissipation_btu)

    # Overrides take precedence
    if item.wattage_override is not None:
        wattage = float(item.wattage_override)
    if item.amperage_override is not None:
        amperage = float(item.amperage_override)
    if item.heat_dissipation_override is not None:
        heat_btu = float(item.heat_dissipation_override)

    return ResolvedLineItem(
        line_item=item, wattage=wattage, amperage=amperage, heat_btu=heat_btu
    )


async def resolve_line_item(
    item: LineItem, voltage_type: str, lookup: VariantLookup
) -> ResolvedLineItem:
    """Resolve effective electrical values for one line item.

    Args:
        item: Line item to resolve
        voltage_type: Voltage type tag of the owning table
        lookup: Catalog variant lookup

    Returns:
        ResolvedLineItem with non-negative wattage, amperage and heat
    """
    variant = None
    if item.part_id is not None:
        variant = await lookup.get_variant(item.part_id, voltage_type)
    return resolve_with_variant(item, variant)


async def resolve_line_items(
    items: Sequence[LineItem], voltage_type: str, lookup: VariantLookup
) -> list[ResolvedLineItem]:
    """Resolve many line items concurrently, preserving input order."""
    return list(
        await asyncio.gather(
            *(resolve_line_item(item, voltage_type, lookup) for item in items)
        )
    )
