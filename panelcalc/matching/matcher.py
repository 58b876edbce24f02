"""Deterministic part matching for imported rows.

Matching is exact on normalized strings, never fuzzy:

* part number + manufacturer both equal  -> confidence 1.0
* part number equal, no manufacturer given -> confidence 1.0
* part number equal, manufacturer differs  -> mismatch confidence (0.8)
* no part number match                     -> confidence 0

A row is ``matched`` when its confidence reaches the configured threshold.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from panelcalc.canonical.normalize import normalize_string
from panelcalc.config import MatchingConfig
from panelcalc.matching.catalog import CatalogSource
from panelcalc.models import ManualEntry, MatchResult, MatchState

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class ExactMatch:
    """Outcome of a catalog lookup for one part number."""

    part_id: int | None
    confidence: float
    matched_part_number: str | None = None
    matched_manufacturer: str | None = None


NO_MATCH = ExactMatch(part_id=None, confidence=0.0)


def extract_manufacturer_and_part(
    row: Mapping[str, str | None],
    part_number_field: str,
    manufacturer_field: str | None = None,
) -> tuple[str, str | None]:
    """Pull the part number and optional manufacturer out of a row.

    Returns:
        Tuple of (part_number, manufacturer); part number is ``""`` when the
        column is missing or blank, manufacturer is None in the same case.
    """
    part_number = row.get(part_number_field)
    manufacturer = row.get(manufacturer_field) if manufacturer_field else None

    part_number = str(part_number) if part_number else ""
    manufacturer = str(manufacturer) if manufacturer and str(manufacturer).strip() else None
    return part_number, manufacturer


async def find_exact_match(
    part_number: str,
    catalog: CatalogSource,
    config: MatchingConfig,
    manufacturer: str | None = None,
) -> ExactMatch:
    """Find the catalog part matching ``part_number`` (and manufacturer).

    Any failure while reading the catalog is logged and reported as a
    non-match so a single row cannot abort a batch.
    """
    if not part_number:
        return NO_MATCH

    wanted_part = normalize_string(part_number, config)

    try:
        parts = await catalog.get_parts()
    except Exception as exc:
        logger.warning(f"Catalog lookup failed for part '{part_number}': {exc}", exc_info=True)
        return NO_MATCH

    wanted_manufacturer = normalize_string(manufacturer, config) if manufacturer else ""

    if wanted_manufacturer:
        for part in parts:
            if (
                normalize_string(part.part_number, config) == wanted_part
                and normalize_string(part.manufacturer_name, config) == wanted_manufacturer
            ):
                return ExactMatch(
                    part_id=part.id,
                    confidence=1.0,
                    matched_part_number=part.part_number,
                    matched_manufacturer=part.manufacturer_name,
                )

    for part in parts:
        if normalize_string(part.part_number, config) == wanted_part:
            return ExactMatch(
                part_id=part.id,
                # Manufacturer was given but did not match any row with this part number
                confidence=(
                    config.manufacturer_mismatch_confidence if wanted_manufacturer else 1.0
                ),
                matched_part_number=part.part_number,
                matched_manufacturer=part.manufacturer_name,
            )

    return NO_MATCH


async def match_row(
    row: Mapping[str, str | None],
    row_index: int,
    part_number_field: str,
    manufacturer_field: str | None,
    catalog: CatalogSource,
    config: MatchingConfig | None = None,
) -> MatchResult:
    """Match a single imported row against the catalog."""
    config = config or MatchingConfig()
    part_number, manufacturer = extract_manufacturer_and_part(
        row, part_number_field, manufacturer_field
    )

    if not part_number.strip():
        return MatchResult(row_index=row_index, confidence=0.0, state=MatchState.UNMATCHED)

    match = await find_exact_match(part_number, catalog, config, manufacturer)
    state = (
        MatchState.MATCHED
        if match.confidence >= config.match_threshold
        else MatchState.UNMATCHED
    )

    return MatchResult(
        row_index=row_index,
        part_id=match.part_id,
        confidence=match.confidence,
        state=state,
        matched_part_number=match.matched_part_number,
        matched_manufacturer=match.matched_manufacturer,
    )


async def match_all_rows(
    rows: Sequence[Mapping[str, str | None]],
    part_number_field: str,
    manufacturer_field: str | None,
    catalog: CatalogSource,
    config: MatchingConfig | None = None,
    on_progress: ProgressCallback | None = None,
) -> list[MatchResult]:
    """Match all rows in fixed-size chunks.

    Lookups within a chunk run concurrently; results keep row order.
    ``on_progress(processed, total)`` is called after every chunk.
    """
    config = config or MatchingConfig()
    batch_size = max(1, config.batch_size)
    total = len(rows)
    results: list[MatchResult] = []

    for start in range(0, total, batch_size):
        batch = rows[start:start + batch_size]
        batch_results = await asyncio.gather(
            *(
                match_row(row, start + offset, part_number_field, manufacturer_field, catalog, config)
                for offset, row in enumerate(batch)
            )
        )
        results.extend(batch_results)

        if on_progress is not None:
            on_progress(min(start + batch_size, total), total)

    matched = sum(1 for r in results if r.state == MatchState.MATCHED)
    logger.info(f"Matched {matched}/{total} rows against {type(catalog).__name__}")
    return results


async def rematch_row(
    result: MatchResult,
    row: Mapping[str, str | None],
    part_number_field: str,
    manufacturer_field: str | None,
    catalog: CatalogSource,
    config: MatchingConfig | None = None,
) -> MatchResult:
    """Explicitly re-run matching for a row, discarding its previous state."""
    return await match_row(
        row, result.row_index, part_number_field, manufacturer_field, catalog, config
    )


def save_manual_entry(
    result: MatchResult,
    entry: ManualEntry,
    config: MatchingConfig | None = None,
) -> MatchResult:
    """Replace a row's match with operator-supplied values.

    Manual entries never link to a catalog part.
    """
    config = config or MatchingConfig()
    return result.model_copy(
        update={
            "state": MatchState.MANUAL,
            "manual_entry": entry,
            "confidence": config.manual_entry_confidence,
            "part_id": None,
        }
    )


def skip_unmatched(result: MatchResult) -> MatchResult:
    """Mark a row as skipped; prior match metadata is kept for undo."""
    return result.model_copy(update={"state": MatchState.SKIPPED, "confidence": 0.0})
