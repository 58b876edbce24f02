"""Part matching engine."""

from panelcalc.matching.catalog import CatalogSnapshot, CatalogSource, load_catalog_snapshot
from panelcalc.matching.matcher import (
    ExactMatch,
    extract_manufacturer_and_part,
    find_exact_match,
    match_all_rows,
    match_row,
    rematch_row,
    save_manual_entry,
    skip_unmatched,
)

__all__ = [
    "CatalogSnapshot",
    "CatalogSource",
    "ExactMatch",
    "extract_manufacturer_and_part",
    "find_exact_match",
    "load_catalog_snapshot",
    "match_all_rows",
    "match_row",
    "rematch_row",
    "save_manual_entry",
    "skip_unmatched",
]
