"""Spreadsheet reading for the import pipeline.

Parses CSV/XLSX exports into header lists and ``{column: str}`` rows. Every
cell is kept as text; numeric coercion happens explicitly later.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_MB = 50
MAX_ROWS = 50000

SUPPORTED_SUFFIXES = (".csv", ".xlsx", ".xls")


@dataclass
class SpreadsheetData:
    """Parsed spreadsheet contents."""

    headers: list[str]
    rows: list[dict[str, str]] = field(default_factory=list)
    source: str | None = None

    def __len__(self) -> int:
        return len(self.rows)


def _cell_to_text(value) -> str:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    # Excel integers come back as floats ("10.0")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def dataframe_to_rows(df: pd.DataFrame) -> SpreadsheetData:
    """Convert a DataFrame into text rows keyed by stripped column headers."""
    headers = [str(col).strip() for col in df.columns]
    rows: list[dict[str, str]] = []

    for record in df.itertuples(index=False, name=None):
        row = {header: _cell_to_text(value) for header, value in zip(headers, record)}
        # Fully blank rows are trailing spreadsheet noise
        if any(row.values()):
            rows.append(row)

    return SpreadsheetData(headers=headers, rows=rows)


def read_spreadsheet(file_path: Path, sheet_name: str | int | None = None) -> SpreadsheetData:
    """Read a CSV or XLSX file into text rows.

    Args:
        file_path: Path to CSV or XLSX file
        sheet_name: Worksheet for Excel files (default: first sheet)

    Returns:
        SpreadsheetData with headers in file order

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the format is unsupported or limits are exceeded
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Import file not found: {file_path}")

    file_size_mb = file_path.stat().st_size / (1024 * 1024)
    if file_size_mb > MAX_FILE_SIZE_MB:
        raise ValueError(
            f"File too large ({file_size_mb:.1f}MB). Maximum allowed: {MAX_FILE_SIZE_MB}MB"
        )

    suffix = file_path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(file_path, dtype=str, keep_default_na=False)
    elif suffix in (".xlsx", ".xls"):
        df = pd.read_excel(file_path, sheet_name=sheet_name or 0)
    else:
        raise ValueError(f"Unsupported file format: {file_path.suffix}. Use CSV or XLSX.")

    if len(df) > MAX_ROWS:
        raise ValueError(f"Too many rows ({len(df):,}). Maximum allowed: {MAX_ROWS:,}")

    data = dataframe_to_rows(df)
    data.source = file_path.name
    logger.info(f"Read {len(data.rows)} rows with {len(data.headers)} columns from {file_path.name}")
    return data
