"""Spreadsheet ingestion and cell coercion."""

from panelcalc.ingestion.coercion import (
    clean_text,
    parse_currency,
    parse_quantity,
    parse_unit_quantity,
)
from panelcalc.ingestion.spreadsheet import SpreadsheetData, dataframe_to_rows, read_spreadsheet

__all__ = [
    "SpreadsheetData",
    "clean_text",
    "dataframe_to_rows",
    "parse_currency",
    "parse_quantity",
    "parse_unit_quantity",
    "read_spreadsheet",
]
