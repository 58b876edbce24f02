"""Explicit coercion of spreadsheet cell strings at the import boundary."""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal

# First number in a string; allows thousands separators ("1,200.50")
_NUMBER = re.compile(r"(\d{1,3}(,\d{3})+(\.\d+)?|\d+(\.\d+)?|\.\d+)")


def _first_number(value: str | None) -> float | None:
    if value is None:
        return None
    clean = str(value).strip()
    if not clean:
        return None
    match = _NUMBER.search(clean)
    if not match:
        return None
    return float(match.group(0).replace(",", ""))


def parse_quantity(value: str | None) -> float:
    """Robustly parse a quantity cell.

    Handles "10", "10.5", "10 EA", "1,200", "Approx 10". Returns the first
    number found, or 1 when there is none.
    """
    number = _first_number(value)
    return 1.0 if number is None else number


def parse_unit_quantity(value: str | None) -> int:
    """Quantity as a positive whole number of units (half-up, minimum 1)."""
    quantity = Decimal(repr(parse_quantity(value))).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return max(1, int(quantity))


def parse_currency(value: str | None) -> float | None:
    """Parse a price cell such as "$10.00", "10.00 USD" or "Cost: 5.50"."""
    return _first_number(value)


def clean_text(value: str | None) -> str | None:
    """Strip a text cell, mapping blanks to None."""
    if value is None:
        return None
    clean = str(value).strip()
    return clean or None
