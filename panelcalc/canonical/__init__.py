"""Text canonicalization helpers."""

from panelcalc.canonical.normalize import normalize_string

__all__ = ["normalize_string"]
