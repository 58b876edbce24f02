"""String normalization used by part matching."""

from __future__ import annotations

import re

from panelcalc.config import MatchingConfig

_WHITESPACE = re.compile(r"\s+")


def normalize_string(value: object | None, config: MatchingConfig) -> str:
    """Canonicalize a value for exact comparison.

    ``None`` and empty values normalize to ``""``. Whitespace is trimmed and
    collapsed when ``config.normalize_whitespace`` is set; text is lowercased
    when ``config.normalize_case`` is set.
    """
    if value is None:
        return ""

    normalized = str(value)
    if not normalized:
        return ""

    if config.normalize_whitespace:
        normalized = _WHITESPACE.sub(" ", normalized.strip())

    if config.normalize_case:
        normalized = normalized.lower()

    return normalized
