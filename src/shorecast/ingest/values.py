"""Tolerant value parsers.

Both parsers return ``None`` instead of raising so that one bad cell never
costs the whole row.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)
_US_DATE = re.compile(r"\d{2}/\d{2}/\d{4}", re.ASCII)
_YEAR_ONLY = re.compile(r"\d{4}", re.ASCII)


def parse_number(raw: str | None) -> float | None:
    """Parse a decimal number, returning ``None`` for anything unparseable."""
    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_date(raw: str | None) -> date | None:
    """Parse ``YYYY-MM-DD``, ``MM/DD/YYYY`` or a bare ``YYYY`` (January 1).

    The first pattern whose shape matches decides the outcome: a value such
    as ``2020-13-40`` is ISO-shaped, fails calendar validation, and yields
    ``None`` without trying the other patterns.
    """
    if raw is None:
        return None
    text = raw.strip()
    try:
        if _ISO_DATE.fullmatch(text):
            return datetime.strptime(text, "%Y-%m-%d").date()
        if _US_DATE.fullmatch(text):
            return datetime.strptime(text, "%m/%d/%Y").date()
        if _YEAR_ONLY.fullmatch(text):
            return date(int(text), 1, 1)
    except ValueError:
        return None
    return None
