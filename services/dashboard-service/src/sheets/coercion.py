"""
Lenient coercion of spreadsheet cells into numbers and dates.

Published sheets format values for humans (``$1,234.56 MXN``, ``27.5%``,
``3/4/2024``). Every helper here is total: unparsable input degrades to a
default instead of raising so one malformed cell never aborts a parse.
"""

from __future__ import annotations

import re
from datetime import date, datetime

_NUMBER_NOISE_RE = re.compile(r"MXN|MX(?=\$)|[$\s,]", re.IGNORECASE)
_PERCENT_NOISE_RE = re.compile(r"[%\s]")
_LEADING_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_SLASH_DATE_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})(?:\s.*)?")

FALLBACK_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%d-%b-%Y", "%b %d, %Y", "%B %d, %Y")


def parse_number(raw_value: object) -> float:
    """Parse a currency or plain number cell; 0.0 when empty, ``-`` or not numeric."""

    if raw_value is None:
        return 0.0
    if isinstance(raw_value, (int, float)):
        return float(raw_value)

    cleaned = _NUMBER_NOISE_RE.sub("", str(raw_value))
    if cleaned in ("", "-"):
        return 0.0
    return _leading_float(cleaned)


def parse_percent(raw_value: object) -> float:
    """Parse ``"27.5%"`` as ``27.5`` (the percentage, not the ratio)."""

    if raw_value is None:
        return 0.0
    if isinstance(raw_value, (int, float)):
        return float(raw_value)

    return _leading_float(_PERCENT_NOISE_RE.sub("", str(raw_value)))


def parse_date(raw_value: object) -> date | None:
    """
    Parse a ledger date cell.

    ``M/D/YYYY`` is tried first since that is how the sheets export dates (a
    trailing time such as ``3/4/2024 10:30:00`` is ignored); any other shape
    goes through a short list of generic formats. Returns None when nothing
    matches so callers can treat the date as absent.
    """

    if not raw_value:
        return None

    text = str(raw_value).strip()
    match = _SLASH_DATE_RE.fullmatch(text)
    if match:
        month, day, year = (int(part) for part in match.groups())
        try:
            return date(year, month, day)
        except ValueError:
            pass

    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass

    for fmt in FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _leading_float(text: str) -> float:
    match = _LEADING_NUMBER_RE.match(text)
    if not match:
        return 0.0
    return float(match.group(0))
