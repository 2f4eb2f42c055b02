import math
from datetime import date
from typing import Optional

SPANISH_MONTH_ABBREVIATIONS = (
    "ene", "feb", "mar", "abr", "may", "jun",
    "jul", "ago", "sep", "oct", "nov", "dic",
)


def _is_missing(value: Optional[float]) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def format_currency(value: Optional[float]) -> str:
    """``1234.5`` -> ``"$1,234.50 MXN"``."""
    if _is_missing(value):
        return "$0.00 MXN"
    return f"${value:,.2f} MXN"


def format_currency_short(value: Optional[float]) -> str:
    """Compact amount for tight spaces: ``$1.23M``, ``$124K`` or ``$999``."""
    if _is_missing(value):
        return "$0"
    if abs(value) >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    if abs(value) >= 1_000:
        return f"${value / 1_000:.0f}K"
    return f"${value:,.0f}"


def format_percent(value: Optional[float]) -> str:
    if _is_missing(value):
        return "0.0%"
    return f"{value:.1f}%"


def format_multiple(value: Optional[float]) -> str:
    if _is_missing(value):
        return "0.00x"
    return f"{value:.2f}x"


def format_date_es(value: Optional[date]) -> str:
    """Short Mexican-Spanish date, e.g. ``4 mar 2024``; "" when absent."""
    if value is None:
        return ""
    return f"{value.day} {SPANISH_MONTH_ABBREVIATIONS[value.month - 1]} {value.year}"


def investor_initials(name: str) -> str:
    return "".join(word[0] for word in name.split())[:2].upper()
