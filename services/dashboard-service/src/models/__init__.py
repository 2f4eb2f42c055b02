"""Immutable records produced by parsing the three project spreadsheets."""

from .project_model import (
    Budget,
    Capital,
    CapitalIndicators,
    CapitalUse,
    CapitalUses,
    Expense,
    ExpenseSummary,
    HardCosts,
    House,
    Indicator,
    Investor,
    ItemizedCosts,
    LineItem,
    ProjectIndicators,
    ProjectSnapshot,
)

__all__ = [
    "Budget",
    "Capital",
    "CapitalIndicators",
    "CapitalUse",
    "CapitalUses",
    "Expense",
    "ExpenseSummary",
    "HardCosts",
    "House",
    "Indicator",
    "Investor",
    "ItemizedCosts",
    "LineItem",
    "ProjectIndicators",
    "ProjectSnapshot",
]
