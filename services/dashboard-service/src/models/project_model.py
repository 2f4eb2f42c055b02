from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime


@dataclass(frozen=True, slots=True)
class LineItem:
    """Named budget line (a soft-cost or terreno subcategory)."""

    name: str
    amount: float


@dataclass(frozen=True, slots=True)
class House:
    name: str
    sqm: float
    price_per_sqm: float
    total_commercial: float
    net_income: float


@dataclass(frozen=True, slots=True)
class HardCosts:
    total: float | None = None
    construction: float | None = None


@dataclass(frozen=True, slots=True)
class ItemizedCosts:
    """A budget category made of named line items plus an optional sheet total."""

    total: float | None = None
    items: tuple[LineItem, ...] = ()


@dataclass(frozen=True, slots=True)
class Budget:
    """
    Parsed BUDGET sheet.

    Totals are None when their label row could not be located in the sheet.
    """

    houses: tuple[House, ...] = ()
    hard_costs: HardCosts = field(default_factory=HardCosts)
    soft_costs: ItemizedCosts = field(default_factory=ItemizedCosts)
    terreno: ItemizedCosts = field(default_factory=ItemizedCosts)


@dataclass(frozen=True, slots=True)
class Expense:
    """Represents a single row of the DESGLOSE COSTOS ledger."""

    date: str
    date_value: date | None
    category: str
    subcategory: str
    amount: float


@dataclass(frozen=True, slots=True)
class CapitalUse:
    amount: float
    pct: float


@dataclass(frozen=True, slots=True)
class CapitalUses:
    hard_costs: CapitalUse | None = None
    soft_costs: CapitalUse | None = None
    terreno: CapitalUse | None = None


@dataclass(frozen=True, slots=True)
class Investor:
    name: str
    amount: float


@dataclass(frozen=True, slots=True)
class Indicator:
    value: float
    label: str


@dataclass(frozen=True, slots=True)
class ProjectIndicators:
    total_income: Indicator | None = None
    project_cost: Indicator | None = None
    profit: Indicator | None = None
    margin: Indicator | None = None


@dataclass(frozen=True, slots=True)
class CapitalIndicators:
    capital_contributed: Indicator | None = None
    total_return: Indicator | None = None
    roi: Indicator | None = None
    capital_multiple: Indicator | None = None


@dataclass(frozen=True, slots=True)
class Capital:
    """Parsed CAPITAL sheet: uses of capital, investors and headline indicators."""

    uses: CapitalUses = field(default_factory=CapitalUses)
    investors: tuple[Investor, ...] = ()
    project_indicators: ProjectIndicators = field(default_factory=ProjectIndicators)
    capital_indicators: CapitalIndicators = field(default_factory=CapitalIndicators)


@dataclass(frozen=True, slots=True)
class ExpenseSummary:
    total: float = 0.0
    by_category: dict[str, float] = field(default_factory=dict)
    by_subcategory: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ProjectSnapshot:
    """Everything one fetch-and-parse cycle produces for a project."""

    budget: Budget
    expenses: tuple[Expense, ...]
    capital: Capital
    expense_summary: ExpenseSummary
    fetched_at: datetime
