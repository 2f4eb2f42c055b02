"""
View builders for the dashboard sections.

Each builder is a pure function over a ProjectSnapshot and returns plain
dataclasses ready to be serialised. Totals that were not found in the sheets
(None in the model) are read as zero here. Progress percentages are kept
unclamped; `bar_width` is the display value capped at 100.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Sequence

from expense_summary import HARD_COST, SOFT_COST, TERRENO, normalize_category, subcategory_key
from formatting import (
    format_currency,
    format_date_es,
    format_multiple,
    format_percent,
    investor_initials,
)
from models.project_model import (
    Budget,
    Capital,
    CapitalUse,
    Expense,
    ExpenseSummary,
    Indicator,
    LineItem,
    ProjectSnapshot,
)

# General progress weighting; terreno is left out on purpose.
HARD_COST_WEIGHT = 0.80
SOFT_COST_WEIGHT = 0.20

ALL = "all"

CATEGORY_TAGS = {HARD_COST: "tag-hard", SOFT_COST: "tag-soft"}
DEFAULT_CATEGORY_TAG = "tag-terreno"


@dataclass(frozen=True)
class CategoryProgress:
    name: str
    category: str
    budget: float
    spent: float
    pct: float
    bar_width: float
    color: str
    badge: str


@dataclass(frozen=True)
class CapitalSegment:
    name: str
    amount: float
    pct: float
    share_of_total: float
    color: str


@dataclass(frozen=True)
class SummaryView:
    project_name: str
    fetched_at: datetime
    total_investment: float
    total_spent: float
    general_progress: float
    expected_roi: float
    categories: List[CategoryProgress]
    capital_total: float
    capital_distribution: List[CapitalSegment]


@dataclass(frozen=True)
class SubcategoryProgress:
    name: str
    budget: float
    spent: float
    pct: float
    bar_width: float
    over_budget: bool


@dataclass(frozen=True)
class BudgetVsExecutedView:
    hard_costs: CategoryProgress
    soft_costs: CategoryProgress
    terreno: CategoryProgress
    soft_cost_breakdown: List[SubcategoryProgress]
    terreno_breakdown: List[SubcategoryProgress]
    total_budget: float
    total_spent: float
    remaining: float
    pct: float
    pct_remaining: float


@dataclass(frozen=True)
class IndicatorView:
    label: str
    value: float
    display: str


@dataclass(frozen=True)
class InvestorView:
    name: str
    amount: float
    initials: str
    display: str


@dataclass(frozen=True)
class FinancialsView:
    project_indicators: List[IndicatorView]
    capital_indicators: List[IndicatorView]
    investors: List[InvestorView]


@dataclass(frozen=True)
class HouseView:
    name: str
    sheet_name: str
    sqm: float
    price_per_sqm: float
    total_commercial: float
    net_income: float


@dataclass(frozen=True)
class SaleView:
    name: str
    price: float
    price_display: str
    status: str
    status_class: str
    buyer: str
    estimated_close: str


@dataclass(frozen=True)
class ExpenseFilters:
    category: str = ALL
    subcategory: str = ALL
    date_from: Optional[date] = None
    date_to: Optional[date] = None


@dataclass(frozen=True)
class ExpenseRow:
    date: str
    date_value: Optional[date]
    date_display: str
    category: str
    category_tag: str
    subcategory: str
    amount: float
    amount_display: str


@dataclass(frozen=True)
class ExpenseTableView:
    filters: ExpenseFilters
    rows: List[ExpenseRow]
    total: float
    total_display: str
    subcategories: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DashboardView:
    summary: SummaryView
    budget_vs_executed: BudgetVsExecutedView
    financials: FinancialsView
    houses: List[HouseView]
    sales: List[SaleView]
    expenses: ExpenseTableView


def progress_pct(spent: float, budget: float) -> float:
    """Spent as a percentage of budget, 0 when there is no budget; never clamped."""
    return (spent / budget) * 100 if budget > 0 else 0.0


def badge_level(pct: float) -> str:
    if pct > 100:
        return "red"
    if pct > 75:
        return "orange"
    return "green"


def total_budget(budget: Budget) -> float:
    return (budget.hard_costs.total or 0.0) + (budget.soft_costs.total or 0.0) + (budget.terreno.total or 0.0)


def category_progress(budget: Budget, summary: ExpenseSummary) -> List[CategoryProgress]:
    """Hard cost, soft cost and terreno progress against their budget totals, in that order."""
    specs = (
        ("Hard Costs", HARD_COST, budget.hard_costs.total, "blue"),
        ("Soft Costs", SOFT_COST, budget.soft_costs.total, "purple"),
        ("Terreno", TERRENO, budget.terreno.total, "orange"),
    )
    progress: List[CategoryProgress] = []
    for name, category, budget_total, color in specs:
        budget_amount = budget_total or 0.0
        spent = summary.by_category.get(category, 0.0)
        pct = progress_pct(spent, budget_amount)
        progress.append(
            CategoryProgress(
                name=name,
                category=category,
                budget=budget_amount,
                spent=spent,
                pct=pct,
                bar_width=min(pct, 100.0),
                color="red" if pct > 100 else color,
                badge=badge_level(pct),
            )
        )
    return progress


def build_summary(snapshot: ProjectSnapshot, project_name: str = "") -> SummaryView:
    budget = snapshot.budget
    summary = snapshot.expense_summary

    hard_progress = progress_pct(summary.by_category.get(HARD_COST, 0.0), budget.hard_costs.total or 0.0)
    soft_progress = progress_pct(summary.by_category.get(SOFT_COST, 0.0), budget.soft_costs.total or 0.0)
    roi = snapshot.capital.capital_indicators.roi

    segments = _capital_segments(snapshot.capital)
    return SummaryView(
        project_name=project_name,
        fetched_at=snapshot.fetched_at,
        total_investment=total_budget(budget),
        total_spent=summary.total,
        general_progress=hard_progress * HARD_COST_WEIGHT + soft_progress * SOFT_COST_WEIGHT,
        expected_roi=roi.value if roi else 0.0,
        categories=category_progress(budget, summary),
        capital_total=sum(segment.amount for segment in segments),
        capital_distribution=segments,
    )


def _capital_segments(capital: Capital) -> List[CapitalSegment]:
    uses: Sequence[tuple[str, Optional[CapitalUse], str]] = (
        ("Hard Costs", capital.uses.hard_costs, "#3182ce"),
        ("Soft Costs", capital.uses.soft_costs, "#6b46c1"),
        ("Terreno", capital.uses.terreno, "#dd6b20"),
    )
    total = sum(use.amount for _, use, _ in uses if use)
    segments = []
    for name, use, color in uses:
        amount = use.amount if use else 0.0
        segments.append(
            CapitalSegment(
                name=name,
                amount=amount,
                pct=use.pct if use else 0.0,
                share_of_total=(amount / total) * 100 if total > 0 else 0.0,
                color=color,
            )
        )
    return segments


def build_budget_vs_executed(snapshot: ProjectSnapshot) -> BudgetVsExecutedView:
    budget = snapshot.budget
    summary = snapshot.expense_summary
    hard, soft, terreno = category_progress(budget, summary)

    budget_total = total_budget(budget)
    pct = progress_pct(summary.total, budget_total)
    return BudgetVsExecutedView(
        hard_costs=hard,
        soft_costs=soft,
        terreno=terreno,
        soft_cost_breakdown=_subcategory_breakdown(budget.soft_costs.items, summary, SOFT_COST),
        terreno_breakdown=_subcategory_breakdown(budget.terreno.items, summary, TERRENO),
        total_budget=budget_total,
        total_spent=summary.total,
        remaining=budget_total - summary.total,
        pct=pct,
        pct_remaining=100 - pct,
    )


def _subcategory_breakdown(
    items: Sequence[LineItem],
    summary: ExpenseSummary,
    category: str,
) -> List[SubcategoryProgress]:
    breakdown = []
    for item in items:
        spent = summary.by_subcategory.get(subcategory_key(category, item.name), 0.0)
        pct = progress_pct(spent, item.amount)
        breakdown.append(
            SubcategoryProgress(
                name=item.name,
                budget=item.amount,
                spent=spent,
                pct=pct,
                bar_width=min(pct, 100.0),
                over_budget=pct > 100,
            )
        )
    return breakdown


def build_financials(snapshot: ProjectSnapshot) -> FinancialsView:
    project = snapshot.capital.project_indicators
    capital = snapshot.capital.capital_indicators
    return FinancialsView(
        project_indicators=[
            _indicator_view(project.total_income, "Ingresos Totales", format_currency),
            _indicator_view(project.project_cost, "Costo del Proyecto", format_currency),
            _indicator_view(project.profit, "Utilidad", format_currency),
            _indicator_view(project.margin, "Margen de Utilidad", format_percent),
        ],
        capital_indicators=[
            _indicator_view(capital.capital_contributed, "Capital Aportado", format_currency),
            _indicator_view(capital.total_return, "Retorno Total", format_currency),
            _indicator_view(capital.roi, "ROI", format_percent),
            _indicator_view(capital.capital_multiple, "Múltiplo de Capital", format_multiple),
        ],
        investors=[
            InvestorView(
                name=investor.name,
                amount=investor.amount,
                initials=investor_initials(investor.name),
                display=format_currency(investor.amount),
            )
            for investor in snapshot.capital.investors
        ],
    )


def _indicator_view(indicator: Optional[Indicator], default_label: str, fmt) -> IndicatorView:
    value = indicator.value if indicator else 0.0
    label = indicator.label if indicator and indicator.label else default_label
    return IndicatorView(label=label, value=value, display=fmt(value))


def build_houses(snapshot: ProjectSnapshot) -> List[HouseView]:
    return [
        HouseView(
            name=f"Casa {position}",
            sheet_name=house.name,
            sqm=house.sqm,
            price_per_sqm=house.price_per_sqm,
            total_commercial=house.total_commercial,
            net_income=house.net_income,
        )
        for position, house in enumerate(snapshot.budget.houses, start=1)
    ]


def build_sales(snapshot: ProjectSnapshot) -> List[SaleView]:
    # Sales tracking is not in the sheets yet; every house shows as available.
    prices = [house.total_commercial for house in snapshot.budget.houses] or [0.0, 0.0]
    return [
        SaleView(
            name=f"Casa {position}",
            price=price,
            price_display=format_currency(price),
            status="Disponible",
            status_class="status-available",
            buyer="Pendiente",
            estimated_close="Por definir",
        )
        for position, price in enumerate(prices, start=1)
    ]


def filter_expenses(expenses: Sequence[Expense], filters: ExpenseFilters) -> List[Expense]:
    """
    Apply the table filters and order rows newest first.

    Category filtering compares normalized categories. When a date bound is set,
    rows without a parsed date are dropped; otherwise undated rows sort last.
    """
    selected = list(expenses)
    if filters.category != ALL:
        selected = [e for e in selected if normalize_category(e.category) == filters.category]
    if filters.subcategory != ALL:
        selected = [e for e in selected if e.subcategory == filters.subcategory]
    if filters.date_from is not None:
        selected = [e for e in selected if e.date_value is not None and e.date_value >= filters.date_from]
    if filters.date_to is not None:
        selected = [e for e in selected if e.date_value is not None and e.date_value <= filters.date_to]

    dated = sorted((e for e in selected if e.date_value is not None), key=lambda e: e.date_value, reverse=True)
    undated = [e for e in selected if e.date_value is None]
    return dated + undated


def build_expense_table(snapshot: ProjectSnapshot, filters: Optional[ExpenseFilters] = None) -> ExpenseTableView:
    filters = filters or ExpenseFilters()
    selected = filter_expenses(snapshot.expenses, filters)

    rows = []
    for expense in selected:
        category = normalize_category(expense.category)
        rows.append(
            ExpenseRow(
                date=expense.date,
                date_value=expense.date_value,
                date_display=format_date_es(expense.date_value) or expense.date or "-",
                category=category,
                category_tag=CATEGORY_TAGS.get(category, DEFAULT_CATEGORY_TAG),
                subcategory=expense.subcategory,
                amount=expense.amount,
                amount_display=format_currency(expense.amount),
            )
        )

    total = sum(expense.amount for expense in selected)
    return ExpenseTableView(
        filters=filters,
        rows=rows,
        total=total,
        total_display=format_currency(total),
        subcategories=sorted({e.subcategory for e in snapshot.expenses if e.subcategory}),
    )


def build_dashboard(
    snapshot: ProjectSnapshot,
    project_name: str = "",
    filters: Optional[ExpenseFilters] = None,
) -> DashboardView:
    return DashboardView(
        summary=build_summary(snapshot, project_name),
        budget_vs_executed=build_budget_vs_executed(snapshot),
        financials=build_financials(snapshot),
        houses=build_houses(snapshot),
        sales=build_sales(snapshot),
        expenses=build_expense_table(snapshot, filters),
    )
