from __future__ import annotations

from typing import Dict, Iterable

from models.project_model import Expense, ExpenseSummary

HARD_COST = "Hard Cost"
SOFT_COST = "Soft Cost"
TERRENO = "Terreno"

_CATEGORY_PREFIXES = (
    ("hard", HARD_COST),
    ("soft", SOFT_COST),
    ("terreno", TERRENO),
)


def normalize_category(label: str | None) -> str:
    """
    Map a free-text ledger category onto one of the canonical buckets.

    Args:
        label: Category cell as typed in the sheet ("Hard Costs", "soft cost", ...).
    Returns:
        "Hard Cost", "Soft Cost" or "Terreno" when the label starts with the matching
        prefix (case-insensitive); otherwise the trimmed label unchanged, "" for blanks.
    """
    if not label:
        return ""
    trimmed = label.strip()
    lowered = trimmed.lower()
    for prefix, canonical in _CATEGORY_PREFIXES:
        if lowered.startswith(prefix):
            return canonical
    return trimmed


def subcategory_key(category: str, subcategory: str) -> str:
    return f"{category}|{subcategory}"


def calculate_expense_summary(expenses: Iterable[Expense]) -> ExpenseSummary:
    """
    Total the ledger overall, per normalized category and per category/subcategory pair.

    Args:
        expenses: Parsed ledger rows in any order.
    Returns:
        ExpenseSummary whose `by_subcategory` keys are "<normalized category>|<subcategory>".
    Assumptions:
        Pure single pass; keys that were never seen are simply absent (read them as zero).
    """
    total = 0.0
    by_category: Dict[str, float] = {}
    by_subcategory: Dict[str, float] = {}

    for expense in expenses:
        total += expense.amount

        category = normalize_category(expense.category)
        by_category[category] = by_category.get(category, 0.0) + expense.amount

        sub_key = subcategory_key(category, expense.subcategory)
        by_subcategory[sub_key] = by_subcategory.get(sub_key, 0.0) + expense.amount

    return ExpenseSummary(total=total, by_category=by_category, by_subcategory=by_subcategory)
