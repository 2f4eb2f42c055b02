from __future__ import annotations

from typing import List, Sequence

from models.project_model import Expense

from .coercion import parse_date, parse_number
from .row_resolver import cell

# DESGLOSE COSTOS columns: A=date, B=category, C=subcategory, D=detail (unused), E=amount.
DATE_COL = 0
CATEGORY_COL = 1
SUBCATEGORY_COL = 2
AMOUNT_COL = 4
MIN_ROW_WIDTH = AMOUNT_COL + 1


def parse_expenses(rows: Sequence[Sequence[str]]) -> tuple[Expense, ...]:
    """Parse the expense ledger, skipping the header row, short rows and blank lines."""

    expenses: List[Expense] = []
    for index in range(1, len(rows)):  # Row 0 is the header.
        if len(rows[index]) < MIN_ROW_WIDTH:
            continue

        date_text = cell(rows, index, DATE_COL)
        category = cell(rows, index, CATEGORY_COL)
        amount = parse_number(cell(rows, index, AMOUNT_COL))
        if not category and not amount:
            continue

        expenses.append(
            Expense(
                date=date_text,
                date_value=parse_date(date_text),
                category=category,
                subcategory=cell(rows, index, SUBCATEGORY_COL),
                amount=amount,
            )
        )
    return tuple(expenses)
