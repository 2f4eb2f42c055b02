"""Tokenizing and mapping of the published project spreadsheets."""

from .budget_parser import parse_budget
from .capital_parser import parse_capital
from .coercion import parse_date, parse_number, parse_percent
from .expense_parser import parse_expenses
from .row_resolver import LabelIndex
from .tokenizer import decode_csv_bytes, tokenize_csv

__all__ = [
    "LabelIndex",
    "decode_csv_bytes",
    "parse_budget",
    "parse_capital",
    "parse_date",
    "parse_expenses",
    "parse_number",
    "parse_percent",
    "tokenize_csv",
]
