"""
Parser for the CAPITAL sheet.

Unlike the budget sheet, this one is read by fixed position: the layout of the
uses-of-capital block, the investor list and the two indicator blocks is
assumed stable. If the sheet gets restructured the values silently shift, so a
short sheet is logged but not re-validated.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from models.project_model import (
    Capital,
    CapitalIndicators,
    CapitalUse,
    CapitalUses,
    Indicator,
    Investor,
    ProjectIndicators,
)

from .coercion import parse_number, parse_percent
from .row_resolver import cell

logger = logging.getLogger(__name__)

LABEL_COL = 0  # A
VALUE_COL = 2  # C
PCT_COL = 3  # D

HARD_COSTS_USE_ROW = 1
SOFT_COSTS_USE_ROW = 2
TERRENO_USE_ROW = 3

INVESTORS_FIRST_ROW = 6
INVESTORS_END_ROW = 11  # exclusive; the project indicator block starts right after

TOTAL_INCOME_ROW = 12
PROJECT_COST_ROW = 13
PROFIT_ROW = 14
MARGIN_ROW = 15

CAPITAL_CONTRIBUTED_ROW = 18
TOTAL_RETURN_ROW = 19
ROI_ROW = 20
CAPITAL_MULTIPLE_ROW = 21

EXPECTED_ROW_COUNT = CAPITAL_MULTIPLE_ROW + 1


def parse_capital(rows: Sequence[Sequence[str]]) -> Capital:
    if len(rows) < EXPECTED_ROW_COUNT:
        logger.warning(
            {
                "event": "capital_sheet_short",
                "row_count": len(rows),
                "expected_rows": EXPECTED_ROW_COUNT,
            }
        )

    return Capital(
        uses=CapitalUses(
            hard_costs=_capital_use(rows, HARD_COSTS_USE_ROW),
            soft_costs=_capital_use(rows, SOFT_COSTS_USE_ROW),
            terreno=_capital_use(rows, TERRENO_USE_ROW),
        ),
        investors=_investors(rows),
        project_indicators=ProjectIndicators(
            total_income=_indicator(rows, TOTAL_INCOME_ROW, "Ingresos Totales"),
            project_cost=_indicator(rows, PROJECT_COST_ROW, "Costo del Proyecto"),
            profit=_indicator(rows, PROFIT_ROW, "Utilidad"),
            margin=_indicator(rows, MARGIN_ROW, "Margen de Utilidad", parse_percent),
        ),
        capital_indicators=CapitalIndicators(
            capital_contributed=_indicator(rows, CAPITAL_CONTRIBUTED_ROW, "Capital Aportado"),
            total_return=_indicator(rows, TOTAL_RETURN_ROW, "Retorno Total"),
            roi=_indicator(rows, ROI_ROW, "ROI", parse_percent),
            capital_multiple=_indicator(rows, CAPITAL_MULTIPLE_ROW, "Múltiplo de Capital"),
        ),
    )


def _capital_use(rows: Sequence[Sequence[str]], row_index: int) -> Optional[CapitalUse]:
    if row_index >= len(rows):
        return None
    return CapitalUse(
        amount=parse_number(cell(rows, row_index, VALUE_COL)),
        pct=parse_percent(cell(rows, row_index, PCT_COL)),
    )


def _investors(rows: Sequence[Sequence[str]]) -> tuple[Investor, ...]:
    investors: List[Investor] = []
    for row_index in range(INVESTORS_FIRST_ROW, min(INVESTORS_END_ROW, len(rows))):
        name = cell(rows, row_index, LABEL_COL)
        if not name:
            break
        investors.append(Investor(name=name, amount=parse_number(cell(rows, row_index, VALUE_COL))))
    return tuple(investors)


def _indicator(
    rows: Sequence[Sequence[str]],
    row_index: int,
    default_label: str,
    parse: Callable[[object], float] = parse_number,
) -> Optional[Indicator]:
    if row_index >= len(rows):
        return None
    return Indicator(
        value=parse(cell(rows, row_index, VALUE_COL)),
        label=cell(rows, row_index, LABEL_COL) or default_label,
    )
