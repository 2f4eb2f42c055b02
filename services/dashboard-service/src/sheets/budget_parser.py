from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from models.project_model import Budget, HardCosts, House, ItemizedCosts, LineItem

from .coercion import parse_number
from .row_resolver import LabelIndex, cell

logger = logging.getLogger(__name__)

HOUSE_LABELS = ("Casa 1", "Casa 2")
HARD_COST_TOTAL_LABEL = "Total de Hard Cost"
CONSTRUCTION_LABEL = "Construcción"
SOFT_COST_LABELS = (
    "Fee Administracion",
    "Arquitectura",
    "Trámites / Permisos",
    "Legal / Fiscal",
    "Ingenierías / Estudios",
    "IVA Soft Cost",
)
SOFT_COST_TOTAL_LABEL = "Total de Soft Cost"
TERRENO_LABELS = ("Lote 1", "Lote 2", "ISAI")
TERRENO_TOTAL_LABEL = "Valor de Terreno"

# Zero-based column positions in the budget sheet.
NAME_COL = 1  # B
SQM_COL = 5  # F
PRICE_PER_SQM_COL = 7  # H
TOTAL_COMMERCIAL_COL = 9  # J
AMOUNT_COL = 10  # K


def parse_budget(rows: Sequence[Sequence[str]]) -> Budget:
    """Build a Budget from the BUDGET sheet by locating each value through its row label."""

    labels = LabelIndex(rows)

    houses: List[House] = []
    for label in HOUSE_LABELS:
        index = labels.find(label)
        if index is None:
            continue
        houses.append(
            House(
                name=cell(rows, index, NAME_COL),
                sqm=parse_number(cell(rows, index, SQM_COL)),
                price_per_sqm=parse_number(cell(rows, index, PRICE_PER_SQM_COL)),
                total_commercial=parse_number(cell(rows, index, TOTAL_COMMERCIAL_COL)),
                net_income=parse_number(cell(rows, index, AMOUNT_COL)),
            )
        )

    budget = Budget(
        houses=tuple(houses),
        hard_costs=HardCosts(
            total=_amount_for(rows, labels, HARD_COST_TOTAL_LABEL),
            construction=_amount_for(rows, labels, CONSTRUCTION_LABEL),
        ),
        soft_costs=ItemizedCosts(
            total=_amount_for(rows, labels, SOFT_COST_TOTAL_LABEL),
            items=_line_items(rows, labels, SOFT_COST_LABELS),
        ),
        terreno=ItemizedCosts(
            total=_amount_for(rows, labels, TERRENO_TOTAL_LABEL),
            items=_line_items(rows, labels, TERRENO_LABELS),
        ),
    )

    missing = [
        label
        for label, value in (
            (HARD_COST_TOTAL_LABEL, budget.hard_costs.total),
            (SOFT_COST_TOTAL_LABEL, budget.soft_costs.total),
            (TERRENO_TOTAL_LABEL, budget.terreno.total),
        )
        if value is None
    ]
    if missing:
        logger.warning({"event": "budget_labels_missing", "labels": missing, "row_count": len(rows)})
    return budget


def _amount_for(rows: Sequence[Sequence[str]], labels: LabelIndex, label: str) -> Optional[float]:
    index = labels.find(label)
    if index is None:
        return None
    return parse_number(cell(rows, index, AMOUNT_COL))


def _line_items(
    rows: Sequence[Sequence[str]],
    labels: LabelIndex,
    item_labels: Sequence[str],
) -> tuple[LineItem, ...]:
    items: List[LineItem] = []
    for label in item_labels:
        index = labels.find(label)
        if index is None:
            continue
        items.append(
            LineItem(
                name=cell(rows, index, NAME_COL) or label,
                amount=parse_number(cell(rows, index, AMOUNT_COL)),
            )
        )
    return tuple(items)
