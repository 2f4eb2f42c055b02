"""
Fetch-and-parse pipeline for one project's three published sheets.

The budget, desglose (expense ledger) and capital exports are downloaded
concurrently; if any of them fails the whole load fails with a single
SheetFetchError and nothing is cached. Successful loads are parsed once into a
ProjectSnapshot and kept in a SnapshotCache until the TTL runs out or a refresh
invalidates them.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence
from uuid import uuid4

import httpx
from shared.observability.telemetry import current_request_id
from shared.project_settings import ProjectConfig

from expense_summary import calculate_expense_summary
from http_client import SheetHttpClient
from models.project_model import ProjectSnapshot
from sheets import decode_csv_bytes, parse_budget, parse_capital, parse_expenses, tokenize_csv
from snapshot_cache import SnapshotCache

logger = logging.getLogger(__name__)

Rows = List[List[str]]


class SheetFetchError(RuntimeError):
    """Raised when one of a project's sheets cannot be downloaded."""

    def __init__(self, sheet: str, url: str, message: str) -> None:
        super().__init__(f"{sheet}: {message}")
        self.sheet = sheet
        self.url = url
        self.message = message


def build_snapshot(
    budget_rows: Sequence[Sequence[str]],
    expense_rows: Sequence[Sequence[str]],
    capital_rows: Sequence[Sequence[str]],
    fetched_at: datetime,
) -> ProjectSnapshot:
    """Parse already-tokenized sheets into a ProjectSnapshot (pure, no I/O)."""
    expenses = parse_expenses(expense_rows)
    return ProjectSnapshot(
        budget=parse_budget(budget_rows),
        expenses=expenses,
        capital=parse_capital(capital_rows),
        expense_summary=calculate_expense_summary(expenses),
        fetched_at=fetched_at,
    )


class ProjectDataService:
    def __init__(
        self,
        http_client: SheetHttpClient,
        cache: SnapshotCache[ProjectSnapshot],
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._http_client = http_client
        self._cache = cache
        self._now = now

    async def fetch_sheet(self, sheet: str, url: str, request_id: str) -> Rows:
        try:
            payload, _ = await self._http_client.get_bytes(url, request_id=request_id)
        except httpx.HTTPStatusError as exc:
            response = exc.response
            raise SheetFetchError(sheet, url, f"HTTP {response.status_code}: {response.reason_phrase}") from exc
        except httpx.RequestError as exc:
            raise SheetFetchError(sheet, url, str(exc) or exc.__class__.__name__) from exc
        return tokenize_csv(decode_csv_bytes(payload))

    async def fetch_all_data(
        self,
        project: ProjectConfig,
        *,
        request_id: Optional[str] = None,
    ) -> ProjectSnapshot:
        """
        Return the project's snapshot, from cache while fresh, otherwise by fetching all three sheets.

        Raises:
            SheetFetchError: when any of the three downloads fails.
        """
        cached = self._cache.get(project.key)
        if cached is not None:
            logger.debug({"event": "snapshot_cache_hit", "project": project.key})
            return cached

        request_id = request_id or current_request_id() or str(uuid4())
        budget_rows, expense_rows, capital_rows = await asyncio.gather(
            self.fetch_sheet("budget", project.sheets.budget, request_id),
            self.fetch_sheet("desglose", project.sheets.desglose, request_id),
            self.fetch_sheet("capital", project.sheets.capital, request_id),
        )

        snapshot = build_snapshot(budget_rows, expense_rows, capital_rows, fetched_at=self._now())
        self._cache.set(project.key, snapshot)
        logger.info(
            {
                "event": "project_snapshot_loaded",
                "project": project.key,
                "request_id": request_id,
                "houses": len(snapshot.budget.houses),
                "expenses": len(snapshot.expenses),
                "investors": len(snapshot.capital.investors),
                "expense_total": snapshot.expense_summary.total,
            }
        )
        return snapshot

    async def refresh(self, project: ProjectConfig, *, request_id: Optional[str] = None) -> ProjectSnapshot:
        """Drop the cached snapshot for `project` and fetch it again regardless of age."""
        self.clear_cache(project.key)
        return await self.fetch_all_data(project, request_id=request_id)

    def clear_cache(self, project_key: Optional[str] = None) -> None:
        self._cache.invalidate(project_key)
