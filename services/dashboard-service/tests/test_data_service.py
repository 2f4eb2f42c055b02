from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest
from shared.project_settings import ProjectConfig, SheetUrls

from data_service import ProjectDataService, SheetFetchError, build_snapshot
from http_client import SheetHttpClient
from sheets import tokenize_csv
from snapshot_cache import SnapshotCache

FIXTURES = Path(__file__).resolve().parent / "fixtures"
FETCHED_AT = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)

PROJECT = ProjectConfig(
    key="ARBOLEDAS",
    name="Casa Arboledas",
    password="ARBOLEDAS",
    sheets=SheetUrls(
        budget="https://sheets.example.org/pub?gid=0",
        desglose="https://sheets.example.org/pub?gid=1",
        capital="https://sheets.example.org/pub?gid=2",
    ),
)

SHEET_FILES = {
    PROJECT.sheets.budget: "budget.csv",
    PROJECT.sheets.desglose: "desglose.csv",
    PROJECT.sheets.capital: "capital.csv",
}


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class SheetServer:
    """MockTransport handler serving the fixture CSVs and counting hits per url."""

    def __init__(self, failing_url: str | None = None) -> None:
        self.failing_url = failing_url
        self.calls: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append(url)
        if url == self.failing_url:
            return httpx.Response(500, text="boom")
        return httpx.Response(200, content=(FIXTURES / SHEET_FILES[url]).read_bytes())


def make_service(server: SheetServer, clock: FakeClock) -> ProjectDataService:
    http_client = SheetHttpClient(transport=httpx.MockTransport(server))
    return ProjectDataService(http_client, SnapshotCache(ttl_seconds=300, clock=clock), now=lambda: FETCHED_AT)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.mark.anyio
async def test_fetch_all_data_parses_all_three_sheets() -> None:
    server = SheetServer()
    service = make_service(server, FakeClock())

    snapshot = await service.fetch_all_data(PROJECT, request_id="req-1")

    assert sorted(server.calls) == sorted(SHEET_FILES)
    assert snapshot.fetched_at == FETCHED_AT
    assert len(snapshot.budget.houses) == 1
    assert len(snapshot.expenses) == 5
    assert len(snapshot.capital.investors) == 2
    assert snapshot.expense_summary.total == pytest.approx(475_000.75)


@pytest.mark.anyio
async def test_second_fetch_within_ttl_is_served_from_cache() -> None:
    server = SheetServer()
    clock = FakeClock()
    service = make_service(server, clock)

    first = await service.fetch_all_data(PROJECT)
    clock.now += 299
    second = await service.fetch_all_data(PROJECT)

    assert second is first
    assert len(server.calls) == 3


@pytest.mark.anyio
async def test_fetch_after_ttl_goes_back_to_the_network() -> None:
    server = SheetServer()
    clock = FakeClock()
    service = make_service(server, clock)

    await service.fetch_all_data(PROJECT)
    clock.now += 300
    await service.fetch_all_data(PROJECT)

    assert len(server.calls) == 6


@pytest.mark.anyio
async def test_refresh_always_fetches_even_when_cache_is_fresh() -> None:
    server = SheetServer()
    service = make_service(server, FakeClock())

    first = await service.fetch_all_data(PROJECT)
    refreshed = await service.refresh(PROJECT)

    assert len(server.calls) == 6
    assert refreshed is not first
    assert refreshed == first


@pytest.mark.anyio
async def test_any_failed_sheet_fails_the_whole_load_and_caches_nothing() -> None:
    server = SheetServer(failing_url=PROJECT.sheets.capital)
    cache: SnapshotCache = SnapshotCache(ttl_seconds=300, clock=FakeClock())
    service = ProjectDataService(SheetHttpClient(transport=httpx.MockTransport(server)), cache)

    with pytest.raises(SheetFetchError) as exc_info:
        await service.fetch_all_data(PROJECT)

    assert exc_info.value.sheet == "capital"
    assert "HTTP 500" in str(exc_info.value)
    assert cache.get(PROJECT.key) is None


@pytest.mark.anyio
async def test_transport_errors_are_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    service = ProjectDataService(
        SheetHttpClient(transport=httpx.MockTransport(handler)),
        SnapshotCache(ttl_seconds=300),
    )

    with pytest.raises(SheetFetchError, match="connection refused"):
        await service.fetch_all_data(PROJECT)


def test_build_snapshot_is_deterministic_for_the_same_text() -> None:
    texts = [(FIXTURES / name).read_text(encoding="utf-8") for name in ("budget.csv", "desglose.csv", "capital.csv")]

    first = build_snapshot(*(tokenize_csv(text) for text in texts), fetched_at=FETCHED_AT)
    second = build_snapshot(*(tokenize_csv(text) for text in texts), fetched_at=FETCHED_AT)

    assert first == second
