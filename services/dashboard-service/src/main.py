"""
Dashboard Service serves a project's budget, expense ledger and capital sheets as
dashboard views (summary, budget vs executed, financials, houses, sales, expenses).

Sheets are fetched from their published CSV exports on demand, parsed once and
cached for a few minutes; POST /projects/{key}/refresh forces a reload.
"""

import logging
import os
import sys
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

SRC_DIR = Path(__file__).resolve().parent
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

SERVICES_ROOT = SRC_DIR.parents[1]
if str(SERVICES_ROOT) not in sys.path:
    sys.path.insert(0, str(SERVICES_ROOT))

from shared.observability import (
    CORRELATION_ID_HEADER,
    bind_request_context,
    current_request_id,
    ensure_request_id,
    hash_payload,
    redact_fields,
    reset_request_context,
    setup_telemetry,
)
from shared.project_settings import DashboardSettings, ProjectConfig, load_dashboard_settings

from auth import password_matches, resolve_project
from dashboard_views import (
    ALL,
    ExpenseFilters,
    build_budget_vs_executed,
    build_dashboard,
    build_expense_table,
    build_financials,
    build_houses,
    build_sales,
    build_summary,
)
from data_service import ProjectDataService, SheetFetchError
from http_client import SheetHttpClient
from middleware.rate_limit import LoginRateLimiter, build_default_rate_limiter
from models.project_model import ProjectSnapshot
from snapshot_cache import SnapshotCache

logger = logging.getLogger(__name__)

PASSWORD_HEADER = "x-project-password"
CORS_ENV_KEY = "DASHBOARD_CORS_ORIGINS"
DEFAULT_CORS_ORIGINS: List[str] = ["http://localhost:8080", "http://127.0.0.1:8080"]


class ApiError(Exception):
    def __init__(self, status_code: int, error_code: str, details: str) -> None:
        super().__init__(details)
        self.status_code = status_code
        self.error_code = error_code
        self.details = details


def error_response(status_code: int, error_code: str, details: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": error_code, "details": details},
    )


def build_data_service(settings: DashboardSettings) -> ProjectDataService:
    http_client = SheetHttpClient(
        timeout=settings.fetch_timeout_seconds,
        max_attempts=settings.fetch_max_attempts,
    )
    return ProjectDataService(http_client, SnapshotCache(settings.cache_ttl_seconds))


def _resolve_cors_origins() -> List[str]:
    raw_value = os.getenv(CORS_ENV_KEY)
    if not raw_value:
        return DEFAULT_CORS_ORIGINS
    origins = [origin.strip() for origin in raw_value.split(",") if origin.strip()]
    if any(origin == "*" for origin in origins):
        return ["*"]
    return origins or DEFAULT_CORS_ORIGINS


app = FastAPI(title="Obra Dashboard Service")
setup_telemetry(app, service_name="dashboard-service")
app.state.settings = load_dashboard_settings()
app.state.data_service = build_data_service(app.state.settings)
app.state.login_limiter = build_default_rate_limiter()


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    request_id = ensure_request_id(request)
    token = bind_request_context(request_id)
    try:
        response = await call_next(request)
        response.headers.setdefault(CORRELATION_ID_HEADER, request_id)
        return response
    finally:
        reset_request_context(token)


app.add_middleware(
    CORSMiddleware,
    allow_origins=_resolve_cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return error_response(exc.status_code, exc.error_code, exc.details)


@app.exception_handler(SheetFetchError)
async def sheet_fetch_error_handler(request: Request, exc: SheetFetchError) -> JSONResponse:
    logger.error(
        {
            "event": "project_data_unavailable",
            "request_id": getattr(request.state, "request_id", None),
            "sheet": exc.sheet,
            "url": exc.url,
            "error": exc.message,
        }
    )
    return error_response(
        502,
        "sheet_fetch_failed",
        f"No se pudieron obtener los datos del proyecto. Error: {exc}.",
    )


@app.on_event("startup")
def log_registered_projects() -> None:
    settings: DashboardSettings = app.state.settings
    logger.info(
        {
            "event": "dashboard_startup",
            "projects": [
                redact_fields(asdict(project), allowed_keys={"key", "name", "drive_folder"})
                for project in settings.projects.values()
            ],
            "cache_ttl_seconds": settings.cache_ttl_seconds,
        }
    )


def _client_ip(request: Request) -> Optional[str]:
    client = request.client
    if client:
        return client.host
    return None


def get_data_service(request: Request) -> ProjectDataService:
    return request.app.state.data_service


def get_project(
    project_key: str,
    request: Request,
    password: Optional[str] = Header(default=None, alias=PASSWORD_HEADER),
) -> ProjectConfig:
    """Resolve the path's project and check the shared password sent in the header."""
    settings: DashboardSettings = request.app.state.settings
    project = settings.projects.get(project_key)
    if project is None:
        raise ApiError(404, "project_not_found", f"Unknown project '{project_key}'.")
    if not password_matches(project, password):
        raise ApiError(401, "invalid_password", "Contraseña incorrecta.")
    return project


async def get_snapshot(
    project: ProjectConfig = Depends(get_project),
    data_service: ProjectDataService = Depends(get_data_service),
) -> ProjectSnapshot:
    return await data_service.fetch_all_data(project)


@app.get("/health")
def health_check() -> dict:
    """Reports service uptime for probes; does not touch the sheets."""
    return {"status": "ok", "service": "dashboard-service"}


class LoginPayload(BaseModel):
    password: str = ""


@app.post("/login", response_model=None)
async def login(payload: LoginPayload, request: Request) -> Dict[str, Any] | JSONResponse:
    """Exchange a shared password for the project it unlocks."""
    limiter: LoginRateLimiter = request.app.state.login_limiter
    client_id = _client_ip(request) or "unknown"
    allowed, retry_after = await limiter.allow(client_id)
    if not allowed:
        logger.warning({"event": "login_rate_limited", "client": hash_payload(client_id), "retry_after": retry_after})
        response = error_response(429, "rate_limit_exceeded", "Too many login attempts. Please retry shortly.")
        response.headers["Retry-After"] = str(max(1, int(retry_after or 1)))
        return response

    if not payload.password.strip():
        return error_response(400, "password_required", "Por favor ingresa una contraseña.")

    settings: DashboardSettings = request.app.state.settings
    project = resolve_project(payload.password, settings.projects)
    logger.info(
        {
            "event": "login_attempt",
            "outcome": "success" if project else "rejected",
            "client": hash_payload(client_id),
            "project": project.key if project else None,
        }
    )
    if project is None:
        return error_response(401, "invalid_password", "Contraseña incorrecta. Intenta de nuevo.")
    return {"project_key": project.key, "name": project.name, "drive_folder": project.drive_folder}


@app.get("/projects/{project_key}/data", response_model=None)
async def project_data(snapshot: ProjectSnapshot = Depends(get_snapshot)) -> Dict[str, Any]:
    """Raw parsed model: budget, expenses, capital, expense summary and fetch time."""
    return asdict(snapshot)


@app.get("/projects/{project_key}/dashboard", response_model=None)
async def dashboard(
    project: ProjectConfig = Depends(get_project),
    snapshot: ProjectSnapshot = Depends(get_snapshot),
) -> Dict[str, Any]:
    return asdict(build_dashboard(snapshot, project.name))


@app.get("/projects/{project_key}/summary", response_model=None)
async def summary(
    project: ProjectConfig = Depends(get_project),
    snapshot: ProjectSnapshot = Depends(get_snapshot),
) -> Dict[str, Any]:
    return asdict(build_summary(snapshot, project.name))


@app.get("/projects/{project_key}/budget-vs-executed", response_model=None)
async def budget_vs_executed(snapshot: ProjectSnapshot = Depends(get_snapshot)) -> Dict[str, Any]:
    return asdict(build_budget_vs_executed(snapshot))


@app.get("/projects/{project_key}/financials", response_model=None)
async def financials(snapshot: ProjectSnapshot = Depends(get_snapshot)) -> Dict[str, Any]:
    return asdict(build_financials(snapshot))


@app.get("/projects/{project_key}/houses", response_model=None)
async def houses(snapshot: ProjectSnapshot = Depends(get_snapshot)) -> List[Dict[str, Any]]:
    return [asdict(house) for house in build_houses(snapshot)]


@app.get("/projects/{project_key}/sales", response_model=None)
async def sales(snapshot: ProjectSnapshot = Depends(get_snapshot)) -> List[Dict[str, Any]]:
    return [asdict(sale) for sale in build_sales(snapshot)]


@app.get("/projects/{project_key}/expenses", response_model=None)
async def expenses(
    snapshot: ProjectSnapshot = Depends(get_snapshot),
    category: str = Query(default=ALL),
    subcategory: str = Query(default=ALL),
    date_from: Optional[date] = Query(default=None),
    date_to: Optional[date] = Query(default=None),
) -> Dict[str, Any]:
    """Expense ledger filtered by normalized category, subcategory and inclusive date range."""
    filters = ExpenseFilters(category=category, subcategory=subcategory, date_from=date_from, date_to=date_to)
    return asdict(build_expense_table(snapshot, filters))


@app.post("/projects/{project_key}/refresh", response_model=None)
async def refresh(
    project: ProjectConfig = Depends(get_project),
    data_service: ProjectDataService = Depends(get_data_service),
) -> Dict[str, Any]:
    """Invalidate the cached snapshot and reload all three sheets."""
    request_id = current_request_id()
    snapshot = await data_service.refresh(project, request_id=request_id)
    logger.info({"event": "project_refreshed", "project": project.key, "request_id": request_id})
    return {"project_key": project.key, "fetched_at": snapshot.fetched_at, "expense_count": len(snapshot.expenses)}
