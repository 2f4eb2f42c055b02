"""
Project registry and runtime settings for the dashboard service.

Each project maps a key to its display name, shared password, the three
published sheet exports and the photo folder. The registry is read once at
startup, either from the JSON file named by `DASHBOARD_PROJECTS_FILE` or from
the built-in defaults, and is never mutated afterwards. Numeric tuning knobs
(cache TTL, fetch timeout, attempts) come from environment variables.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

PROJECTS_FILE_ENV = "DASHBOARD_PROJECTS_FILE"
CACHE_TTL_ENV = "DASHBOARD_CACHE_TTL_SECONDS"
FETCH_TIMEOUT_ENV = "DASHBOARD_FETCH_TIMEOUT_SECONDS"
FETCH_ATTEMPTS_ENV = "DASHBOARD_FETCH_MAX_ATTEMPTS"

DEFAULT_CACHE_TTL_SECONDS = 5 * 60.0
DEFAULT_FETCH_TIMEOUT_SECONDS = 30.0
DEFAULT_FETCH_MAX_ATTEMPTS = 1

_SHEET_BASE = (
    "https://docs.google.com/spreadsheets/d/e/"
    "2PACX-1vTtH6vXsUOaCMZESDh4kKBgu4GKkQwwbXWh_KL8ZGhC5uLciBEBnDLMadWkXkVe0PKT2CeZB2PbE042/pub?output=csv"
)

DEFAULT_PROJECTS: dict[str, dict[str, Any]] = {
    "ARBOLEDAS": {
        "name": "Casa Arboledas",
        "password": "ARBOLEDAS",
        "sheets": {
            "budget": f"{_SHEET_BASE}&gid=0",
            "desglose": f"{_SHEET_BASE}&gid=1025952285",
            "capital": f"{_SHEET_BASE}&gid=508913285",
        },
        "drive_folder": "https://drive.google.com/drive/folders/1W_97MPUnXqRHkX-Xp_HoGjVNu8sjoYP6",
    },
}


class DashboardSettingsError(RuntimeError):
    """Raised when the project registry or tuning values cannot be loaded."""


@dataclass(frozen=True, slots=True)
class SheetUrls:
    budget: str
    desglose: str
    capital: str


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    key: str
    name: str
    password: str
    sheets: SheetUrls
    drive_folder: Optional[str] = None


@dataclass(frozen=True, slots=True)
class DashboardSettings:
    projects: Mapping[str, ProjectConfig]
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    fetch_max_attempts: int = DEFAULT_FETCH_MAX_ATTEMPTS


def load_dashboard_settings() -> DashboardSettings:
    """
    Construct DashboardSettings from the environment.

    Raises:
        DashboardSettingsError: when the projects file is unreadable or malformed,
            or a numeric env var does not parse.
    """

    projects_file = os.getenv(PROJECTS_FILE_ENV)
    raw_projects = _read_projects_file(projects_file) if projects_file else DEFAULT_PROJECTS

    return DashboardSettings(
        projects=build_project_registry(raw_projects),
        cache_ttl_seconds=_parse_float(os.getenv(CACHE_TTL_ENV), DEFAULT_CACHE_TTL_SECONDS, CACHE_TTL_ENV),
        fetch_timeout_seconds=_parse_float(
            os.getenv(FETCH_TIMEOUT_ENV), DEFAULT_FETCH_TIMEOUT_SECONDS, FETCH_TIMEOUT_ENV
        ),
        fetch_max_attempts=max(
            1, _parse_int(os.getenv(FETCH_ATTEMPTS_ENV), DEFAULT_FETCH_MAX_ATTEMPTS, FETCH_ATTEMPTS_ENV)
        ),
    )


def build_project_registry(raw_projects: Mapping[str, Any]) -> dict[str, ProjectConfig]:
    """Validate the raw `{key: {...}}` mapping and convert it into ProjectConfig entries."""

    if not isinstance(raw_projects, Mapping) or not raw_projects:
        raise DashboardSettingsError("Project registry must be a non-empty mapping of project keys")

    registry: dict[str, ProjectConfig] = {}
    for key, entry in raw_projects.items():
        if not isinstance(entry, Mapping):
            raise DashboardSettingsError(f"Project '{key}' must be an object")

        sheets = entry.get("sheets")
        if not isinstance(sheets, Mapping):
            raise DashboardSettingsError(f"Project '{key}' is missing its 'sheets' urls")
        missing = [name for name in ("budget", "desglose", "capital") if not sheets.get(name)]
        if missing:
            raise DashboardSettingsError(f"Project '{key}' is missing sheet urls: {', '.join(missing)}")

        password = str(entry.get("password") or "").strip()
        if not password:
            raise DashboardSettingsError(f"Project '{key}' must define a password")

        registry[key] = ProjectConfig(
            key=key,
            name=str(entry.get("name") or key),
            password=password,
            sheets=SheetUrls(
                budget=str(sheets["budget"]),
                desglose=str(sheets["desglose"]),
                capital=str(sheets["capital"]),
            ),
            drive_folder=entry.get("drive_folder"),
        )
    return registry


def _read_projects_file(path: str) -> Mapping[str, Any]:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise DashboardSettingsError(f"{PROJECTS_FILE_ENV} could not be read ({path}): {exc}") from exc
    except json.JSONDecodeError as exc:
        raise DashboardSettingsError(f"{PROJECTS_FILE_ENV} is not valid JSON ({path}): {exc}") from exc


def _parse_float(raw_value: Optional[str], default: float, env_key: str) -> float:
    if raw_value is None or raw_value.strip() == "":
        return default

    try:
        return float(raw_value)
    except ValueError as exc:
        raise DashboardSettingsError(f"{env_key} must be numeric (received '{raw_value}')") from exc


def _parse_int(raw_value: Optional[str], default: int, env_key: str) -> int:
    if raw_value is None or raw_value.strip() == "":
        return default

    try:
        return int(raw_value)
    except ValueError as exc:
        raise DashboardSettingsError(f"{env_key} must be an integer (received '{raw_value}')") from exc
