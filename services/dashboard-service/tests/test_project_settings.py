import json

import pytest
from shared.project_settings import (
    DEFAULT_PROJECTS,
    DashboardSettingsError,
    build_project_registry,
    load_dashboard_settings,
)

SHEETS = {
    "budget": "https://sheets.example.org/b",
    "desglose": "https://sheets.example.org/d",
    "capital": "https://sheets.example.org/c",
}


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    for key in (
        "DASHBOARD_PROJECTS_FILE",
        "DASHBOARD_CACHE_TTL_SECONDS",
        "DASHBOARD_FETCH_TIMEOUT_SECONDS",
        "DASHBOARD_FETCH_MAX_ATTEMPTS",
    ):
        monkeypatch.delenv(key, raising=False)


def test_defaults_register_the_built_in_project():
    settings = load_dashboard_settings()

    assert set(settings.projects) == set(DEFAULT_PROJECTS)
    project = settings.projects["ARBOLEDAS"]
    assert project.name == "Casa Arboledas"
    assert project.sheets.capital.endswith("gid=508913285")
    assert settings.cache_ttl_seconds == 300
    assert settings.fetch_timeout_seconds == 30
    assert settings.fetch_max_attempts == 1


def test_projects_file_and_tuning_env(monkeypatch, tmp_path):
    projects_file = tmp_path / "projects.json"
    projects_file.write_text(json.dumps({"LOMAS": {"password": "lomas", "sheets": SHEETS}}), encoding="utf-8")
    monkeypatch.setenv("DASHBOARD_PROJECTS_FILE", str(projects_file))
    monkeypatch.setenv("DASHBOARD_CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("DASHBOARD_FETCH_MAX_ATTEMPTS", "0")

    settings = load_dashboard_settings()

    assert list(settings.projects) == ["LOMAS"]
    assert settings.projects["LOMAS"].name == "LOMAS"
    assert settings.projects["LOMAS"].drive_folder is None
    assert settings.cache_ttl_seconds == 60
    assert settings.fetch_max_attempts == 1


def test_invalid_numeric_env_raises(monkeypatch):
    monkeypatch.setenv("DASHBOARD_FETCH_TIMEOUT_SECONDS", "soon")

    with pytest.raises(DashboardSettingsError, match="DASHBOARD_FETCH_TIMEOUT_SECONDS"):
        load_dashboard_settings()


def test_unreadable_or_malformed_projects_file(monkeypatch, tmp_path):
    monkeypatch.setenv("DASHBOARD_PROJECTS_FILE", str(tmp_path / "missing.json"))
    with pytest.raises(DashboardSettingsError, match="could not be read"):
        load_dashboard_settings()

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    monkeypatch.setenv("DASHBOARD_PROJECTS_FILE", str(broken))
    with pytest.raises(DashboardSettingsError, match="not valid JSON"):
        load_dashboard_settings()


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ({}, "non-empty"),
        ({"X": "nope"}, "must be an object"),
        ({"X": {"password": "x"}}, "missing its 'sheets'"),
        ({"X": {"password": "x", "sheets": {"budget": "u"}}}, "desglose, capital"),
        ({"X": {"password": "  ", "sheets": SHEETS}}, "must define a password"),
    ],
)
def test_build_project_registry_rejects_bad_entries(raw, message):
    with pytest.raises(DashboardSettingsError, match=message):
        build_project_registry(raw)
