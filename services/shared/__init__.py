"""
Shared utilities for the Obra dashboard services.

This package contains code shared across services and tests:
- project_settings: project registry (passwords, sheet urls) and runtime tuning
- observability: telemetry, JSON logging and privacy utilities
"""

from .project_settings import (
    DashboardSettings,
    DashboardSettingsError,
    ProjectConfig,
    SheetUrls,
    build_project_registry,
    load_dashboard_settings,
)

__all__ = [
    "DashboardSettings",
    "DashboardSettingsError",
    "ProjectConfig",
    "SheetUrls",
    "build_project_registry",
    "load_dashboard_settings",
]
