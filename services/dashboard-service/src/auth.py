from typing import Mapping, Optional

from shared.project_settings import ProjectConfig


def _normalize_password(password: Optional[str]) -> str:
    return (password or "").strip().upper()


def resolve_project(password: Optional[str], projects: Mapping[str, ProjectConfig]) -> Optional[ProjectConfig]:
    """Return the project whose shared password matches (trimmed, case-insensitive), else None."""
    candidate = _normalize_password(password)
    if not candidate:
        return None
    for project in projects.values():
        if _normalize_password(project.password) == candidate:
            return project
    return None


def password_matches(project: ProjectConfig, password: Optional[str]) -> bool:
    candidate = _normalize_password(password)
    return bool(candidate) and candidate == _normalize_password(project.password)
