# src/flowtrackr/tasks/validation.py

from __future__ import annotations

import re
from collections.abc import Iterable

from ..core.results import OpResult, invalid
from .task_models import Project, StatusEntry

OWNER_NAME_MAX = 30
PROJECT_NAME_MAX = 15
STATUS_LABEL_MAX = 30
STATUS_DESCRIPTION_MAX = 50
LEVEL_MIN = 0
LEVEL_MAX = 5

_OWNER_NAME_RE = re.compile(r"^[A-Za-z0-9\s\-.']+$")


def validate_owner_name(name: object) -> OpResult[str]:
    trimmed = name.strip() if isinstance(name, str) else ""
    if not trimmed:
        return invalid("Name cannot be empty")
    if len(trimmed) > OWNER_NAME_MAX:
        return invalid(f"Name too long (max {OWNER_NAME_MAX} characters)")
    if not _OWNER_NAME_RE.match(trimmed):
        return invalid(
            "Invalid characters (only letters, numbers, spaces, hyphen, period, apostrophe allowed)"
        )
    return OpResult.success(trimmed)


def validate_project_name(
    name: object,
    projects: Iterable[Project],
    *,
    exclude_id: str | None = None,
) -> OpResult[str]:
    trimmed = name.strip() if isinstance(name, str) else ""
    if not trimmed or len(trimmed) > PROJECT_NAME_MAX:
        return invalid(f"Project name must be 1-{PROJECT_NAME_MAX} characters")
    lowered = trimmed.lower()
    for p in projects:
        if p.id != exclude_id and p.name.lower() == lowered:
            return invalid("Project name already exists")
    return OpResult.success(trimmed)


def validate_status_label(
    label: object,
    statuses: Iterable[StatusEntry],
    *,
    exclude_id: str | None = None,
) -> OpResult[str]:
    trimmed = label.strip() if isinstance(label, str) else ""
    if not trimmed:
        return invalid("Status label cannot be empty")
    if len(trimmed) > STATUS_LABEL_MAX:
        return invalid(f"Status label too long (max {STATUS_LABEL_MAX} characters)")
    lowered = trimmed.lower()
    for s in statuses:
        if s.id != exclude_id and s.label.lower() == lowered:
            return invalid(f'Status "{trimmed}" already exists')
    return OpResult.success(trimmed)


def validate_status_description(description: object) -> OpResult[str]:
    if description is None:
        return OpResult.success("")
    if not isinstance(description, str):
        return invalid("Status description must be text")
    trimmed = description.strip()
    if len(trimmed) > STATUS_DESCRIPTION_MAX:
        return invalid(f"Status description too long (max {STATUS_DESCRIPTION_MAX} characters)")
    return OpResult.success(trimmed)


def validate_level(name: str, value: object) -> OpResult[int]:
    """impact / urgency / effort: integers in 0..5."""
    if isinstance(value, bool) or not isinstance(value, int):
        return invalid(f"{name} must be an integer between {LEVEL_MIN} and {LEVEL_MAX}")
    if not LEVEL_MIN <= value <= LEVEL_MAX:
        return invalid(f"{name} must be between {LEVEL_MIN} and {LEVEL_MAX}")
    return OpResult.success(value)
