# src/flowtrackr/tasks/quick_add.py

"""
Quick-add token grammar.

One line of free text -> TaskPatch. Tokens are whitespace separated and
double-quoted phrases stay together:

  +tag                      append a tag
  !p0 .. !p3                explicit priority bucket (case-insensitive)
  @ai / @me / @name         agent owner type / self owner type / named owner
  impact:N urgency:N effort:N
  due:today|tomorrow|YYYY-MM-DD [HH:MM]
  expect:today|tomorrow|YYYY-MM-DD [HH:MM]

Everything else becomes part of the title. Dates default to 18:00 local time.
Malformed values are ignored; the parser never raises and never touches state.
"""

from __future__ import annotations

import re
from datetime import UTC, date, datetime, timedelta

from ..core.timeutil import ensure_aware, utc_now
from .task_models import MAX_OWNERS_PER_TASK, Bucket, OwnerType, TaskPatch
from .validation import LEVEL_MAX, LEVEL_MIN, validate_owner_name

DEFAULT_DUE_HOUR = 18

_TOKEN_RE = re.compile(r'"[^"]+"|\S+')
_BUCKET_RE = re.compile(r"^!p([0-3])$", re.IGNORECASE)
_ISO_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")

_LEVEL_PREFIXES = ("impact:", "urgency:", "effort:")


def tokenize(text: str) -> list[str]:
    return [t.replace('"', "") for t in _TOKEN_RE.findall(text or "")]


def _resolve_day(word: str, today: date) -> date | None:
    w = word.strip().lower()
    if w == "today":
        return today
    if w == "tomorrow":
        return today + timedelta(days=1)
    if _ISO_DAY_RE.match(w):
        try:
            return date.fromisoformat(w)
        except ValueError:
            return None
    return None


def _parse_time(token: str) -> tuple[int, int] | None:
    m = _TIME_RE.match(token)
    if not m:
        return None
    hh, mm = int(m.group(1)), int(m.group(2))
    if hh > 23 or mm > 59:
        return None
    return hh, mm


def local_instant(day: date, hour: int = DEFAULT_DUE_HOUR, minute: int = 0) -> datetime:
    """Wall-clock time on `day` in the local zone, as a UTC instant."""
    return datetime(day.year, day.month, day.day, hour, minute).astimezone().astimezone(UTC)


def _parse_level(raw_value: str) -> int | None:
    try:
        value = int(raw_value.strip())
    except ValueError:
        return None
    if not LEVEL_MIN <= value <= LEVEL_MAX:
        return None
    return value


def parse_quick_add(text: str, *, now: datetime | None = None) -> TaskPatch:
    today = ensure_aware(now or utc_now()).astimezone().date()
    tokens = tokenize(text)

    patch = TaskPatch()
    title_parts: list[str] = []
    tags: list[str] = []
    owners: list[str] = []

    i = 0
    while i < len(tokens):
        raw = tokens[i]
        nxt = tokens[i + 1] if i + 1 < len(tokens) else None
        lowered = raw.lower()
        i += 1

        if raw.startswith("+"):
            tag = raw[1:].strip()
            if tag and tag not in tags:
                tags.append(tag)
            continue

        m = _BUCKET_RE.match(raw)
        if m:
            patch.priority_bucket = Bucket(f"P{m.group(1)}")
            continue

        if raw.startswith("@"):
            name = raw[1:]
            if name.lower() == "ai":
                patch.owner_type = OwnerType.AGENT
            elif name.lower() == "me":
                patch.owner_type = OwnerType.SELF
            elif name:
                checked = validate_owner_name(name)
                if checked.ok and checked.value not in owners and len(owners) < MAX_OWNERS_PER_TASK:
                    owners.append(checked.value)
            continue

        level_prefix = next((p for p in _LEVEL_PREFIXES if lowered.startswith(p)), None)
        if level_prefix is not None:
            level = _parse_level(raw[len(level_prefix):])
            if level is not None:
                setattr(patch, level_prefix[:-1], level)
            continue

        if lowered.startswith("due:") or lowered.startswith("expect:"):
            field_name = "due_at" if lowered.startswith("due:") else "expected_by"
            day = _resolve_day(raw.split(":", 1)[1], today)
            if day is None:
                continue
            hm = _parse_time(nxt) if nxt is not None else None
            if hm is not None:
                i += 1
            try:
                instant = local_instant(day, *(hm or (DEFAULT_DUE_HOUR, 0)))
            except (ValueError, OverflowError):
                # Dates at the edge of the calendar cannot be shifted to UTC.
                continue
            setattr(patch, field_name, instant)
            continue

        title_parts.append(raw)

    patch.title = " ".join(title_parts).strip()
    if tags:
        patch.tags = tags
    if owners:
        patch.owners = owners
    return patch
