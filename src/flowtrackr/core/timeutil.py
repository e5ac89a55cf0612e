# src/flowtrackr/core/timeutil.py

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_aware(dt: datetime) -> datetime:
    """Naive datetimes are read as local wall-clock time."""
    if dt.tzinfo is None:
        return dt.astimezone()
    return dt


def to_iso(dt: datetime | None) -> str | None:
    """Serialize as a UTC instant with millisecond precision and a trailing Z."""
    if dt is None:
        return None
    d = ensure_aware(dt).astimezone(UTC)
    return d.strftime("%Y-%m-%dT%H:%M:%S.") + f"{d.microsecond // 1000:03d}Z"


def parse_iso(raw: object) -> datetime | None:
    """
    Lenient ISO-8601 reader for persisted timestamps.

    Accepts strings (with or without a trailing Z) and epoch milliseconds.
    Returns None for anything unreadable.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        try:
            return datetime.fromtimestamp(float(raw) / 1000.0, UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        return ensure_aware(datetime.fromisoformat(raw.strip())).astimezone(UTC)
    except (ValueError, OverflowError):
        return None


def to_epoch_ms(dt: datetime) -> int:
    return round(ensure_aware(dt).timestamp() * 1000)
