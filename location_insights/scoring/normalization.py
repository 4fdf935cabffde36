"""
Score Normalization Module

Maps raw observation signals (capture time, reported accuracy, cluster
size) onto [0, 1] scores that the summarizer blends into a confidence.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import pandas as pd


RECENCY_WINDOW = timedelta(days=30)
"""Captures older than this contribute no recency."""

MAX_OBSERVATION_ACCURACY_METERS = 100.0
"""Accuracy ceiling; missing accuracy is treated as this value."""

# pandas reads these as the wall clock at parse time
RELATIVE_TIME_KEYWORDS = frozenset({"now", "today"})


def clamp(value: float, lower: float, upper: float) -> float:
    return min(max(value, lower), upper)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a capture timestamp leniently.

    Unparsable input returns None rather than raising; callers treat it as
    "no recency signal". Naive timestamps are read as UTC.
    """
    if not value or not isinstance(value, str):
        return None
    value = value.strip()
    if value.lower() in RELATIVE_TIME_KEYWORDS:
        return None
    parsed = pd.to_datetime(value, utc=True, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def to_iso_millis(value: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    return ensure_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def age_score(latest: Optional[datetime], now: datetime) -> float:
    """
    Linear recency decay over :data:`RECENCY_WINDOW`.

    Returns 1.0 for a capture at ``now``, 0.0 at or beyond the window, and
    0.0 when no timestamp is available.
    """
    if latest is None:
        return 0.0
    elapsed = (ensure_utc(now) - latest).total_seconds()
    return clamp(1.0 - elapsed / RECENCY_WINDOW.total_seconds(), 0.0, 1.0)


def bounded_accuracy(accuracy_meters: Optional[float]) -> float:
    """Reported accuracy clamped into [0, ceiling], ceiling when missing."""
    if accuracy_meters is None:
        return MAX_OBSERVATION_ACCURACY_METERS
    return clamp(accuracy_meters, 0.0, MAX_OBSERVATION_ACCURACY_METERS)


def accuracy_score(accuracy_meters: float) -> float:
    """Tighter accuracy radius scores higher; 0 at the ceiling."""
    return clamp(1.0 - accuracy_meters / MAX_OBSERVATION_ACCURACY_METERS, 0.0, 1.0)


def count_score(count: int, min_points: int) -> float:
    """Saturates once a cluster holds twice the density threshold."""
    return clamp(count / (min_points * 2), 0.0, 1.0)
