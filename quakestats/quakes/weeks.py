from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, Tuple

from .models import QuakeEvent, WeekBucket

# (inclusive lower bound, label); a magnitude belongs to the last entry whose bound it reaches
MAGNITUDE_CATEGORIES: Tuple[Tuple[float, str], ...] = (
    (float("-inf"), "Micro < 2.0"),
    (2.0, "Minor 2.0 - 3.9"),
    (4.0, "Light 4.0 - 4.9"),
    (5.0, "Moderate 5.0 - 5.9"),
    (6.0, "Strong 6.0 - 6.9"),
    (7.0, "Major 7.0 - 7.9"),
    (8.0, "Great >= 8.0"),
)

WEEK_SPAN = timedelta(days=6, hours=23, minutes=59, seconds=59)


def week_bounds(ts: datetime) -> Tuple[datetime, datetime, int, int]:
    """Return (start, end, iso_year, iso_week) of the Monday-start UTC week holding ``ts``.

    ISO year and week are taken from the Thursday of that week.
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    ts = ts.astimezone(timezone.utc)
    weekday = ts.isoweekday()  # Monday=1 .. Sunday=7
    start_of_day = datetime(ts.year, ts.month, ts.day, tzinfo=timezone.utc)
    start = start_of_day - timedelta(days=weekday - 1)
    end = start + WEEK_SPAN
    iso = (start + timedelta(days=3)).isocalendar()
    return start, end, iso[0], iso[1]


def format_week_key(iso_year: int, iso_week: int) -> str:
    return f"{iso_year}-W{iso_week:02d}"


def assign(event: QuakeEvent) -> str:
    _, _, year, week = week_bounds(event.timestamp)
    return format_week_key(year, week)


def categorize_magnitude(mag: float) -> int:
    category = 0
    for idx, (lower, _label) in enumerate(MAGNITUDE_CATEGORIES):
        if mag >= lower:
            category = idx
        else:
            break
    return category


def group_by_week(events: Iterable[QuakeEvent]) -> Dict[str, WeekBucket]:
    buckets: Dict[str, WeekBucket] = {}
    for ev in events:
        start, end, year, week = week_bounds(ev.timestamp)
        key = format_week_key(year, week)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = WeekBucket(week_key=key, start=start, end=end, iso_year=year, iso_week=week)
            buckets[key] = bucket
        bucket.counts[categorize_magnitude(ev.magnitude)] += 1
    return buckets


def complete_weeks(buckets: Dict[str, WeekBucket], now: datetime) -> Dict[str, WeekBucket]:
    """Keep only weeks whose end instant is strictly before ``now``."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return {key: b for key, b in buckets.items() if b.end < now}


__all__ = [
    "MAGNITUDE_CATEGORIES",
    "WEEK_SPAN",
    "week_bounds",
    "format_week_key",
    "assign",
    "categorize_magnitude",
    "group_by_week",
    "complete_weeks",
]
