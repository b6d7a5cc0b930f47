from __future__ import annotations
from datetime import datetime
from typing import Dict, Protocol

from .models import Report, WeekBucket
from .weeks import MAGNITUDE_CATEGORIES

REPORT_TITLE = "Weekly Earthquake Report"


class PublishedLookup(Protocol):
    def was_published(self, week_key: str) -> bool:  # pragma: no cover - interface definition
        ...


def _utc_seconds(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


def render_report(bucket: WeekBucket) -> str:
    """Deterministic plain-text summary of one week bucket."""
    lines = [
        REPORT_TITLE,
        f"{bucket.week_key} ({_utc_seconds(bucket.start)} - {_utc_seconds(bucket.end)})",
        "",
    ]
    for (_lower, label), count in zip(MAGNITUDE_CATEGORIES, bucket.counts):
        lines.append(f"{label}: {count}")
    lines.append("")
    lines.append(f"Total: {bucket.total}")
    return "\n".join(lines)


def generate_report(complete: Dict[str, WeekBucket], ledger: PublishedLookup) -> Report:
    """Build the report for the latest complete week, unless it was already published.

    Older unpublished weeks are never considered.
    """
    if not complete:
        return Report(should_publish=False)
    latest = sorted(complete)[-1]
    if ledger.was_published(latest):
        return Report(week_key=latest, should_publish=False)
    text = render_report(complete[latest])
    return Report(week_key=latest, text=text, should_publish=True)


__all__ = ["REPORT_TITLE", "render_report", "generate_report"]
