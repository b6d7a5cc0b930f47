from __future__ import annotations
from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

CATEGORY_COUNT = 7


class QuakeEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime  # always tz-aware UTC
    magnitude: float
    label: str = ""  # USGS "place" column

    @field_validator("timestamp")
    @classmethod
    def ensure_utc(cls, v: datetime):
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class WeekBucket(BaseModel):
    week_key: str  # e.g. 2024-W07
    start: datetime  # Monday 00:00:00 UTC
    end: datetime  # Sunday 23:59:59 UTC
    iso_year: int
    iso_week: int
    counts: List[int] = Field(default_factory=lambda: [0] * CATEGORY_COUNT)

    @field_validator("counts")
    @classmethod
    def ensure_fixed_size(cls, v: List[int]):
        if len(v) != CATEGORY_COUNT:
            raise ValueError(f"counts must have exactly {CATEGORY_COUNT} entries, got {len(v)}")
        return v

    @property
    def total(self) -> int:
        return sum(self.counts)


class Report(BaseModel):
    week_key: Optional[str] = None
    text: Optional[str] = None
    should_publish: bool = False
