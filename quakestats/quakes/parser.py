"""USGS CSV feed -> QuakeEvent rows.

The first row is always the header. Column positions are looked up by name there
(``time``, ``mag``, ``place``); the USGS summary feed layout is the fallback.
Rows that fail to parse are dropped and counted, never fatal.
"""
from __future__ import annotations
import csv
import io
import logging
import math
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import BinaryIO, Dict, List, Sequence, Union

from .errors import RowParseError
from .models import QuakeEvent
from .weeks import week_bounds

logger = logging.getLogger(__name__)

# USGS summary CSV: time,latitude,longitude,depth,mag,...,place (index 13)
DEFAULT_COLUMNS = {"time": 0, "mag": 4, "place": 13}

_STRICT_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
_FRACTION_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"
_FRACTION_RE = re.compile(r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})\.(\d+)(Z|[+-]\d{2}:?\d{2})$")


@dataclass
class ParseResult:
    events: List[QuakeEvent] = field(default_factory=list)
    dropped: Counter = field(default_factory=Counter)

    @property
    def dropped_total(self) -> int:
        return sum(self.dropped.values())


def parse_timestamp(raw: str) -> datetime:
    """Parse an RFC 3339 instant, whole seconds first, then fractional seconds.

    Fractions longer than microseconds (RFC3339Nano) are truncated.
    """
    raw = (raw or "").strip()
    try:
        dt = datetime.strptime(raw, _STRICT_FORMAT)
    except ValueError:
        m = _FRACTION_RE.match(raw)
        if not m:
            raise RowParseError(RowParseError.MALFORMED_TIMESTAMP, f"unparsable timestamp {raw!r}")
        base, fraction, offset = m.groups()
        try:
            dt = datetime.strptime(f"{base}.{fraction[:6]}{offset}", _FRACTION_FORMAT)
        except ValueError as e:
            raise RowParseError(RowParseError.MALFORMED_TIMESTAMP, f"unparsable timestamp {raw!r}") from e
    # the instant and its whole week must fit in datetime's range once in UTC
    try:
        dt = dt.astimezone(timezone.utc)
        week_bounds(dt)
    except (ValueError, OverflowError) as e:
        raise RowParseError(RowParseError.MALFORMED_TIMESTAMP, f"timestamp out of range {raw!r}") from e
    return dt


def parse_magnitude(raw: str) -> float:
    try:
        mag = float(raw)
    except (TypeError, ValueError) as e:
        raise RowParseError(RowParseError.MALFORMED_MAGNITUDE, f"unparsable magnitude {raw!r}") from e
    if not math.isfinite(mag):
        raise RowParseError(RowParseError.MALFORMED_MAGNITUDE, f"non-finite magnitude {raw!r}")
    return mag


def resolve_columns(header: Sequence[str]) -> Dict[str, int]:
    names = [h.strip().lower() for h in header]
    columns = dict(DEFAULT_COLUMNS)
    for key in columns:
        if key in names:
            columns[key] = names.index(key)
    return columns


def parse_row(row: Sequence[str], columns: Dict[str, int] | None = None) -> QuakeEvent:
    columns = columns or DEFAULT_COLUMNS
    needed = max(columns.values())
    if len(row) <= needed:
        raise RowParseError(RowParseError.TRUNCATED_ROW, f"expected at least {needed + 1} fields, got {len(row)}")
    ts = parse_timestamp(row[columns["time"]])
    mag = parse_magnitude(row[columns["mag"]])
    return QuakeEvent(timestamp=ts, magnitude=mag, label=row[columns["place"]])


def parse_feed(raw: Union[bytes, BinaryIO]) -> ParseResult:
    stream = io.BytesIO(raw) if isinstance(raw, (bytes, bytearray)) else raw
    text = io.TextIOWrapper(stream, encoding="utf-8-sig", errors="replace", newline="")
    reader = csv.reader(text)
    result = ParseResult()
    try:
        header = next(reader)
    except StopIteration:
        logger.warning("Feed is empty (no header row)")
        return result
    except csv.Error as e:
        logger.warning(f"Unreadable header row: {e}")
        header = []
    columns = resolve_columns(header)
    while True:
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error as e:
            result.dropped["csv-error"] += 1
            logger.debug(f"Dropped line {reader.line_num}: {e}")
            continue
        if not row:
            continue
        try:
            result.events.append(parse_row(row, columns))
        except RowParseError as e:
            result.dropped[e.kind] += 1
            logger.debug(f"Dropped line {reader.line_num}: {e}")
    if result.dropped:
        logger.info(f"Dropped {result.dropped_total} unparsable rows ({dict(result.dropped)})")
    return result


__all__ = ["ParseResult", "parse_timestamp", "parse_magnitude", "parse_row", "parse_feed", "resolve_columns"]
