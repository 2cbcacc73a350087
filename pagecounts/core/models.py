"""Pagecount record model and timestamp parsing.

A record is one observation from an hourly pageview log: the hour it was
counted in, the page title, and the visit counter. Records order by
``(page, time)``; the counter is payload and does not take part in
comparisons.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

from pagecounts.core.errors import ParseError

# Hour resolution, e.g. "20160626-23".
DEFAULT_TIME_FORMAT = "%Y%m%d-%H"

# Counters are persisted as unsigned 64-bit integers.
MAX_COUNTER = 2**64 - 1

_COUNTER_RE = re.compile(r"[0-9]+")

# strptime accepts unpadded fields; the default format is fixed width.
_DEFAULT_TIME_RE = re.compile(r"[0-9]{8}-[0-9]{2}")


def parse_time(source: str, fmt: str = DEFAULT_TIME_FORMAT) -> datetime:
    """Parse ``source`` with ``fmt`` into a naive datetime.

    This is the only place timestamps are interpreted, for input lines and
    query boundaries alike.
    """
    if fmt == DEFAULT_TIME_FORMAT and not (isinstance(source, str) and _DEFAULT_TIME_RE.fullmatch(source)):
        raise ParseError(f"couldn't parse time {source!r} with format {fmt!r}")
    try:
        value = datetime.strptime(source, fmt)
    except (TypeError, ValueError) as exc:
        raise ParseError(f"couldn't parse time {source!r} with format {fmt!r}") from exc
    if value.tzinfo is not None:
        # Stored times are naive; keep aware input comparable with them.
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def format_time(value: datetime, fmt: str = DEFAULT_TIME_FORMAT) -> str:
    return value.strftime(fmt)


def _parse_counter(source: str) -> int:
    if not _COUNTER_RE.fullmatch(source):
        raise ParseError(f"counter {source!r} is not a non-negative integer")
    value = int(source)
    if value > MAX_COUNTER:
        raise ParseError(f"counter {source!r} exceeds {MAX_COUNTER}")
    return value


@dataclass(frozen=True, order=True)
class Record:
    page: str
    time: datetime
    counter: int = field(default=0, compare=False)

    @classmethod
    def from_line(cls, line: str, time_format: str = DEFAULT_TIME_FORMAT) -> Record:
        """Parse one ``<time>\\t<page>\\t<counter>`` source line.

        Example: ``20160626-23\\t10_Cloverfield_Lane\\t475``.
        """
        fields = line.rstrip("\r\n").split("\t")
        if len(fields) != 3:
            raise ParseError(f"expected 3 tab-separated fields, got {len(fields)}")
        raw_time, page, raw_counter = fields
        return cls(
            page=page,
            time=parse_time(raw_time, time_format),
            counter=_parse_counter(raw_counter),
        )

    def to_string(self, time_format: str = DEFAULT_TIME_FORMAT) -> str:
        return f"time:{format_time(self.time, time_format)},page:{self.page},counter:{self.counter}."

    def __str__(self) -> str:
        return self.to_string()

    def to_dict(self, time_format: str = DEFAULT_TIME_FORMAT) -> dict:
        return {
            "time": format_time(self.time, time_format),
            "page": self.page,
            "counter": self.counter,
        }


def page_key(record: Record) -> str:
    """Page-only comparison key, ignoring time."""
    return record.page
