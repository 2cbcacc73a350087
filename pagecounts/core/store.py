"""In-memory page index.

Holds every record in one list sorted by ``(page, time)``. A page's records
are therefore contiguous, so a range query finds them with two binary
searches on the page key and only filters that slice by time.

The index is filled once, by :meth:`PageIndex.build_index` or
:meth:`PageIndex.load`, and has no other mutating operation.
"""

from __future__ import annotations

import sys
import time
from bisect import bisect_left, bisect_right
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Iterator, TextIO, Union

import structlog

from pagecounts.core.errors import CorruptStateError, InvalidArgumentError, ParseError
from pagecounts.core.models import DEFAULT_TIME_FORMAT, Record, format_time, page_key, parse_time
from pagecounts.storage.snapshot import read_snapshot, write_snapshot

log = structlog.get_logger()

Source = Union[str, Path, BinaryIO]
TimeArg = Union[datetime, str]


@contextmanager
def _open_binary(target: Source, mode: str) -> Iterator[BinaryIO]:
    """Yield a binary file object; paths are opened and closed here."""
    if isinstance(target, (str, Path)):
        with open(target, mode) as fh:
            yield fh
    else:
        yield target


def _check_sorted(records: list[Record]) -> None:
    for i in range(1, len(records)):
        if records[i] < records[i - 1]:
            raise CorruptStateError(
                f"records out of order at position {i}: "
                f"{records[i - 1]} before {records[i]}"
            )


class PageIndex:
    """Sorted collection of pagecount records with range and top-k queries."""

    def __init__(self, time_format: str = DEFAULT_TIME_FORMAT) -> None:
        self._records: list[Record] = []
        self._time_format = time_format

    @property
    def time_format(self) -> str:
        return self._time_format

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(list(self._records))

    # -- building and persistence ------------------------------------------------

    def build_index(self, source: Source) -> None:
        """Parse every line of ``source`` and sort the result.

        Any unparseable line aborts the build with :class:`ParseError` and
        leaves the current content untouched. Blank lines are skipped.
        """
        started = time.monotonic()
        records: list[Record] = []
        with _open_binary(source, "rb") as fh:
            for line_number, raw in enumerate(fh, start=1):
                try:
                    line = raw.decode("utf-8")
                except UnicodeDecodeError as exc:
                    log.warning("build_failed", line=line_number, error=f"invalid UTF-8: {exc}")
                    raise ParseError(f"invalid UTF-8: {exc}", line_number) from exc
                if not line.strip("\r\n"):
                    continue
                try:
                    records.append(Record.from_line(line, self._time_format))
                except ParseError as exc:
                    log.warning("build_failed", line=line_number, error=str(exc))
                    raise ParseError(str(exc), line_number) from exc

        records.sort()
        self._records = records
        log.info("index_built",
                 records=len(records),
                 duration_ms=round((time.monotonic() - started) * 1000, 1))

    def load(self, source: Source, verify: bool = True) -> None:
        """Replace the content with a snapshot written by :meth:`save_as`.

        With ``verify`` the snapshot is checked to be sorted by
        ``(page, time)``; without it the order is trusted and an unsorted
        snapshot silently produces wrong query results.
        """
        with _open_binary(source, "rb") as fh:
            records = read_snapshot(fh)
        if verify:
            _check_sorted(records)
        self._records = records
        log.info("snapshot_loaded", records=len(records), verified=verify)

    def save_as(self, dest: Source) -> None:
        """Write a full snapshot of the index to ``dest``."""
        with _open_binary(dest, "wb") as fh:
            size = write_snapshot(fh, self._records)
        log.info("snapshot_saved", records=len(self._records), bytes=size)

    # -- queries ---------------------------------------------------------------

    def _to_time(self, value: TimeArg) -> datetime:
        if isinstance(value, str):
            return parse_time(value, self._time_format)
        return value

    def range_of(self, page: str) -> tuple[int, int]:
        """Return ``(lo, hi)`` such that ``records[lo:hi]`` are exactly ``page``'s.

        ``lo == hi`` when the page is absent.
        """
        lo = bisect_left(self._records, page, key=page_key)
        hi = bisect_right(self._records, page, lo=lo, key=page_key)
        return lo, hi

    def range(self, page: str, time1: TimeArg, time2: TimeArg) -> list[Record]:
        """All records of ``page`` with ``time1 <= time <= time2``, in order.

        Times may be datetimes or strings in the index's time format.
        """
        start = self._to_time(time1)
        end = self._to_time(time2)
        if start > end:
            raise InvalidArgumentError(
                f"malformed time interval <{format_time(start, self._time_format)},"
                f"{format_time(end, self._time_format)}>"
            )
        lo, hi = self.range_of(page)
        return [r for r in self._records[lo:hi] if start <= r.time <= end]

    def top_k_range(self, page: str, time1: TimeArg, time2: TimeArg, k: int) -> list[Record]:
        """The first ``k`` records of :meth:`range` in ``(page, time)`` order."""
        if k < 0:
            raise InvalidArgumentError(f"k must be non-negative, got {k}")
        result = self.range(page, time1, time2)
        result.sort()
        del result[k:]
        return result

    # -- inspection --------------------------------------------------------------

    def record(self, i: int) -> Record:
        """The i-th record in index order; negative positions are rejected."""
        if not 0 <= i < len(self._records):
            raise IndexError(f"record {i} out of range, index holds {len(self._records)}")
        return self._records[i]

    def pages(self) -> int:
        """Number of distinct pages."""
        count = 0
        previous = None
        for record in self._records:
            if record.page != previous:
                count += 1
                previous = record.page
        return count

    def summary(self) -> dict:
        if not self._records:
            return {"records": 0, "pages": 0, "first_time": None, "last_time": None}
        times = [r.time for r in self._records]
        return {
            "records": len(self._records),
            "pages": self.pages(),
            "first_time": format_time(min(times), self._time_format),
            "last_time": format_time(max(times), self._time_format),
        }

    def print_record(self, i: int, file: TextIO | None = None) -> None:
        """Write the i-th record's debug rendering to ``file`` (stdout by default)."""
        out = file if file is not None else sys.stdout
        out.write(self.record(i).to_string(self._time_format) + "\n")

    def print_all(self, file: TextIO | None = None) -> None:
        out = file if file is not None else sys.stdout
        for record in self._records:
            out.write(record.to_string(self._time_format) + "\n")

