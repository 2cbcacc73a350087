"""Binary snapshot format for the page index.

The snapshot is a total dump of the sorted record list:
[8-byte little-endian record count] followed by, per record,
[8-byte signed microseconds since 1970-01-01 (naive)]
[4-byte page length][page UTF-8 bytes]
[8-byte unsigned counter]

There is no version field; snapshots are only read back by this package.
"""

from __future__ import annotations

import struct
from datetime import datetime, timedelta
from typing import BinaryIO, Iterable

from pagecounts.core.errors import CorruptStateError
from pagecounts.core.models import Record

_COUNT = struct.Struct("<Q")
_TIME_AND_PAGE_LEN = struct.Struct("<qI")
_COUNTER = struct.Struct("<Q")

_EPOCH = datetime(1970, 1, 1)
_MICROSECOND = timedelta(microseconds=1)


def _serialize_record(record: Record) -> bytes:
    micros = (record.time - _EPOCH) // _MICROSECOND
    page = record.page.encode("utf-8")
    return _TIME_AND_PAGE_LEN.pack(micros, len(page)) + page + _COUNTER.pack(record.counter)


def write_snapshot(fh: BinaryIO, records: Iterable[Record]) -> int:
    """Write ``records`` to ``fh``. Returns the number of bytes written."""
    records = list(records)
    written = fh.write(_COUNT.pack(len(records)))
    for record in records:
        written += fh.write(_serialize_record(record))
    return written


def read_snapshot(fh: BinaryIO) -> list[Record]:
    """Read a snapshot written by :func:`write_snapshot`, in stored order."""
    data = memoryview(fh.read())
    records: list[Record] = []
    try:
        (count,) = _COUNT.unpack_from(data, 0)
        offset = _COUNT.size
        for _ in range(count):
            micros, page_len = _TIME_AND_PAGE_LEN.unpack_from(data, offset)
            offset += _TIME_AND_PAGE_LEN.size
            page_end = offset + page_len
            if page_end > len(data):
                raise CorruptStateError(f"snapshot truncated inside record {len(records)}")
            page = bytes(data[offset:page_end]).decode("utf-8")
            offset = page_end
            (counter,) = _COUNTER.unpack_from(data, offset)
            offset += _COUNTER.size
            records.append(Record(page=page, time=_EPOCH + micros * _MICROSECOND, counter=counter))
    except struct.error as exc:
        raise CorruptStateError(f"snapshot truncated at byte {len(data)}") from exc
    except (UnicodeDecodeError, OverflowError) as exc:
        raise CorruptStateError(f"snapshot record {len(records)} is malformed: {exc}") from exc

    if offset != len(data):
        raise CorruptStateError(f"{len(data) - offset} trailing bytes after {count} records")
    return records
