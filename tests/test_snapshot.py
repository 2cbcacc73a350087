"""Tests for snapshot persistence and reload."""

from __future__ import annotations

import io
import struct
from datetime import datetime

import pytest

from pagecounts.core.errors import CorruptStateError
from pagecounts.core.models import Record
from pagecounts.core.store import PageIndex
from pagecounts.storage.snapshot import read_snapshot, write_snapshot

from conftest import unsorted_snapshot_bytes


def test_save_and_load_round_trip(index, tmp_path):
    path = tmp_path / "index.bin"
    index.save_as(path)

    restored = PageIndex()
    restored.load(path)

    original = list(index)
    reloaded = list(restored)
    assert [(r.page, r.time, r.counter) for r in reloaded] == \
           [(r.page, r.time, r.counter) for r in original]


def test_reloaded_index_answers_queries_identically(index, tmp_path):
    path = tmp_path / "index.bin"
    index.save_as(path)
    restored = PageIndex()
    restored.load(path)

    for page in ["10_Cloverfield_Lane", "AC/DC", "Abba", "Zootopia", "Nope"]:
        for start, end in [("20160625-00", "20160627-23"), ("20160626-01", "20160626-05")]:
            assert restored.range(page, start, end) == index.range(page, start, end)
            assert restored.top_k_range(page, start, end, 2) == index.top_k_range(page, start, end, 2)


def test_empty_index_round_trip(tmp_path):
    path = tmp_path / "empty.bin"
    PageIndex().save_as(path)
    assert path.read_bytes() == struct.pack("<Q", 0)

    restored = PageIndex()
    restored.load(path)
    assert len(restored) == 0


def test_load_replaces_content(sample_index, index, tmp_path):
    path = tmp_path / "index.bin"
    index.save_as(path)
    sample_index.load(path)
    assert len(sample_index) == len(index)


def test_round_trip_preserves_unicode_and_fine_times():
    records = [
        Record(page="Café_de_Flore", time=datetime(2016, 6, 26, 23, 59, 1, 5), counter=2**64 - 1),
        Record(page="東京", time=datetime(1901, 1, 1), counter=0),
    ]
    buf = io.BytesIO()
    write_snapshot(buf, records)
    buf.seek(0)
    restored = read_snapshot(buf)
    assert [(r.page, r.time, r.counter) for r in restored] == \
           [(r.page, r.time, r.counter) for r in records]


def test_truncated_snapshot(index):
    buf = io.BytesIO()
    write_snapshot(buf, list(index))
    data = buf.getvalue()

    for cut in (0, 4, 8, 15, len(data) - 1):
        with pytest.raises(CorruptStateError):
            read_snapshot(io.BytesIO(data[:cut]))


def test_trailing_bytes_rejected(sample_index):
    buf = io.BytesIO()
    write_snapshot(buf, list(sample_index))
    with pytest.raises(CorruptStateError):
        read_snapshot(io.BytesIO(buf.getvalue() + b"\x00"))


def test_load_verifies_order():
    index = PageIndex()
    with pytest.raises(CorruptStateError):
        index.load(io.BytesIO(unsorted_snapshot_bytes()))
    assert len(index) == 0


def test_load_without_verification_trusts_order():
    index = PageIndex()
    index.load(io.BytesIO(unsorted_snapshot_bytes()), verify=False)
    assert len(index) == 2


def test_load_missing_file_raises_oserror(tmp_path):
    with pytest.raises(OSError):
        PageIndex().load(tmp_path / "missing.bin")


def test_save_to_stream(sample_index):
    buf = io.BytesIO()
    sample_index.save_as(buf)
    assert not buf.closed
    buf.seek(0)
    restored = PageIndex()
    restored.load(buf)
    assert len(restored) == 3
