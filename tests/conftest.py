"""Shared test fixtures."""

from __future__ import annotations

import io
from datetime import datetime

import pytest
import structlog
from httpx import ASGITransport, AsyncClient

import pagecounts.main as main_module
from pagecounts.config import AppConfig
from pagecounts.core.models import Record
from pagecounts.core.stats import QueryStats
from pagecounts.core.store import PageIndex
from pagecounts.storage.snapshot import write_snapshot

SAMPLE_LINES = [
    "20160626-23\tA\t10",
    "20160626-22\tA\t5",
    "20160626-23\tB\t99",
]

SOURCE_LINES = [
    "20160626-23\t10_Cloverfield_Lane\t475",
    "20160626-21\tAC/DC\t12",
    "20160625-04\t10_Cloverfield_Lane\t301",
    "20160626-02\tZootopia\t1500",
    "20160626-00\t10_Cloverfield_Lane\t388",
    "20160625-23\tAC/DC\t7",
    "20160626-05\tZootopia\t1210",
    "20160626-01\t10_Cloverfield_Lane\t390",
    "20160627-00\tZootopia\t980",
    "20160626-01\tAbba\t0",
]


def write_source(path, lines):
    path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
    return path


def unsorted_snapshot_bytes() -> bytes:
    buf = io.BytesIO()
    write_snapshot(buf, [
        Record(page="B", time=datetime(2016, 6, 26, 23), counter=99),
        Record(page="A", time=datetime(2016, 6, 26, 22), counter=5),
    ])
    return buf.getvalue()


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    main_module.close_logging()
    structlog.reset_defaults()


@pytest.fixture
def sample_source(tmp_path):
    return write_source(tmp_path / "sample.tsv", SAMPLE_LINES)


@pytest.fixture
def source_file(tmp_path):
    return write_source(tmp_path / "pagecounts.tsv", SOURCE_LINES)


@pytest.fixture
def sample_index(sample_source):
    index = PageIndex()
    index.build_index(sample_source)
    return index


@pytest.fixture
def index(source_file):
    index = PageIndex()
    index.build_index(source_file)
    return index


@pytest.fixture(autouse=True)
def _init_server(tmp_path, source_file):
    """Initialize server singletons for every test, using a temp directory."""
    config = AppConfig()
    config.index.mode = "build"
    config.index.source = str(source_file)
    config.index.snapshot = str(tmp_path / "data" / "pagecounts.bin")
    config.limits.max_top_k = 5
    config.logging.level = "warning"

    index = PageIndex(time_format=config.index.time_format)
    index.build_index(source_file)

    # Patch module-level singletons
    main_module._config = config
    main_module._stats = QueryStats()
    main_module._index = index

    yield

    # Cleanup
    main_module._config = None
    main_module._stats = None
    main_module._index = None


@pytest.fixture
async def client():
    from pagecounts.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
