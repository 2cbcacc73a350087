"""Page index service: main entry point.

This is the only file that knows about concrete implementations.
It wires together the config, the index, and the API layer.

Run with: uvicorn pagecounts.main:app
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TextIO

import structlog
from fastapi import FastAPI

from pagecounts.api.monitoring import router as monitoring_router
from pagecounts.api.queries import router as queries_router
from pagecounts.config import AppConfig, load_config
from pagecounts.core.stats import QueryStats
from pagecounts.core.store import PageIndex

log = structlog.get_logger()

# Module-level singletons (set during startup)
_index: PageIndex | None = None
_stats: QueryStats | None = None
_config: AppConfig | None = None
_log_file: TextIO | None = None


def get_index() -> PageIndex:
    assert _index is not None, "Server not initialized"
    return _index


def get_stats() -> QueryStats:
    assert _stats is not None, "Server not initialized"
    return _stats


def get_config() -> AppConfig:
    assert _config is not None, "Server not initialized"
    return _config


def close_logging() -> None:
    """Close the log file opened by :func:`setup_logging`, if any."""
    global _log_file
    if _log_file is not None:
        # Loggers must not write to the closed file.
        structlog.reset_defaults()
        _log_file.close()
        _log_file = None


def setup_logging(config: AppConfig) -> None:
    """Configure structlog based on the logging config."""
    global _log_file

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if config.logging.format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=not config.logging.file))

    close_logging()
    if config.logging.file:
        _log_file = Path(config.logging.file).open("at")
        logger_factory = structlog.WriteLoggerFactory(file=_log_file)
    else:
        logger_factory = structlog.PrintLoggerFactory(file=sys.stderr)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.logging.level.upper()),
        ),
        logger_factory=logger_factory,
    )


def open_index(config: AppConfig) -> PageIndex:
    """Build the index from the raw source or load it from a snapshot."""
    index = PageIndex(time_format=config.index.time_format)
    if config.index.mode == "build":
        index.build_index(config.index.source)
        if config.index.save_after_build:
            snapshot = Path(config.index.snapshot)
            snapshot.parent.mkdir(parents=True, exist_ok=True)
            index.save_as(snapshot)
    elif config.index.mode == "load":
        index.load(config.index.snapshot, verify=config.index.verify_on_load)
    else:
        raise ValueError(f"unknown index mode {config.index.mode!r}, expected 'build' or 'load'")
    return index


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    global _index, _stats, _config

    _config = load_config()
    setup_logging(_config)

    log.info("server_starting",
             env=_config.server.env,
             mode=_config.index.mode,
             source=_config.index.source,
             snapshot=_config.index.snapshot)

    _stats = QueryStats()
    _index = open_index(_config)

    log.info("server_started",
             host=_config.server.host,
             port=_config.server.port,
             records=len(_index))

    yield

    log.info("server_stopped")
    close_logging()


app = FastAPI(
    title="pagecounts",
    description="Pageview counter index",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(queries_router)
app.include_router(monitoring_router)
