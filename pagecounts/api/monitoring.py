"""Health check and monitoring endpoints."""

from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(prefix="/api/v1")


@router.get("/health")
async def health() -> dict:
    """Basic health check."""
    from pagecounts.main import get_index, get_stats

    index = get_index()
    snapshot = get_stats().snapshot(top_pages=0)
    return {
        "status": "ok",
        "version": "0.1.0",
        "uptime_seconds": snapshot["uptime_seconds"],
        "records": len(index),
    }


@router.get("/stats")
async def stats() -> dict:
    """Index summary and query counters.

    The ``index`` section describes the loaded data (record and page counts,
    earliest and latest hour); ``queries`` holds the request counters and
    the most queried pages.
    """
    from pagecounts.main import get_index, get_stats

    return {
        "index": get_index().summary(),
        "queries": get_stats().snapshot(),
    }
