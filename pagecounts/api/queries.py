"""Range and top-k query endpoints.

Thin FastAPI adapter over PageIndex: parses query parameters, calls the
index, and converts domain errors into 400 responses.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from pagecounts.core.errors import InvalidArgumentError, ParseError

router = APIRouter(prefix="/api/v1")

log = structlog.get_logger()


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(content={"error": message}, status_code=status_code)


@router.get("/range")
async def get_range(
    page: str = Query(..., description="Page identifier, e.g. 10_Cloverfield_Lane"),
    start: str = Query(..., description="First hour, inclusive (YYYYMMDD-HH)"),
    end: str = Query(..., description="Last hour, inclusive (YYYYMMDD-HH)"),
    k: int | None = Query(default=None, ge=0, description="Keep only the k earliest records"),
) -> JSONResponse:
    """Return the counters of ``page`` between ``start`` and ``end``.

    With ``k`` the result is truncated to the k earliest records.
    """
    from pagecounts.main import get_config, get_index, get_stats

    index = get_index()
    stats = get_stats()

    if k is not None and k > get_config().limits.max_top_k:
        stats.record_rejected()
        return _error(f"k must be at most {get_config().limits.max_top_k}", 400)

    try:
        if k is None:
            records = index.range(page, start, end)
        else:
            records = index.top_k_range(page, start, end, k)
    except (ParseError, InvalidArgumentError) as exc:
        stats.record_rejected()
        log.info("query_rejected", page=page, start=start, end=end, error=str(exc))
        return _error(str(exc), 400)

    lo, hi = index.range_of(page)
    stats.record_query(page if lo != hi else None, len(records), top_k=k is not None)
    return JSONResponse(content={
        "page": page,
        "records": [r.to_dict(index.time_format) for r in records],
        "total": len(records),
    })


@router.get("/records/{i}")
async def get_record(i: int) -> JSONResponse:
    """Debug view of the i-th stored record in index order."""
    from pagecounts.main import get_index

    index = get_index()
    if not 0 <= i < len(index):
        return _error(f"record {i} out of range, index holds {len(index)}", 404)
    record = index.record(i)
    return JSONResponse(content={
        "position": i,
        "record": record.to_dict(index.time_format),
        "text": record.to_string(index.time_format),
    })
