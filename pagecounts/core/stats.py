"""Query statistics for the page index service.

Tracks in-memory counters of queries served and rejected.
No framework dependencies.
"""

from __future__ import annotations

import threading
import time


class QueryStats:
    """Thread-safe query counters.

    The index itself is read-only once built, but the HTTP layer may serve
    requests from several worker threads, so the counters take a lock.
    """

    def __init__(self, max_tracked_pages: int = 1000) -> None:
        self._lock = threading.Lock()
        self._started_at = time.time()
        self._max_tracked_pages = max_tracked_pages

        self.range_queries: int = 0
        self.top_k_queries: int = 0
        self.queries_rejected: int = 0
        self.records_returned: int = 0
        self.empty_results: int = 0
        self._pages: dict[str, int] = {}

    def record_query(self, page: str | None, returned: int, *, top_k: bool = False) -> None:
        """Record a successful query that returned ``returned`` records.

        ``page`` is None for pages the index does not hold; those are counted
        but not tracked per page.
        """
        with self._lock:
            if top_k:
                self.top_k_queries += 1
            else:
                self.range_queries += 1
            self.records_returned += returned
            if returned == 0:
                self.empty_results += 1
            if page is not None:
                if page not in self._pages:
                    self._prune_pages()
                self._pages[page] = self._pages.get(page, 0) + 1

    def record_rejected(self, count: int = 1) -> None:
        with self._lock:
            self.queries_rejected += count

    def _prune_pages(self) -> None:
        """Drop the least-queried pages to make room for one more. Caller holds lock."""
        excess = len(self._pages) - self._max_tracked_pages + 1
        if excess <= 0:
            return
        ranked = sorted(self._pages.items(), key=lambda item: (item[1], item[0]))
        for page, _ in ranked[:excess]:
            del self._pages[page]

    def tracked_pages(self) -> int:
        with self._lock:
            return len(self._pages)

    def _top_pages(self, n: int) -> list[dict]:
        """Most queried pages. Caller holds lock."""
        ranked = sorted(self._pages.items(), key=lambda item: (-item[1], item[0]))
        return [{"page": page, "queries": count} for page, count in ranked[:n]]

    def snapshot(self, top_pages: int = 10) -> dict:
        """Return a JSON-serializable snapshot of all counters."""
        with self._lock:
            return {
                "uptime_seconds": round(time.time() - self._started_at, 1),
                "range_queries": self.range_queries,
                "top_k_queries": self.top_k_queries,
                "queries_rejected": self.queries_rejected,
                "records_returned": self.records_returned,
                "empty_results": self.empty_results,
                "top_pages": self._top_pages(top_pages),
            }
