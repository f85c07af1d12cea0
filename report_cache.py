"""In-process TTL cache for generated annual reports.

Reports are keyed by (root, year).  A stale entry is simply ignored and
overwritten by the next put; there is no background sweeping.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

CACHE_TTL_SECONDS = 300  # 5 minutes


class ReportCache:
    """Thread-safe mapping of (root, year) to a finished report.

    Generation itself happens outside the lock, so two concurrent misses
    for the same key both compute and the last put wins.

    Args:
        ttl_seconds: How long an entry stays fresh.
        clock: Zero-argument callable returning the current time in
            seconds.  Defaults to ``time.monotonic``.
    """

    def __init__(
        self,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[tuple[str, int], dict[str, Any]] = {}

    def get(self, root: str, year: int) -> dict[str, Any] | None:
        """Return the cached report for (root, year) if still fresh, else None."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get((root, year))
            if entry is not None and (now - entry["created_at"]) < self.ttl_seconds:
                return entry["report"]
        return None

    def put(self, root: str, year: int, report: dict[str, Any]) -> None:
        with self._lock:
            self._entries[(root, year)] = {
                "created_at": self._clock(),
                "report": report,
            }

    def clear(self) -> None:
        """Drop every entry regardless of age."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Shared by callers that do not pass their own cache.
default_cache = ReportCache()
