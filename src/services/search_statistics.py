"""Search statistics collection.

Counts how often each distinct search is run and how many results it last
returned. Statistics are best-effort: the search view logs searches
fire-and-forget and never fails a page because of them.
"""

import hashlib
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock

import logfire

from src.constants import DEFAULT_TOP_SEARCHES_LIMIT
from src.models.search_models import SearchQuery


@dataclass
class SearchLogEntry:
    """Aggregated statistics for one distinct search."""

    searchterm: str
    query_signature: str
    hits: int
    results: int
    last_searched_at: datetime


def query_signature(query: SearchQuery) -> str:
    """Stable hash of everything that makes two searches distinct."""
    payload = query.model_dump_json(exclude={"highlight", "suggested", "menu_item_id"})
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


class SearchStatistics:
    """Thread-safe in-memory search log."""

    def __init__(self, enabled: bool = True):
        self._entries: dict[str, SearchLogEntry] = {}
        self._lock = Lock()
        self.enabled = enabled

    def log_search(self, query: SearchQuery, total: int) -> None:
        """Record one run of `query` that produced `total` results.

        Empty searches are not recorded.
        """
        if not self.enabled or not query.input:
            return

        signature = query_signature(query)
        now = datetime.now(timezone.utc)

        with self._lock:
            entry = self._entries.get(signature)
            if entry is None:
                entry = SearchLogEntry(
                    searchterm=query.input,
                    query_signature=signature,
                    hits=0,
                    results=total,
                    last_searched_at=now,
                )
                self._entries[signature] = entry
            entry.hits += 1
            entry.results = total
            entry.last_searched_at = now
            hits = entry.hits

        logfire.info(
            "Search logged",
            query_signature=signature,
            hits=hits,
            results=total,
        )

    def top_searches(self, limit: int = DEFAULT_TOP_SEARCHES_LIMIT) -> list[SearchLogEntry]:
        """Most frequent searches first; ties broken by most recent."""
        with self._lock:
            entries = list(self._entries.values())
        entries.sort(key=lambda e: (e.hits, e.last_searched_at), reverse=True)
        return entries[:limit]

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()


# Global instance
_search_statistics: SearchStatistics | None = None


def get_search_statistics() -> SearchStatistics:
    """Get the global search statistics instance.

    Returns:
        The singleton SearchStatistics instance.
    """
    global _search_statistics
    if _search_statistics is None:
        _search_statistics = SearchStatistics()
    return _search_statistics


def reset_search_statistics() -> None:
    """Reset the global search statistics (primarily for testing)."""
    global _search_statistics
    _search_statistics = None
