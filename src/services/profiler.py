"""Request profiler marks.

A `Profiler` records named marks with the elapsed time since the request
started. Marks are only kept when profiling is enabled (the `debug`
setting); otherwise `mark()` is a no-op.

Example:
    profiler = Profiler(enabled=True)
    query = query_service.get_current_query()
    profiler.mark("afterFinderQuery")
    profiler.log()
"""

import time
from typing import Any

import logfire


class Profiler:
    """Collect named timing marks for one request."""

    def __init__(self, enabled: bool = False, **log_context: Any):
        self.enabled = enabled
        self.log_context = log_context
        self._start_time = time.perf_counter()
        self._marks: list[tuple[str, float]] = []

    def mark(self, label: str) -> None:
        """Record `label` with the elapsed milliseconds since start."""
        if not self.enabled:
            return
        elapsed_ms = (time.perf_counter() - self._start_time) * 1000
        self._marks.append((label, round(elapsed_ms, 3)))

    @property
    def marks(self) -> list[tuple[str, float]]:
        return list(self._marks)

    def log(self) -> None:
        """Emit all marks as one structured event."""
        if not self.enabled or not self._marks:
            return
        logfire.info(
            "Profiler marks",
            marks=dict(self._marks),
            **self.log_context,
        )
