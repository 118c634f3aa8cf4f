"""Plugin listener registry and synchronous event dispatch.

Listeners are registered under a plugin group and an event name. A group
only takes part in dispatch once it has been imported for the request,
mirroring how plugin groups are loaded on demand:

    bus = EventBus()
    bus.register("finder", "on_finder_result", add_badge)
    bus.import_listeners("finder")
    bus.dispatch("on_finder_result", result, query)

Dispatch is synchronous and runs listeners in registration order. There
is no isolation between listeners: the first one that raises aborts the
remaining dispatch.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, Protocol

import logfire

from src.models.search_models import SearchQuery, SearchResult

logger = logging.getLogger(__name__)


class ListenerError(Exception):
    """Raised when an event listener fails during dispatch."""

    def __init__(self, event_name: str, listener: Callable[..., Any], cause: Exception):
        self.event_name = event_name
        self.listener = listener
        super().__init__(
            f"Listener {getattr(listener, '__name__', listener)!s} failed "
            f"handling {event_name}: {cause}"
        )


class ResultAnnotator(Protocol):
    """Listener for the per-result event.

    Receives the result and the query; both are shared, mutable objects,
    so annotations made here are visible to later listeners and to the
    page templates.
    """

    def __call__(self, result: SearchResult, query: SearchQuery) -> Any: ...


class EventBus:
    """Registry of event listeners grouped by plugin group."""

    def __init__(self):
        # group -> [(event name, listener)] in registration order
        self._registry: dict[str, list[tuple[str, Callable[..., Any]]]] = defaultdict(list)
        self._imported: list[str] = []

    def register(self, group: str, event_name: str, listener: Callable[..., Any]) -> None:
        """Register a listener for `event_name` under plugin group `group`."""
        self._registry[group].append((event_name, listener))
        # A group imported before this registration picks it up too
        logger.debug("Registered %s listener for %s", group, event_name)

    def import_listeners(self, group: str) -> bool:
        """Activate a plugin group for dispatch.

        Importing a group with no listeners is not an error.

        Returns:
            True if the group has at least one listener
        """
        if group not in self._imported:
            self._imported.append(group)
        return bool(self._registry.get(group))

    def listeners(self, event_name: str) -> list[Callable[..., Any]]:
        """Active listeners for `event_name`, in registration order."""
        return [
            listener
            for group in self._imported
            for name, listener in self._registry.get(group, [])
            if name == event_name
        ]

    def dispatch(self, event_name: str, *args: Any) -> list[Any]:
        """Call every active listener of `event_name` with `args`.

        Returns:
            The listeners' return values, in call order

        Raises:
            ListenerError: If a listener raises; later listeners are skipped
        """
        results = []
        for listener in self.listeners(event_name):
            try:
                results.append(listener(*args))
            except Exception as e:
                logfire.error(
                    "Event listener failed",
                    event_name=event_name,
                    listener=getattr(listener, "__name__", repr(listener)),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise ListenerError(event_name, listener, e) from e
        return results
