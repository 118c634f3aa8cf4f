"""Built-in listeners of the "finder" plugin group."""

import re

from markupsafe import Markup, escape

from src.constants import FINDER_PLUGIN_GROUP, ON_FINDER_RESULT
from src.models.search_models import SearchQuery, SearchResult
from src.services.event_bus import EventBus


def highlight_terms(result: SearchResult, query: SearchQuery) -> None:
    """Store the description with the query's highlight terms marked up.

    The escaped description with each term wrapped in <mark> is kept in
    `result.extra["highlighted_description"]`.
    """
    if not query.highlight or not result.description:
        return

    pattern = re.compile(
        "|".join(re.escape(term) for term in sorted(query.highlight, key=len, reverse=True)),
        re.IGNORECASE,
    )
    text = result.description
    parts = []
    last = 0
    for match in pattern.finditer(text):
        parts.append(escape(text[last : match.start()]))
        parts.append(Markup("<mark>{}</mark>").format(match.group(0)))
        last = match.end()
    parts.append(escape(text[last:]))

    result.extra["highlighted_description"] = Markup("").join(parts)


def register_default_listeners(event_bus: EventBus) -> None:
    """Register the built-in result listeners."""
    event_bus.register(FINDER_PLUGIN_GROUP, ON_FINDER_RESULT, highlight_terms)
