"""Search query parsing and presentation helpers.

`QueryService` is the protocol the search view depends on. The default
implementation builds a `SearchQuery` from the request's query string:

- the raw `q` input is sanitized (control characters removed, whitespace
  collapsed, length capped)
- terms are split into quoted phrases and words; `+term` is required,
  `-term` is excluded, anything else is optional
- date, filter, taxonomy, language and ordering parameters are validated

It also derives the "Did you mean" suggestion and the human-readable
explanation of the query.
"""

import re
import unicodedata
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Protocol

import logfire
from markupsafe import Markup

from src.constants import DATE_OPERATORS, MAX_QUERY_LENGTH_CHARS, RESULT_ORDERINGS
from src.models.search_models import SearchQuery
from src.services.language import translate

# A quoted phrase or a bare word, each optionally prefixed by + or -
_TOKEN_PATTERN = re.compile(r'(?P<sign>[+-]?)(?:"(?P<phrase>[^"]*)"|(?P<word>\S+))')


class InvalidQueryError(ValueError):
    """Raised when a query parameter cannot be parsed."""

    pass


class QueryService(Protocol):
    """Protocol for building and describing the current search query."""

    def get_current_query(self) -> SearchQuery:
        """Return the query of the current request.

        Raises:
            InvalidQueryError: If the request carries a malformed parameter
        """
        ...

    def suggested_query(self, query: SearchQuery) -> str | None:
        """Return the URI of a suggested alternate search, or None."""
        ...

    def explained_query(self, query: SearchQuery) -> Markup | None:
        """Return an HTML explanation of the active query terms and filters."""
        ...


def sanitize_query_input(text: str | None) -> str:
    """Sanitize raw search input.

    Removes control characters, normalizes Unicode to NFC, collapses runs of
    whitespace to a single space, strips the ends and truncates to
    MAX_QUERY_LENGTH_CHARS.
    """
    if not text:
        return ""

    sanitized = "".join(
        " " if char in "\n\r\t" else char for char in text if ord(char) >= 32 or char in "\n\r\t"
    )
    sanitized = unicodedata.normalize("NFC", sanitized)
    sanitized = re.sub(r"\s+", " ", sanitized).strip()

    if len(sanitized) > MAX_QUERY_LENGTH_CHARS:
        logfire.warning(
            "Search input truncated",
            original_length=len(sanitized),
            max_length=MAX_QUERY_LENGTH_CHARS,
        )
        sanitized = sanitized[:MAX_QUERY_LENGTH_CHARS].rstrip()

    return sanitized


def split_terms(text: str) -> tuple[list[str], list[str], list[str]]:
    """Split input into (included, required, excluded) terms.

    Quoted phrases stay whole. Terms are lowercased; duplicates are dropped
    while keeping first-seen order.
    """
    included: list[str] = []
    required: list[str] = []
    excluded: list[str] = []

    for match in _TOKEN_PATTERN.finditer(text):
        term = match.group("phrase")
        if term is None:
            term = match.group("word").strip('"')
        term = " ".join(term.split()).lower()
        if not term:
            continue

        sign = match.group("sign")
        target = required if sign == "+" else excluded if sign == "-" else included
        if term not in target:
            target.append(term)

    return included, required, excluded


def _first(params: Mapping[str, Sequence[str]], name: str) -> str | None:
    values = params.get(name) or []
    return values[0] if values else None


def _parse_date(params: Mapping[str, Sequence[str]], name: str) -> date | None:
    value = _first(params, name)
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise InvalidQueryError(f"Invalid date for {name}: {value!r}") from e


def _parse_operator(params: Mapping[str, Sequence[str]], name: str) -> str | None:
    value = _first(params, name)
    if not value:
        return None
    if value not in DATE_OPERATORS:
        raise InvalidQueryError(f"Invalid date operator for {name}: {value!r}")
    return value


def _parse_int(value: str | None, name: str) -> int | None:
    if not value:
        return None
    try:
        return int(value)
    except ValueError as e:
        raise InvalidQueryError(f"Invalid integer for {name}: {value!r}") from e


class DefaultQueryService:
    """Build the current query from request parameters.

    Example:
        >>> service = DefaultQueryService({"q": ['+red "fast car" -blue']})
        >>> query = service.get_current_query()
        >>> query.required, query.included, query.excluded
        (['red'], ['fast car'], ['blue'])
    """

    def __init__(
        self,
        params: Mapping[str, Sequence[str]],
        suggestions: Mapping[str, str] | None = None,
        show_suggested: bool = True,
    ):
        """Initialize the query service.

        Args:
            params: Request query parameters, each name mapped to all its values
            suggestions: Lowercase term -> preferred spelling
            show_suggested: Whether suggested_query() offers alternates at all
        """
        self._params = params
        self._suggestions = {k.lower(): v for k, v in (suggestions or {}).items()}
        self._show_suggested = show_suggested
        self._query: SearchQuery | None = None

    def get_current_query(self) -> SearchQuery:
        if self._query is None:
            self._query = self._build_query()
        return self._query

    def _build_query(self) -> SearchQuery:
        params = self._params
        text = sanitize_query_input(_first(params, "q"))
        included, required, excluded = split_terms(text)

        ordering = _first(params, "o")
        if ordering not in RESULT_ORDERINGS:
            ordering = None
        direction = _first(params, "od")
        if direction not in ("asc", "desc"):
            direction = None

        query = SearchQuery(
            input=text,
            included=included,
            required=required,
            excluded=excluded,
            highlight=included + required,
            filter=_parse_int(_first(params, "f"), "f"),
            taxonomies=[
                _parse_int(value, "t") for value in params.get("t") or [] if value
            ],
            language=_first(params, "l") or None,
            date1=_parse_date(params, "d1"),
            when1=_parse_operator(params, "w1"),
            date2=_parse_date(params, "d2"),
            when2=_parse_operator(params, "w2"),
            ordering=ordering,
            direction=direction,
            menu_item_id=_parse_int(_first(params, "Itemid"), "Itemid"),
            suggested=self._suggest(text, included + required),
        )

        logfire.info(
            "Search query parsed",
            input_length=len(text),
            included=len(included),
            required=len(required),
            excluded=len(excluded),
        )
        return query

    def _suggest(self, text: str, terms: list[str]) -> str | None:
        """Replace known misspellings in `text`, if any apply."""
        if not self._suggestions:
            return None

        suggested = text
        for term in terms:
            replacement = self._suggestions.get(term)
            if replacement:
                # Whole words only; the replacement is literal text
                suggested = re.sub(
                    rf"(?<!\w){re.escape(term)}(?!\w)",
                    lambda _match: replacement,
                    suggested,
                    flags=re.IGNORECASE,
                )
        return suggested if suggested != text else None

    def suggested_query(self, query: SearchQuery) -> str | None:
        if not self._show_suggested or not query.suggested:
            return None
        return query.model_copy(update={"input": query.suggested}).to_uri()

    def explained_query(self, query: SearchQuery) -> Markup | None:
        parts: list[Markup] = []

        for term in query.required:
            parts.append(_span("query-required", "COM_FINDER_QUERY_TOKEN_REQUIRED", term))
        for term in query.included:
            parts.append(_span("query-optional", "COM_FINDER_QUERY_TOKEN_OPTIONAL", term))
        for term in query.excluded:
            parts.append(_span("query-excluded", "COM_FINDER_QUERY_TOKEN_EXCLUDED", term))

        if query.date1:
            condition = translate(
                f"COM_FINDER_QUERY_DATE_CONDITION_{(query.when1 or 'exact').upper()}"
            )
            parts.append(
                _span("query-start-date", "COM_FINDER_QUERY_START_DATE", condition, query.date1.isoformat())
            )
        if query.date2:
            condition = translate(
                f"COM_FINDER_QUERY_DATE_CONDITION_{(query.when2 or 'exact').upper()}"
            )
            parts.append(
                _span("query-end-date", "COM_FINDER_QUERY_END_DATE", condition, query.date2.isoformat())
            )

        if not parts:
            return None

        glue = translate("COM_FINDER_QUERY_TOKEN_GLUE")
        return Markup(translate("COM_FINDER_QUERY_TOKEN_INTERPRETED")).format(
            Markup(glue).join(parts)
        )


def _span(css_class: str, key: str, *args: str) -> Markup:
    """Wrap a translated, argument-escaped string in a classed <span>."""
    return Markup('<span class="{}">{}</span>').format(
        css_class, Markup(translate(key)).format(*args)
    )
