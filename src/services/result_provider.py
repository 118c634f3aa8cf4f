"""Result providers for the search view.

`ResultProvider` is what the view fetches its data through. The in-memory
implementation matches query terms against a fixed list of documents; it
is enough to serve a small site or a test, not a search engine.
"""

import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol

import logfire
from pydantic import ValidationError

from src.constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from src.models.search_models import (
    Pagination,
    SearchQuery,
    SearchResult,
    SearchState,
)
from src.services.query_service import QueryService


class ResultProvider(Protocol):
    """Protocol for fetching the current page of search results."""

    def get_state(self) -> SearchState: ...

    def get_items(self) -> list[SearchResult]: ...

    def get_total(self) -> int: ...

    def get_pagination(self) -> Pagination: ...

    def get_errors(self) -> list[str]:
        """Errors collected while fetching; empty when all went well."""
        ...


def load_corpus(path: str | Path) -> list[SearchResult]:
    """Load searchable documents from a JSON array file."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return [SearchResult.model_validate(item) for item in data]


def _matches(
    result: SearchResult, query: SearchQuery, taxonomy_sets: Sequence[set[int]] = ()
) -> bool:
    haystack = f"{result.title}\n{result.description}".lower()

    if any(term in haystack for term in query.excluded):
        return False
    if not all(term in haystack for term in query.required):
        return False
    if query.included and not any(term in haystack for term in query.included):
        return False
    if query.date1 and not _date_matches(result, query.date1, query.when1):
        return False
    if query.date2 and not _date_matches(result, query.date2, query.when2):
        return False
    # Each set must share at least one taxonomy with the document
    if any(taxonomy_set.isdisjoint(result.taxonomies) for taxonomy_set in taxonomy_sets):
        return False
    return True


def _date_matches(result: SearchResult, bound, when: str | None) -> bool:
    if result.publish_date is None:
        return False
    published = result.publish_date.date()
    if when == "before":
        return published < bound
    if when == "after":
        return published > bound
    return published == bound


class InMemoryResultProvider:
    """Serve result pages from a list of documents.

    Matching is a case-insensitive substring test over title and
    description: every required term must appear, no excluded term may
    appear, and at least one optional term must appear when there are any.

    Taxonomy ids (`t`) and the static filter (`f`) narrow the matches to
    documents filed under one of their taxonomies. An unknown filter id
    matches nothing.
    """

    def __init__(
        self,
        documents: Sequence[SearchResult],
        query_service: QueryService,
        params: Mapping[str, Sequence[str]],
        default_limit: int = DEFAULT_LIST_LIMIT,
        static_filters: Mapping[int, Sequence[int]] | None = None,
    ):
        self._documents = list(documents)
        self._static_filters = static_filters or {}
        self._query_service = query_service
        self._params = params
        self._default_limit = default_limit
        self._errors: list[str] = []
        self._state: SearchState | None = None
        self._matches: list[SearchResult] | None = None

    def get_state(self) -> SearchState:
        if self._state is None:
            self._state = self._build_state()
        return self._state

    def _build_state(self) -> SearchState:
        start = self._first_int("start", 0)
        limit = self._first_int("limit", self._default_limit)
        try:
            return SearchState(
                limitstart=start,
                limit=min(limit, MAX_LIST_LIMIT),
                params={name: values[0] for name, values in self._params.items() if values},
            )
        except ValidationError as e:
            self._errors.append(f"Invalid pagination parameters: {e.error_count()} error(s)")
            return SearchState(limit=self._default_limit)

    def _first_int(self, name: str, default: int) -> int:
        values = self._params.get(name) or []
        if not values or not values[0]:
            return default
        try:
            return int(values[0])
        except ValueError:
            self._errors.append(f"Invalid value for {name}: {values[0]!r}")
            return default

    def _get_matches(self) -> list[SearchResult]:
        if self._matches is None:
            query = self._query_service.get_current_query()
            taxonomy_sets = self._taxonomy_sets(query) if query.search else None
            if taxonomy_sets is None:
                matches = []
            else:
                matches = [
                    doc for doc in self._documents if _matches(doc, query, taxonomy_sets)
                ]

            if query.ordering == "date":
                matches.sort(
                    key=lambda doc: (doc.publish_date is not None, doc.publish_date),
                    reverse=query.direction != "asc",
                )
            elif query.ordering == "title":
                matches.sort(
                    key=lambda doc: doc.title.lower(),
                    reverse=query.direction == "desc",
                )

            self._matches = matches
            logfire.info(
                "Search matched documents",
                matched=len(matches),
                corpus_size=len(self._documents),
            )
        return self._matches

    def _taxonomy_sets(self, query: SearchQuery) -> list[set[int]] | None:
        """Taxonomy constraints of `query`; None when nothing can match."""
        sets: list[set[int]] = []
        if query.taxonomies:
            sets.append(set(query.taxonomies))
        if query.filter:
            taxonomies = self._static_filters.get(query.filter)
            if taxonomies is None:
                logfire.warning("Unknown search filter", filter_id=query.filter)
                return None
            sets.append(set(taxonomies))
        return sets

    def get_items(self) -> list[SearchResult]:
        state = self.get_state()
        matches = self._get_matches()
        # Copies, so listeners annotating a result never touch the corpus
        return [
            doc.model_copy(deep=True)
            for doc in matches[state.limitstart : state.limitstart + state.limit]
        ]

    def get_total(self) -> int:
        return len(self._get_matches())

    def get_pagination(self) -> Pagination:
        state = self.get_state()
        return Pagination(
            limitstart=state.limitstart,
            limit=state.limit,
            default_limit=self._default_limit,
            total=self.get_total(),
        )

    def get_errors(self) -> list[str]:
        return list(self._errors)
