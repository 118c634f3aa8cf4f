"""Search query, result and pagination models."""

from datetime import date, datetime
from typing import Any, Literal
from urllib.parse import urlencode

from pydantic import BaseModel, Field

from src.constants import DEFAULT_LIST_LIMIT, SEARCH_ROUTE

DateOperator = Literal["before", "after", "exact"]


class SearchQuery(BaseModel):
    """Parsed search submission.

    Built once per request by the query service. `to_uri()` renders the
    canonical search URI; every field that is set appears in it.
    """

    input: str = ""
    highlight: list[str] = Field(default_factory=list)
    included: list[str] = Field(default_factory=list)
    required: list[str] = Field(default_factory=list)
    excluded: list[str] = Field(default_factory=list)

    filter: int | None = None
    taxonomies: list[int] = Field(default_factory=list)
    language: str | None = None

    date1: date | None = None
    when1: DateOperator | None = None
    date2: date | None = None
    when2: DateOperator | None = None

    ordering: str | None = None
    direction: Literal["asc", "desc"] | None = None
    menu_item_id: int | None = None

    suggested: str | None = None

    @property
    def search(self) -> bool:
        """Whether there is anything to search for."""
        return bool(
            self.included
            or self.required
            or self.filter
            or self.taxonomies
            or self.date1
            or self.date2
        )

    def to_uri(self) -> str:
        """Render the canonical search URI for this query."""
        params: list[tuple[str, Any]] = []

        if self.filter:
            params.append(("f", self.filter))
        for taxonomy_id in self.taxonomies:
            params.append(("t", taxonomy_id))
        if self.input:
            params.append(("q", self.input))
        if self.language:
            params.append(("l", self.language))
        if self.date1:
            params.append(("d1", self.date1.isoformat()))
            params.append(("w1", self.when1 or "exact"))
        if self.date2:
            params.append(("d2", self.date2.isoformat()))
            params.append(("w2", self.when2 or "exact"))
        if self.ordering:
            params.append(("o", self.ordering))
        if self.direction:
            params.append(("od", self.direction))
        if self.menu_item_id:
            params.append(("Itemid", self.menu_item_id))

        return f"{SEARCH_ROUTE}?{urlencode(params)}"


class SearchResult(BaseModel):
    """A single search result item.

    Listeners of the result event may annotate `extra` or rewrite fields
    in place.
    """

    title: str
    url: str
    description: str = ""
    layout: str = ""
    type_title: str | None = None
    publish_date: datetime | None = None
    # Taxonomy ids the document is filed under; matched against t and static filters
    taxonomies: list[int] = Field(default_factory=list)
    extra: dict[str, Any] = Field(default_factory=dict)


class SearchState(BaseModel):
    """Request-scoped state of the search view."""

    limitstart: int = Field(default=0, ge=0)
    limit: int = Field(default=DEFAULT_LIST_LIMIT, ge=1)
    params: dict[str, str] = Field(default_factory=dict)


class PageLink(BaseModel):
    """A link in the pagination footer."""

    text: str
    url: str
    active: bool = False


class Pagination(BaseModel):
    """Pagination descriptor for a result page."""

    limitstart: int = 0
    limit: int = DEFAULT_LIST_LIMIT
    # Page size used when a request carries no limit; links carry any other
    default_limit: int = DEFAULT_LIST_LIMIT
    total: int = 0
    # Suppress an explicit start=0 in generated page links
    hide_empty_limitstart: bool = False

    @property
    def pages_total(self) -> int:
        if self.limit <= 0:
            return 1
        return max(1, -(-self.total // self.limit))

    @property
    def pages_current(self) -> int:
        if self.limit <= 0:
            return 1
        return self.limitstart // self.limit + 1

    @property
    def first_item(self) -> int:
        return min(self.limitstart + 1, self.total)

    @property
    def last_item(self) -> int:
        return min(self.limitstart + self.limit, self.total)

    def link(self, base_uri: str, limitstart: int) -> str:
        """Build the URI of the page starting at `limitstart`.

        `base_uri` must not carry start or limit itself.
        """
        params: list[tuple[str, int]] = []
        if self.limit != self.default_limit:
            params.append(("limit", self.limit))
        if limitstart or not self.hide_empty_limitstart:
            params.append(("start", limitstart))
        if not params:
            return base_uri
        separator = "&" if "?" in base_uri else "?"
        return f"{base_uri}{separator}{urlencode(params)}"

    def page_links(self, base_uri: str) -> list[PageLink]:
        """Return one link per page, marking the current one active."""
        return [
            PageLink(
                text=str(page),
                url=self.link(base_uri, (page - 1) * self.limit),
                active=page == self.pages_current,
            )
            for page in range(1, self.pages_total + 1)
        ]


class MenuItem(BaseModel):
    """Navigation entry pointing at the search view."""

    id: int
    title: str
    query: dict[str, str] = Field(default_factory=dict)
    params: dict[str, Any] = Field(default_factory=dict)


class HeadLink(BaseModel):
    """A <link> element placed in the document head."""

    href: str
    relation: str
    rel_type: Literal["rel", "rev"] = "rel"
    attribs: dict[str, str] = Field(default_factory=dict)
