"""Search results page view.

`SearchResultsPresenter` pulls together the parsed query, the current page
of results, the view parameters and the document metadata, then hands off
to the templating layer. It does no searching itself; every piece of data
comes from an injected collaborator:

- QueryService: the parsed query, its suggestion and explanation
- ResultProvider: state, items, total and pagination
- EventBus: per-result listeners of the "finder" plugin group
- HtmlDocument: title, meta tags and head links of the response
- SiteRouter: route variables and URL building
- SearchStatistics: best-effort search logging

Failures while fetching data abort the page with DataFetchError (HTTP 500).
Everything after that degrades to defaults instead of failing, except
listener errors, which propagate.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import parse_qs, urlsplit

import logfire
from markupsafe import Markup, escape

from src.constants import (
    DEFAULT_LAYOUT,
    DEFAULT_RESULT_LAYOUT,
    FEED_FORMATS,
    FINDER_PLUGIN_GROUP,
    FORM_VISIBLE_PARAMS,
    ON_FINDER_RESULT,
    OPENSEARCH_MIME_TYPE,
    OPENSEARCH_ROUTE,
    PAGINATION_PARAMS,
    SITENAME_TITLE_AFTER,
    SITENAME_TITLE_BEFORE,
)
from src.models.search_models import Pagination, SearchQuery, SearchResult, SearchState
from src.services.document import HtmlDocument
from src.services.event_bus import EventBus
from src.services.language import sprintf, translate
from src.services.navigation import Menu, Pathway
from src.services.profiler import Profiler
from src.services.query_service import QueryService
from src.services.result_provider import ResultProvider
from src.services.router_service import SiteRouter
from src.services.search_statistics import SearchStatistics
from src.services.site_parameters import SiteParameters
from src.services.templating import LayoutRegistry, TemplateRenderer

logger = logging.getLogger(__name__)

_LAYOUT_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class SearchViewError(Exception):
    """Base exception for search view errors."""

    pass


class DataFetchError(SearchViewError):
    """Raised when the view data cannot be fetched.

    Attributes:
        errors: Every collected error message, in fetch order
        status_code: HTTP status the page should be answered with
    """

    def __init__(self, errors: list[str], status_code: int = 500):
        self.errors = errors
        self.status_code = status_code
        super().__init__("\n".join(errors))


@dataclass
class RenderedPage:
    """Output of one search view render."""

    html: str
    layout: str
    document: HtmlDocument
    status_code: int = 200


def sanitize_layout(layout: str | None) -> str:
    """Strip everything outside [A-Za-z0-9_.-] from a layout name."""
    return _LAYOUT_UNSAFE_CHARS.sub("", layout or "")


class SearchResultsPresenter:
    """Build the search results page for one request.

    Example:
        >>> presenter = SearchResultsPresenter(
        ...     query_service=query_service,
        ...     result_provider=provider,
        ...     params=SiteParameters.for_menu_item(settings.search, menu.get_active()),
        ...     event_bus=event_bus,
        ...     router=router,
        ...     document=HtmlDocument(),
        ...     search_statistics=get_search_statistics(),
        ...     renderer=renderer,
        ...     layouts=layouts,
        ...     sitename="Acme",
        ... )
        >>> page = presenter.render()
    """

    def __init__(
        self,
        *,
        query_service: QueryService,
        result_provider: ResultProvider,
        params: SiteParameters,
        event_bus: EventBus,
        router: SiteRouter,
        document: HtmlDocument,
        search_statistics: SearchStatistics,
        renderer: TemplateRenderer,
        layouts: LayoutRegistry,
        sitename: str,
        sitename_pagetitles: int = 0,
        menu: Menu | None = None,
        pathway: Pathway | None = None,
        profiler: Profiler | None = None,
        layout: str = DEFAULT_LAYOUT,
    ):
        self.query_service = query_service
        self.result_provider = result_provider
        self.params = params
        self.event_bus = event_bus
        self.router = router
        self.document = document
        self.search_statistics = search_statistics
        self.renderer = renderer
        self.layouts = layouts
        self.sitename = sitename
        self.sitename_pagetitles = sitename_pagetitles
        self.menu = menu or Menu()
        self.pathway = pathway or Pathway()
        self.profiler = profiler or Profiler()
        self.layout = layout

        self.state: SearchState | None = None
        self.query: SearchQuery | None = None
        self.results: list[SearchResult] | None = None
        self.total: int = 0
        self.pagination: Pagination | None = None
        self.suggested: str | None = None
        self.explained: Markup | None = None
        self.pageclass_sfx: Markup = Markup("")

    # =========================================================================
    # Rendering
    # =========================================================================

    def render(self, tpl: str | None = None) -> RenderedPage:
        """Fetch the view data, prepare the document and render the page.

        Args:
            tpl: Optional sub-template of the layout to render instead

        Raises:
            DataFetchError: If any view data could not be fetched
            ListenerError: If a result listener raised
        """
        self.fetch_view_data()

        # Keep start=0 out of generated page links
        self.pagination.hide_empty_limitstart = True

        if self.query.input:
            self.pathway.add_item(escape(self.query.input))

        # Quoted phrases may be normalized; keep the routed q in sync with them
        if '"' in self.query.input and self.router.get_var("q") != self.query.input:
            self.router.set_var("q", self.query.input)

        if isinstance(self.results, list):
            self.event_bus.import_listeners(FINDER_PLUGIN_GROUP)
            for result in self.results:
                self.event_bus.dispatch(ON_FINDER_RESULT, result, self.query)

        self._log_search()

        self.suggested = self.query_service.suggested_query(self.query)
        self.explained = self.query_service.explained_query(self.query)

        self.pageclass_sfx = escape(self.params.get("pageclass_sfx", ""))

        active = self.menu.get_active()
        if active is not None and active.query.get("layout"):
            self.set_layout(active.query["layout"])

        self.prepare_document(self.query)

        self.profiler.mark("beforeFinderLayout")
        html = self.display(tpl)
        self.profiler.mark("afterFinderLayout")

        logfire.info(
            "Search page rendered",
            layout=self.layout,
            total=self.total,
            result_count=len(self.results or []),
        )
        return RenderedPage(html=html, layout=self.layout, document=self.document)

    def fetch_view_data(self) -> None:
        """Fetch state, query, items, total and pagination, in that order."""
        errors: list[str] = []
        causes: list[Exception] = []

        def fetch(getter: Callable[[], Any], mark: str | None = None) -> Any:
            try:
                return getter()
            except Exception as e:
                causes.append(e)
                message = str(e) or type(e).__name__
                if message not in errors:
                    errors.append(message)
                return None
            finally:
                if mark:
                    self.profiler.mark(mark)

        self.state = fetch(self.result_provider.get_state)
        self.query = fetch(self.query_service.get_current_query, "afterFinderQuery")
        self.results = fetch(self.result_provider.get_items, "afterFinderResults")
        self.total = fetch(self.result_provider.get_total, "afterFinderTotal") or 0
        self.pagination = fetch(self.result_provider.get_pagination, "afterFinderPagination")

        for error in self.result_provider.get_errors():
            if error not in errors:
                errors.append(error)

        if self.query is None and not errors:
            errors.append("Search query unavailable")
        if self.pagination is None and not errors:
            errors.append("Pagination unavailable")

        if errors:
            logfire.error(
                "Search view data fetch failed",
                errors=errors,
                error_count=len(errors),
            )
            raise DataFetchError(errors) from (causes[0] if causes else None)

    def _log_search(self) -> None:
        """Record the search; failures are logged and never fail the page."""
        try:
            self.search_statistics.log_search(self.query, self.total)
        except Exception as e:
            logger.error("Error logging search: %s", e, exc_info=True)

    def display(self, tpl: str | None = None) -> str:
        """Render the current layout (or its `tpl` sub-template)."""
        name = self.layout if tpl is None else f"{self.layout}_{sanitize_layout(tpl)}"
        return self.renderer.render(
            self.renderer.layout_template(name), self._template_context()
        )

    def load_template(self, name: str, **extra: Any) -> Markup:
        """Render the `<layout>_<name>` sub-template with the view context."""
        template = self.renderer.layout_template(f"{self.layout}_{sanitize_layout(name)}")
        context = self._template_context()
        context.update(extra)
        return Markup(self.renderer.render(template, context))

    def _template_context(self) -> dict[str, Any]:
        return {
            "view": self,
            "query": self.query,
            "results": self.results or [],
            "total": self.total,
            "pagination": self.pagination,
            "params": self.params,
            "suggested": self.suggested,
            "explained": self.explained,
            "pageclass_sfx": self.pageclass_sfx,
            "document": self.document,
            "pathway": self.pathway,
        }

    def set_layout(self, layout: str) -> None:
        """Switch to `layout` if such a layout exists; keep the current one otherwise."""
        sanitized = sanitize_layout(layout)
        if sanitized and self.layouts.exists(sanitized):
            self.layout = sanitized
        else:
            logfire.warning(
                "Layout override not found",
                requested_layout=layout,
                current_layout=self.layout,
            )

    # =========================================================================
    # Template helpers
    # =========================================================================

    def get_fields(self) -> Markup:
        """Hidden inputs carrying the query state the search form does not show.

        The visible form re-submits q, o, t, d1, d2, w1 and w2 itself; every
        other single-valued parameter of the canonical URI becomes one hidden
        input so it survives a new submission.
        """
        uri = self.router.build(self.query.to_uri())
        elements = parse_qs(urlsplit(uri).query, keep_blank_values=True)
        for name in FORM_VISIBLE_PARAMS:
            elements.pop(name, None)

        return Markup("").join(
            Markup('<input type="hidden" name="{}" value="{}">').format(name, values[0])
            for name, values in elements.items()
            if len(values) == 1
        )

    def pagination_base(self) -> str:
        """Routed URL page links are built from.

        Taken from the router, so a `q` rebound during render reaches the
        links; start and limit are left to `Pagination.link`.
        """
        return self.router.current_uri(exclude=PAGINATION_PARAMS)

    def get_layout_file(self, layout: str | None = None) -> str:
        """Pick the sub-layout used to render a result.

        Returns:
            The sanitized `layout` if `<current layout>_<layout>` exists,
            otherwise "result"
        """
        sanitized = sanitize_layout(layout)
        if sanitized and self.layouts.exists(f"{self.layout}_{sanitized}"):
            return sanitized
        return DEFAULT_RESULT_LAYOUT

    # =========================================================================
    # Document
    # =========================================================================

    def prepare_document(self, query: SearchQuery) -> None:
        """Set the title, meta tags and head links of the outgoing document."""
        menu = self.menu.get_active()

        # The page heading comes from the menu entry, not the document title
        if menu is not None:
            self.params.set_default("page_heading", self.params.get("page_title", menu.title))
        else:
            self.params.set_default("page_heading", translate("COM_FINDER_DEFAULT_PAGE_TITLE"))

        self.document.set_title(self.page_title())

        article_layout = self.params.get("article_layout")
        if article_layout:
            self.set_layout(article_layout)

        if self.explained:
            self.document.set_description(escape(Markup(self.explained).striptags()))
        elif self.params.get("menu-meta_description"):
            self.document.set_description(self.params.get("menu-meta_description"))

        if query.highlight:
            self.document.set_metadata("keywords", ", ".join(query.highlight))
        elif self.params.get("menu-meta_keywords"):
            self.document.set_metadata("keywords", self.params.get("menu-meta_keywords"))

        if self.params.get("robots"):
            self.document.set_metadata("robots", self.params.get("robots"))

        if int(self.params.get("opensearch", 1)):
            opensearch_title = self.params.get(
                "opensearch_name",
                f"{translate('COM_FINDER_OPENSEARCH_NAME')} {self.sitename}",
            )
            self.document.add_head_link(
                self.router.root() + self.router.build(OPENSEARCH_ROUTE),
                "search",
                "rel",
                {"title": opensearch_title, "type": OPENSEARCH_MIME_TYPE},
            )

        if int(self.params.get("show_feed_link", 1)) == 1:
            for feed_type, mime_type, feed_title in FEED_FORMATS:
                route = self.router.build(f"{query.to_uri()}&format=feed&type={feed_type}")
                self.document.add_head_link(
                    route, "alternate", "rel", {"type": mime_type, "title": feed_title}
                )

    def page_title(self) -> str:
        """Compose the document title from page_title and the site name."""
        title = self.params.get("page_title", "")

        if not title:
            return self.sitename
        if self.sitename_pagetitles == SITENAME_TITLE_BEFORE:
            return sprintf("JPAGETITLE", self.sitename, title)
        if self.sitename_pagetitles == SITENAME_TITLE_AFTER:
            return sprintf("JPAGETITLE", title, self.sitename)
        return self.sitename
