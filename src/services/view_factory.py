"""Wiring of the search view's collaborators.

`SearchEnvironment` holds what lives for the whole process: the template
renderer, the layout registry resolved at startup, the listener registry
and the searchable documents. `create_search_presenter()` builds the
request-scoped collaborators around it.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from src.config import Settings
from src.models.search_models import SearchResult
from src.services.document import HtmlDocument
from src.services.event_bus import EventBus
from src.services.navigation import Menu, Pathway
from src.services.presenter import SearchResultsPresenter
from src.services.profiler import Profiler
from src.services.query_service import DefaultQueryService
from src.services.result_annotators import register_default_listeners
from src.services.result_provider import InMemoryResultProvider, load_corpus
from src.services.router_service import SiteRouter
from src.services.search_statistics import SearchStatistics, get_search_statistics
from src.services.site_parameters import SiteParameters
from src.services.templating import LayoutRegistry, TemplateRenderer, build_template_renderer


@dataclass
class SearchEnvironment:
    """Process-wide collaborators shared by every search request."""

    renderer: TemplateRenderer
    layouts: LayoutRegistry
    event_bus: EventBus
    documents: list[SearchResult] = field(default_factory=list)
    search_statistics: SearchStatistics = field(default_factory=get_search_statistics)


def build_search_environment(settings: Settings) -> SearchEnvironment:
    """Resolve templates, register listeners and load documents."""
    renderer, layouts = build_template_renderer(settings.template_paths)

    event_bus = EventBus()
    register_default_listeners(event_bus)

    search_statistics = get_search_statistics()
    search_statistics.enabled = bool(settings.search.gather_search_statistics)

    return SearchEnvironment(
        renderer=renderer,
        layouts=layouts,
        event_bus=event_bus,
        documents=load_corpus(settings.corpus_path) if settings.corpus_path else [],
        search_statistics=search_statistics,
    )


def _active_menu_id(params: Mapping[str, Sequence[str]]) -> int | None:
    values = params.get("Itemid") or []
    try:
        return int(values[0]) if values else None
    except ValueError:
        return None


def create_search_presenter(
    environment: SearchEnvironment,
    settings: Settings,
    params: Mapping[str, Sequence[str]],
    url: str,
    profiler: Profiler | None = None,
) -> SearchResultsPresenter:
    """Create the search view for one request.

    Args:
        environment: Process-wide collaborators
        settings: Application settings
        params: Request query parameters, each name mapped to all its values
        url: Full URL of the request
        profiler: Request profiler, if the caller keeps one
    """
    site_router = SiteRouter.from_url(
        url, params, base_path=settings.base_path, root=settings.base_url
    )

    menu = Menu(
        settings.menu_items,
        active_id=_active_menu_id(params),
        default_id=settings.default_menu_item_id,
    )
    site_params = SiteParameters.for_menu_item(settings.search, menu.get_active())

    query_service = DefaultQueryService(
        params,
        suggestions=settings.query_suggestions,
        show_suggested=bool(int(site_params.get("show_suggested_query", 1))),
    )
    result_provider = InMemoryResultProvider(
        environment.documents,
        query_service,
        params,
        default_limit=int(site_params.get("list_limit", settings.search.list_limit)),
        static_filters=settings.static_filters,
    )

    return SearchResultsPresenter(
        query_service=query_service,
        result_provider=result_provider,
        params=site_params,
        event_bus=environment.event_bus,
        router=site_router,
        document=HtmlDocument(description=settings.site_meta_description),
        search_statistics=environment.search_statistics,
        renderer=environment.renderer,
        layouts=environment.layouts,
        sitename=settings.sitename,
        sitename_pagetitles=settings.sitename_pagetitles,
        menu=menu,
        pathway=Pathway(),
        profiler=profiler,
    )
