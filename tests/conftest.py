"""Shared pytest fixtures and configuration.

This module centralizes all test fixtures to:
- Eliminate duplicate fixtures across test files
- Provide consistent test data structures
- Make tests more maintainable

Fixture Categories:
1. Collaborators: query_service_factory, result_provider_factory, event_bus, router
2. Models: sample_documents, sample_menu_item
3. Presenter: presenter_factory, layout_registry, template_renderer
4. Infrastructure: mock_settings, mock_logfire, logfire_capture, test_client
"""

import os
from datetime import datetime
from unittest.mock import MagicMock, Mock, patch

import pytest

try:
    import logfire
except ImportError:
    logfire = None

from src.config import ComponentParams, Settings
from src.models.search_models import MenuItem, SearchResult
from src.services.document import HtmlDocument
from src.services.event_bus import EventBus
from src.services.navigation import Menu, Pathway
from src.services.presenter import SearchResultsPresenter
from src.services.query_service import DefaultQueryService
from src.services.result_provider import InMemoryResultProvider
from src.services.router_service import SiteRouter
from src.services.search_statistics import SearchStatistics, reset_search_statistics
from src.services.site_parameters import SiteParameters
from src.services.templating import build_template_renderer

# Suppress warnings when logfire isn't configured in tests
if logfire is not None:
    os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")


# =============================================================================
# Models
# =============================================================================


@pytest.fixture
def sample_documents():
    """A small corpus covering titles, descriptions, types and dates."""
    return [
        SearchResult(
            title="Red Widgets",
            url="/widgets/red",
            description="Bright red widgets for every workshop.",
            layout="article",
            type_title="Article",
            publish_date=datetime(2024, 3, 1, 9, 0),
            taxonomies=[1],
        ),
        SearchResult(
            title="Blue Widgets",
            url="/widgets/blue",
            description="Calm blue widgets & gadgets.",
            layout="article",
            type_title="Article",
            publish_date=datetime(2024, 5, 12, 9, 0),
            taxonomies=[2],
        ),
        SearchResult(
            title="Widget Care Guide",
            url="/guides/widget-care",
            description="How to keep your widgets clean.",
            type_title="Guide",
            publish_date=datetime(2023, 11, 20, 9, 0),
            taxonomies=[1, 3],
        ),
        SearchResult(
            title="Gadget Catalogue",
            url="/catalogue",
            description="Every gadget we sell.",
        ),
    ]


@pytest.fixture
def sample_menu_item():
    """Menu entry pointing at the search view."""
    return MenuItem(
        id=101,
        title="Find Things",
        query={"view": "search"},
        params={"robots": "noindex, follow"},
    )


# =============================================================================
# Collaborators
# =============================================================================


@pytest.fixture
def query_service_factory():
    """Build a DefaultQueryService from a flat dict of single-valued params."""

    def _factory(suggestions=None, show_suggested=True, **params):
        multi = {
            name: value if isinstance(value, list) else [value]
            for name, value in params.items()
        }
        return DefaultQueryService(multi, suggestions=suggestions, show_suggested=show_suggested)

    return _factory


@pytest.fixture
def result_provider_factory(sample_documents):
    """Build an InMemoryResultProvider over the sample corpus."""

    def _factory(query_service, documents=None, static_filters=None, **params):
        multi = {name: [str(value)] for name, value in params.items()}
        return InMemoryResultProvider(
            sample_documents if documents is None else documents,
            query_service,
            multi,
            default_limit=2,
            static_filters=static_filters,
        )

    return _factory


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def router():
    return SiteRouter({}, root="https://example.com")


@pytest.fixture
def search_statistics():
    reset_search_statistics()
    stats = SearchStatistics(enabled=True)
    yield stats
    reset_search_statistics()


# =============================================================================
# Presenter
# =============================================================================


@pytest.fixture
def template_renderer():
    renderer, _ = build_template_renderer()
    return renderer


@pytest.fixture
def layout_registry():
    """Registry resolved from the packaged templates."""
    _, layouts = build_template_renderer()
    return layouts


@pytest.fixture
def presenter_factory(
    query_service_factory,
    result_provider_factory,
    event_bus,
    search_statistics,
    template_renderer,
    layout_registry,
):
    """Build a SearchResultsPresenter with real default collaborators.

    Keyword arguments override collaborators (query_service, result_provider,
    params, menu, router, layouts, sitename, sitename_pagetitles, ...).
    `query_params` go to the query service and become the router variables.
    """

    def _factory(query_params=None, **overrides):
        query_params = query_params or {}
        query_service = overrides.pop("query_service", None) or query_service_factory(
            **query_params
        )
        result_provider = overrides.pop("result_provider", None) or result_provider_factory(
            query_service
        )
        router = overrides.pop("router", None) or SiteRouter(
            {
                name: value if isinstance(value, list) else str(value)
                for name, value in query_params.items()
            },
            root="https://example.com",
        )
        menu = overrides.pop("menu", None) or Menu()
        params = overrides.pop("params", None) or SiteParameters.for_menu_item(
            ComponentParams(), menu.get_active()
        )
        kwargs = dict(
            query_service=query_service,
            result_provider=result_provider,
            params=params,
            event_bus=event_bus,
            router=router,
            document=HtmlDocument(),
            search_statistics=search_statistics,
            renderer=template_renderer,
            layouts=layout_registry,
            sitename="Acme",
            menu=menu,
            pathway=Pathway(),
        )
        kwargs.update(overrides)
        return SearchResultsPresenter(**kwargs)

    return _factory


# =============================================================================
# Infrastructure
# =============================================================================


@pytest.fixture
def mock_settings(monkeypatch):
    """Mock application settings."""
    settings = Settings(
        sitename="Acme",
        sitename_pagetitles=0,
        site_meta_description="Acme widgets and gadgets",
        env="local",
        logfire_token=None,
        sentry_dsn=None,
        menu_items=[
            MenuItem(id=101, title="Find Things", query={"view": "search"}),
        ],
    )

    monkeypatch.setattr("src.config.get_settings", lambda: settings)
    # Patch where get_settings is used so request handlers see the mock
    monkeypatch.setattr("src.main.get_settings", lambda: settings)
    monkeypatch.setattr("src.api.search.get_settings", lambda: settings)
    return settings


@pytest.fixture
def logfire_capture():
    """
    Capture Logfire logs for testing.

    This fixture patches Logfire to capture log calls for assertion.
    """
    if logfire is None:
        pytest.skip("logfire not available")

    captured_logs = []

    def capture_info(*args, **kwargs):
        captured_logs.append(("info", args, kwargs))

    def capture_warning(*args, **kwargs):
        captured_logs.append(("warning", args, kwargs))

    def capture_error(*args, **kwargs):
        captured_logs.append(("error", args, kwargs))

    with (
        patch("logfire.info", side_effect=capture_info),
        patch("logfire.warning", side_effect=capture_warning),
        patch("logfire.error", side_effect=capture_error),
    ):
        yield captured_logs


@pytest.fixture
def mock_logfire(monkeypatch):
    """
    Mock Logfire for testing without actual logging.

    Useful for tests that don't need to verify logging behavior.
    """
    from contextlib import contextmanager

    @contextmanager
    def mock_span(*args, **kwargs):
        yield {}

    mock_logfire_module = MagicMock()
    mock_logfire_module.info = Mock()
    mock_logfire_module.warning = Mock()
    mock_logfire_module.error = Mock()
    mock_logfire_module.span = mock_span
    mock_logfire_module.configure = Mock()
    mock_logfire_module.instrument_fastapi = Mock()
    mock_logfire_module.instrument_pydantic = Mock()

    # Patch module-level imports in our code (only modules that use logfire)
    for module in (
        "src.main",
        "src.logging_config",
        "src.middleware.profiler",
        "src.services.event_bus",
        "src.services.feeds",
        "src.services.presenter",
        "src.services.profiler",
        "src.services.query_service",
        "src.services.result_provider",
        "src.services.search_statistics",
    ):
        monkeypatch.setattr(f"{module}.logfire", mock_logfire_module)

    return mock_logfire_module


@pytest.fixture
def test_client(mock_settings, mock_logfire, sample_documents):
    """FastAPI TestClient for E2E tests.

    The search environment is installed directly instead of running the
    lifespan, so no Logfire or Sentry setup happens.
    """
    from fastapi.testclient import TestClient

    from src.main import app
    from src.services.view_factory import build_search_environment

    reset_search_statistics()
    environment = build_search_environment(mock_settings)
    environment.documents = sample_documents
    app.state.search_environment = environment

    yield TestClient(app)

    reset_search_statistics()
