"""Search page endpoint.

`GET /search` serves the search results page. The `format` parameter picks
the output: `html` (default) renders the page, `feed` renders the result
page as RSS or Atom (`type=rss|atom`), `opensearch` returns the OpenSearch
description of the site search.

`GET /search/statistics` lists the most frequent searches while search
statistics are gathered.

The handler only wires request-scoped collaborators together and maps
view errors to HTTP responses; the page itself is built by
SearchResultsPresenter.
"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, Response

from src.config import get_settings
from src.constants import (
    DEFAULT_TOP_SEARCHES_LIMIT,
    MAX_TOP_SEARCHES_LIMIT,
    OPENSEARCH_MIME_TYPE,
)
from src.services.feeds import UnknownFeedTypeError, render_feed, render_opensearch
from src.services.presenter import DataFetchError
from src.services.view_factory import create_search_presenter

logger = logging.getLogger(__name__)
router = APIRouter()


def _request_params(request: Request) -> dict[str, list[str]]:
    """Query parameters of `request`, each name mapped to all of its values."""
    return {
        name: request.query_params.getlist(name) for name in request.query_params.keys()
    }


@router.get("/search")
def search_page(
    request: Request,
    output_format: str = Query("html", alias="format"),
    feed_type: str = Query("rss", alias="type"),
):
    """Serve the search results page, its feeds, or the OpenSearch description."""
    settings = get_settings()
    presenter = create_search_presenter(
        request.app.state.search_environment,
        settings,
        _request_params(request),
        str(request.url),
        profiler=getattr(request.state, "profiler", None),
    )

    try:
        if output_format == "html":
            page = presenter.render()
            return HTMLResponse(page.html, status_code=page.status_code)

        if output_format == "feed":
            xml, media_type = render_feed(presenter, feed_type)
            return Response(xml, media_type=media_type)

        if output_format == "opensearch":
            xml = render_opensearch(
                presenter.renderer,
                presenter.router,
                presenter.params,
                settings.sitename,
                settings.site_meta_description,
            )
            return Response(xml, media_type=OPENSEARCH_MIME_TYPE)

    except DataFetchError as e:
        logger.error("Search view failed: %s", e)
        raise HTTPException(status_code=e.status_code, detail=str(e)) from e
    except UnknownFeedTypeError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    raise HTTPException(status_code=404, detail=f"Unknown format: {output_format}")


@router.get("/search/statistics")
def search_statistics(
    request: Request,
    limit: int = Query(DEFAULT_TOP_SEARCHES_LIMIT, ge=1, le=MAX_TOP_SEARCHES_LIMIT),
):
    """List the most frequent searches, most hits first."""
    statistics = request.app.state.search_environment.search_statistics
    if not statistics.enabled:
        raise HTTPException(status_code=404, detail="Search statistics are disabled")

    return {"searches": [asdict(entry) for entry in statistics.top_searches(limit)]}
