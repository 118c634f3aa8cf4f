"""Feed and OpenSearch output of the search view.

Alternate formats share the search view's data fetch; only the template
differs. Feeds carry the current result page as RSS 2.0 or Atom 1.0, and
the OpenSearch description advertises the search URL to browsers.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime
from urllib.parse import urljoin

import logfire
from markupsafe import Markup

from src.constants import SEARCH_ROUTE
from src.services.presenter import SearchResultsPresenter, SearchViewError
from src.services.router_service import SiteRouter
from src.services.site_parameters import SiteParameters
from src.services.templating import TemplateRenderer

# feed type -> (template, media type)
FEED_TEMPLATES = {
    "rss": ("feed/rss.xml", "application/rss+xml"),
    "atom": ("feed/atom.xml", "application/atom+xml"),
}

OPENSEARCH_TEMPLATE = "opensearch/description.xml"


class UnknownFeedTypeError(SearchViewError):
    """Raised when a feed type other than rss or atom is requested."""

    pass


def as_utc(value: datetime) -> datetime:
    """Convert `value` to UTC; naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def rfc822_date(value: datetime) -> str:
    return format_datetime(as_utc(value))


def rfc3339_date(value: datetime) -> str:
    return as_utc(value).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class FeedItem:
    title: str
    link: str
    description: str
    category: str | None = None
    published: datetime | None = None

    def __post_init__(self):
        if self.published is not None:
            self.published = as_utc(self.published)


def _absolute(root: str, url: str) -> str:
    return urljoin(f"{root}/", url) if root else url


def render_feed(presenter: SearchResultsPresenter, feed_type: str) -> tuple[str, str]:
    """Render the current result page as a feed.

    Returns:
        (xml, media type)

    Raises:
        UnknownFeedTypeError: If `feed_type` is neither rss nor atom
        DataFetchError: If the view data could not be fetched
    """
    if feed_type not in FEED_TEMPLATES:
        raise UnknownFeedTypeError(f"Unknown feed type: {feed_type!r}")
    template, media_type = FEED_TEMPLATES[feed_type]

    presenter.fetch_view_data()
    router = presenter.router
    root = router.root()
    query_uri = presenter.query.to_uri()

    explained = presenter.query_service.explained_query(presenter.query)
    description = (
        Markup(explained).striptags()
        if explained
        else presenter.params.get("menu-meta_description", "")
    )

    items = [
        FeedItem(
            title=result.title,
            link=_absolute(root, result.url),
            description=result.description,
            category=result.type_title,
            published=result.publish_date,
        )
        for result in presenter.results or []
    ]

    xml = presenter.renderer.render(
        template,
        {
            "title": presenter.page_title(),
            "link": root + router.build(query_uri),
            "self_link": root + router.build(f"{query_uri}&format=feed&type={feed_type}"),
            "description": description,
            "items": items,
            "updated": datetime.now(timezone.utc),
            "rfc822_date": rfc822_date,
            "rfc3339_date": rfc3339_date,
        },
    )
    logfire.info("Search feed rendered", feed_type=feed_type, item_count=len(items))
    return xml, media_type


def render_opensearch(
    renderer: TemplateRenderer,
    router: SiteRouter,
    params: SiteParameters,
    sitename: str,
    site_description: str = "",
) -> str:
    """Render the OpenSearch description document of the site search."""
    # {searchTerms} must reach the client unencoded
    search_template = f"{router.root()}{router.build(SEARCH_ROUTE)}?q={{searchTerms}}"
    return renderer.render(
        OPENSEARCH_TEMPLATE,
        {
            "short_name": params.get("opensearch_name", sitename),
            "description": params.get("opensearch_description", site_description),
            "search_template": search_template,
        },
    )
