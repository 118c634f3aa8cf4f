"""Application-wide constants.

This module centralizes all magic numbers and configuration constants
to ensure a single source of truth and easier maintenance.

Constants are organized by category.
"""

# =============================================================================
# Query Input
# =============================================================================

# Maximum length of the raw search input after sanitization (chars)
MAX_QUERY_LENGTH_CHARS = 255

# Route of the search view
SEARCH_ROUTE = "/search"

# Query parameters already re-submitted by the visible search form.
# These never become hidden form fields.
FORM_VISIBLE_PARAMS = ("q", "o", "t", "d1", "d2", "w1", "w2")

# Date constraint operators accepted for w1/w2
DATE_OPERATORS = ("before", "after", "exact")

# Result orderings accepted for o
RESULT_ORDERINGS = ("relevance", "date", "title")

# =============================================================================
# Pagination
# =============================================================================

# Default number of results per page
DEFAULT_LIST_LIMIT = 20

# Upper bound for a client-supplied page size
MAX_LIST_LIMIT = 100

# Route variables each page link sets itself
PAGINATION_PARAMS = ("start", "limit")

# =============================================================================
# Layouts & Templates
# =============================================================================

# Layout used when no override applies
DEFAULT_LAYOUT = "default"

# Sub-layout used for a result whose own layout has no template
DEFAULT_RESULT_LAYOUT = "result"

# Template folder holding the search view layouts
SEARCH_TEMPLATE_FOLDER = "search"

# Extension of layout template files
TEMPLATE_EXTENSION = ".html"

# =============================================================================
# Plugins / Events
# =============================================================================

# Listener group imported before result dispatch
FINDER_PLUGIN_GROUP = "finder"

# Event fired once per result item
ON_FINDER_RESULT = "on_finder_result"

# =============================================================================
# Document Head
# =============================================================================

OPENSEARCH_ROUTE = "/search?format=opensearch"
OPENSEARCH_MIME_TYPE = "application/opensearchdescription+xml"

# (feed type, mime type, link title) in the order links are added
FEED_FORMATS = (
    ("rss", "application/rss+xml", "RSS 2.0"),
    ("atom", "application/atom+xml", "Atom 1.0"),
)

# Site title formats (sitename_pagetitles); any other value shows the site name only
SITENAME_TITLE_BEFORE = 1
SITENAME_TITLE_AFTER = 2

# =============================================================================
# Search Statistics
# =============================================================================

# Default number of rows returned by SearchStatistics.top_searches()
DEFAULT_TOP_SEARCHES_LIMIT = 10

# Upper bound for a client-supplied number of top searches
MAX_TOP_SEARCHES_LIMIT = 100

# =============================================================================
# Language Strings (en-GB)
# =============================================================================

LANGUAGE_STRINGS = {
    "JPAGETITLE": "{0}: {1}",
    "COM_FINDER_DEFAULT_PAGE_TITLE": "Search",
    "COM_FINDER_OPENSEARCH_NAME": "Search",
    "COM_FINDER_SEARCH_TERMS": "Search Terms:",
    "COM_FINDER_SEARCH_SIMILAR": "Did you mean:",
    "COM_FINDER_QUERY_TOKEN_REQUIRED": '<span class="term">{0}</span> is required',
    "COM_FINDER_QUERY_TOKEN_OPTIONAL": '<span class="term">{0}</span> is optional',
    "COM_FINDER_QUERY_TOKEN_EXCLUDED": '<span class="term">{0}</span> should not be present',
    "COM_FINDER_QUERY_TOKEN_GLUE": ", and ",
    "COM_FINDER_QUERY_TOKEN_INTERPRETED": "Assuming {0}, search results are shown.",
    "COM_FINDER_QUERY_DATE_CONDITION_BEFORE": "before",
    "COM_FINDER_QUERY_DATE_CONDITION_AFTER": "after",
    "COM_FINDER_QUERY_DATE_CONDITION_EXACT": "exactly on",
    "COM_FINDER_QUERY_START_DATE": 'beginning {0} <span class="when">{1}</span>',
    "COM_FINDER_QUERY_END_DATE": 'ending {0} <span class="when">{1}</span>',
    "COM_FINDER_SEARCH_NO_RESULTS_HEADING": "No Results Found",
    "COM_FINDER_SEARCH_NO_RESULTS_BODY": "No search results could be found for query: {0}.",
    "COM_FINDER_SEARCH_RESULTS_OF": "Results {0} - {1} of {2}",
    "COM_FINDER_SEARCH_PAGES_COUNTER": "Page {0} of {1}",
    "COM_FINDER_SEARCH_BUTTON": "Search",
}
