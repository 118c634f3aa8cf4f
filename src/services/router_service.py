"""Request router bound to the current search request.

Holds the query variables the active route was resolved with, and builds
site URLs relative to the configured base path.
"""

from collections.abc import Iterable, Mapping, Sequence
from urllib.parse import urlencode, urlsplit


class SiteRouter:
    """Route variables and URL building for one request.

    A variable may carry several values (`t=1&t=2`); `get_var` answers with
    the first one, the same value the query service reads.

    Example:
        >>> router = SiteRouter({"q": "alpha"}, root="https://example.com")
        >>> router.get_var("q")
        'alpha'
        >>> router.build("/search?q=beta")
        '/search?q=beta'
    """

    def __init__(
        self,
        variables: Mapping[str, str | Sequence[str]] | None = None,
        root: str = "",
        base_path: str = "",
        path: str = "/search",
    ):
        """Initialize the router.

        Args:
            variables: Query variables of the active route, single or multi-valued
            root: scheme://host[:port] of the site
            base_path: Path prefix the site is mounted under
            path: Path of the active route (without base path)
        """
        self._vars: dict[str, list[str]] = {
            name: [value] if isinstance(value, str) else list(value)
            for name, value in (variables or {}).items()
            if value
        }
        self._root = root.rstrip("/")
        self._base_path = base_path.rstrip("/")
        self._path = path

    def get_var(self, name: str) -> str | None:
        values = self._vars.get(name)
        return values[0] if values else None

    def set_var(self, name: str, value: str) -> None:
        """Rebind a variable of the active route to a single value."""
        self._vars[name] = [value]

    def build(self, uri: str) -> str:
        """Turn a site-relative URI into a routed URL under the base path."""
        if not uri.startswith("/"):
            uri = f"/{uri}"
        return f"{self._base_path}{uri}"

    def root(self) -> str:
        """Return scheme://host[:port] of the site."""
        return self._root

    def current_uri(self, exclude: Iterable[str] = ()) -> str:
        """Routed URL of the active route with its (possibly rebound) vars.

        Args:
            exclude: Variable names left out of the query string
        """
        skipped = set(exclude)
        query = urlencode(
            [(name, values) for name, values in self._vars.items() if name not in skipped],
            doseq=True,
        )
        uri = self.build(self._path)
        return f"{uri}?{query}" if query else uri

    @classmethod
    def from_url(
        cls,
        url: str,
        variables: Mapping[str, str | Sequence[str]],
        base_path: str = "",
        root: str | None = None,
    ) -> "SiteRouter":
        """Create a router for an incoming request URL.

        `root` overrides the scheme and host taken from `url`, for sites
        served behind a proxy.
        """
        parts = urlsplit(url)
        if root is None:
            root = f"{parts.scheme}://{parts.netloc}" if parts.netloc else ""
        path = parts.path
        if base_path and path.startswith(base_path):
            path = path[len(base_path):] or "/"
        return cls(variables, root=root, base_path=base_path, path=path)
