"""Jinja2 templating for the search view.

Templates are looked up on a search path: configured override directories
first, the packaged `src/templates` directory last. The layouts available
under `search/` are resolved once, when the registry is built, so that
choosing a result sub-layout never touches the filesystem per request.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from src.constants import SEARCH_TEMPLATE_FOLDER, TEMPLATE_EXTENSION
from src.services.language import sprintf, translate

PACKAGE_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


def template_search_path(override_paths: Iterable[str | Path] = ()) -> list[Path]:
    """Return override directories followed by the packaged templates."""
    return [Path(p) for p in override_paths] + [PACKAGE_TEMPLATE_DIR]


def _format_date_filter(value: datetime | None, fmt: str = "%d %B %Y") -> str:
    """Return `value` formatted with `fmt`, or an empty string."""
    if value is None:
        return ""
    return value.strftime(fmt)


class LayoutRegistry:
    """Names of the search view layouts available on the template path."""

    def __init__(self, names: Iterable[str]):
        self._names = frozenset(names)

    @classmethod
    def from_search_path(
        cls,
        paths: Iterable[str | Path],
        folder: str = SEARCH_TEMPLATE_FOLDER,
    ) -> LayoutRegistry:
        """Scan `<path>/<folder>/*.html` on every path once."""
        names = set()
        for path in paths:
            directory = Path(path) / folder
            if directory.is_dir():
                names.update(
                    f.name[: -len(TEMPLATE_EXTENSION)]
                    for f in directory.iterdir()
                    if f.is_file() and f.name.endswith(TEMPLATE_EXTENSION)
                )
        return cls(names)

    def exists(self, name: str) -> bool:
        return name in self._names

    @property
    def names(self) -> list[str]:
        return sorted(self._names)


class TemplateRenderer:
    """Strict Jinja2 environment over the template search path."""

    def __init__(self, search_path: Iterable[str | Path]):
        self.search_path = [Path(p) for p in search_path]
        self.environment = Environment(
            loader=FileSystemLoader([str(p) for p in self.search_path]),
            autoescape=select_autoescape(["html", "xml"]),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.environment.globals.update(_=translate, sprintf=sprintf)
        self.environment.filters["format_date"] = _format_date_filter

    def render(self, name: str, context: Mapping[str, Any]) -> str:
        """Render template `name` (relative to the search path)."""
        return self.environment.get_template(name).render(context)

    def layout_template(self, layout: str) -> str:
        """Template name of a search view layout."""
        return f"{SEARCH_TEMPLATE_FOLDER}/{layout}{TEMPLATE_EXTENSION}"


def build_template_renderer(
    override_paths: Iterable[str | Path] = (),
) -> tuple[TemplateRenderer, LayoutRegistry]:
    """Create the renderer and the layout registry for one search path."""
    search_path = template_search_path(override_paths)
    return TemplateRenderer(search_path), LayoutRegistry.from_search_path(search_path)
