"""Outgoing HTML document metadata."""

from markupsafe import Markup

from src.models.search_models import HeadLink


class HtmlDocument:
    """Title, meta tags and head links of the response being built.

    The view writes to it; the page template reads it back through
    `render_head()`.
    """

    def __init__(self, title: str = "", description: str = ""):
        self.title = title
        self.description = description
        self.metadata: dict[str, str] = {}
        self.head_links: list[HeadLink] = []

    def set_title(self, title: str) -> None:
        self.title = title

    def set_description(self, description: str) -> None:
        self.description = description

    def set_metadata(self, name: str, value: str) -> None:
        self.metadata[name] = value

    def get_metadata(self, name: str) -> str | None:
        return self.metadata.get(name)

    def add_head_link(
        self,
        href: str,
        relation: str,
        rel_type: str = "rel",
        attribs: dict[str, str] | None = None,
    ) -> None:
        """Append a <link> to the head; links keep insertion order."""
        self.head_links.append(
            HeadLink(
                href=href,
                relation=relation,
                rel_type=rel_type,
                attribs=dict(attribs or {}),
            )
        )

    def render_head(self) -> Markup:
        """Render <title>, <meta> and <link> elements."""
        parts = [Markup("<title>{}</title>").format(self.title)]

        if self.description:
            parts.append(
                Markup('<meta name="description" content="{}">').format(
                    self.description
                )
            )
        for name, value in self.metadata.items():
            parts.append(
                Markup('<meta name="{}" content="{}">').format(name, value)
            )
        for link in self.head_links:
            attributes = "".join(
                Markup(' {}="{}"').format(key, value)
                for key, value in link.attribs.items()
            )
            parts.append(
                Markup('<link href="{}" {}="{}"{}>').format(
                    link.href, link.rel_type, link.relation, Markup(attributes)
                )
            )

        return Markup("\n").join(parts)
