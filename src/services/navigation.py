"""Menu and breadcrumb (pathway) helpers."""

from src.models.search_models import MenuItem


class Menu:
    """The configured navigation entries that point at the search view."""

    def __init__(
        self,
        items: list[MenuItem] | None = None,
        active_id: int | None = None,
        default_id: int | None = None,
    ):
        self._items = {item.id: item for item in items or []}
        self._active_id = active_id if active_id in self._items else default_id

    def get_active(self) -> MenuItem | None:
        """Return the entry driving this request, if any."""
        if self._active_id is None:
            return None
        return self._items.get(self._active_id)


class Pathway:
    """Ordered breadcrumb trail for the current page."""

    def __init__(self):
        self._items: list[tuple[str, str | None]] = []

    def add_item(self, name: str, link: str | None = None) -> None:
        self._items.append((name, link))

    def get_items(self) -> list[tuple[str, str | None]]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)
