"""Per-request view parameters."""

from typing import Any

from src.config import ComponentParams
from src.models.search_models import MenuItem


class SiteParameters:
    """Key/value parameters consulted by the search view.

    Component defaults are overlaid with the active menu entry's params.
    The view only reads them, except `set_default()` which fills a key
    that is not yet set (e.g. `page_heading`).
    """

    def __init__(self, values: dict[str, Any] | None = None):
        self._values: dict[str, Any] = dict(values or {})

    @classmethod
    def for_menu_item(
        cls, component: ComponentParams, menu_item: MenuItem | None
    ) -> "SiteParameters":
        values = component.as_params()
        if menu_item is not None:
            values.update(menu_item.params)
        return cls(values)

    def get(self, key: str, default: Any = None) -> Any:
        value = self._values.get(key)
        if value is None or value == "":
            return default
        return value

    def set_default(self, key: str, value: Any) -> Any:
        """Set `key` to `value` unless it already has a value."""
        if self.get(key) is None:
            self._values[key] = value
        return self._values[key]
