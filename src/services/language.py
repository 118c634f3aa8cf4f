"""Localized UI strings."""

from src.constants import LANGUAGE_STRINGS


def translate(key: str) -> str:
    """Return the string for `key`, or the key itself when unknown."""
    return LANGUAGE_STRINGS.get(key, key)


def sprintf(key: str, *args: object) -> str:
    """Translate `key` and fill its positional placeholders."""
    return translate(key).format(*args)
