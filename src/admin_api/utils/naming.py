"""Identifier case conversions used for scopes, actions and policies."""

from __future__ import annotations

import re

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_SEPARATORS = re.compile(r"[\s\-_.]+")


def snake_case(value: str) -> str:
    """
    Convert ``"publishedRecently"``, ``"published-recently"`` or
    ``"Published Recently"`` into ``"published_recently"``.
    """
    value = _WORD_BOUNDARY.sub("_", value.strip())
    return _SEPARATORS.sub("_", value).strip("_").lower()


def studly_case(value: str) -> str:
    """Convert ``"fast_update"`` or ``"fast-update"`` into ``"FastUpdate"``."""
    return "".join(part.capitalize() for part in snake_case(value).split("_") if part)


def entity_name_for_table(table_name: str) -> str:
    """Derive the URL entity name for a database table (``blog_post`` -> ``blog-post``)."""
    return table_name.replace("_", "-")
