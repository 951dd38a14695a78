"""Conversion of model attribute values into JSON-friendly primitives."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

from django.db.models.fields.files import FieldFile
from django.utils.duration import duration_iso_string


def to_representation(value: Any) -> Any:
    """
    Return ``value`` in a form a JSON encoder accepts without help.

    Dates and times become ISO 8601 strings. ``Decimal`` and ``UUID`` become
    strings. File fields become their storage URL, their name when the storage
    cannot build a URL, or ``None`` when empty. Lists, tuples and dicts are
    converted recursively. Other values are returned unchanged.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return duration_iso_string(value)
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, FieldFile):
        if not value:
            return None
        try:
            return value.url
        except ValueError:
            return value.name
    if isinstance(value, dict):
        return {key: to_representation(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_representation(item) for item in value]
    return value

