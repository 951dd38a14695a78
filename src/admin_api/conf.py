"""Access to the ``ADMIN_API`` settings dictionary."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from django.conf import settings
from django.utils.module_loading import import_string

_SETTINGS_KEY = "ADMIN_API"

DEFAULTS: dict[str, Any] = {
    "MODELS": {},
    "DEFAULT_HANDLER": "admin_api.handler.model_handler.ModelHandler",
    "REQUEST_TRANSFORMER": "admin_api.request.transformer.RequestTransformer",
    "USE_POLICIES": False,
    "POLICIES_PREFIX": None,
    "INDEX_FIELD_DEFAULTS": {"sortable": True},
    "SEND_EVENTS": True,
}


def _configured() -> Mapping[str, Any]:
    config = getattr(settings, _SETTINGS_KEY, None)
    if isinstance(config, Mapping):
        return config
    return {}


def get_setting(name: str) -> Any:
    """Return ``settings.ADMIN_API[name]``, falling back to the package default."""
    config = _configured()
    if name in config:
        return config[name]
    return DEFAULTS[name]


def get_class_setting(name: str) -> type:
    """Resolve a setting that holds a dotted path (or a class) into a class."""
    value = get_setting(name)
    if isinstance(value, str):
        return import_string(value)
    return value
