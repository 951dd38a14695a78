"""Structured logging helpers shared across the admin API package."""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from typing import Any

__all__ = ["AdminApiLoggerAdapter", "get_logger"]

_ROOT_LOGGER_NAME = "admin_api"


def _check_context(context: Any) -> None:
    if context is not None and not isinstance(context, Mapping):
        raise TypeError("context must be a mapping.")


class AdminApiLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that tags records with a component name and a context mapping.

    Every log call accepts an optional ``context`` keyword. Its mapping is merged
    into any ``context`` already present in ``extra`` and exposed on the record
    as ``record.context``. A non-mapping ``context`` raises ``TypeError``
    whether or not the level is enabled.
    """

    def log(self, level: int, msg: Any, *args: Any, **kwargs: Any) -> None:
        _check_context(kwargs.get("context"))
        super().log(level, msg, *args, **kwargs)

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        context = kwargs.pop("context", None)
        _check_context(context)

        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        merged_context: dict[str, Any] = {}
        existing = extra.get("context")
        if isinstance(existing, Mapping):
            merged_context.update(existing)
        if context:
            merged_context.update(context)
        if merged_context:
            extra["context"] = merged_context
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(component: str) -> AdminApiLoggerAdapter:
    """
    Return a logger adapter namespaced below ``admin_api``.

    Parameters:
        component (str): Dotted component name, e.g. ``"handler.query"``.

    Returns:
        AdminApiLoggerAdapter: Adapter writing to ``admin_api.<component>``.
    """
    logger = logging.getLogger(f"{_ROOT_LOGGER_NAME}.{component}")
    return AdminApiLoggerAdapter(logger, {"component": component})
