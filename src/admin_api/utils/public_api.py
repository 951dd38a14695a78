"""Lazy attribute loading for package namespaces such as ``admin_api``."""

from __future__ import annotations

from importlib import import_module
from typing import TypeAlias, Any, Mapping, MutableMapping

ExportTarget: TypeAlias = str | tuple[str, str]


class MissingExportError(AttributeError):
    """Raised when a package is asked for a name it does not export."""

    def __init__(self, package: str, name: str) -> None:
        super().__init__(f"module {package!r} has no attribute {name!r}")


def export_location(name: str, target: ExportTarget) -> tuple[str, str]:
    """
    Return ``(module_path, attribute)`` for an export entry.

    A bare module path exports the attribute that carries the public name.
    """
    if isinstance(target, tuple):
        return target
    return target, name


def resolve_export(
    name: str,
    *,
    exports: Mapping[str, ExportTarget],
    namespace: MutableMapping[str, Any],
) -> Any:
    """
    Import the attribute published as ``name`` and cache it in ``namespace``.

    Later lookups hit the cached value and never reach ``__getattr__`` again.

    Raises:
        MissingExportError: If ``name`` is not one of ``exports``.
    """
    try:
        target = exports[name]
    except KeyError:
        raise MissingExportError(namespace["__name__"], name) from None
    module_path, attribute = export_location(name, target)
    value = getattr(import_module(module_path), attribute)
    namespace[name] = value
    return value


def export_dir(
    *, exports: Mapping[str, ExportTarget], namespace: Mapping[str, Any]
) -> list[str]:
    """Names for ``dir()``: what is already loaded plus what can be loaded lazily."""
    return sorted(set(namespace) | set(exports))
