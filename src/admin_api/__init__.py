"""Convenience access to the admin API core components."""

from __future__ import annotations

from typing import Any

from admin_api.public_api_registry import ADMIN_API_EXPORTS
from admin_api.utils.public_api import export_dir, resolve_export

__all__ = list(ADMIN_API_EXPORTS)


def __getattr__(name: str) -> Any:
    return resolve_export(name, exports=ADMIN_API_EXPORTS, namespace=globals())


def __dir__() -> list[str]:
    return export_dir(exports=ADMIN_API_EXPORTS, namespace=globals())
