"""Protocols a model can implement to take part in handler configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from django.db import models
    from django.http import HttpRequest

    from admin_api.handler.model_handler import ModelHandler


@runtime_checkable
class HasAdminHandler(Protocol):
    """A model class that builds its own handler instead of the registered one."""

    @classmethod
    def get_admin_handler(
        cls, name: str, request: HttpRequest, item: models.Model
    ) -> ModelHandler:  # pragma: no cover - protocol definition
        ...


@runtime_checkable
class ConfiguresAdminHandler(Protocol):
    """A model that adjusts the handler it is attached to."""

    def configure_admin_handler(
        self, handler: ModelHandler
    ) -> None:  # pragma: no cover - protocol definition
        ...
