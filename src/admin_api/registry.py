"""Map entity names to models and build the handler for a request."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TypeAlias, Any

from django.apps import apps
from django.core.exceptions import ValidationError
from django.db import models
from django.http import Http404, HttpRequest
from django.shortcuts import get_object_or_404
from django.utils.module_loading import import_string

from admin_api.conf import get_class_setting, get_setting
from admin_api.contracts import HasAdminHandler
from admin_api.errors import InvalidHandlerConfigurationError, UnknownEntityError
from admin_api.handler.model_handler import ModelHandler
from admin_api.logging import get_logger

logger = get_logger("registry")

ModelReference: TypeAlias = type[models.Model] | str
HandlerReference: TypeAlias = type[ModelHandler] | str


def _resolve_model(name: str, model: ModelReference) -> type[models.Model]:
    if isinstance(model, str):
        try:
            return apps.get_model(model)
        except (LookupError, ValueError) as error:
            raise InvalidHandlerConfigurationError(name, error) from error
    return model


def _resolve_handler_class(
    name: str, handler_class: HandlerReference | None
) -> type[ModelHandler] | None:
    if isinstance(handler_class, str):
        try:
            handler_class = import_string(handler_class)
        except ImportError as error:
            raise InvalidHandlerConfigurationError(name, error) from error
    if handler_class is not None and not (
        isinstance(handler_class, type) and issubclass(handler_class, ModelHandler)
    ):
        raise InvalidHandlerConfigurationError(
            name, f"{handler_class!r} is not a ModelHandler subclass"
        )
    return handler_class


class AdminRegistry:
    """Entity names exposed by the admin API with their models and handler classes."""

    def __init__(self) -> None:
        self._models: dict[str, type[models.Model]] = {}
        self._handlers: dict[str, type[ModelHandler]] = {}

    def register(
        self,
        name: str,
        model: ModelReference,
        handler_class: HandlerReference | None = None,
    ) -> None:
        """
        Expose ``model`` under the entity ``name``.

        ``model`` may be a model class or an ``"app_label.ModelName"`` string,
        and ``handler_class`` a class or a dotted path.
        """
        model_class = _resolve_model(name, model)
        resolved_handler = _resolve_handler_class(name, handler_class)
        self._models[name] = model_class
        if resolved_handler is not None:
            self._handlers[name] = resolved_handler
        else:
            self._handlers.pop(name, None)
        logger.debug(
            "entity registered",
            context={"entity": name, "model": model_class._meta.label},
        )

    def unregister(self, name: str) -> None:
        self._models.pop(name, None)
        self._handlers.pop(name, None)

    def names(self) -> list[str]:
        return list(self._models)

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def get_model(self, name: str) -> type[models.Model]:
        try:
            return self._models[name]
        except KeyError:
            raise UnknownEntityError(name) from None

    def get_handler_class(self, name: str) -> type[ModelHandler]:
        """The registered handler class, else the configured default handler."""
        self.get_model(name)
        handler_class = self._handlers.get(name)
        if handler_class is not None:
            return handler_class
        return get_class_setting("DEFAULT_HANDLER") or ModelHandler

    def resolve_handler(
        self, name: str, request: HttpRequest, key: Any = None
    ) -> ModelHandler:
        """
        Build the handler for entity ``name`` around the row with primary key ``key``.

        Without a key the handler wraps a new unsaved instance, as used for
        index and create requests. Models implementing ``get_admin_handler``
        build their own handler.

        Raises:
            UnknownEntityError: When ``name`` is not registered.
            Http404: When no row matches ``key``.
        """
        model = self.get_model(name)
        if key is None:
            item = model()
        else:
            try:
                item = get_object_or_404(model, pk=key)
            except (ValueError, TypeError, ValidationError):
                raise Http404(f"No {model._meta.object_name} matches the given query.") from None
        if isinstance(model, HasAdminHandler):
            return model.get_admin_handler(name, request, item)
        return self.get_handler_class(name)(item, name, request)

    def load_from_settings(self, config: Mapping[str, Any] | None = None) -> None:
        """
        Register the entities of ``settings.ADMIN_API["MODELS"]``.

        Entries are ``{"posts": "blog.Post"}`` or
        ``{"posts": {"model": "blog.Post", "handler": "blog.admin.PostHandler"}}``.
        """
        if config is None:
            config = get_setting("MODELS")
        for name, entry in (config or {}).items():
            if isinstance(entry, Mapping):
                if "model" not in entry:
                    raise InvalidHandlerConfigurationError(name, "missing 'model'")
                self.register(name, entry["model"], entry.get("handler"))
            else:
                self.register(name, entry)


registry = AdminRegistry()
