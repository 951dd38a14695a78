"""Per-entity handler driving the admin query/transform/persist pipeline."""

from __future__ import annotations

import copy
from functools import cached_property
from typing import TypeAlias, Any, Callable, Iterable, Mapping

from django.db import models
from django.dispatch import Signal
from django.http import HttpRequest

from admin_api.conf import get_setting
from admin_api.contracts import ConfiguresAdminHandler
from admin_api.errors import (
    AccessDeniedError,
    InvalidQueryParameterError,
    UnknownActionError,
)
from admin_api.handler import persistence, query
from admin_api.handler.fields import (
    FieldsInput,
    PreparedFields,
    default_item_field_names,
    prepare_fields,
)
from admin_api.handler.transform import transform
from admin_api.handler.validation import (
    ValidationMessages,
    ValidationRules,
    collect_titles,
    validate_request,
)
from admin_api.logging import get_logger
from admin_api.request.request_data import RequestData
from admin_api.request.transformer import RequestTransformer, get_request_transformer
from admin_api.signals import (
    SingleModelEvent,
    model_action,
    model_created,
    model_destroyed,
    model_updated,
)
from admin_api.utils.naming import snake_case, studly_case

logger = get_logger("handler")

QueryModifier: TypeAlias = Callable[[models.QuerySet, RequestData], models.QuerySet | None]
SearchCallback: TypeAlias = Callable[
    [models.QuerySet, RequestData, list[str] | None], models.QuerySet | None
]
ValidationCallback: TypeAlias = Callable[
    [RequestData, ValidationRules, ValidationMessages, dict[str, str]], None
]

FIELD_PARAMETER = "__field"

# Django's default model permissions per built-in action.
POLICY_CODENAMES: dict[str, str] = {
    "index": "view",
    "create": "add",
    "simple_create": "add",
    "update": "change",
    "fast_update": "change",
    "destroy": "delete",
}


class ModelHandler:
    """
    Configuration and behaviour for administering one model over HTTP.

    A handler wraps a model instance (existing, or unsaved for index and create
    requests), the entity name used in URLs, and the current request. Setters
    return the handler so configuration can be chained, typically from a
    model's ``configure_admin_handler`` hook or a handler subclass.

    Custom actions are methods named ``action_<name>`` on subclasses and are
    invoked through ``perform_action``.
    """

    def __init__(self, item: models.Model, name: str, request: HttpRequest) -> None:
        self.name = name
        self.request = request
        self._title: str | None = None
        self._item_title: str | None = None
        self._create_title: str | None = None
        self._abilities: list[str] | None = None
        self._policies: bool = bool(get_setting("USE_POLICIES"))
        self._policies_prefix: str | None = get_setting("POLICIES_PREFIX")
        self._searchable_fields: list[str] | None = None
        self._search_callback: SearchCallback | None = None
        self._pre_query_modifiers: list[QueryModifier] = []
        self._post_query_modifiers: list[QueryModifier] = []
        self._filter_fields: PreparedFields | None = None
        self._index_fields: PreparedFields | None = None
        self._item_fields: PreparedFields | None = None
        self._validation_rules: dict[str, Any] = {}
        self._validation_messages: dict[str, str] = {}
        self._validation_callback: ValidationCallback | None = None
        self.set_item(item)

    # region configuration
    @property
    def model(self) -> type[models.Model]:
        return type(self.item)

    @cached_property
    def data(self) -> RequestData:
        return RequestData(self.request)

    @cached_property
    def transformer(self) -> RequestTransformer:
        return get_request_transformer()

    def get_name(self) -> str:
        """Entity name, i.e. the URL part used to reach this model."""
        return self.name

    def set_item(self, item: models.Model) -> None:
        """Attach ``item`` and let it configure the handler when it knows how."""
        self.item = item
        if isinstance(item, ConfiguresAdminHandler):
            item.configure_admin_handler(self)

    def set_title(self, title: str) -> ModelHandler:
        self._title = title
        return self

    def set_item_title(self, title: str) -> ModelHandler:
        self._item_title = title
        return self

    def set_create_title(self, title: str) -> ModelHandler:
        self._create_title = title
        return self

    def allow_actions(self, abilities: Iterable[str]) -> ModelHandler:
        """Whitelist actions (``index``, ``create``, ``update``, ``destroy``, custom ones...)."""
        self._abilities = list(abilities)
        return self

    def use_policies(self, use: bool = True, prefix: str | None = None) -> ModelHandler:
        """Check ``request.user.has_perm`` before every action; see ``get_policy_permission``."""
        self._policies = use
        self._policies_prefix = prefix
        return self

    def set_searchable_fields(self, fields: Iterable[str]) -> ModelHandler:
        self._searchable_fields = list(fields)
        return self

    def set_search_callback(self, callback: SearchCallback) -> ModelHandler:
        self._search_callback = callback
        return self

    def add_pre_query_modifier(self, modifier: QueryModifier) -> ModelHandler:
        """Run ``modifier(queryset, data)`` right after the base queryset is created."""
        self._pre_query_modifiers.append(modifier)
        return self

    def add_post_query_modifier(self, modifier: QueryModifier) -> ModelHandler:
        """Run ``modifier(queryset, data)`` after every other query step."""
        self._post_query_modifiers.append(modifier)
        return self

    def set_filter_fields(self, fields: FieldsInput) -> ModelHandler:
        self._filter_fields = prepare_fields(self.model, fields)
        return self

    def set_index_fields(
        self, fields: FieldsInput, defaults: Mapping[str, Any] | None = None
    ) -> ModelHandler:
        self._index_fields = prepare_fields(
            self.model,
            fields,
            defaults if defaults is not None else get_setting("INDEX_FIELD_DEFAULTS"),
        )
        return self

    def set_item_fields(self, fields: FieldsInput) -> ModelHandler:
        self._item_fields = prepare_fields(self.model, fields)
        return self

    def set_validation_rules(self, rules: Mapping[str, Any]) -> ModelHandler:
        """Set ``{field: forms.Field}`` rules; use ``files.<field>`` keys for uploads."""
        self._validation_rules = dict(rules)
        return self

    def set_validation_messages(self, messages: Mapping[str, str]) -> ModelHandler:
        self._validation_messages = dict(messages)
        return self

    def set_validation_callback(self, callback: ValidationCallback) -> ModelHandler:
        self._validation_callback = callback
        return self

    def get_title(self) -> str | None:
        return self._title

    def get_item_title(self) -> str | None:
        return self._item_title

    def get_create_title(self) -> str | None:
        return self._create_title

    def get_index_fields(self) -> PreparedFields | None:
        if self._index_fields:
            return self._index_fields
        visible = getattr(self.model, "admin_visible", None)
        if visible:
            return prepare_fields(
                self.model, visible, get_setting("INDEX_FIELD_DEFAULTS")
            )
        return None

    def get_item_fields(self) -> PreparedFields | None:
        if self._item_fields:
            return self._item_fields
        fillable = getattr(self.model, "admin_fillable", None) or default_item_field_names(
            self.model
        )
        if fillable:
            return prepare_fields(self.model, fillable)
        return None

    def get_validation_rules(self) -> dict[str, Any]:
        return self._validation_rules

    def get_filter_fields(self) -> PreparedFields | None:
        return self._filter_fields

    def is_searchable(self) -> bool:
        return bool(self._searchable_fields) or self._search_callback is not None

    def get_meta(self) -> dict[str, Any]:
        """Describe the entity for clients building list and edit screens."""
        return {
            "name": self.name,
            "title": self.get_title(),
            "item_title": self.get_item_title(),
            "create_title": self.get_create_title(),
            "primary_key": self.model._meta.pk.attname,
            "searchable": self.is_searchable(),
            "index_fields": self.get_index_fields(),
            "item_fields": self.get_item_fields(),
            "filter_fields": self.get_filter_fields(),
            "abilities": self._abilities,
        }

    # endregion

    # region authorization
    def get_policy_permission(self, action: str) -> str:
        """
        Permission name checked for ``action`` when policies are enabled.

        With a prefix this is ``prefix + StudlyAction``. Otherwise it is the
        Django model permission, e.g. ``blog.change_post`` for ``update``.
        Custom actions map to ``<app_label>.<action>_<model_name>``.
        """
        if self._policies_prefix:
            return f"{self._policies_prefix}{studly_case(action)}"
        opts = self.model._meta
        action_name = snake_case(action)
        codename = POLICY_CODENAMES.get(action_name, action_name)
        return f"{opts.app_label}.{codename}_{opts.model_name}"

    def authorize(self, action: str) -> None:
        """
        Ensure the current user may perform ``action`` on this entity.

        Raises:
            AccessDeniedError: When the policy check fails or the action is not whitelisted.
        """
        if self._policies:
            permission = self.get_policy_permission(action)
            user = getattr(self.request, "user", None)
            target = self.item if self.item.pk is not None else None
            allowed = user is not None and (
                user.has_perm(permission)
                or (target is not None and user.has_perm(permission, target))
            )
            if not allowed:
                logger.info(
                    "action not authorized",
                    context={"entity": self.name, "action": action, "permission": permission},
                )
                raise AccessDeniedError(action, self.name, "authorized")
        if self._abilities is not None and action not in self._abilities:
            logger.info(
                "action not allowed",
                context={"entity": self.name, "action": action},
            )
            raise AccessDeniedError(action, self.name, "allowed")

    # endregion

    # region query
    def _apply_query_modifiers(
        self, queryset: models.QuerySet, modifiers: list[QueryModifier]
    ) -> models.QuerySet:
        for modifier in modifiers:
            result = modifier(queryset, self.data)
            if result is not None:
                queryset = result
        return queryset

    def apply_pre_query_modifiers(self, queryset: models.QuerySet) -> models.QuerySet:
        return self._apply_query_modifiers(queryset, self._pre_query_modifiers)

    def apply_post_query_modifiers(self, queryset: models.QuerySet) -> models.QuerySet:
        return self._apply_query_modifiers(queryset, self._post_query_modifiers)

    def apply_scopes(self, queryset: models.QuerySet) -> models.QuerySet:
        return query.apply_scopes(queryset, self.data.get("scopes"))

    def apply_filters(self, queryset: models.QuerySet) -> models.QuerySet:
        allowed = self._filter_fields.keys() if self._filter_fields is not None else None
        return query.apply_filters(queryset, self.data.get("filters"), allowed)

    def apply_search(self, queryset: models.QuerySet) -> models.QuerySet:
        if not self.is_searchable():
            return queryset
        if self._search_callback is not None:
            result = self._search_callback(queryset, self.data, self._searchable_fields)
            return queryset if result is None else result
        return query.apply_search(
            queryset, self.data.get("search"), self._searchable_fields or []
        )

    def apply_sort(self, queryset: models.QuerySet) -> models.QuerySet:
        return query.apply_sort(queryset, self.data.get("sort"))

    def load_relations(
        self, queryset: models.QuerySet, fields: Mapping[str, Any] | None
    ) -> models.QuerySet:
        return query.load_relations(queryset, (fields or {}).keys())

    def build_query(self) -> models.QuerySet:
        """
        Build the list queryset from the request parameters.

        The steps run in a fixed order: pre-query modifiers, scopes, filters,
        search, sort, relation preloading for index fields, then post-query
        modifiers.
        """
        queryset = self.model._default_manager.all()
        queryset = self.apply_pre_query_modifiers(queryset)
        queryset = self.apply_scopes(queryset)
        queryset = self.apply_filters(queryset)
        queryset = self.apply_search(queryset)
        queryset = self.apply_sort(queryset)
        queryset = self.load_relations(queryset, self.get_index_fields())
        queryset = self.apply_post_query_modifiers(queryset)
        logger.debug("list query built", context={"entity": self.name})
        return queryset

    # endregion

    # region representation
    def transform(
        self,
        item: models.Model,
        fields: Mapping[str, Mapping[str, Any]] | None,
        full_relations: bool = False,
    ) -> dict[str, Any]:
        return transform(item, fields, full_relations)

    def transform_index_item(self, item: models.Model | None = None) -> dict[str, Any]:
        if item is None:
            item = copy.copy(self.item)
        return self.transform(item, self._index_fields, full_relations=True)

    def transform_item(self) -> dict[str, Any]:
        return self.transform(self.item, self._item_fields)

    # endregion

    # region validation and persistence
    def validate(self, validate_only_present: bool = False) -> None:
        """
        Validate the request with the configured rules or the validation callback.

        Raises:
            django.core.exceptions.ValidationError: When the submitted data is invalid.
        """
        rules = self._validation_rules
        messages = self._validation_messages
        titles = collect_titles(self.get_index_fields(), self.get_item_fields())
        if self._validation_callback is not None:
            self._validation_callback(self.data, rules, messages, titles)
            return
        if rules:
            validate_request(
                self.data,
                rules,
                messages,
                titles,
                validate_only_present=validate_only_present,
            )

    def fill_and_save(
        self,
        item: models.Model,
        fields: Mapping[str, Mapping[str, Any]] | None,
        action: str,
    ) -> models.Model:
        return persistence.fill_and_save(
            item,
            fields or {},
            self.data,
            self.transformer,
            change_reason=f"admin {action}",
        )

    def create(self) -> models.Model:
        """Validate the request and save a new instance built from the item fields."""
        self.validate()
        item = self.fill_and_save(self.model(), self.get_item_fields(), "create")
        self.item = item
        self._send_event(model_created, "create", item.pk)
        return item

    def update(self) -> None:
        self.validate()
        self.fill_and_save(self.item, self.get_item_fields(), "update")
        self._send_event(model_updated, "update", self.item.pk)

    def fast_update(self) -> None:
        """Update the single index field named by the ``__field`` parameter."""
        self.validate(validate_only_present=True)
        fields = self.get_index_fields() or {}
        field = self.data.get(FIELD_PARAMETER)
        if not isinstance(field, str) or field not in fields:
            raise InvalidQueryParameterError(
                FIELD_PARAMETER, f"{field!r} is not an index field"
            )
        self.fill_and_save(self.item, {field: fields[field]}, "fast_update")
        self._send_event(model_updated, "fast_update", self.item.pk)

    def destroy(self) -> None:
        key = self.item.pk
        self.item.delete()
        logger.info("model deleted", context={"entity": self.name, "pk": key})
        self._send_event(model_destroyed, "destroy", key)

    def perform_action(self, action: str, *args: Any, **kwargs: Any) -> Any:
        """
        Authorize and run the custom action ``action_<name>`` of this handler.

        Raises:
            UnknownActionError: When the handler does not implement the action.
        """
        method = getattr(self, f"action_{snake_case(action)}", None)
        if not callable(method):
            raise UnknownActionError(action, self.name)
        self.authorize(action)
        result = method(*args, **kwargs)
        self._send_event(model_action, action, self.item.pk)
        return result

    # endregion

    def _send_event(self, signal: Signal, action: str, key: Any) -> None:
        if not get_setting("SEND_EVENTS"):
            return
        user = getattr(self.request, "user", None)
        event = SingleModelEvent(
            entity=self.name,
            model=self.model,
            user_key=getattr(user, "pk", None),
            key=key,
            action=action,
        )
        signal.send(sender=self.model, event=event)
