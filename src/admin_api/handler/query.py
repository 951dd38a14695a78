"""Apply list parameters (scopes, filters, search, sort) to Django querysets."""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping

from django.core.exceptions import FieldDoesNotExist, FieldError, ValidationError
from django.db import models
from django.db.models import Q
from django.db.models.fields.related import ForeignObjectRel

from admin_api.errors import (
    InvalidQueryParameterError,
    InvalidScopeResultError,
    InvalidSortDirectionError,
)
from admin_api.handler.fields import RelationKind, get_relation
from admin_api.logging import get_logger
from admin_api.request.request_data import is_positional_key
from admin_api.utils.naming import snake_case

logger = get_logger("handler.query")

# Longer prefixes first so ">~" is not read as ">".
FILTER_OPERATORS: tuple[tuple[str, str], ...] = (
    ("!", "!="),
    (">~", ">="),
    ("<~", "<="),
    (">", ">"),
    ("<", "<"),
)
_LOOKUPS = {"=": "exact", "!=": "exact", ">=": "gte", "<=": "lte", ">": "gt", "<": "lt"}
_SORT_DIRECTIONS = {"asc": "asc", "desc": "desc", "0": "desc", "1": "asc"}
_QUERY_ERRORS = (FieldError, ValueError, ValidationError)


def iter_param(parameter: str, value: Any) -> Iterable[tuple[Any, Any]]:
    """
    Yield ``(key, value)`` pairs from a list parameter.

    Mappings yield their items and lists yield ``(index, item)``. A string
    that looks like JSON is decoded first. Any other scalar counts as a
    one-element list.
    """
    if value is None or value == "":
        return
    if isinstance(value, str):
        stripped = value.strip()
        if stripped[:1] in ("{", "["):
            try:
                value = json.loads(stripped)
            except ValueError as error:
                raise InvalidQueryParameterError(parameter, error) from error
        else:
            yield 0, value
            return
    if isinstance(value, Mapping):
        yield from value.items()
    elif isinstance(value, (list, tuple)):
        yield from enumerate(value)
    else:
        yield 0, value


def parse_filter_key(key: str) -> tuple[str, str]:
    """Split ``">~created_at"`` into ``(">=", "created_at")``."""
    for prefix, operator in FILTER_OPERATORS:
        if key.startswith(prefix):
            return operator, key[len(prefix) :]
    return "=", key


def resolve_field_path(
    model: type[models.Model], path: str
) -> models.Field | ForeignObjectRel | None:
    """Follow a ``__`` separated attribute path from ``model`` to its final field."""
    field = None
    for part in path.split("__"):
        if model is None:
            return None
        try:
            field = model._meta.get_field(part)
        except FieldDoesNotExist:
            return None
        model = field.related_model if field.is_relation else None
    return field


def _coerce_boolean(value: Any) -> Any:
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    return value


def build_filter(
    field: str, value: Any, model: type[models.Model] | None = None
) -> tuple[Q, bool]:
    """
    Translate one filter entry into a ``Q`` object.

    ``"true"``/``"false"`` strings become booleans only when ``model`` is
    given and the path ends on a ``BooleanField``.

    Returns:
        tuple[Q, bool]: The condition and whether it must be excluded
        rather than filtered.
    """
    operator, field = parse_filter_key(field)
    negate = operator == "!="
    path = field.replace(".", "__")
    boolean = model is not None and isinstance(
        resolve_field_path(model, path), models.BooleanField
    )
    if isinstance(value, Mapping):
        value = list(value.values())
    if isinstance(value, (list, tuple)):
        if boolean:
            value = [_coerce_boolean(item) for item in value]
        return Q(**{f"{path}__in": list(value)}), negate
    if value is None:
        return Q(**{path: not negate}), False
    lookup = _LOOKUPS[operator]
    key = path if lookup == "exact" else f"{path}__{lookup}"
    if boolean:
        value = _coerce_boolean(value)
    return Q(**{key: value}), negate


def apply_filters(
    queryset: models.QuerySet,
    filters: Any,
    allowed_fields: Iterable[str] | None = None,
) -> models.QuerySet:
    """
    Apply the ``filters`` parameter.

    When ``allowed_fields`` is given, only those attribute paths (and the
    primary key) may be filtered on.
    """
    allowed = None
    if allowed_fields is not None:
        pk = queryset.model._meta.pk
        allowed = {
            name.replace(".", "__") for name in (*allowed_fields, "pk", pk.name, pk.attname)
        }
    for key, value in iter_param("filters", filters):
        if is_positional_key(key):
            key, value = value, None
        if not isinstance(key, str) or not key:
            raise InvalidQueryParameterError("filters", f"invalid field {key!r}")
        _, field = parse_filter_key(key)
        if allowed is not None and field.replace(".", "__") not in allowed:
            raise InvalidQueryParameterError("filters", f"'{field}' is not filterable")
        try:
            condition, exclude = build_filter(key, value, queryset.model)
            queryset = queryset.exclude(condition) if exclude else queryset.filter(condition)
        except _QUERY_ERRORS as error:
            raise InvalidQueryParameterError("filters", error) from error
        logger.debug("filter applied", context={"field": field, "exclude": exclude})
    return queryset


def apply_scopes(queryset: models.QuerySet, scopes: Any) -> models.QuerySet:
    """
    Apply the ``scopes`` parameter through ``scope_<name>`` queryset methods.

    Parameters of a scope are passed positionally; strings are split on
    commas. Scopes without a matching method are skipped.
    """
    for scope, params in iter_param("scopes", scopes):
        if is_positional_key(scope):
            scope, params = params, []
        elif params is None or params == "":
            params = []
        elif isinstance(params, Mapping):
            params = list(params.values())
        elif not isinstance(params, (list, tuple)):
            params = str(params).split(",")

        method_name = f"scope_{snake_case(str(scope))}"
        method = getattr(queryset, method_name, None)
        if not callable(method):
            logger.debug("unknown scope skipped", context={"scope": scope})
            continue
        try:
            result = method(*params)
        except (TypeError, *_QUERY_ERRORS) as error:
            raise InvalidQueryParameterError("scopes", error) from error
        if not isinstance(result, models.QuerySet):
            raise InvalidScopeResultError(method_name)
        queryset = result
    return queryset


def apply_search(
    queryset: models.QuerySet,
    term: Any,
    searchable_fields: Iterable[str],
) -> models.QuerySet:
    """OR together case-insensitive ``contains`` matches of ``term`` over ``searchable_fields``."""
    if term is None or isinstance(term, (list, dict)):
        return queryset
    term = str(term).strip().lower()
    fields = list(searchable_fields)
    if not term or not fields:
        return queryset
    condition = Q()
    for field in fields:
        condition |= Q(**{f"{field.replace('.', '__')}__icontains": term})
    try:
        return queryset.filter(condition)
    except _QUERY_ERRORS as error:
        raise InvalidQueryParameterError("search", error) from error


def apply_sort(queryset: models.QuerySet, sort: Any) -> models.QuerySet:
    """
    Apply the ``sort`` parameter after any ordering already on ``queryset``.

    Orderings keep the order they were given in.
    """
    orderings: list[str] = []
    for key, value in iter_param("sort", sort):
        if is_positional_key(key):
            field, direction = value, "asc"
        else:
            field, direction = key, _SORT_DIRECTIONS.get(str(value).strip().lower())
        if direction is None:
            raise InvalidSortDirectionError(str(field), value)
        path = str(field).replace(".", "__")
        orderings.append(f"-{path}" if direction == "desc" else path)
    if not orderings:
        return queryset
    try:
        return queryset.order_by(*queryset.query.order_by, *orderings)
    except _QUERY_ERRORS as error:
        raise InvalidQueryParameterError("sort", error) from error


def load_relations(
    queryset: models.QuerySet, field_names: Iterable[str]
) -> models.QuerySet:
    """Preload relations among ``field_names``: joins for single relations, prefetches otherwise."""
    model = queryset.model
    joined: list[str] = []
    prefetched: list[str] = []
    for name in field_names:
        relation = get_relation(model, name)
        if relation is None:
            continue
        if relation.kind in (RelationKind.BELONGS_TO, RelationKind.HAS_ONE):
            joined.append(name)
        else:
            prefetched.append(name)
    if joined:
        queryset = queryset.select_related(*joined)
    if prefetched:
        queryset = queryset.prefetch_related(*prefetched)
    return queryset
