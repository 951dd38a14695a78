"""Build client-facing representations of model instances."""

from __future__ import annotations

from typing import Any, Mapping

from django.core.exceptions import ObjectDoesNotExist
from django.db import models

from admin_api.handler.fields import RelationInfo, RelationKind, get_relation
from admin_api.utils.serialization import to_representation


def default_representation(item: models.Model) -> dict[str, Any]:
    """
    Serialize ``item`` by its own visibility rules.

    Concrete fields are keyed by ``attname`` (foreign keys as ``<name>_id``).
    A model may narrow the output with an ``admin_visible`` list, which may
    also name properties, and hide attributes with ``admin_hidden``. The
    primary key is always present.
    """
    model = type(item)
    visible = getattr(model, "admin_visible", None)
    hidden = set(getattr(model, "admin_hidden", ()) or ())
    pk = model._meta.pk
    data: dict[str, Any] = {pk.attname: to_representation(item.pk)}
    covered: set[str] = set()
    for field in model._meta.concrete_fields:
        covered.update((field.name, field.attname))
        if visible is not None and field.name not in visible and field.attname not in visible:
            continue
        if field.name in hidden or field.attname in hidden:
            continue
        data[field.attname] = to_representation(getattr(item, field.attname))
    for name in visible or ():
        if name in covered or name in hidden or get_relation(model, name) is not None:
            continue
        value = getattr(item, name, None)
        if not callable(value):
            data[name] = to_representation(value)
    return data


def load_related(item: models.Model, relation: RelationInfo) -> Any:
    """
    Return the related object(s) of ``relation`` on ``item``.

    To-many relations return a list and use a prefetch cache when one is
    present. Unsaved instances have no related rows, and a foreign key that
    is not set yet yields None.
    """
    if relation.multiple:
        if item.pk is None:
            return []
        return list(getattr(item, relation.name).all())
    if (
        relation.kind is RelationKind.BELONGS_TO
        and getattr(item, relation.field.attname, None) is None
    ):
        return None
    try:
        return getattr(item, relation.name)
    except ObjectDoesNotExist:
        return None


def related_keys(related: Any) -> Any:
    """Primary key(s) of loaded related objects: a list for collections, else a key or None."""
    if isinstance(related, list):
        return [to_representation(obj.pk) for obj in related]
    return to_representation(related.pk) if related is not None else None


def expand_related(related: Any) -> Any:
    if isinstance(related, list):
        return [default_representation(obj) for obj in related]
    return default_representation(related) if related is not None else None


def transform(
    item: models.Model,
    fields: Mapping[str, Mapping[str, Any]] | None,
    full_relations: bool = False,
) -> dict[str, Any]:
    """
    Represent ``item`` through a field configuration.

    Relations render as key(s), or as expanded objects when ``full_relations``
    is set and the field is not marked ``editable``. Other attributes render
    their value, including properties. Without ``fields`` the model's default
    representation is used.
    """
    if fields is None:
        return default_representation(item)
    model = type(item)
    pk = model._meta.pk
    data: dict[str, Any] = {pk.attname: to_representation(item.pk)}
    relations: dict[str, Any] = {}
    for name, config in fields.items():
        relation = get_relation(model, name)
        if relation is None:
            value = getattr(item, name, None)
            if not callable(value):
                data[name] = to_representation(value)
            continue
        related = load_related(item, relation)
        if full_relations and not config.get("editable"):
            data[name] = expand_related(related)
        else:
            relations[name] = related_keys(related)
    return {**data, **relations}
