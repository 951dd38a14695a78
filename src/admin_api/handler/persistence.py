"""Fill model instances from request data and persist them with their relations."""

from __future__ import annotations

from typing import TypeAlias, TYPE_CHECKING, Any, Mapping

from django.db import models, transaction
from django.db.models import NOT_PROVIDED
from simple_history.utils import update_change_reason

from admin_api.errors import InvalidFieldTypeError, InvalidFieldValueError
from admin_api.handler.fields import RelationInfo, RelationKind, get_relation
from admin_api.logging import get_logger

if TYPE_CHECKING:
    from admin_api.request.request_data import RequestData
    from admin_api.request.transformer import RequestTransformer

logger = get_logger("handler.persistence")

DeferredRelation: TypeAlias = tuple[RelationInfo, Any]


def transform_request_data(
    fields: Mapping[str, Mapping[str, Any]],
    data: RequestData,
    transformer: RequestTransformer,
) -> dict[str, Any]:
    """Cast the submitted value of every configured field, dropping absent ones."""
    values: dict[str, Any] = {}
    for name, config in fields.items():
        value = transformer.transform(name, config.get("type") or "text", data, config)
        if value is NOT_PROVIDED:
            continue
        values[name] = value
    return values


def assign_attribute(item: models.Model, name: str, value: Any) -> None:
    try:
        setattr(item, name, value)
    except ValueError as error:
        raise InvalidFieldValueError(name, value) from error
    except TypeError as error:
        raise InvalidFieldTypeError(name, error) from error


def associate(item: models.Model, relation: RelationInfo, value: Any) -> None:
    """Point a forward foreign key (or one-to-one) at ``value``, an instance or a key."""
    if isinstance(value, models.Model):
        assign_attribute(item, relation.name, value)
        return
    field = relation.field
    assign_attribute(item, field.attname, value)  # type: ignore[union-attr]


def sync_has_many(item: models.Model, relation: RelationInfo, ids: Any) -> None:
    """
    Make exactly ``ids`` the children of ``item`` through a reverse foreign key.

    A non-list empty value leaves the relation untouched, while an empty list
    detaches every child. Listed children are re-pointed to ``item``.
    Children that are no longer listed get their foreign key cleared.
    """
    if not isinstance(ids, (list, tuple)) and not ids:
        return
    keys = list(ids) if isinstance(ids, (list, tuple)) else [ids]
    keys = [key.pk if isinstance(key, models.Model) else key for key in keys]

    foreign_key = relation.foreign_key
    parent_value = getattr(item, foreign_key.target_field.attname)
    manager = relation.related_model._default_manager
    to_detach = {
        child.pk: child
        for child in manager.filter(**{foreign_key.attname: parent_value})
    }

    attached = 0
    for child in manager.filter(pk__in=keys):
        if getattr(child, foreign_key.attname) != parent_value:
            setattr(child, foreign_key.attname, parent_value)
            child.save()
            attached += 1
        to_detach.pop(child.pk, None)

    for child in to_detach.values():
        setattr(child, foreign_key.attname, None)
        child.save()

    prefetched = getattr(item, "_prefetched_objects_cache", None)
    if prefetched:
        prefetched.pop(relation.name, None)
    logger.debug(
        "has-many relation synced",
        context={
            "relation": relation.name,
            "attached": attached,
            "detached": len(to_detach),
        },
    )


def sync_relation(item: models.Model, relation: RelationInfo, value: Any) -> None:
    if relation.kind is RelationKind.MANY_TO_MANY:
        getattr(item, relation.name).set(value or [])
    elif relation.kind is RelationKind.HAS_MANY:
        sync_has_many(item, relation, value)
    else:
        logger.debug(
            "relation ignored while saving",
            context={"relation": relation.name, "kind": str(relation.kind)},
        )


def record_change_reason(item: models.Model, reason: str) -> None:
    """Attach ``reason`` to the newest history row when the model is tracked by simple-history."""
    if getattr(item._meta, "simple_history_manager_attribute", None) is None:
        return
    update_change_reason(item, reason)


def fill_and_save(
    item: models.Model,
    fields: Mapping[str, Mapping[str, Any]],
    data: RequestData,
    transformer: RequestTransformer,
    *,
    change_reason: str | None = None,
) -> models.Model:
    """
    Copy request values for ``fields`` onto ``item`` and save it.

    Forward foreign keys are assigned before saving. Many-to-many and reverse
    foreign key relations are synced after the row exists. Saving and
    syncing share one transaction.
    """
    values = transform_request_data(fields, data, transformer)
    deferred: list[DeferredRelation] = []
    for name, value in values.items():
        relation = get_relation(type(item), name)
        if relation is None:
            assign_attribute(item, name, value)
        elif relation.kind is RelationKind.BELONGS_TO:
            associate(item, relation, value)
        else:
            deferred.append((relation, value))

    with transaction.atomic(using=item._state.db or None):
        item.full_clean()
        item.save()
        for relation, value in deferred:
            sync_relation(item, relation, value)

    if change_reason:
        record_change_reason(item, change_reason)
    logger.info(
        "model saved",
        context={
            "model": type(item).__name__,
            "pk": item.pk,
            "fields": sorted(values.keys()),
        },
    )
    return item
