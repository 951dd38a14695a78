"""Field configuration preparation and relation introspection for Django models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TypeAlias, Any, Iterable, Mapping, Sequence, TypedDict, cast

from django.contrib.contenttypes.fields import GenericForeignKey
from django.db import models
from django.db.models.fields.related import ForeignObjectRel

from admin_api.utils.naming import entity_name_for_table


class FieldConfig(TypedDict, total=False):
    """Declarative description of one exposed model attribute."""

    type: str
    multiple: bool
    entity: str
    editable: bool
    sortable: bool
    title: str
    label: str
    placeholder: str


FieldsInput: TypeAlias = (
    Mapping[str, FieldConfig | Mapping[str, Any] | None]
    | Sequence[str | tuple[str, FieldConfig | Mapping[str, Any]]]
)
PreparedFields: TypeAlias = dict[str, FieldConfig]


class RelationKind(StrEnum):
    """How a relation is stored, which decides how it is read and persisted."""

    BELONGS_TO = "belongs_to"
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"
    MANY_TO_MANY = "many_to_many"


@dataclass(frozen=True)
class RelationInfo:
    """A relation reachable from a model under an attribute (accessor) name."""

    name: str
    kind: RelationKind
    related_model: type[models.Model]
    field: models.Field | ForeignObjectRel

    @property
    def multiple(self) -> bool:
        return self.kind in (RelationKind.HAS_MANY, RelationKind.MANY_TO_MANY)

    @property
    def foreign_key(self) -> models.ForeignKey:
        """The foreign key on the related model for reverse relations."""
        return cast(models.ForeignKey, cast(ForeignObjectRel, self.field).field)


FIELD_TYPES: tuple[tuple[type[models.Field], str], ...] = (
    (models.BooleanField, "bool"),
    (models.DateTimeField, "datetime"),
    (models.DateField, "date"),
    (models.TimeField, "time"),
    (models.DecimalField, "decimal"),
    (models.FloatField, "float"),
    (models.IntegerField, "int"),
    (models.JSONField, "json"),
    (models.ImageField, "image"),
    (models.FileField, "file"),
)


def _relation_kind(field: Any) -> RelationKind | None:
    if getattr(field, "many_to_many", False):
        return RelationKind.MANY_TO_MANY
    if isinstance(field, ForeignObjectRel):
        if field.one_to_many:
            return RelationKind.HAS_MANY
        if field.one_to_one:
            return RelationKind.HAS_ONE
        return None
    if getattr(field, "many_to_one", False) or getattr(field, "one_to_one", False):
        return RelationKind.BELONGS_TO
    return None


def _iter_relations(model: type[models.Model]) -> Iterable[tuple[str, Any]]:
    for field in model._meta.get_fields():
        if not field.is_relation or isinstance(field, GenericForeignKey):
            continue
        if isinstance(field, ForeignObjectRel):
            yield field.get_accessor_name(), field
        else:
            yield field.name, field


def get_relation(model: type[models.Model], name: str) -> RelationInfo | None:
    """
    Resolve ``name`` to a relation of ``model``.

    Forward relations are matched by field name and reverse relations by their
    accessor name (``related_name`` or ``<model>_set``).

    Returns:
        RelationInfo | None: The relation, or None when ``name`` is not a relation.
    """
    for accessor, field in _iter_relations(model):
        if accessor != name:
            continue
        kind = _relation_kind(field)
        related_model = field.related_model
        if kind is None or related_model is None:
            return None
        if related_model == "self":
            related_model = model
        return RelationInfo(
            name=accessor,
            kind=kind,
            related_model=cast(type[models.Model], related_model),
            field=field,
        )
    return None


def get_concrete_field(model: type[models.Model], name: str) -> models.Field | None:
    """Return the concrete (column-backed) field named ``name`` or with attname ``name``."""
    for field in model._meta.concrete_fields:
        if field.name == name or field.attname == name:
            return field
    return None


def infer_field_type(model: type[models.Model], name: str) -> FieldConfig:
    """
    Derive ``type`` (and relation details) for an attribute from the model.

    Returns an empty config for attributes that are neither relations nor
    typed concrete fields, e.g. plain text columns or properties.
    """
    relation = get_relation(model, name)
    if relation is not None:
        inferred: FieldConfig = {"type": "relation"}
        if relation.multiple:
            inferred["multiple"] = True
        inferred["entity"] = entity_name_for_table(
            relation.related_model._meta.db_table
        )
        return inferred
    field = get_concrete_field(model, name)
    if field is None:
        return {}
    for field_class, type_name in FIELD_TYPES:
        if isinstance(field, field_class):
            return {"type": type_name}
    return {}


def _iter_input(
    fields: FieldsInput,
) -> Iterable[tuple[str, Mapping[str, Any] | None]]:
    if isinstance(fields, Mapping):
        yield from fields.items()
        return
    for entry in fields:
        if isinstance(entry, tuple):
            yield entry[0], entry[1]
        else:
            yield entry, None


def prepare_fields(
    model: type[models.Model],
    fields: FieldsInput,
    defaults: Mapping[str, Any] | None = None,
) -> PreparedFields:
    """
    Normalize field declarations into ``{name: FieldConfig}``.

    Plain names receive a copy of ``defaults``. A missing ``type`` is inferred
    from the model; relation inference also fills ``multiple`` and a default
    ``entity``. Explicit keys are never overwritten.
    """
    prepared: PreparedFields = {}
    for name, conf in _iter_input(fields):
        config = cast(FieldConfig, dict(conf if conf is not None else defaults or {}))
        if "type" not in config:
            inferred = infer_field_type(model, name)
            for key, value in inferred.items():
                config.setdefault(key, value)  # type: ignore[misc]
        prepared[name] = config
    return prepared


def default_item_field_names(model: type[models.Model]) -> list[str]:
    """Names of the attributes a model form would edit: editable non-auto fields and forward many-to-many."""
    names: list[str] = []
    for field in [*model._meta.concrete_fields, *model._meta.many_to_many]:
        if not field.editable or field.auto_created:
            continue
        if isinstance(field, models.fields.AutoFieldMixin):
            continue
        names.append(field.name)
    return names
