"""Model handler and the query, transform, validation and persistence steps it drives."""

from admin_api.handler.fields import FieldConfig, RelationInfo, RelationKind, prepare_fields
from admin_api.handler.model_handler import ModelHandler

__all__ = [
    "FieldConfig",
    "ModelHandler",
    "RelationInfo",
    "RelationKind",
    "prepare_fields",
]
