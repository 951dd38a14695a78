"""Cast raw request values into Python values according to field types."""

from __future__ import annotations

import json
from datetime import datetime, time
from decimal import Decimal, InvalidOperation
from typing import TypeAlias, TYPE_CHECKING, Any, Callable, ClassVar, Mapping

from django.conf import settings
from django.contrib.auth.hashers import make_password
from django.db.models import NOT_PROVIDED
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime, parse_time

from admin_api.conf import get_class_setting
from admin_api.errors import InvalidRequestValueError

if TYPE_CHECKING:
    from admin_api.request.request_data import RequestData

TransformFunc: TypeAlias = Callable[[str, "RequestData", Mapping[str, Any]], Any]

FILE_PREFIX = "files."
_TRUE_STRINGS = frozenset({"1", "true", "on", "yes"})


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


class RequestTransformer:
    """
    Turn submitted values into model-ready Python values.

    ``transform`` returns ``django.db.models.NOT_PROVIDED`` when the request
    does not carry the field at all, so callers can leave the attribute
    untouched. Additional types can be registered per transformer class.
    """

    custom_types: ClassVar[dict[str, TransformFunc]] = {}

    _ALIASES: ClassVar[dict[str, str]] = {
        "boolean": "bool",
        "integer": "int",
        "real": "float",
        "double": "float",
        "array": "json",
        "object": "json",
        "image": "file",
    }

    @classmethod
    def register(cls, type_name: str, func: TransformFunc) -> None:
        """Register ``func(name, data, config)`` as the transformation of ``type_name``."""
        cls.custom_types = {**cls.custom_types, type_name: func}

    def transform(
        self,
        name: str,
        field_type: str | None,
        data: RequestData,
        config: Mapping[str, Any] | None = None,
    ) -> Any:
        field_type = field_type or "text"
        config = config or {}
        custom = self.custom_types.get(field_type)
        if custom is not None:
            return custom(name, data, config)

        canonical = self._ALIASES.get(field_type, field_type)
        if canonical == "file":
            return self._transform_file(name, data)
        if not data.has(name):
            return NOT_PROVIDED
        value = data.get(name)
        if config.get("multiple") and not isinstance(value, (list, dict)):
            values = data.getlist(name)
            if len(values) > 1:
                value = values
        handler = getattr(self, f"_transform_{canonical}", None)
        if handler is None:
            return value
        return handler(name, field_type, value, config)

    def _transform_text(
        self, name: str, field_type: str, value: Any, config: Mapping[str, Any]
    ) -> Any:
        return value

    def _transform_bool(
        self, name: str, field_type: str, value: Any, config: Mapping[str, Any]
    ) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        return str(value).strip().lower() in _TRUE_STRINGS

    def _transform_int(
        self, name: str, field_type: str, value: Any, config: Mapping[str, Any]
    ) -> int | None:
        if _is_empty(value):
            return None
        try:
            return int(value)
        except (TypeError, ValueError) as error:
            raise InvalidRequestValueError(name, field_type, value) from error

    def _transform_float(
        self, name: str, field_type: str, value: Any, config: Mapping[str, Any]
    ) -> float | None:
        if _is_empty(value):
            return None
        try:
            return float(value)
        except (TypeError, ValueError) as error:
            raise InvalidRequestValueError(name, field_type, value) from error

    def _transform_decimal(
        self, name: str, field_type: str, value: Any, config: Mapping[str, Any]
    ) -> Decimal | None:
        if _is_empty(value):
            return None
        try:
            return Decimal(str(value))
        except InvalidOperation as error:
            raise InvalidRequestValueError(name, field_type, value) from error

    def _transform_json(
        self, name: str, field_type: str, value: Any, config: Mapping[str, Any]
    ) -> Any:
        if not isinstance(value, str):
            return value
        if value == "":
            return None
        try:
            return json.loads(value)
        except ValueError as error:
            raise InvalidRequestValueError(name, field_type, value) from error

    def _transform_datetime(
        self, name: str, field_type: str, value: Any, config: Mapping[str, Any]
    ) -> datetime | None:
        if _is_empty(value):
            return None
        if isinstance(value, datetime):
            parsed: datetime | None = value
        else:
            try:
                parsed = parse_datetime(str(value))
                if parsed is None:
                    day = parse_date(str(value))
                    parsed = datetime.combine(day, time.min) if day else None
            except ValueError as error:
                raise InvalidRequestValueError(name, field_type, value) from error
        if parsed is None:
            raise InvalidRequestValueError(name, field_type, value)
        if settings.USE_TZ and timezone.is_naive(parsed):
            parsed = timezone.make_aware(parsed)
        return parsed

    def _transform_date(
        self, name: str, field_type: str, value: Any, config: Mapping[str, Any]
    ) -> Any:
        if _is_empty(value):
            return None
        try:
            parsed = parse_date(str(value))
        except ValueError as error:
            raise InvalidRequestValueError(name, field_type, value) from error
        if parsed is None:
            raise InvalidRequestValueError(name, field_type, value)
        return parsed

    def _transform_time(
        self, name: str, field_type: str, value: Any, config: Mapping[str, Any]
    ) -> Any:
        if _is_empty(value):
            return None
        try:
            parsed = parse_time(str(value))
        except ValueError as error:
            raise InvalidRequestValueError(name, field_type, value) from error
        if parsed is None:
            raise InvalidRequestValueError(name, field_type, value)
        return parsed

    def _transform_password(
        self, name: str, field_type: str, value: Any, config: Mapping[str, Any]
    ) -> Any:
        if _is_empty(value):
            return NOT_PROVIDED
        return make_password(str(value))

    def _transform_relation(
        self, name: str, field_type: str, value: Any, config: Mapping[str, Any]
    ) -> Any:
        if config.get("multiple"):
            if _is_empty(value):
                return None
            if isinstance(value, dict):
                value = list(value.values())
            if not isinstance(value, (list, tuple)):
                value = [value]
            return [item for item in value if not _is_empty(item)]
        if _is_empty(value):
            return None
        return value

    def _transform_file(self, name: str, data: RequestData) -> Any:
        files = data.files()
        upload_key = f"{FILE_PREFIX}{name}"
        if upload_key in files:
            return files[upload_key]
        if data.has(name) and _is_empty(data.get(name)):
            return None
        return NOT_PROVIDED


def get_request_transformer() -> RequestTransformer:
    """Instantiate the transformer class configured in ``ADMIN_API``."""
    transformer_class = get_class_setting("REQUEST_TRANSFORMER")
    return transformer_class()
