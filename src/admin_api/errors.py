"""Exception types raised by model handlers and their helpers."""

from __future__ import annotations

from django.core.exceptions import BadRequest, ImproperlyConfigured, PermissionDenied
from django.http import Http404

__all__ = [
    "AccessDeniedError",
    "InvalidFieldTypeError",
    "InvalidFieldValueError",
    "InvalidHandlerConfigurationError",
    "InvalidQueryParameterError",
    "InvalidRequestBodyError",
    "InvalidRequestValueError",
    "InvalidScopeResultError",
    "InvalidSortDirectionError",
    "UnknownActionError",
    "UnknownEntityError",
]


class AccessDeniedError(PermissionDenied):
    """Raised when the current user may not perform an action on an entity."""

    def __init__(self, action: str, entity: str, reason: str = "allowed") -> None:
        """
        Build the denial message.

        Parameters:
            action (str): Action that was attempted.
            entity (str): Entity name the action targeted.
            reason (str): Either ``"allowed"`` (abilities whitelist) or ``"authorized"`` (policy check).
        """
        self.action = action
        self.entity = entity
        super().__init__(f"{action} action on {entity} is not {reason}")


class InvalidQueryParameterError(BadRequest):
    """Raised when list parameters (filters, sort, scopes) cannot be applied."""

    def __init__(self, parameter: str, detail: object) -> None:
        self.parameter = parameter
        super().__init__(f"Invalid '{parameter}' parameter: {detail}")


class InvalidSortDirectionError(InvalidQueryParameterError):
    """Raised when a sort direction is neither ascending nor descending."""

    def __init__(self, field: str, direction: object) -> None:
        super().__init__("sort", f"unknown direction {direction!r} for '{field}'")


class InvalidRequestValueError(BadRequest):
    """Raised when a submitted value cannot be cast to the field type."""

    def __init__(self, field: str, field_type: str, value: object) -> None:
        self.field = field
        super().__init__(f"Value {value!r} of '{field}' is not a valid {field_type}.")


class InvalidRequestBodyError(BadRequest):
    """Raised when a JSON request body cannot be decoded into an object."""

    def __init__(self, detail: object) -> None:
        super().__init__(f"Malformed request body: {detail}")


class UnknownActionError(BadRequest):
    """Raised when a custom action is not implemented by the handler."""

    def __init__(self, action: str, entity: str) -> None:
        super().__init__(f"Unknown action '{action}' on {entity}.")


class UnknownEntityError(Http404):
    """Raised when no model is registered under an entity name."""

    def __init__(self, entity: str) -> None:
        super().__init__(f"Entity '{entity}' is not registered.")


class InvalidFieldValueError(ValueError):
    """Raised when assigning a value incompatible with the model field."""

    def __init__(self, field_name: str, value: object) -> None:
        super().__init__(f"Invalid value for {field_name}: {value}.")


class InvalidFieldTypeError(TypeError):
    """Raised when assigning a value with an unexpected type."""

    def __init__(self, field_name: str, error: Exception) -> None:
        super().__init__(f"Type error for {field_name}: {error}.")


class InvalidHandlerConfigurationError(ImproperlyConfigured):
    """Raised when a registry entry or handler class setting is malformed."""

    def __init__(self, entity: str, detail: object) -> None:
        super().__init__(f"Invalid admin configuration for '{entity}': {detail}.")


class InvalidScopeResultError(TypeError):
    """Raised when a ``scope_*`` queryset method does not return a queryset."""

    def __init__(self, method_name: str) -> None:
        super().__init__(f"Scope method '{method_name}' must return a QuerySet.")
