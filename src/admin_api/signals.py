"""Audit events sent after handler mutations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from django.db import models
from django.dispatch import Signal

__all__ = [
    "SingleModelEvent",
    "model_action",
    "model_created",
    "model_destroyed",
    "model_updated",
]

# Receivers get ``sender=<model class>`` and ``event=SingleModelEvent``.
model_created = Signal()
model_updated = Signal()
model_destroyed = Signal()
model_action = Signal()


@dataclass(frozen=True)
class SingleModelEvent:
    """An action performed by a user on one row of an administered entity."""

    entity: str
    model: type[models.Model]
    user_key: Any
    key: Any
    action: str

    def get_model_instance(self) -> models.Model | None:
        """Re-read the affected row; None once it has been deleted."""
        return self.model._default_manager.filter(pk=self.key).first()
