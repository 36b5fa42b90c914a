"""Validation engine: field coercion, per-entity validators, reference checks."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from ..models.entity_row import EntityKind
from ..models.validation_error import ValidationError
from .clients import validate_clients
from .tasks import validate_tasks
from .workers import validate_workers

__all__ = [
    "validate_clients",
    "validate_workers",
    "validate_tasks",
    "validate_entity",
]


def validate_entity(
    kind: EntityKind | str,
    rows: Iterable[Any] | None,
    all_tasks: Iterable[Any] | None = None,
) -> list[ValidationError]:
    """Dispatch to the validator for ``kind``.

    ``all_tasks`` is only consulted for clients.
    """
    kind = EntityKind.parse(kind)
    if kind is EntityKind.CLIENT:
        return validate_clients(rows, all_tasks)
    if kind is EntityKind.WORKER:
        return validate_workers(rows)
    return validate_tasks(rows)
