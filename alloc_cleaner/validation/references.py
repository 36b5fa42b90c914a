from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from ..models.entity_row import TaskRow, is_blank
from ..models.validation_error import UNKNOWN_REFERENCE, ValidationError

"""Cross-entity reference checks (Client -> Task).

The reference set is derived from TaskID values alone: a task row that fails
its own validation still contributes its identifier. There is deliberately no
Worker -> Task skill coverage check here.
"""

__all__ = [
    "task_id_set",
    "unresolved_references",
]


def _reference_key(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def task_id_set(tasks: Iterable[Any]) -> set[str]:
    """Collect every non-blank TaskID in the task collection."""
    ids: set[str] = set()
    for task in tasks:
        if isinstance(task, TaskRow):
            value = task.task_id
        elif isinstance(task, Mapping):
            value = task.get("TaskID")
        else:
            continue
        if not is_blank(value):
            ids.add(_reference_key(value))
    return ids


def unresolved_references(
    client: Any,
    requested_ids: Iterable[Any],
    known_task_ids: set[str],
) -> list[ValidationError]:
    """One UNKNOWN_REFERENCE error per requested id absent from ``known_task_ids``.

    Parameters:
        client: ClientRow whose RequestedTaskIDs are being checked
        requested_ids: Already-coerced RequestedTaskIDs, in their listed order
        known_task_ids: Output of ``task_id_set``
    """
    errors: list[ValidationError] = []
    for task_id in requested_ids:
        key = _reference_key(task_id)
        if key in known_task_ids:
            continue
        errors.append(
            ValidationError(
                entity=client.kind,
                row_id=client.row_id,
                field="RequestedTaskIDs",
                message=f'RequestedTaskID "{key}" does not exist in tasks',
                error_type=UNKNOWN_REFERENCE,
                row_index=client.index,
            )
        )
    return errors
