from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from ..models.entity_row import SCHEMAS, ClientRow, EntityKind, is_blank
from ..models.validation_error import (
    EMPTY_TOKEN,
    INVALID_TYPE,
    INVALID_VALUE,
    MALFORMED_JSON,
    ValidationError,
)
from .coercion import Empty, coerce_id_array, coerce_integer, decode_json
from .common import DuplicateTracker, as_rows, missing_columns_error, required_field_errors
from .references import task_id_set, unresolved_references

"""Client collection validator.

Errors come out in row order; within a row the checks run in a fixed order
(required fields, duplicate id, AttributesJSON, PriorityLevel,
RequestedTaskIDs, task references, GroupTag).
"""

__all__ = [
    "validate_clients",
    "PRIORITY_MIN",
    "PRIORITY_MAX",
]

logger = logging.getLogger(__name__)

SCHEMA = SCHEMAS[EntityKind.CLIENT]
PRIORITY_MIN = 1
PRIORITY_MAX = 5


def _error(row: ClientRow, field: str, message: str, error_type: str = INVALID_VALUE) -> ValidationError:
    return ValidationError(
        entity=EntityKind.CLIENT,
        row_id=row.row_id,
        field=field,
        message=message,
        error_type=error_type,
        row_index=row.index,
    )


def _check_attributes_json(row: ClientRow) -> list[ValidationError]:
    # Already-parsed objects (dicts from in-app edits) are accepted as-is
    value = row.attributes_json
    if not isinstance(value, str) or value == "":
        return []
    if isinstance(decode_json(value), Empty):
        return [_error(row, "AttributesJSON", "Malformed JSON in AttributesJSON", MALFORMED_JSON)]
    return []


def _check_priority_level(row: ClientRow) -> list[ValidationError]:
    # An absent column is reported by the required-field check only
    if not row.has("PriorityLevel"):
        return []
    result = coerce_integer(row.priority_level)
    if isinstance(result, Empty) or not PRIORITY_MIN <= result.value <= PRIORITY_MAX:
        return [
            _error(
                row,
                "PriorityLevel",
                f"PriorityLevel must be an integer between {PRIORITY_MIN} and {PRIORITY_MAX}",
            )
        ]
    return []


def _check_requested_task_ids(row: ClientRow, known_task_ids: set[str] | None) -> list[ValidationError]:
    errors: list[ValidationError] = []
    decoded = coerce_id_array(row.requested_task_ids)
    for position in decoded.empty_positions:
        errors.append(
            _error(
                row,
                "RequestedTaskIDs",
                f"RequestedTaskIDs contains an empty TaskID at position {position}",
                EMPTY_TOKEN,
            )
        )
    if not decoded.ids:
        errors.append(
            _error(row, "RequestedTaskIDs", "RequestedTaskIDs must be a non-empty array or CSV string")
        )
    if known_task_ids is not None:
        errors.extend(unresolved_references(row, decoded.ids, known_task_ids))
    return errors


def _check_group_tag(row: ClientRow) -> list[ValidationError]:
    value = row.group_tag
    if is_blank(value) or isinstance(value, str):
        return []
    return [_error(row, "GroupTag", "GroupTag must be a string if present", INVALID_TYPE)]


def validate_clients(
    clients: Iterable[Any] | None,
    all_tasks: Iterable[Any] | None = None,
) -> list[ValidationError]:
    """Validate a client collection.

    Parameters:
        clients: Raw client rows (mappings of column name -> cell value)
        all_tasks: Optional task collection; when given, every
            RequestedTaskIDs entry must match one of its TaskIDs

    Returns:
        Flat error list, empty when the collection is clean
    """
    rows = as_rows(clients, ClientRow)
    known_task_ids = task_id_set(all_tasks) if all_tasks is not None else None
    errors: list[ValidationError] = []

    table_error = missing_columns_error(SCHEMA, rows)
    if table_error is not None:
        errors.append(table_error)

    duplicates = DuplicateTracker(SCHEMA)
    for row in rows:
        errors.extend(required_field_errors(SCHEMA, row))
        duplicate = duplicates.check(row)
        if duplicate is not None:
            errors.append(duplicate)
        errors.extend(_check_attributes_json(row))
        errors.extend(_check_priority_level(row))
        errors.extend(_check_requested_task_ids(row, known_task_ids))
        errors.extend(_check_group_tag(row))

    logger.debug(
        "validated clients rows=%d errors=%d cross_reference=%s",
        len(rows),
        len(errors),
        known_task_ids is not None,
    )
    return errors
