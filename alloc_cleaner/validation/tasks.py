from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from ..models.entity_row import SCHEMAS, EntityKind, TaskRow
from ..models.validation_error import INVALID_VALUE, ValidationError
from .coercion import Parsed, coerce_integer, coerce_non_empty_string, coerce_number, coerce_phase_spec
from .common import DuplicateTracker, as_rows, missing_columns_error, required_field_errors

"""Task collection validator."""

__all__ = [
    "validate_tasks",
]

logger = logging.getLogger(__name__)

SCHEMA = SCHEMAS[EntityKind.TASK]


def _error(row: TaskRow, field: str, message: str) -> ValidationError:
    return ValidationError(
        entity=EntityKind.TASK,
        row_id=row.row_id,
        field=field,
        message=message,
        error_type=INVALID_VALUE,
        row_index=row.index,
    )


def _validate_row(row: TaskRow, duplicates: DuplicateTracker) -> list[ValidationError]:
    errors = required_field_errors(SCHEMA, row)
    duplicate = duplicates.check(row)
    if duplicate is not None:
        errors.append(duplicate)

    duration = coerce_number(row.duration)
    if not (isinstance(duration, Parsed) and duration.value >= 1):
        errors.append(_error(row, "Duration", "Duration must be a positive number"))

    max_concurrent = coerce_integer(row.max_concurrent)
    if not (isinstance(max_concurrent, Parsed) and max_concurrent.value >= 1):
        errors.append(_error(row, "MaxConcurrent", "MaxConcurrent must be a positive integer"))

    if not isinstance(coerce_non_empty_string(row.required_skills), Parsed):
        errors.append(_error(row, "RequiredSkills", "RequiredSkills must be a non-empty string"))

    if not isinstance(coerce_phase_spec(row.preferred_phases), Parsed):
        errors.append(
            _error(row, "PreferredPhases", "PreferredPhases must be a range (e.g. 1-3) or array (e.g. [2,4,5])")
        )
    return errors


def validate_tasks(tasks: Iterable[Any] | None) -> list[ValidationError]:
    """Validate a task collection.

    A table-level error is emitted first when the first row lacks any of the
    seven required columns; row checks follow in row order.
    """
    rows = as_rows(tasks, TaskRow)
    errors: list[ValidationError] = []
    table_error = missing_columns_error(SCHEMA, rows)
    if table_error is not None:
        errors.append(table_error)

    duplicates = DuplicateTracker(SCHEMA)
    for row in rows:
        errors.extend(_validate_row(row, duplicates))
    logger.debug("validated tasks rows=%d errors=%d", len(rows), len(errors))
    return errors
