from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from ..models.entity_row import SCHEMAS, EntityKind, WorkerRow
from ..models.validation_error import INVALID_VALUE, OVERLOADED_WORKER, ValidationError
from .coercion import Parsed, coerce_integer, coerce_non_empty_string, coerce_number_array
from .common import DuplicateTracker, as_rows, required_field_errors

"""Worker collection validator.

Unlike clients and tasks there is no table-level missing-column check for
workers.
"""

__all__ = [
    "validate_workers",
]

logger = logging.getLogger(__name__)

SCHEMA = SCHEMAS[EntityKind.WORKER]

OVERLOAD_MESSAGE = (
    "AvailableSlots count is less than MaxLoadPerPhase (worker overloaded): "
    "AvailableSlots.length < MaxLoadPerPhase"
)


def _error(row: WorkerRow, field: str, message: str, error_type: str = INVALID_VALUE) -> ValidationError:
    return ValidationError(
        entity=EntityKind.WORKER,
        row_id=row.row_id,
        field=field,
        message=message,
        error_type=error_type,
        row_index=row.index,
    )


def _validate_row(row: WorkerRow, duplicates: DuplicateTracker) -> list[ValidationError]:
    slots = coerce_number_array(row.available_slots)
    max_load = coerce_integer(row.max_load_per_phase)
    max_load_ok = isinstance(max_load, Parsed) and max_load.value >= 1

    errors = required_field_errors(SCHEMA, row)
    duplicate = duplicates.check(row)
    if duplicate is not None:
        errors.append(duplicate)

    if not isinstance(coerce_non_empty_string(row.skills), Parsed):
        errors.append(_error(row, "Skills", "Skills must be a non-empty string"))
    if not slots:
        errors.append(_error(row, "AvailableSlots", "AvailableSlots must be a non-empty array of numbers"))
    if not max_load_ok:
        errors.append(_error(row, "MaxLoadPerPhase", "MaxLoadPerPhase must be a positive integer"))
    if slots and max_load_ok and len(slots) < max_load.value:
        errors.append(_error(row, "AvailableSlots", OVERLOAD_MESSAGE, OVERLOADED_WORKER))
    return errors


def validate_workers(workers: Iterable[Any] | None) -> list[ValidationError]:
    """Validate a worker collection; returns a flat, row-ordered error list."""
    rows = as_rows(workers, WorkerRow)
    duplicates = DuplicateTracker(SCHEMA)
    errors: list[ValidationError] = []
    for row in rows:
        errors.extend(_validate_row(row, duplicates))
    logger.debug("validated workers rows=%d errors=%d", len(rows), len(errors))
    return errors
