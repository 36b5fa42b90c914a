from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from ..models.entity_row import EntityRow, EntitySchema
from ..models.validation_error import (
    DUPLICATE_ID,
    MISSING_COLUMNS,
    MISSING_FIELD,
    ValidationError,
)

"""Checks shared by the per-entity validators.

Everything here is stateless; the duplicate tracker is created fresh by each
validation call and dropped when the call returns.
"""


def as_rows(rows: Iterable[Any] | None, row_type: type[EntityRow]) -> list[EntityRow]:
    """Wrap raw row mappings in the entity's record type.

    Non-mapping entries (None, scalars) are treated as rows without columns
    so that a malformed collection still validates instead of raising.
    Each record carries its position so errors stay addressable when
    identifiers repeat.
    """
    wrapped: list[EntityRow] = []
    for index, raw in enumerate(rows or ()):
        if isinstance(raw, row_type):
            wrapped.append(dataclasses.replace(raw, index=index))
        elif isinstance(raw, Mapping):
            wrapped.append(row_type(values=raw, index=index))
        else:
            wrapped.append(row_type(values={}, index=index))
    return wrapped


def missing_columns_error(schema: EntitySchema, rows: Sequence[EntityRow]) -> ValidationError | None:
    """Table-level check against the first row's column set."""
    if not schema.check_columns or not rows:
        return None
    present = set(rows[0].values.keys())
    missing = [c for c in schema.required_fields if c not in present]
    if not missing:
        return None
    return ValidationError(
        entity=schema.kind,
        row_id="",
        field="",
        message=f"Missing required columns: {', '.join(missing)}",
        error_type=MISSING_COLUMNS,
    )


def required_field_errors(schema: EntitySchema, row: EntityRow) -> list[ValidationError]:
    return [
        ValidationError(
            entity=schema.kind,
            row_id=row.row_id,
            field=field,
            message=f"Missing required field: {field}",
            error_type=MISSING_FIELD,
            row_index=row.index,
        )
        for field in schema.required_fields
        if row.is_missing(field)
    ]


class DuplicateTracker:
    """First occurrence of an identifier is accepted, later ones are flagged."""

    def __init__(self, schema: EntitySchema) -> None:
        self.schema = schema
        self._seen: set[str] = set()

    def check(self, row: EntityRow) -> ValidationError | None:
        row_id = row.row_id
        if row_id == "":
            return None
        duplicate = row_id in self._seen
        self._seen.add(row_id)
        if not duplicate:
            return None
        return ValidationError(
            entity=self.schema.kind,
            row_id=row_id,
            field=self.schema.id_field,
            message=f"Duplicate {self.schema.id_field}",
            error_type=DUPLICATE_ID,
            row_index=row.index,
        )
