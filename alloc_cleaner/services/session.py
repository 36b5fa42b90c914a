from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from ..models.entity_row import SCHEMAS, EntityKind, is_blank
from ..models.validation_error import ValidationError
from ..validation import validate_clients, validate_tasks, validate_workers

"""Validation session: the in-memory working copy of the three collections.

Every mutation (load, cell edit, bulk replace, row deletion, fix application)
re-runs the affected validator from scratch; nothing is diffed. Clients are
validated against the current task collection whenever one is loaded, so a
task change also re-validates clients.

Errors are mapped to grid cells through the row position recorded by the
validator, confirmed against the row's current identifier. Errors without a
usable position fall back to resolving ``row_id``; stale or ambiguous
(duplicated) ids resolve to ``NOT_FOUND`` instead of raising.
"""

__all__ = [
    "NOT_FOUND",
    "CellError",
    "FixSuggestion",
    "ValidationSession",
    "group_by_entity",
]

logger = logging.getLogger(__name__)

NOT_FOUND = -1


@dataclass(frozen=True)
class CellError:
    """Grid-addressable error (row index + column id)."""
    row_index: int
    column_id: str
    message: str


@dataclass(frozen=True)
class FixSuggestion:
    """Candidate correction for one error, produced outside this package."""
    suggestion: str  # Human-readable explanation
    new_value: Any  # Value to write into the offending cell


def group_by_entity(errors: Iterable[ValidationError]) -> dict[EntityKind, list[ValidationError]]:
    """Group errors by entity, keeping their original relative order."""
    grouped: dict[EntityKind, list[ValidationError]] = {}
    for err in errors:
        grouped.setdefault(err.entity, []).append(err)
    return grouped


class ValidationSession:
    """Working copy of clients, workers and tasks plus their current errors.

    Parameters:
        cross_reference: Validate client RequestedTaskIDs against loaded tasks
    """

    def __init__(self, *, cross_reference: bool = True) -> None:
        self.cross_reference = cross_reference
        self._rows: dict[EntityKind, list[dict[str, Any]]] = {kind: [] for kind in EntityKind}
        self._errors: dict[EntityKind, list[ValidationError]] = {kind: [] for kind in EntityKind}

    # --- collections ---------------------------------------------------

    def rows(self, entity: EntityKind | str) -> list[dict[str, Any]]:
        return self._rows[EntityKind.parse(entity)]

    def load(self, entity: EntityKind | str, rows: Iterable[Mapping[str, Any]]) -> list[ValidationError]:
        """Replace a collection (file upload or bulk replace) and re-validate."""
        kind = EntityKind.parse(entity)
        self._rows[kind] = [dict(r) for r in rows]
        logger.debug("loaded entity=%s rows=%d", kind.value, len(self._rows[kind]))
        return self._revalidate(kind)

    replace_rows = load

    def edit_cell(self, entity: EntityKind | str, row_index: int, field: str, value: Any) -> list[ValidationError]:
        """Set one cell and re-validate; any value is accepted as-is."""
        kind = EntityKind.parse(entity)
        rows = self._rows[kind]
        if not 0 <= row_index < len(rows):
            raise IndexError(f"{kind.collection}: row index out of range: {row_index}")
        rows[row_index] = {**rows[row_index], field: value}
        return self._revalidate(kind)

    def delete_row(self, entity: EntityKind | str, row_index: int) -> list[ValidationError]:
        kind = EntityKind.parse(entity)
        rows = self._rows[kind]
        if not 0 <= row_index < len(rows):
            raise IndexError(f"{kind.collection}: row index out of range: {row_index}")
        del rows[row_index]
        return self._revalidate(kind)

    def apply_fix(self, error: ValidationError, fix: FixSuggestion) -> list[ValidationError]:
        """Write ``fix.new_value`` into the error's cell and re-validate.

        Table-level errors, errors whose row no longer exists and errors whose
        rowId matches several rows without a confirmed position cannot be
        addressed; the collection is left untouched and the current errors
        are returned.
        """
        kind = error.entity
        index = self.locate_error_row(error)
        if index == NOT_FOUND:
            logger.warning(
                "fix not applied entity=%s rowId=%r field=%r (row not found or ambiguous)",
                kind.value,
                error.row_id,
                error.field,
            )
            return self.errors(kind)
        logger.debug("applying fix entity=%s row=%d field=%s: %s", kind.value, index, error.field, fix.suggestion)
        return self.edit_cell(kind, index, error.field, fix.new_value)

    # --- errors --------------------------------------------------------

    def errors(self, entity: EntityKind | str) -> list[ValidationError]:
        return list(self._errors[EntityKind.parse(entity)])

    def all_errors(self) -> list[ValidationError]:
        """Errors for every entity, clients first, then workers, then tasks."""
        collected: list[ValidationError] = []
        for kind in EntityKind:
            collected.extend(self._errors[kind])
        return collected

    def validate(self, entity: EntityKind | str) -> list[ValidationError]:
        """Run the entity's validator over the current snapshot."""
        kind = EntityKind.parse(entity)
        rows = self._rows[kind]
        if kind is EntityKind.CLIENT:
            tasks = self._rows[EntityKind.TASK]
            return validate_clients(rows, tasks if self.cross_reference and tasks else None)
        if kind is EntityKind.WORKER:
            return validate_workers(rows)
        return validate_tasks(rows)

    def _revalidate(self, kind: EntityKind) -> list[ValidationError]:
        self._errors[kind] = self.validate(kind)
        if kind is EntityKind.TASK and self.cross_reference and self._rows[EntityKind.CLIENT]:
            self._errors[EntityKind.CLIENT] = self.validate(EntityKind.CLIENT)
        return self.errors(kind)

    # --- addressing ----------------------------------------------------

    def _rendered_id(self, kind: EntityKind, row: Mapping[str, Any]) -> str:
        value = row.get(SCHEMAS[kind].id_field)
        return "" if is_blank(value) else str(value)

    def resolve_row_index(self, entity: EntityKind | str, row_id: str) -> int:
        """Index of the first row whose identifier renders as ``row_id``."""
        kind = EntityKind.parse(entity)
        if not row_id:
            return NOT_FOUND
        for index, row in enumerate(self._rows[kind]):
            if self._rendered_id(kind, row) == row_id:
                return index
        return NOT_FOUND

    def locate_error_row(self, error: ValidationError) -> int:
        """Row index an error points at, or ``NOT_FOUND``.

        The validator's recorded position wins while that row still carries
        the error's identifier. Otherwise ``row_id`` must match exactly one
        row; with duplicated ids the target is ambiguous.
        """
        if error.is_table_level or not error.field:
            return NOT_FOUND
        kind = error.entity
        rows = self._rows[kind]
        index = error.row_index
        if index is not None and 0 <= index < len(rows) and self._rendered_id(kind, rows[index]) == error.row_id:
            return index
        if not error.row_id:
            return NOT_FOUND
        matches = [i for i, row in enumerate(rows) if self._rendered_id(kind, row) == error.row_id]
        if len(matches) != 1:
            return NOT_FOUND
        return matches[0]

    def cell_errors(self, entity: EntityKind | str) -> list[CellError]:
        """Current errors as grid cells; table-level, stale and ambiguous errors are skipped."""
        kind = EntityKind.parse(entity)
        cells: list[CellError] = []
        for err in self._errors[kind]:
            index = self.locate_error_row(err)
            if index == NOT_FOUND:
                continue
            cells.append(CellError(row_index=index, column_id=err.field, message=err.message))
        return cells
