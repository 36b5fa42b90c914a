from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

"""Entity row models for the allocation data cleaner.

Rows arrive as loose mappings (column name -> cell value of any type) from
the tabular reader or from in-place cell edits. Each entity kind gets its own
record type wrapping that mapping and exposing one accessor per field, so the
validators read ``row.priority_level`` instead of indexing an open dict.

The wrapped mapping is never copied or mutated: a row record is a read-only
view over the caller's snapshot.
"""

__all__ = [
    "EntityKind",
    "EntitySchema",
    "EntityRow",
    "ClientRow",
    "WorkerRow",
    "TaskRow",
    "SCHEMAS",
    "row_type_for",
    "is_blank",
]


class EntityKind(Enum):
    """Discriminator for the three entity collections."""
    CLIENT = "client"
    WORKER = "worker"
    TASK = "task"

    @property
    def collection(self) -> str:
        """Plural collection name used for file names and grouping ("clients")."""
        return f"{self.value}s"

    @classmethod
    def parse(cls, value: str | EntityKind) -> EntityKind:
        """Accept either the singular ("client") or plural ("clients") form."""
        if isinstance(value, EntityKind):
            return value
        key = str(value).strip().lower()
        for kind in cls:
            if key in (kind.value, kind.collection):
                return kind
        raise ValueError(f"unknown entity kind: {value!r}")


@dataclass(frozen=True)
class EntitySchema:
    """Static column contract for one entity kind."""
    kind: EntityKind
    id_field: str
    required_fields: tuple[str, ...]
    optional_fields: tuple[str, ...]
    check_columns: bool  # table-level "missing required columns" check

    @property
    def columns(self) -> tuple[str, ...]:
        return self.required_fields + self.optional_fields


SCHEMAS: dict[EntityKind, EntitySchema] = {
    EntityKind.CLIENT: EntitySchema(
        kind=EntityKind.CLIENT,
        id_field="ClientID",
        required_fields=("ClientID", "ClientName", "PriorityLevel", "RequestedTaskIDs"),
        optional_fields=("GroupTag", "AttributesJSON"),
        check_columns=True,
    ),
    EntityKind.WORKER: EntitySchema(
        kind=EntityKind.WORKER,
        id_field="WorkerID",
        required_fields=("WorkerID", "WorkerName", "Skills", "AvailableSlots", "MaxLoadPerPhase"),
        optional_fields=("WorkerGroup", "QualificationLevel"),
        # Workers have no table-level column check (kept as in the client tool)
        check_columns=False,
    ),
    EntityKind.TASK: EntitySchema(
        kind=EntityKind.TASK,
        id_field="TaskID",
        required_fields=(
            "TaskID",
            "TaskName",
            "Category",
            "Duration",
            "RequiredSkills",
            "PreferredPhases",
            "MaxConcurrent",
        ),
        optional_fields=(),
        check_columns=True,
    ),
}


def is_blank(value: Any) -> bool:
    """True for the "missing" cell values: None, "" and float NaN.

    Whitespace-only strings are *not* blank here; field coercion decides
    what to do with them.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, float):
        return math.isnan(value)
    return False


@dataclass(frozen=True)
class EntityRow:
    """Read-only view over one raw row mapping."""
    values: Mapping[str, Any]
    index: int | None = None  # position in the validated collection

    kind: ClassVar[EntityKind]

    @classmethod
    def schema(cls) -> EntitySchema:
        return SCHEMAS[cls.kind]

    def get(self, field: str) -> Any:
        return self.values.get(field)

    def has(self, field: str) -> bool:
        """True when the column exists on this row (value may still be None)."""
        return field in self.values

    def is_missing(self, field: str) -> bool:
        return is_blank(self.values.get(field))

    @property
    def identifier(self) -> Any:
        return self.values.get(self.schema().id_field)

    @property
    def row_id(self) -> str:
        """Identifier rendered as the error-addressing string ("" if absent)."""
        ident = self.identifier
        if is_blank(ident):
            return ""
        return str(ident)


@dataclass(frozen=True)
class ClientRow(EntityRow):
    kind: ClassVar[EntityKind] = EntityKind.CLIENT

    @property
    def client_id(self) -> Any:
        return self.get("ClientID")

    @property
    def client_name(self) -> Any:
        return self.get("ClientName")

    @property
    def priority_level(self) -> Any:
        return self.get("PriorityLevel")

    @property
    def requested_task_ids(self) -> Any:
        return self.get("RequestedTaskIDs")

    @property
    def group_tag(self) -> Any:
        return self.get("GroupTag")

    @property
    def attributes_json(self) -> Any:
        return self.get("AttributesJSON")


@dataclass(frozen=True)
class WorkerRow(EntityRow):
    kind: ClassVar[EntityKind] = EntityKind.WORKER

    @property
    def worker_id(self) -> Any:
        return self.get("WorkerID")

    @property
    def worker_name(self) -> Any:
        return self.get("WorkerName")

    @property
    def skills(self) -> Any:
        return self.get("Skills")

    @property
    def available_slots(self) -> Any:
        return self.get("AvailableSlots")

    @property
    def max_load_per_phase(self) -> Any:
        return self.get("MaxLoadPerPhase")

    @property
    def worker_group(self) -> Any:
        return self.get("WorkerGroup")

    @property
    def qualification_level(self) -> Any:
        return self.get("QualificationLevel")


@dataclass(frozen=True)
class TaskRow(EntityRow):
    kind: ClassVar[EntityKind] = EntityKind.TASK

    @property
    def task_id(self) -> Any:
        return self.get("TaskID")

    @property
    def task_name(self) -> Any:
        return self.get("TaskName")

    @property
    def category(self) -> Any:
        return self.get("Category")

    @property
    def duration(self) -> Any:
        return self.get("Duration")

    @property
    def required_skills(self) -> Any:
        return self.get("RequiredSkills")

    @property
    def preferred_phases(self) -> Any:
        return self.get("PreferredPhases")

    @property
    def max_concurrent(self) -> Any:
        return self.get("MaxConcurrent")


_ROW_TYPES: dict[EntityKind, type[EntityRow]] = {
    EntityKind.CLIENT: ClientRow,
    EntityKind.WORKER: WorkerRow,
    EntityKind.TASK: TaskRow,
}


def row_type_for(kind: EntityKind) -> type[EntityRow]:
    return _ROW_TYPES[kind]
