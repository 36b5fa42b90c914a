from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .entity_file import EntityFile, FileStatus
from .entity_row import EntityKind
from .validation_error import ValidationError

"""Aggregated result of one batch validation run (SUMMARY line source)."""

__all__ = [
    "EntityStat",
    "ValidationReport",
]


@dataclass(frozen=True)
class EntityStat:
    """Per-entity row and error counts."""
    entity: EntityKind
    rows: int
    errors: int


@dataclass(frozen=True)
class ValidationReport:
    files: list[EntityFile]
    stats: dict[EntityKind, EntityStat]
    errors: list[ValidationError]
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    error_log_path: Path | None = None
    rows: dict[EntityKind, list[dict]] = field(default_factory=dict)  # normalized rows per entity

    @property
    def loaded_files(self) -> int:
        return sum(1 for f in self.files if f.status == FileStatus.LOADED)

    @property
    def failed_files(self) -> int:
        return sum(1 for f in self.files if f.status == FileStatus.FAILED)

    @property
    def total_errors(self) -> int:
        return len(self.errors)

    def rows_for(self, kind: EntityKind) -> int:
        stat = self.stats.get(kind)
        return stat.rows if stat else 0

    @property
    def is_clean(self) -> bool:
        return self.failed_files == 0 and not self.errors
