from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .entity_row import EntityKind

"""EntityFile model and FileStatus enum.

Tracks one configured entity file (clients / workers / tasks) through a batch
run: located, read, normalized, then either loaded or failed.
"""

__all__ = [
    "FileStatus",
    "EntityFile",
]


class FileStatus(Enum):
    """Lifecycle: pending → (loaded | failed)

    - PENDING: configured but not read yet
    - LOADED: read and normalized; rows handed to the validators
    - FAILED: missing, unsupported or unreadable
    """
    PENDING = "pending"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(frozen=True)
class EntityFile:
    entity: EntityKind
    path: Path
    status: FileStatus = FileStatus.PENDING
    row_count: int = 0
    missing_headers: tuple[str, ...] = ()  # required columns absent from the header
    error: str | None = None  # failure reason summary

    @property
    def name(self) -> str:
        return self.path.name
