"""Domain models for the allocation data cleaner.

Row records per entity kind, the validation error type, and the batch run
bookkeeping (entity files, report).
"""

from .entity_file import EntityFile, FileStatus
from .entity_row import SCHEMAS, ClientRow, EntityKind, EntityRow, EntitySchema, TaskRow, WorkerRow
from .validation_error import ValidationError
from .validation_report import EntityStat, ValidationReport

__all__ = [
    # Row models
    "EntityKind",
    "EntitySchema",
    "EntityRow",
    "ClientRow",
    "WorkerRow",
    "TaskRow",
    "SCHEMAS",
    # Results
    "ValidationError",
    "EntityFile",
    "FileStatus",
    "EntityStat",
    "ValidationReport",
]
