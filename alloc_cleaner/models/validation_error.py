from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from .entity_row import EntityKind

"""ValidationError model.

One addressable finding produced by a validation pass. ``row_id`` is the
row's identifier value and ``field`` the offending column; both are empty
strings for table-level errors (e.g. a required column missing from the
whole upload).

``to_dict()`` is the consumer contract (exactly ``entity``, ``rowId``,
``field``, ``message``). ``error_type`` is an UPPER_SNAKE classification
carried alongside for the JSON Lines error log only.
"""

__all__ = [
    "ValidationError",
    "MISSING_COLUMNS",
    "MISSING_FIELD",
    "DUPLICATE_ID",
    "MALFORMED_JSON",
    "INVALID_VALUE",
    "INVALID_TYPE",
    "EMPTY_TOKEN",
    "UNKNOWN_REFERENCE",
    "OVERLOADED_WORKER",
]

MISSING_COLUMNS = "MISSING_COLUMNS"
MISSING_FIELD = "MISSING_FIELD"
DUPLICATE_ID = "DUPLICATE_ID"
MALFORMED_JSON = "MALFORMED_JSON"
INVALID_VALUE = "INVALID_VALUE"
INVALID_TYPE = "INVALID_TYPE"
EMPTY_TOKEN = "EMPTY_TOKEN"
UNKNOWN_REFERENCE = "UNKNOWN_REFERENCE"
OVERLOADED_WORKER = "OVERLOADED_WORKER"


@dataclass(frozen=True)
class ValidationError:
    """Structured validation finding.

    Attributes:
        entity: Entity kind the row belongs to
        row_id: Identifier of the offending row ("" for table-level errors)
        field: Offending column ("" for table-level errors)
        message: Human-readable description
        error_type: Classification in UPPER_SNAKE_CASE format
        row_index: Position of the row in the validated collection (None for
            table-level errors); not part of the consumer contract
    """
    entity: EntityKind
    row_id: str
    field: str
    message: str
    error_type: str = INVALID_VALUE
    row_index: int | None = None

    @property
    def is_table_level(self) -> bool:
        return self.row_id == "" and self.field == ""

    def to_dict(self) -> dict[str, Any]:
        """Consumer-facing shape (no extra keys)."""
        return {
            "entity": self.entity.value,
            "rowId": self.row_id,
            "field": self.field,
            "message": self.message,
        }

    def to_json_line(self, source: str = "") -> str:
        """Serialize for the JSON Lines error log with a UTC timestamp.

        Parameters:
            source: Name of the file the row came from ("" when edited in place)
        """
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        record = {
            "timestamp": ts,
            "source": source,
            "entity": self.entity.value,
            "rowId": self.row_id,
            "field": self.field,
            "error_type": self.error_type,
            "message": self.message,
        }
        return json.dumps(record, ensure_ascii=False)
