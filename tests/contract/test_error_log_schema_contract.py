from __future__ import annotations

import json

import jsonschema
import pytest

from alloc_cleaner.models.entity_row import EntityKind
from alloc_cleaner.models.validation_error import OVERLOADED_WORKER, ValidationError

"""Error log JSON Lines record contract."""

ERROR_LOG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["timestamp", "source", "entity", "rowId", "field", "error_type", "message"],
    "additionalProperties": False,
    "properties": {
        "timestamp": {"type": "string", "pattern": "Z$"},
        "source": {"type": "string"},
        "entity": {"enum": ["client", "worker", "task"]},
        "rowId": {"type": "string"},
        "field": {"type": "string"},
        "error_type": {"type": "string", "pattern": "^[A-Z][A-Z_]*$"},
        "message": {"type": "string", "minLength": 1},
    },
}


def test_error_log_line_matches_schema():
    err = ValidationError(EntityKind.WORKER, "W1", "AvailableSlots", "overloaded", OVERLOADED_WORKER)
    record = json.loads(err.to_json_line("workers.xlsx"))
    jsonschema.validate(record, ERROR_LOG_SCHEMA)


def test_error_log_schema_rejects_extra_key():
    err = ValidationError(EntityKind.TASK, "T1", "Duration", "bad")
    record = json.loads(err.to_json_line())
    record["extra"] = "not allowed"
    with pytest.raises(jsonschema.exceptions.ValidationError):
        jsonschema.validate(record, ERROR_LOG_SCHEMA)
