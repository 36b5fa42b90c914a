from __future__ import annotations

import pytest

from alloc_cleaner.models.entity_row import EntityKind
from alloc_cleaner.models.validation_error import (
    DUPLICATE_ID,
    EMPTY_TOKEN,
    MALFORMED_JSON,
    MISSING_COLUMNS,
    MISSING_FIELD,
    UNKNOWN_REFERENCE,
)
from alloc_cleaner.validation import validate_clients


def _fields(errors):
    return [e.field for e in errors]


def test_valid_client_has_no_errors(valid_client):
    assert validate_clients([valid_client]) == []


def test_empty_collection_has_no_errors():
    assert validate_clients([]) == []
    assert validate_clients(None) == []


def test_table_level_missing_columns_reported_once(valid_client):
    row = {k: v for k, v in valid_client.items() if k not in ("PriorityLevel", "RequestedTaskIDs")}
    errors = validate_clients([row, dict(row)])
    table = [e for e in errors if e.error_type == MISSING_COLUMNS]
    assert len(table) == 1
    assert errors[0] is table[0]
    assert table[0].row_id == ""
    assert table[0].field == ""
    assert table[0].message == "Missing required columns: PriorityLevel, RequestedTaskIDs"


def test_table_level_uses_first_row_keys_only(valid_client):
    second = {k: v for k, v in valid_client.items() if k != "ClientName"}
    second["ClientID"] = "C2"
    errors = validate_clients([valid_client, second])
    assert not any(e.error_type == MISSING_COLUMNS for e in errors)
    assert [(e.row_id, e.field, e.error_type) for e in errors] == [("C2", "ClientName", MISSING_FIELD)]


@pytest.mark.parametrize("blank", [None, ""])
def test_required_field_missing(valid_client, blank):
    valid_client["ClientName"] = blank
    errors = validate_clients([valid_client])
    assert [(e.field, e.message) for e in errors] == [("ClientName", "Missing required field: ClientName")]


def test_duplicate_exactly_once_after_first_seen(valid_client):
    ids = ["A", "A", "B", "A"]
    rows = [{**valid_client, "ClientID": i} for i in ids]
    dups = [e for e in validate_clients(rows) if e.error_type == DUPLICATE_ID]
    assert len(dups) == 2
    assert all(e.row_id == "A" and e.field == "ClientID" for e in dups)
    assert dups[0].message == "Duplicate ClientID"


def test_duplicate_tracking_is_per_call(valid_client):
    assert validate_clients([valid_client]) == []
    assert validate_clients([valid_client]) == []


def test_malformed_attributes_json(valid_client):
    valid_client["AttributesJSON"] = "{bad json"
    errors = validate_clients([valid_client])
    assert len(errors) == 1
    assert errors[0].field == "AttributesJSON"
    assert errors[0].message == "Malformed JSON in AttributesJSON"
    assert errors[0].error_type == MALFORMED_JSON


@pytest.mark.parametrize("value", [{"a": 1}, None, "", '{"ok": true}', "[1, 2]"])
def test_attributes_json_accepted(valid_client, value):
    valid_client["AttributesJSON"] = value
    assert validate_clients([valid_client]) == []


@pytest.mark.parametrize("value", [1, 5, "3", 3.0, " 4 "])
def test_priority_level_valid(valid_client, value):
    valid_client["PriorityLevel"] = value
    assert validate_clients([valid_client]) == []


@pytest.mark.parametrize("value", [0, 6, "abc", 2.5, "7", True, [3]])
def test_priority_level_invalid(valid_client, value):
    valid_client["PriorityLevel"] = value
    errors = validate_clients([valid_client])
    assert [(e.field, e.message) for e in errors] == [
        ("PriorityLevel", "PriorityLevel must be an integer between 1 and 5"),
    ]


def test_priority_level_null_is_missing_and_invalid(valid_client):
    valid_client["PriorityLevel"] = None
    errors = validate_clients([valid_client])
    assert _fields(errors) == ["PriorityLevel", "PriorityLevel"]
    assert errors[0].error_type == MISSING_FIELD


def test_requested_task_ids_csv_accepted(valid_client):
    valid_client["RequestedTaskIDs"] = "T1,T2"
    assert validate_clients([valid_client]) == []


def test_requested_task_ids_empty_tokens(valid_client):
    valid_client["RequestedTaskIDs"] = "T1,,T2,"
    errors = validate_clients([valid_client])
    assert [e.message for e in errors] == [
        "RequestedTaskIDs contains an empty TaskID at position 2",
        "RequestedTaskIDs contains an empty TaskID at position 4",
    ]
    assert all(e.error_type == EMPTY_TOKEN for e in errors)


def test_requested_task_ids_only_separators(valid_client):
    valid_client["RequestedTaskIDs"] = ","
    errors = validate_clients([valid_client])
    assert [e.message for e in errors] == [
        "RequestedTaskIDs contains an empty TaskID at position 1",
        "RequestedTaskIDs contains an empty TaskID at position 2",
        "RequestedTaskIDs must be a non-empty array or CSV string",
    ]


def test_requested_task_ids_blank_is_missing_not_token_error(valid_client):
    valid_client["RequestedTaskIDs"] = ""
    errors = validate_clients([valid_client])
    assert [e.message for e in errors] == [
        "Missing required field: RequestedTaskIDs",
        "RequestedTaskIDs must be a non-empty array or CSV string",
    ]


def test_cross_reference_names_each_unknown_id(valid_client, valid_task):
    valid_client["RequestedTaskIDs"] = ["T1", "T9"]
    errors = validate_clients([valid_client], [valid_task])
    assert len(errors) == 1
    assert errors[0].error_type == UNKNOWN_REFERENCE
    assert errors[0].message == 'RequestedTaskID "T9" does not exist in tasks'
    assert "T9" in errors[0].message


def test_cross_reference_skipped_without_tasks(valid_client):
    valid_client["RequestedTaskIDs"] = ["T9"]
    assert validate_clients([valid_client]) == []


def test_cross_reference_empty_task_collection_flags_all(valid_client):
    valid_client["RequestedTaskIDs"] = "T1,T2"
    errors = validate_clients([valid_client], [])
    assert len(errors) == 2


def test_cross_reference_numeric_ids(valid_client, valid_task):
    valid_task["TaskID"] = 12
    valid_client["RequestedTaskIDs"] = 12.0
    assert validate_clients([valid_client], [valid_task]) == []


def test_group_tag_must_be_string(valid_client):
    valid_client["GroupTag"] = 42
    errors = validate_clients([valid_client])
    assert [(e.field, e.message) for e in errors] == [("GroupTag", "GroupTag must be a string if present")]


def test_errors_carry_entity_and_row_id(valid_client):
    valid_client["PriorityLevel"] = 9
    err = validate_clients([valid_client])[0]
    assert err.entity is EntityKind.CLIENT
    assert err.row_id == "C1"


def test_row_without_id_uses_empty_row_id(valid_client):
    valid_client["ClientID"] = None
    errors = validate_clients([valid_client])
    assert [(e.row_id, e.field) for e in errors] == [("", "ClientID")]


def test_row_order_stability(valid_client):
    rows = [{**valid_client, "ClientID": f"C{i}", "PriorityLevel": 0} for i in range(3)]
    errors = validate_clients(rows)
    assert [e.row_id for e in errors] == ["C0", "C1", "C2"]


def test_check_order_within_row(valid_client, valid_task):
    row = {
        "ClientID": "C1",
        "ClientName": "",
        "PriorityLevel": 8,
        "RequestedTaskIDs": "T1,,T7",
        "GroupTag": 5,
        "AttributesJSON": "{oops",
    }
    valid_client["RequestedTaskIDs"] = "T1"
    errors = validate_clients([valid_client, row], [valid_task])
    assert [e.field for e in errors] == [
        "ClientName",
        "ClientID",
        "AttributesJSON",
        "PriorityLevel",
        "RequestedTaskIDs",
        "RequestedTaskIDs",
        "GroupTag",
    ]
    assert errors[-2].message == 'RequestedTaskID "T7" does not exist in tasks'


def test_idempotent(valid_client, valid_task):
    rows = [valid_client, {**valid_client, "PriorityLevel": 0, "RequestedTaskIDs": ",T9"}]
    first = validate_clients(rows, [valid_task])
    second = validate_clients(rows, [valid_task])
    assert first == second
    assert [e.to_dict() for e in first] == [e.to_dict() for e in second]


def test_total_function_on_garbage_rows():
    rows = [
        {},
        None,
        42,
        {"ClientID": ["x"], "ClientName": 1, "PriorityLevel": {"a": 1}, "RequestedTaskIDs": {"b": 2},
         "GroupTag": [1], "AttributesJSON": 3},
        {"ClientID": None, "ClientName": None, "PriorityLevel": None, "RequestedTaskIDs": None},
    ]
    errors = validate_clients(rows, [{"TaskID": None}, "junk"])
    assert errors
    for err in errors:
        assert set(err.to_dict()) == {"entity", "rowId", "field", "message"}
        assert isinstance(err.message, str) and err.message
