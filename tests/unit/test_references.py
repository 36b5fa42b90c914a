from __future__ import annotations

from alloc_cleaner.models.entity_row import ClientRow, TaskRow
from alloc_cleaner.models.validation_error import UNKNOWN_REFERENCE
from alloc_cleaner.validation.references import task_id_set, unresolved_references


def test_task_id_set_includes_invalid_tasks():
    tasks = [
        {"TaskID": "T1", "Duration": 0},  # invalid task still contributes its id
        {"TaskID": 2.0},
        {"TaskID": ""},
        {"TaskID": None},
        TaskRow(values={"TaskID": "T3"}),
        "not a row",
    ]
    assert task_id_set(tasks) == {"T1", "2", "T3"}


def test_unresolved_references_one_error_per_id():
    client = ClientRow(values={"ClientID": "C1"})
    errors = unresolved_references(client, ["T1", "T8", "T9"], {"T1"})
    assert [e.message for e in errors] == [
        'RequestedTaskID "T8" does not exist in tasks',
        'RequestedTaskID "T9" does not exist in tasks',
    ]
    assert all(e.error_type == UNKNOWN_REFERENCE and e.row_id == "C1" for e in errors)
    assert all(e.field == "RequestedTaskIDs" for e in errors)
