from __future__ import annotations

import json

import jsonschema
import pytest

from alloc_cleaner.config.loader import SCHEMA_PATH

"""Bundled config schema contract."""


@pytest.fixture()
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_minimal_config_is_valid(schema):
    jsonschema.validate({"source_directory": "./data", "entity_files": {"clients": "c.xlsx"}}, schema)


def test_full_config_is_valid(schema):
    jsonschema.validate({
        "source_directory": "./data",
        "output_directory": "./out",
        "entity_files": {"clients": "c.csv", "workers": "w.xlsx", "tasks": "t.csv"},
        "cross_reference": False,
        "null_sentinels": ["N/A", "-"],
        "rules_file": "./rules.json",
        "priorities": {"PriorityLevel": 0, "Workload": 10},
    }, schema)


@pytest.mark.parametrize("data", [
    {"source_directory": "./data"},
    {"source_directory": "./data", "entity_files": {}},
    {"source_directory": "", "entity_files": {"clients": "c.csv"}},
    {"source_directory": "./data", "entity_files": {"clients": "c.csv"}, "cross_reference": "yes"},
    {"source_directory": "./data", "entity_files": {"clients": "c.csv"}, "priorities": {"Speed": 1}},
])
def test_invalid_configs_rejected(schema, data):
    with pytest.raises(jsonschema.exceptions.ValidationError):
        jsonschema.validate(data, schema)


@pytest.mark.parametrize("name", ["clients.CSV", "tasks.XLSX", "Workers.Csv"])
def test_entity_file_suffix_is_case_insensitive(schema, name):
    jsonschema.validate({"source_directory": "./data", "entity_files": {"clients": name}}, schema)


@pytest.mark.parametrize("name", ["clients.txt", "clients.csv.bak", "clients.xls"])
def test_entity_file_other_suffixes_rejected(schema, name):
    with pytest.raises(jsonschema.exceptions.ValidationError):
        jsonschema.validate({"source_directory": "./data", "entity_files": {"clients": name}}, schema)
