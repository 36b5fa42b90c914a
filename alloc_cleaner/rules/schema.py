from __future__ import annotations

from typing import Any

"""JSON schema for declarative allocation rules.

Each rule is a JSON object discriminated by ``type``. Extra keys are rejected
so a typo ("taskIds") fails loudly instead of producing a rule that silently
does nothing.
"""

__all__ = [
    "RULE_TYPES",
    "PATTERN_TEMPLATES",
    "RULE_SCHEMA",
]

RULE_TYPES = (
    "coRun",
    "slotRestriction",
    "loadLimit",
    "phaseWindow",
    "patternMatch",
    "precedenceOverride",
)

PATTERN_TEMPLATES = ("startsWith", "endsWith", "contains", "custom")

_NON_EMPTY_STRING: dict[str, Any] = {"type": "string", "minLength": 1, "pattern": r"\S"}
_PHASE: dict[str, Any] = {"anyOf": [{"type": "integer", "minimum": 1}, {"type": "string", "pattern": r"^\s*\d+\s*$"}]}


def _rule(type_name: str, properties: dict[str, Any], required: list[str]) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {"type": {"const": type_name}, **properties},
        "required": ["type", *required],
        "additionalProperties": False,
    }


RULE_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "AllocationRule",
    "type": "object",
    "required": ["type"],
    "properties": {"type": {"enum": list(RULE_TYPES)}},
    "allOf": [
        {
            "if": {"properties": {"type": {"const": "coRun"}}},
            "then": _rule(
                "coRun",
                {"taskIDs": {"type": "array", "items": _NON_EMPTY_STRING, "minItems": 2, "uniqueItems": True}},
                ["taskIDs"],
            ),
        },
        {
            "if": {"properties": {"type": {"const": "slotRestriction"}}},
            "then": _rule(
                "slotRestriction",
                {"group": _NON_EMPTY_STRING, "minCommonSlots": {"type": "integer", "minimum": 1}},
                ["group", "minCommonSlots"],
            ),
        },
        {
            "if": {"properties": {"type": {"const": "loadLimit"}}},
            "then": _rule(
                "loadLimit",
                {"workerGroup": _NON_EMPTY_STRING, "maxSlotsPerPhase": {"type": "integer", "minimum": 1}},
                ["workerGroup", "maxSlotsPerPhase"],
            ),
        },
        {
            "if": {"properties": {"type": {"const": "phaseWindow"}}},
            "then": _rule(
                "phaseWindow",
                {"taskID": _NON_EMPTY_STRING, "allowedPhases": {"type": "array", "items": _PHASE, "minItems": 1}},
                ["taskID", "allowedPhases"],
            ),
        },
        {
            "if": {"properties": {"type": {"const": "patternMatch"}}},
            "then": _rule(
                "patternMatch",
                {
                    "regex": _NON_EMPTY_STRING,
                    "template": {"enum": list(PATTERN_TEMPLATES)},
                    "params": {"type": "string"},
                },
                ["regex", "template"],
            ),
        },
        {
            "if": {"properties": {"type": {"const": "precedenceOverride"}}},
            "then": _rule(
                "precedenceOverride",
                {
                    "ruleIndexes": {
                        "type": "array",
                        "items": {"type": "integer", "minimum": 0},
                        "minItems": 1,
                        "uniqueItems": True,
                    },
                    "priority": {"type": "integer", "minimum": 1},
                },
                ["ruleIndexes", "priority"],
            ),
        },
    ],
}
