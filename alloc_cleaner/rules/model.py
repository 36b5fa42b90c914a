from __future__ import annotations

import copy
import json
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jsonschema import Draft7Validator

from ..models.entity_row import is_blank
from .schema import RULE_SCHEMA

"""Allocation rule set and priority weights.

Rules are kept as plain JSON-compatible dicts (the export format) and are
checked in three layers:
1. JSON schema (shape, types, ranges)
2. references against the loaded data, when a RuleContext is supplied
3. regex compilability for patternMatch rules
"""

__all__ = [
    "RuleValidationError",
    "RuleContext",
    "RuleSet",
    "PRIORITY_CRITERIA",
    "PRIORITY_PRESETS",
    "DEFAULT_WEIGHT",
    "validate_rule",
    "validate_priorities",
    "load_rules_file",
]

logger = logging.getLogger(__name__)

PRIORITY_CRITERIA = ("PriorityLevel", "RequestedTaskFulfillment", "Fairness", "Workload")
DEFAULT_WEIGHT = 5
WEIGHT_MIN = 0
WEIGHT_MAX = 10

PRIORITY_PRESETS: dict[str, dict[str, int]] = {
    "Maximize Fulfillment": {"PriorityLevel": 5, "RequestedTaskFulfillment": 10, "Fairness": 5, "Workload": 5},
    "Fair Distribution": {"PriorityLevel": 5, "RequestedTaskFulfillment": 5, "Fairness": 10, "Workload": 5},
    "Minimize Workload": {"PriorityLevel": 5, "RequestedTaskFulfillment": 5, "Fairness": 5, "Workload": 10},
}

_VALIDATOR = Draft7Validator(RULE_SCHEMA)


class RuleValidationError(Exception):
    """Raised when a rule or priority map is rejected."""

    def __init__(self, messages: list[str]) -> None:
        super().__init__("; ".join(messages))
        self.messages = messages


@dataclass(frozen=True)
class RuleContext:
    """Identifiers known from the loaded data, used for reference checks.

    Empty sets mean "unknown" and disable the corresponding check.
    """
    task_ids: frozenset[str] = frozenset()
    client_groups: frozenset[str] = frozenset()
    worker_groups: frozenset[str] = frozenset()

    @classmethod
    def from_rows(
        cls,
        clients: Iterable[Mapping[str, Any]] = (),
        workers: Iterable[Mapping[str, Any]] = (),
        tasks: Iterable[Mapping[str, Any]] = (),
    ) -> RuleContext:
        def _collect(rows: Iterable[Mapping[str, Any]], key: str) -> frozenset[str]:
            return frozenset(str(r.get(key)).strip() for r in rows if not is_blank(r.get(key)))

        return cls(
            task_ids=_collect(tasks, "TaskID"),
            client_groups=_collect(clients, "GroupTag"),
            worker_groups=_collect(workers, "WorkerGroup"),
        )


def _schema_messages(rule: Any) -> list[str]:
    messages = []
    for err in sorted(_VALIDATOR.iter_errors(rule), key=lambda e: [str(p) for p in e.absolute_path]):
        where = "/".join(str(p) for p in err.absolute_path)
        messages.append(f"{where}: {err.message}" if where else err.message)
    return messages


def _reference_messages(rule: Mapping[str, Any], context: RuleContext, rule_count: int) -> list[str]:
    messages: list[str] = []
    rule_type = rule["type"]
    if rule_type == "coRun" and context.task_ids:
        messages.extend(f'unknown TaskID "{t}"' for t in rule["taskIDs"] if t not in context.task_ids)
    elif rule_type == "phaseWindow" and context.task_ids and rule["taskID"] not in context.task_ids:
        messages.append(f'unknown TaskID "{rule["taskID"]}"')
    elif rule_type == "slotRestriction" and context.client_groups and rule["group"] not in context.client_groups:
        messages.append(f'unknown client group "{rule["group"]}"')
    elif rule_type == "loadLimit" and context.worker_groups and rule["workerGroup"] not in context.worker_groups:
        messages.append(f'unknown worker group "{rule["workerGroup"]}"')
    elif rule_type == "precedenceOverride":
        messages.extend(f"rule index {i} out of range" for i in rule["ruleIndexes"] if i >= rule_count)
    return messages


def validate_rule(rule: Any, context: RuleContext | None = None, *, rule_count: int = 0) -> list[str]:
    """Return every problem found with ``rule`` (empty list when valid).

    Parameters:
        rule: Candidate rule dict
        context: Known identifiers for reference checks (None skips them)
        rule_count: Number of rules already in the set (precedenceOverride targets)
    """
    messages = _schema_messages(rule)
    if messages:
        return messages
    if context is not None:
        messages.extend(_reference_messages(rule, context, rule_count))
    if rule["type"] == "patternMatch":
        try:
            re.compile(rule["regex"])
        except re.error as e:
            messages.append(f"regex: invalid pattern: {e}")
    return messages


def validate_priorities(weights: Mapping[str, Any]) -> list[str]:
    messages = []
    for key, value in weights.items():
        if key not in PRIORITY_CRITERIA:
            messages.append(f"unknown priority criterion: {key}")
        elif isinstance(value, bool) or not isinstance(value, int) or not WEIGHT_MIN <= value <= WEIGHT_MAX:
            messages.append(f"{key}: weight must be an integer between {WEIGHT_MIN} and {WEIGHT_MAX}")
    return messages


@dataclass
class RuleSet:
    """Ordered rule list plus priority weights."""
    rules: list[dict[str, Any]] = field(default_factory=list)
    priorities: dict[str, int] = field(default_factory=lambda: {c: DEFAULT_WEIGHT for c in PRIORITY_CRITERIA})
    context: RuleContext | None = None

    def add(self, rule: Any) -> int:
        """Validate and append a rule; returns its index."""
        candidate = copy.deepcopy(rule)
        messages = validate_rule(candidate, self.context, rule_count=len(self.rules))
        if messages:
            raise RuleValidationError(messages)
        self.rules.append(candidate)
        logger.debug("rule added type=%s index=%d", candidate["type"], len(self.rules) - 1)
        return len(self.rules) - 1

    def remove(self, index: int) -> dict[str, Any]:
        if not 0 <= index < len(self.rules):
            raise IndexError(f"rule index out of range: {index}")
        return self.rules.pop(index)

    def set_weight(self, criterion: str, value: int) -> None:
        messages = validate_priorities({criterion: value})
        if messages:
            raise RuleValidationError(messages)
        self.priorities[criterion] = value

    def apply_preset(self, name: str) -> None:
        if name not in PRIORITY_PRESETS:
            raise RuleValidationError([f"unknown priority preset: {name}"])
        self.priorities = dict(PRIORITY_PRESETS[name])

    def to_payload(self) -> dict[str, Any]:
        """Export shape: ``{"rules": [...], "priorities": {...}}``."""
        return {"rules": copy.deepcopy(self.rules), "priorities": dict(self.priorities)}


def load_rules_file(path: Path, context: RuleContext | None = None) -> RuleSet:
    """Load a rules.json payload (or a bare rule list) into a RuleSet.

    Raises:
        RuleValidationError: unreadable JSON, or any rule/priority rejected
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise RuleValidationError([f"cannot read rules file {path}: {e}"]) from e

    if isinstance(data, list):
        data = {"rules": data}
    if not isinstance(data, dict):
        raise RuleValidationError([f"rules file {path}: expected an object or a list"])

    rule_set = RuleSet(context=context)
    priorities = data.get("priorities") or {}
    if not isinstance(priorities, dict):
        raise RuleValidationError([f"rules file {path}: priorities must be an object"])
    messages = validate_priorities(priorities)
    if messages:
        raise RuleValidationError(messages)
    rule_set.priorities.update(priorities)

    problems: list[str] = []
    for index, rule in enumerate(data.get("rules") or []):
        try:
            rule_set.add(rule)
        except RuleValidationError as e:
            problems.extend(f"rules[{index}]: {m}" for m in e.messages)
    if problems:
        raise RuleValidationError(problems)
    return rule_set
