"""Declarative allocation rules and priority weights."""

from .model import (
    DEFAULT_WEIGHT,
    PRIORITY_CRITERIA,
    PRIORITY_PRESETS,
    RuleContext,
    RuleSet,
    RuleValidationError,
    load_rules_file,
    validate_priorities,
    validate_rule,
)
from .schema import PATTERN_TEMPLATES, RULE_TYPES

__all__ = [
    "DEFAULT_WEIGHT",
    "PATTERN_TEMPLATES",
    "PRIORITY_CRITERIA",
    "PRIORITY_PRESETS",
    "RULE_TYPES",
    "RuleContext",
    "RuleSet",
    "RuleValidationError",
    "load_rules_file",
    "validate_priorities",
    "validate_rule",
]
