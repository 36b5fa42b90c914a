from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.entity_row import EntityKind

"""Config loader.

Responsibilities:
- Load the YAML config (default config/cleaner.yml)
- Validate it against the bundled JSON schema (config_schema.json)
- Apply defaults (output_directory=./out, cross_reference=true)
"""

__all__ = [
    "ConfigError",
    "CleanerConfig",
    "DEFAULT_CONFIG_PATH",
    "CONFIG_ENV_VAR",
    "SCHEMA_PATH",
    "resolve_config_path",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/cleaner.yml")
CONFIG_ENV_VAR = "ALLOC_CLEANER_CONFIG"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class CleanerConfig:
    source_directory: str
    entity_files: dict[EntityKind, str]  # entity -> file name under source_directory
    output_directory: str = "./out"
    cross_reference: bool = True
    null_sentinels: set[str] = field(default_factory=set)  # 大文字化済
    rules_file: str | None = None
    priorities: dict[str, int] = field(default_factory=dict)

    def entity_path(self, kind: EntityKind) -> Path | None:
        name = self.entity_files.get(kind)
        if name is None:
            return None
        return Path(self.source_directory) / name


def _validate_config_schema(data: Any) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing or unreadable, or the config data
            fails validation (missing required keys, wrong types, unknown keys)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def resolve_config_path(cli_value: str | None = None) -> Path:
    """Precedence: --config, then $ALLOC_CLEANER_CONFIG, then config/cleaner.yml."""
    if cli_value:
        return Path(cli_value)
    env_value = os.getenv(CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value)
    return DEFAULT_CONFIG_PATH


def load_config(path: Path) -> CleanerConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    entity_files = {EntityKind.parse(k): v for k, v in data["entity_files"].items()}
    return CleanerConfig(
        source_directory=data["source_directory"],
        entity_files=entity_files,
        output_directory=data.get("output_directory", "./out"),
        cross_reference=data.get("cross_reference", True),
        null_sentinels={s.strip().upper() for s in data.get("null_sentinels", [])},
        rules_file=data.get("rules_file"),
        priorities=dict(data.get("priorities", {})),
    )
