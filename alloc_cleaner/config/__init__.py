"""YAML configuration loading and schema validation."""
