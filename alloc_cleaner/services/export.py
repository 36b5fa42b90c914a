from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.entity_row import EntityKind, is_blank

"""Export of cleaned collections (CSV) and the rule configuration (JSON).

Cell rendering for CSV:
- lists and dicts -> JSON text ("[1, 2, 3]"), the bracketed form the
  slot, phase and id-list coercions read back
- None / NaN -> empty cell
Quoting of commas and quotes is left to pandas.
"""

__all__ = [
    "rows_to_csv",
    "export_all",
    "RULES_FILE_NAME",
]

logger = logging.getLogger(__name__)

RULES_FILE_NAME = "rules.json"
_FILLER_KEY_RE = re.compile(r"^(__EMPTY|Unnamed:\s*\d+)")


def _cell_text(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return json.dumps([None if is_blank(v) else v for v in value], ensure_ascii=False, default=str)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False, default=str)
    if is_blank(value):
        return ""
    return value


def _export_columns(rows: Sequence[Mapping[str, Any]]) -> list[str]:
    columns: list[str] = []
    seen: set[str] = set()
    for row in rows:
        for key in row.keys():
            if key in seen or _FILLER_KEY_RE.match(str(key)):
                continue
            seen.add(key)
            columns.append(key)
    return columns


def rows_to_csv(rows: Sequence[Mapping[str, Any]]) -> str:
    """Render rows as CSV text over the union of their keys (first-seen order)."""
    if not rows:
        return ""
    columns = _export_columns(rows)
    records = [{c: _cell_text(row.get(c)) for c in columns} for row in rows]
    df = pd.DataFrame(records, columns=columns)
    return df.to_csv(index=False, lineterminator="\n")


def export_all(
    out_dir: Path,
    *,
    clients: Sequence[Mapping[str, Any]] = (),
    workers: Sequence[Mapping[str, Any]] = (),
    tasks: Sequence[Mapping[str, Any]] = (),
    rules: Sequence[Mapping[str, Any]] = (),
    priorities: Mapping[str, Any] | None = None,
) -> list[Path]:
    """Write ``<entity>s_cleaned.csv`` per non-empty collection and ``rules.json``.

    ``rules.json`` is only written when there is at least one rule or one
    priority weight.

    Returns:
        Paths written, in clients/workers/tasks/rules order
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    collections = {EntityKind.CLIENT: clients, EntityKind.WORKER: workers, EntityKind.TASK: tasks}
    for kind, rows in collections.items():
        if not rows:
            continue
        path = out_dir / f"{kind.collection}_cleaned.csv"
        path.write_text(rows_to_csv(rows), encoding="utf-8")
        logger.debug("exported entity=%s rows=%d path=%s", kind.value, len(rows), path)
        written.append(path)

    priorities = dict(priorities or {})
    if rules or priorities:
        path = out_dir / RULES_FILE_NAME
        payload = {"rules": list(rules), "priorities": priorities}
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        written.append(path)
    return written
