from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.entity_row import SCHEMAS, EntityKind

"""Tabular file reader (CSV / XLSX -> plain row dicts).

- CSV: every cell is read as text (blank cells become "")
- XLSX: first sheet, header on the first row, typed cells as openpyxl
  returns them
- Headers are normalized (all whitespace removed, trailing "Id" -> "ID") so
  "Client Id" and "ClientID" land on the same column
- pandas filler columns ("Unnamed: 3") and fully empty rows are dropped
"""

__all__ = [
    "SUPPORTED_SUFFIXES",
    "SheetData",
    "SheetHeaderError",
    "UnsupportedFileError",
    "normalize_header",
    "normalize_table",
    "read_table",
    "load_entity_file",
]

SUPPORTED_SUFFIXES = (".csv", ".xlsx")
_UNNAMED_RE = re.compile(r"^Unnamed:\s*\d+")


class SheetHeaderError(Exception):
    """Raised when the table has no usable header row."""


class UnsupportedFileError(Exception):
    """Raised for files that are neither .csv nor .xlsx."""


@dataclass
class SheetData:
    entity: EntityKind
    columns: list[str]
    rows: list[dict[str, Any]]  # 正規化済 (列名→値)
    missing_headers: list[str] = field(default_factory=list)


def normalize_header(header: Any) -> str:
    text = re.sub(r"\s+", "", str(header))
    if text.endswith("Id"):
        text = text[:-2] + "ID"
    return text


def read_table(path: Path) -> pd.DataFrame:
    """Read a CSV or XLSX file into a DataFrame with the raw header row."""
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path, dtype=str, keep_default_na=False, skip_blank_lines=True)
    if suffix == ".xlsx":
        return pd.read_excel(path, sheet_name=0)
    raise UnsupportedFileError(f"unsupported file type: {path.name}")


def _is_empty_cell(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):  # list-like cells
        return False


def normalize_table(
    df: pd.DataFrame,
    entity: EntityKind,
    null_sentinels: Iterable[str] | None = None,
) -> SheetData:
    """Normalize a raw DataFrame into row dicts for one entity kind.

    Steps:
    1. Normalize headers, drop pandas filler columns
    2. Skip rows where every kept cell is empty
    3. NaN -> None; text matching a null sentinel (case-insensitive) -> None
    4. Report the entity's required columns absent from the header
    """
    if len(df.columns) == 0:
        raise SheetHeaderError(f"{entity.collection}: table has no header row")
    sentinels = {s.strip().upper() for s in null_sentinels or () if isinstance(s, str)}

    kept: list[tuple[Any, str]] = []
    for raw_name in df.columns:
        if _UNNAMED_RE.match(str(raw_name)):
            continue
        kept.append((raw_name, normalize_header(raw_name)))
    columns = [name for _, name in kept]

    rows: list[dict[str, Any]] = []
    for _, raw in df.iterrows():
        cells = [raw[src] for src, _ in kept]
        if all(_is_empty_cell(v) for v in cells):
            continue
        row: dict[str, Any] = {}
        for (_, name), val in zip(kept, cells, strict=True):
            if not isinstance(val, str) and _is_empty_cell(val):
                row[name] = None
                continue
            if isinstance(val, str) and sentinels and val.strip().upper() in sentinels:
                row[name] = None
                continue
            row[name] = val.item() if hasattr(val, "item") and not isinstance(val, str) else val
        rows.append(row)

    missing = [c for c in SCHEMAS[entity].required_fields if c not in columns]
    return SheetData(entity=entity, columns=columns, rows=rows, missing_headers=missing)


def load_entity_file(
    path: Path,
    entity: EntityKind,
    null_sentinels: Iterable[str] | None = None,
) -> SheetData:
    """Read and normalize one entity file."""
    return normalize_table(read_table(path), entity, null_sentinels=null_sentinels)
