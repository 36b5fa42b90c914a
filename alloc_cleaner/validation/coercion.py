from __future__ import annotations

import json
import math
import numbers
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from ..models.entity_row import is_blank

"""Field coercion library.

Pure functions turning one raw spreadsheet cell (str, int/float, numpy
scalar, list, dict, None) into one canonical value. None of them raise.

Multi-format fields are decoded by an ordered chain of detectors. Each
detector answers ``Parsed(value)`` when the input is in its format and
decodes cleanly, or ``Empty`` otherwise; the first ``Parsed`` wins. JSON
decoding errors are caught inside the detector that attempted them.

Two array flavours exist on purpose:
- identifier lists (RequestedTaskIDs) are permissive and accept bare CSV
- numeric slot lists (AvailableSlots) are strict: CSV without brackets
  decodes to ``[]``
"""

__all__ = [
    "Parsed",
    "Empty",
    "EMPTY",
    "IdList",
    "decode_json",
    "coerce_number",
    "coerce_integer",
    "coerce_number_array",
    "coerce_id_array",
    "coerce_non_empty_string",
    "coerce_phase_spec",
    "is_finite_number",
]

T = TypeVar("T")


@dataclass(frozen=True)
class Parsed(Generic[T]):
    value: T


@dataclass(frozen=True)
class Empty:
    reason: str = ""


EMPTY = Empty()

PHASE_RANGE_RE = re.compile(r"^\d+\s*-\s*\d+$", re.ASCII)
PHASE_LIST_RE = re.compile(r"^\[\s*\d+(,\s*\d+)*\s*\]$", re.ASCII)


def is_finite_number(value: Any) -> bool:
    """Real, finite, and not a bool (numpy scalars included)."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError, OverflowError):
        return False


def _plain_number(value: Any) -> int | float:
    # numpy.int64 -> int, numpy.float64 -> float
    if isinstance(value, numbers.Integral):
        return int(value)
    return float(value)


def _reject_constant(token: str) -> Any:
    raise ValueError(f"non-standard JSON constant: {token}")


def decode_json(text: str) -> Parsed[Any] | Empty:
    """Strict JSON decode (NaN/Infinity rejected)."""
    try:
        return Parsed(json.loads(text, parse_constant=_reject_constant))
    except (ValueError, RecursionError):
        return Empty("malformed json")


def _first_parsed(raw: Any, detectors: Sequence[Callable[[Any], Parsed[Any] | Empty]]) -> Parsed[Any] | Empty:
    for detect in detectors:
        result = detect(raw)
        if isinstance(result, Parsed):
            return result
    return EMPTY


def _is_bracketed(text: str) -> bool:
    return text.startswith("[") and text.endswith("]")


# --- scalar numbers -------------------------------------------------------

def _number_from_scalar(raw: Any) -> Parsed[int | float] | Empty:
    if is_finite_number(raw):
        return Parsed(_plain_number(raw))
    return EMPTY


def _number_from_text(raw: Any) -> Parsed[int | float] | Empty:
    if not isinstance(raw, str):
        return EMPTY
    text = raw.strip()
    # float() would accept "1_000"; spreadsheet text never means that
    if not text or "_" in text:
        return Empty("not numeric")
    try:
        return Parsed(int(text))
    except ValueError:
        pass
    try:
        value = float(text)
    except ValueError:
        return Empty("not numeric")
    if not math.isfinite(value):
        return Empty("not finite")
    return Parsed(value)


def coerce_number(raw: Any) -> Parsed[int | float] | Empty:
    """Number or trimmed numeric string -> finite number."""
    return _first_parsed(raw, (_number_from_scalar, _number_from_text))


def coerce_integer(raw: Any) -> Parsed[int] | Empty:
    """Like ``coerce_number`` but the value must be integral (3.0 counts)."""
    result = coerce_number(raw)
    if isinstance(result, Empty):
        return result
    value = result.value
    if isinstance(value, float):
        if not value.is_integer():
            return Empty("not integral")
        return Parsed(int(value))
    return Parsed(value)


# --- strict numeric arrays (AvailableSlots) --------------------------------

def _numbers_from_list(raw: Any) -> Parsed[list[int | float]] | Empty:
    if not isinstance(raw, (list, tuple)):
        return EMPTY
    if all(is_finite_number(v) for v in raw):
        return Parsed([_plain_number(v) for v in raw])
    return Empty("non-numeric element")


def _numbers_from_json_text(raw: Any) -> Parsed[list[int | float]] | Empty:
    if not isinstance(raw, str):
        return EMPTY
    text = raw.strip()
    if not _is_bracketed(text):
        return EMPTY
    decoded = decode_json(text)
    if isinstance(decoded, Empty):
        return decoded
    value = decoded.value
    if isinstance(value, list) and value and all(is_finite_number(v) for v in value):
        return Parsed([_plain_number(v) for v in value])
    return Empty("not a non-empty number list")


def _single_number_from_text(raw: Any) -> Parsed[list[int | float]] | Empty:
    # "1,2" fails here on purpose: slot lists need brackets
    number = _number_from_text(raw)
    if isinstance(number, Parsed):
        return Parsed([number.value])
    return EMPTY


def _single_number(raw: Any) -> Parsed[list[int | float]] | Empty:
    number = _number_from_scalar(raw)
    if isinstance(number, Parsed):
        return Parsed([number.value])
    return EMPTY


_NUMBER_ARRAY_DETECTORS = (
    _numbers_from_list,
    _numbers_from_json_text,
    _single_number_from_text,
    _single_number,
)


def coerce_number_array(raw: Any) -> list[int | float]:
    """Strict numeric list decoding; anything unrecognised yields ``[]``."""
    result = _first_parsed(raw, _NUMBER_ARRAY_DETECTORS)
    if isinstance(result, Parsed):
        return result.value
    return []


# --- permissive identifier arrays (RequestedTaskIDs) -----------------------

@dataclass(frozen=True)
class IdList:
    """Decoded identifier list plus the 1-based positions of empty tokens."""
    ids: list[Any]
    empty_positions: tuple[int, ...] = field(default_factory=tuple)


def _format_id(value: Any) -> str:
    if is_finite_number(value):
        number = _plain_number(value)
        if isinstance(number, float) and number.is_integer():
            return str(int(number))
        return str(number)
    return str(value)


def _split_tokens(tokens: Sequence[str]) -> IdList:
    ids: list[Any] = []
    empty: list[int] = []
    for position, token in enumerate(tokens, start=1):
        cleaned = token.strip()
        if cleaned == "":
            empty.append(position)
        else:
            ids.append(cleaned)
    return IdList(ids=ids, empty_positions=tuple(empty))


def _ids_from_list(raw: Any) -> Parsed[IdList] | Empty:
    if isinstance(raw, (list, tuple)):
        return Parsed(IdList(ids=list(raw)))
    return EMPTY


def _ids_from_json_text(raw: Any) -> Parsed[IdList] | Empty:
    if not isinstance(raw, str):
        return EMPTY
    text = raw.strip()
    if not _is_bracketed(text):
        return EMPTY
    decoded = decode_json(text)
    if isinstance(decoded, Parsed) and isinstance(decoded.value, list):
        return Parsed(_split_tokens(["" if v is None else _format_id(v) for v in decoded.value]))
    # "[T1, T2]" is not JSON; read the inside as CSV
    return Parsed(_split_tokens(text[1:-1].split(",")))


def _ids_from_csv_text(raw: Any) -> Parsed[IdList] | Empty:
    if not isinstance(raw, str):
        return EMPTY
    return Parsed(_split_tokens(raw.split(",")))


def _ids_from_number(raw: Any) -> Parsed[IdList] | Empty:
    if is_finite_number(raw):
        return Parsed(IdList(ids=[_format_id(raw)]))
    return EMPTY


_ID_ARRAY_DETECTORS = (
    _ids_from_list,
    _ids_from_json_text,
    _ids_from_csv_text,
    _ids_from_number,
)


def coerce_id_array(raw: Any) -> IdList:
    """Permissive identifier list decoding.

    Blank input (None, NaN, empty or whitespace-only text) is absence and
    decodes to an empty list without empty-token positions.
    """
    if is_blank(raw) or (isinstance(raw, str) and raw.strip() == ""):
        return IdList(ids=[])
    result = _first_parsed(raw, _ID_ARRAY_DETECTORS)
    if isinstance(result, Parsed):
        return result.value
    return IdList(ids=[])


# --- strings and phase specs ----------------------------------------------

def coerce_non_empty_string(raw: Any) -> Parsed[str] | Empty:
    if isinstance(raw, str) and raw.strip() != "":
        return Parsed(raw)
    return Empty("not a non-empty string")


def _phases_from_list(raw: Any) -> Parsed[Any] | Empty:
    if isinstance(raw, (list, tuple)) and raw and all(is_finite_number(v) for v in raw):
        return Parsed(raw)
    return EMPTY


def _phases_from_text(raw: Any) -> Parsed[Any] | Empty:
    if not isinstance(raw, str):
        return EMPTY
    text = raw.strip()
    if PHASE_RANGE_RE.match(text) or PHASE_LIST_RE.match(text):
        return Parsed(raw)
    return EMPTY


def coerce_phase_spec(raw: Any) -> Parsed[Any] | Empty:
    """Structural check for PreferredPhases.

    The value is returned untouched on success; the original encoding
    ("1-3", "[2,4,5]" or a list) is kept for display and export.
    """
    return _first_parsed(raw, (_phases_from_list, _phases_from_text))
