"""Conversion of command-line arguments into JSON values."""

from __future__ import annotations

import json
import math
from typing import Any, Dict, Iterable, List, Union

JsonValue = Union[None, bool, int, float, str, List["JsonValue"], Dict[str, "JsonValue"]]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number out of range: {text}")
    return value


def loads_strict(text: str) -> JsonValue:
    """``json.loads`` that refuses ``NaN``, ``Infinity`` and numbers overflowing a float."""

    return json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)


def coerce_argument(text: str) -> JsonValue:
    """Return ``text`` parsed as JSON, or ``text`` itself when it is not JSON.

    ``"42"`` becomes ``42``, ``"[1,2]"`` a list and ``'"x"'`` the string ``x``,
    while ``"hello world"`` and ``"1e400"`` stay strings. The empty string maps
    to ``None``.
    """

    if text == "":
        return None
    try:
        return loads_strict(text)
    except ValueError:
        return text


def coerce_arguments(texts: Iterable[str]) -> List[JsonValue]:
    return [coerce_argument(text) for text in texts]


def parse_args_array(text: str) -> List[JsonValue]:
    """Parse the value of ``eval --args``; it must be a JSON array."""

    value = loads_strict(text)
    if not isinstance(value, list):
        raise ValueError("expected a JSON array")
    return value


def eval_payload(code: str, args: Iterable[str] = ()) -> Dict[str, JsonValue]:
    return {"code": code, "args": coerce_arguments(args)}


def run_payload(args: Iterable[str]) -> Dict[str, JsonValue]:
    return {"args": coerce_arguments(args)}


def query_payload(statement: str) -> Dict[str, JsonValue]:
    return {"statement": statement}


def encode_payload(payload: Dict[str, JsonValue]) -> bytes:
    return json.dumps(payload, ensure_ascii=False, allow_nan=False).encode("utf-8")
