"""Decoding and rendering of API responses."""

from __future__ import annotations

import json
from typing import Any, List, Mapping, TextIO, Union

import yaml
from rich.console import Console
from rich.json import JSON
from rich.table import Table

from .arguments import JsonValue, loads_strict
from .errors import ResponseDecodeError


class _NoValue:
    """Marker for an empty response body, distinct from a JSON ``null``."""

    _instance = None

    def __new__(cls) -> "_NoValue":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_VALUE"

    def __bool__(self) -> bool:
        return False


NO_VALUE = _NoValue()

ApiResponse = Union[JsonValue, _NoValue]


def decode_response(content: Union[bytes, str]) -> ApiResponse:
    """Parse a response body; an empty (or whitespace-only) body yields ``NO_VALUE``.

    ``NaN``, ``Infinity`` and floats that overflow are rejected like any other
    non-JSON body.
    """

    text = content.decode("utf-8", errors="replace") if isinstance(content, bytes) else content
    if not text.strip():
        return NO_VALUE
    try:
        return loads_strict(text)
    except ValueError as exc:
        raise ResponseDecodeError(f"invalid JSON response: {exc}") from exc


def format_json(value: JsonValue) -> str:
    # ensure_ascii=False keeps non-ASCII text literal; json never escapes <, > or &.
    return json.dumps(value, indent=2, ensure_ascii=False, allow_nan=False) + "\n"


def format_yaml(value: JsonValue) -> str:
    return yaml.safe_dump(value, sort_keys=False, allow_unicode=True, default_flow_style=False)


def render(value: ApiResponse, stream: TextIO, output: str = "json", highlight: bool = False) -> None:
    """Write ``value`` to ``stream``; nothing at all is written for ``NO_VALUE``."""

    if value is NO_VALUE:
        return
    if output == "yaml":
        stream.write(format_yaml(value))
        return
    text = format_json(value)
    if highlight:
        console = Console(file=stream, soft_wrap=True)
        console.print(JSON(text, indent=2, ensure_ascii=False))
        return
    stream.write(text)


def is_result_set(value: ApiResponse) -> bool:
    """True for a ``{"columns": [...], "rows": [[...], ...]}`` query result."""

    if not isinstance(value, dict):
        return False
    columns, rows = value.get("columns"), value.get("rows")
    return (
        isinstance(columns, list)
        and isinstance(rows, list)
        and all(isinstance(row, list) for row in rows)
    )


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def render_table(result: Mapping[str, Any], stream: TextIO) -> None:
    """Print a query result set as a table."""

    table = Table(show_header=True, header_style="bold magenta")
    columns: List[Any] = result["columns"]
    for column in columns:
        table.add_column(str(column), style="cyan")
    for row in result["rows"]:
        table.add_row(*[_cell(cell) for cell in row])
    Console(file=stream).print(table)


def render_text(value: Any, stream: TextIO) -> None:
    """Write a plain string followed by a newline."""

    stream.write(f"{value}\n")
