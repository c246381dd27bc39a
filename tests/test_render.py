import io
import json

import pytest
import yaml

from vt_cli.errors import ResponseDecodeError
from vt_cli.render import (
    NO_VALUE,
    decode_response,
    format_json,
    is_result_set,
    render,
    render_table,
    render_text,
)


def test_empty_body_is_no_value() -> None:
    assert decode_response(b"") is NO_VALUE
    assert decode_response(b"  \n") is NO_VALUE


def test_null_body_is_not_no_value() -> None:
    assert decode_response(b"null") is None


def test_malformed_body_raises() -> None:
    with pytest.raises(ResponseDecodeError, match="invalid JSON"):
        decode_response(b"<html>oops</html>")


def test_render_reproduces_structure_with_two_space_indent() -> None:
    value = decode_response(b'{"a":1,"b":[true,null,"x"]}')
    stream = io.StringIO()
    render(value, stream)
    assert stream.getvalue() == '{\n  "a": 1,\n  "b": [\n    true,\n    null,\n    "x"\n  ]\n}\n'
    assert json.loads(stream.getvalue()) == {"a": 1, "b": [True, None, "x"]}


def test_html_characters_and_unicode_are_not_escaped() -> None:
    text = format_json({"html": "<a href='/x?a=1&b=2'>é</a>"})
    assert text == '{\n  "html": "<a href=\'/x?a=1&b=2\'>é</a>"\n}\n'


def test_key_order_is_preserved() -> None:
    value = decode_response(b'{"zeta": 1, "alpha": 2, "mid": {"b": 1, "a": 2}}')
    assert format_json(value).splitlines()[1].strip() == '"zeta": 1,'
    assert list(value) == ["zeta", "alpha", "mid"]


def test_render_no_value_prints_nothing() -> None:
    stream = io.StringIO()
    render(NO_VALUE, stream)
    assert stream.getvalue() == ""


def test_render_yaml() -> None:
    stream = io.StringIO()
    render({"b": 1, "a": ["x"]}, stream, output="yaml")
    assert stream.getvalue() == "b: 1\na:\n- x\n"
    assert yaml.safe_load(stream.getvalue()) == {"b": 1, "a": ["x"]}


def test_render_highlighted_keeps_content() -> None:
    stream = io.StringIO()
    render({"a": "<b>"}, stream, highlight=True)
    assert '"<b>"' in stream.getvalue()


def test_render_text() -> None:
    stream = io.StringIO()
    render_text("export default 1", stream)
    assert stream.getvalue() == "export default 1\n"


@pytest.mark.parametrize("body", [b"NaN", b"Infinity", b"-Infinity", b'{"a": 1e400}', b"[NaN]"])
def test_non_finite_numbers_are_not_json(body: bytes) -> None:
    with pytest.raises(ResponseDecodeError, match="invalid JSON"):
        decode_response(body)


def test_format_json_refuses_non_finite_values() -> None:
    with pytest.raises(ValueError):
        format_json(float("nan"))


def test_result_set_detection() -> None:
    assert is_result_set({"columns": ["a"], "rows": [[1]]})
    assert is_result_set({"columns": [], "rows": []})
    assert not is_result_set({"columns": ["a"], "rows": [1]})
    assert not is_result_set([1, 2])
    assert not is_result_set(NO_VALUE)


def test_render_table() -> None:
    stream = io.StringIO()
    render_table({"columns": ["id", "name", "tags"], "rows": [[1, "alice", ["x"]], [2, None, []]]}, stream)
    text = stream.getvalue()
    for fragment in ("id", "name", "tags", "alice", '["x"]', "2"):
        assert fragment in text
    assert "None" not in text
