import pytest

from vt_cli.errors import ConfigurationError, InvalidIdentifierError
from vt_cli.targets import (
    ValIdentifier,
    alias_url,
    build_target_url,
    eval_url,
    infer_method,
    parse_val_identifier,
    run_url,
    sqlite_url,
)

API_ROOT = "https://api.val.town/v1"


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("me/add", "https://api.val.town/v1/me/add"),
        ("/me/add", "https://api.val.town/v1/me/add"),
        ("/v1/me/add", "https://api.val.town/v1/me/add"),
        ("v1/me", "https://api.val.town/v1/me"),
        ("/v1", "https://api.val.town/v1"),
        ("/v10/thing", "https://api.val.town/v1/v10/thing"),
        ("me/vals?limit=1", "https://api.val.town/v1/me/vals?limit=1"),
    ],
)
def test_paths_are_resolved_against_api_root(raw: str, expected: str) -> None:
    assert build_target_url(raw, API_ROOT) == expected


@pytest.mark.parametrize(
    "raw",
    ["https://example.com/anything", "http://localhost:3000/v1/me", "https://api.val.town/v2/x"],
)
def test_urls_with_scheme_are_unchanged(raw: str) -> None:
    assert build_target_url(raw, API_ROOT) == raw


def test_custom_api_root() -> None:
    assert build_target_url("me", "http://localhost:8080/v1") == "http://localhost:8080/v1/me"
    assert build_target_url("me", "http://localhost:8080") == "http://localhost:8080/me"


def test_method_inference() -> None:
    assert infer_method(None, None) == "GET"
    assert infer_method(None, b"") == "GET"
    assert infer_method(None, b'{"a":1}') == "POST"
    assert infer_method("delete", None) == "DELETE"
    assert infer_method("PUT", b"{}") == "PUT"


@pytest.mark.parametrize("explicit", ["GET", "get"])
def test_get_with_body_is_rejected(explicit: str) -> None:
    with pytest.raises(ConfigurationError, match="GET"):
        infer_method(explicit, b"x")


def test_unknown_method_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="unsupported HTTP method"):
        infer_method("FETCH", None)


@pytest.mark.parametrize(
    "text,owner,name",
    [("@owner.name", "owner", "name"), ("owner.name", "owner", "name")],
)
def test_identifier_splits_into_two_segments(text: str, owner: str, name: str) -> None:
    assert parse_val_identifier(text) == ValIdentifier(owner, name)


@pytest.mark.parametrize("text", ["@owner", "@owner.sub.name", "", "@", "@.name", "@owner."])
def test_invalid_identifiers_are_rejected(text: str) -> None:
    with pytest.raises(InvalidIdentifierError, match="invalid val"):
        parse_val_identifier(text)


def test_endpoint_templates() -> None:
    ident = parse_val_identifier("@pomdtr.add")
    assert eval_url(API_ROOT) == "https://api.val.town/v1/eval"
    assert run_url(API_ROOT, ident) == "https://api.val.town/v1/run/pomdtr.add"
    assert alias_url(API_ROOT + "/", ident) == "https://api.val.town/v1/alias/pomdtr/add"


@pytest.mark.parametrize("raw", ["http://[::1", "https://example.com]/x"])
def test_malformed_url_is_a_configuration_error(raw: str) -> None:
    with pytest.raises(ConfigurationError, match="invalid URL"):
        build_target_url(raw, API_ROOT)


def test_sqlite_endpoint() -> None:
    assert sqlite_url(API_ROOT) == "https://api.val.town/v1/sqlite/execute"
