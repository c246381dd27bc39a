"""Request target construction: URLs, HTTP methods and val identifiers."""

from __future__ import annotations

from typing import NamedTuple, Optional
from urllib.parse import urlsplit, urlunsplit

from .errors import ConfigurationError, InvalidIdentifierError

HTTP_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")


class ValIdentifier(NamedTuple):
    owner: str
    name: str

    @property
    def slug(self) -> str:
        return f"{self.owner}.{self.name}"


def parse_val_identifier(text: str) -> ValIdentifier:
    """Split ``@owner.name`` (the ``@`` is optional) into its two segments."""

    value = text[1:] if text.startswith("@") else text
    parts = value.split(".")
    if len(parts) != 2 or not all(parts):
        raise InvalidIdentifierError(value)
    return ValIdentifier(owner=parts[0], name=parts[1])


def build_target_url(raw: str, api_root: str) -> str:
    """Resolve user input against the API root.

    Input that already carries a scheme is used as-is. Anything else is a path
    on the API host; ``me/add`` and ``/v1/me/add`` both end up at
    ``<api root>/me/add``.
    """

    try:
        target = urlsplit(raw)
    except ValueError as exc:
        raise ConfigurationError(f"invalid URL: {raw}") from exc
    if target.scheme:
        return raw

    root = urlsplit(api_root)
    path = target.path
    if not path.startswith("/"):
        path = "/" + path
    prefix = root.path.rstrip("/")
    if prefix and not (path == prefix or path.startswith(prefix + "/")):
        path = prefix + path
    return urlunsplit((root.scheme, root.netloc, path, target.query, target.fragment))


def normalize_method(method: str) -> str:
    normalized = method.strip().upper()
    if normalized not in HTTP_METHODS:
        raise ConfigurationError(
            f"unsupported HTTP method {method!r} (expected one of: {', '.join(HTTP_METHODS)})"
        )
    return normalized


def infer_method(explicit: Optional[str], body: Optional[bytes]) -> str:
    """Return the explicit method if given, else POST when a body is present and GET otherwise."""

    if explicit is not None:
        method = normalize_method(explicit)
    elif body:
        method = "POST"
    else:
        method = "GET"
    check_method_body(method, body)
    return method


def check_method_body(method: str, body: Optional[bytes]) -> None:
    if method == "GET" and body:
        raise ConfigurationError("cannot specify request body for GET request")


def eval_url(api_root: str) -> str:
    return f"{api_root.rstrip('/')}/eval"


def run_url(api_root: str, ident: ValIdentifier) -> str:
    return f"{api_root.rstrip('/')}/run/{ident.slug}"


def sqlite_url(api_root: str) -> str:
    return f"{api_root.rstrip('/')}/sqlite/execute"


def alias_url(api_root: str, ident: ValIdentifier) -> str:
    return f"{api_root.rstrip('/')}/alias/{ident.owner}/{ident.name}"
