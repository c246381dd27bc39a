"""Single-shot HTTP execution against the Val Town API."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, MutableMapping, Optional

import httpx

from . import __version__
from .config import ClientConfig
from .errors import ApiStatusError, ConfigurationError, NetworkError
from .logging import get_logger, redact_mapping
from .targets import check_method_body, normalize_method

logger = get_logger("vt.client")

_DETAIL_LIMIT = 500


@dataclass(frozen=True)
class RequestSpec:
    """Everything needed to issue one request."""

    method: str
    url: str
    body: Optional[bytes] = None
    token: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", normalize_method(self.method))
        check_method_body(self.method, self.body)

    def request_headers(self) -> MutableMapping[str, str]:
        headers: MutableMapping[str, str] = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.body:
            headers["Content-Type"] = "application/json"
        headers.update(self.headers)
        return headers


def build_client(
    config: ClientConfig,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    # No timeout: an unresponsive server blocks until the process is killed.
    return httpx.Client(
        base_url=config.api_root,
        headers={"User-Agent": f"vt-cli/{__version__}"},
        timeout=None,
        follow_redirects=False,
        transport=transport,
    )


def _response_detail(response: httpx.Response) -> Optional[str]:
    try:
        payload = response.json()
    except ValueError:
        text = response.text.strip()
        return text[:_DETAIL_LIMIT] or None
    if isinstance(payload, dict):
        for key in ("detail", "message", "error"):
            if isinstance(payload.get(key), str):
                return payload[key]
    return response.text.strip()[:_DETAIL_LIMIT] or None


def execute(client: httpx.Client, spec: RequestSpec) -> httpx.Response:
    """Send ``spec`` once and return the response, which is always a 200.

    Any other status raises :class:`ApiStatusError`; transport failures raise
    :class:`NetworkError` chained to the httpx exception.
    """

    headers = spec.request_headers()
    logger.debug(
        "API request",
        extra={"method": spec.method, "url": spec.url, "headers": redact_mapping(headers)},
    )
    try:
        response = client.request(spec.method, spec.url, content=spec.body, headers=headers)
    except httpx.InvalidURL as exc:
        raise ConfigurationError(f"invalid URL: {spec.url} ({exc})") from exc
    except httpx.RequestError as exc:
        logger.debug("API request failed", extra={"method": spec.method, "url": spec.url, "error": str(exc)})
        raise NetworkError(f"HTTP request failed: {exc}") from exc

    logger.debug(
        "API response",
        extra={"method": spec.method, "url": spec.url, "status_code": response.status_code},
    )
    if response.status_code != httpx.codes.OK:
        raise ApiStatusError(response.status_code, response.reason_phrase, _response_detail(response))
    return response
