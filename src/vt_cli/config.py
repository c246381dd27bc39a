"""Configuration and credential resolution for the vt client."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlsplit

from .errors import ConfigurationError, TokenFileError
from .logging import get_logger

DEFAULT_API_ROOT = "https://api.val.town/v1"
TOKEN_ENV = "VALTOWN_TOKEN"
API_URL_ENV = "VALTOWN_API_URL"
ENV_PREFIX = "VT_"
OUTPUT_FORMATS = ("json", "yaml")

logger = get_logger("vt.config")


@dataclass(frozen=True)
class ClientConfig:
    """Settings shared by every command, resolved once per invocation."""

    api_root: str = DEFAULT_API_ROOT
    token: Optional[str] = None
    output: str = "json"
    color: bool = True

    def __post_init__(self) -> None:
        if self.output not in OUTPUT_FORMATS:
            raise ConfigurationError(f"Output format must be one of: {', '.join(OUTPUT_FORMATS)}")
        try:
            parts = urlsplit(self.api_root)
        except ValueError as exc:
            raise ConfigurationError(f"API root must be an absolute http(s) URL: {self.api_root}") from exc
        if parts.scheme not in {"http", "https"} or not parts.netloc:
            raise ConfigurationError(f"API root must be an absolute http(s) URL: {self.api_root}")

    def logging_dict(self) -> Dict[str, Any]:
        """Return a sanitized mapping suitable for structured logging."""

        return {
            "api_root": self.api_root,
            "token": "***REDACTED***" if self.token else None,
            "output": self.output,
            "color": self.color,
        }


def env(name: str, default: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    source = os.environ if environ is None else environ
    return source.get(f"{ENV_PREFIX}{name}", default)


def default_token_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    source = os.environ if environ is None else environ
    config_home = source.get("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / "vt" / "api_token"


def read_token_file(path: Path) -> Optional[str]:
    """Return the trimmed token stored at ``path``, or ``None`` when there is no file."""

    try:
        contents = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        raise TokenFileError(f"failed to read token file {path}: {exc}") from exc
    return contents.strip()


def resolve_token(
    flag: Optional[str],
    environ: Mapping[str, str],
    token_file: Path,
) -> Optional[str]:
    """Pick the bearer token for this invocation.

    Precedence is ``--token``, then ``VALTOWN_TOKEN``, then the token file.
    A variable that is set but empty still wins over the file, so clearing it
    is a way to force an anonymous request. Empty results collapse to ``None``.
    """

    if flag is not None:
        logger.debug("Using token from command line")
        return flag or None
    if TOKEN_ENV in environ:
        logger.debug("Using token from environment", extra={"variable": TOKEN_ENV})
        return environ[TOKEN_ENV] or None
    token = read_token_file(token_file)
    if token is not None:
        logger.debug("Using token from file", extra={"path": str(token_file)})
        return token or None
    logger.debug("No token configured; requests will be anonymous")
    return None


def load_config(
    args: argparse.Namespace,
    environ: Optional[Mapping[str, str]] = None,
    token_file: Optional[Path] = None,
) -> ClientConfig:
    source = os.environ if environ is None else environ
    path = token_file if token_file is not None else default_token_path(source)
    api_root = (source.get(API_URL_ENV) or DEFAULT_API_ROOT).rstrip("/")
    color = not args.no_color and "NO_COLOR" not in source
    return ClientConfig(
        api_root=api_root,
        token=resolve_token(args.token, source, path),
        output=args.output or "json",
        color=color,
    )
