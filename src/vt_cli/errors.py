"""Exception hierarchy for the vt client.

Every error the pipeline surfaces derives from :class:`CliError`; ``main``
turns any of them into a one-line message on stderr and exit status 1.
"""

from __future__ import annotations

from typing import Optional


class CliError(Exception):
    """Raised when the CLI encounters an expected error condition."""

    exit_code = 1


class ConfigurationError(CliError):
    """Invalid combination of flags, arguments or settings."""


class InvalidIdentifierError(ConfigurationError):
    """A val identifier is not of the form ``@owner.name``."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"invalid val: {identifier}")
        self.identifier = identifier


class InputError(CliError):
    """Local input (stdin, token file) could not be read."""


class TokenFileError(InputError):
    """The token file exists but could not be read."""


class NetworkError(CliError):
    """The request never produced an HTTP response."""


class ProtocolError(CliError):
    """The server answered, but not with something we accept."""


class ApiStatusError(ProtocolError):
    """The server answered with a status other than 200."""

    def __init__(self, status_code: int, reason: str, detail: Optional[str] = None) -> None:
        message = f"request failed: {status_code} {reason}".rstrip()
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.detail = detail


class ResponseDecodeError(ProtocolError):
    """The response body is not valid JSON."""
