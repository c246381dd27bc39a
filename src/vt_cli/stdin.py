"""Standard input access with injectable terminal detection."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import BinaryIO, Callable, Optional

from .errors import InputError


@dataclass(frozen=True)
class StandardInput:
    """A byte stream plus a predicate telling whether it is an interactive terminal.

    Commands never call ``isatty`` themselves; tests build one of these around
    a ``BytesIO`` to simulate piped or interactive invocations.
    """

    stream: BinaryIO
    is_interactive: Callable[[], bool]

    @classmethod
    def from_sys(cls) -> "StandardInput":
        return cls(stream=sys.stdin.buffer, is_interactive=sys.stdin.isatty)

    def read_piped(self) -> Optional[bytes]:
        """Return everything on the stream, or ``None`` when attached to a terminal."""

        if self.is_interactive():
            return None
        return self.read_all()

    def read_all(self) -> bytes:
        """Read the stream to end-of-file, even from a terminal."""

        try:
            return self.stream.read()
        except OSError as exc:
            raise InputError(f"failed to read standard input: {exc}") from exc

    def read_piped_text(self) -> Optional[str]:
        data = self.read_piped()
        if data is None:
            return None
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InputError("standard input is not valid UTF-8") from exc
