"""Error taxonomy shared by the patch reader, applier and audit loop."""

from __future__ import annotations

from typing import Any, Mapping


class PatchHelperError(RuntimeError):
    """Base class for every error raised by patch-helper."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = dict(details or {})


class ParseError(PatchHelperError):
    """Raised when one file section of a unified diff cannot be understood."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        line: int | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.path = path
        self.line = line


class HunkCountError(ParseError):
    """Raised when a hunk body disagrees with the counts in its ``@@`` header."""


class EmptyPatchError(ParseError):
    """Raised when no file section of the input could be parsed at all."""


class ConfigurationError(PatchHelperError):
    """Raised for invalid run settings, before any file is processed."""


class HunkRejectedError(PatchHelperError):
    """Raised in strict mode when a hunk cannot be located in its target."""


__all__ = [
    "ConfigurationError",
    "EmptyPatchError",
    "HunkCountError",
    "HunkRejectedError",
    "ParseError",
    "PatchHelperError",
]
