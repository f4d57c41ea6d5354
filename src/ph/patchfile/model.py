"""Immutable records describing the files and hunks of a unified diff."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

from ..errors import HunkCountError, ParseError


class LineTag(str, Enum):
    """Role of a single line inside a hunk body."""

    CONTEXT = "context"
    REMOVED = "removed"
    ADDED = "added"

    @property
    def marker(self) -> str:
        return _MARKERS[self]


_MARKERS = {LineTag.CONTEXT: " ", LineTag.REMOVED: "-", LineTag.ADDED: "+"}


@dataclass(frozen=True, slots=True)
class HunkLine:
    """One tagged body line; ``text`` excludes the leading marker."""

    tag: LineTag
    text: str

    def render(self) -> str:
        return f"{self.tag.marker}{self.text}"


@dataclass(frozen=True, slots=True)
class Hunk:
    """A single ``@@ -l,c +l,c @@`` block and its body lines."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: Tuple[HunkLine, ...]
    section: str = ""

    def __post_init__(self) -> None:
        if min(self.old_start, self.old_count, self.new_start, self.new_count) < 0:
            raise ParseError(f"Negative range in hunk header {self.header}")
        if not self.lines:
            raise HunkCountError(f"Hunk {self.header} has no body lines")
        seen_old = sum(1 for line in self.lines if line.tag is not LineTag.ADDED)
        seen_new = sum(1 for line in self.lines if line.tag is not LineTag.REMOVED)
        if seen_old != self.old_count or seen_new != self.new_count:
            raise HunkCountError(
                f"Hunk line count mismatch: expected -{self.old_count}/+{self.new_count} "
                f"but saw -{seen_old}/+{seen_new}.",
                details={
                    "header": self.header,
                    "expected": [self.old_count, self.new_count],
                    "seen": [seen_old, seen_new],
                },
            )

    @property
    def header(self) -> str:
        suffix = f" {self.section}" if self.section else ""
        return (
            f"@@ -{self.old_start},{self.old_count} "
            f"+{self.new_start},{self.new_count} @@{suffix}"
        )

    @property
    def old_lines(self) -> Tuple[str, ...]:
        """Context and removed lines, in order: what the target should contain."""
        return tuple(line.text for line in self.lines if line.tag is not LineTag.ADDED)

    @property
    def new_lines(self) -> Tuple[str, ...]:
        """Context and added lines, in order: what replaces the old side."""
        return tuple(line.text for line in self.lines if line.tag is not LineTag.REMOVED)

    @property
    def leading_context(self) -> int:
        count = 0
        for line in self.lines:
            if line.tag is not LineTag.CONTEXT:
                break
            count += 1
        return count

    @property
    def trailing_context(self) -> int:
        count = 0
        for line in reversed(self.lines):
            if line.tag is not LineTag.CONTEXT:
                break
            count += 1
        if count == len(self.lines):
            # Context-only hunk: split so the trims never overlap.
            return 0
        return count

    @property
    def line_delta(self) -> int:
        return self.new_count - self.old_count

    def render(self) -> str:
        body = "\n".join(line.render() for line in self.lines)
        return f"{self.header}\n{body}\n"


@dataclass(frozen=True, slots=True)
class PatchedFile:
    """One file entry of a multi-file diff, with its hunks in diff order."""

    path: str
    hunks: Tuple[Hunk, ...]
    source_path: str | None = None
    change_type: str = "modify"  # "add", "modify", "delete" or "rename"
    raw: str = field(default="", repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.path or not self.path.strip():
            raise ParseError("Patched file is missing a target path")
        if not self.hunks:
            raise ParseError(f"No hunks found for {self.path}", path=self.path)

    @property
    def line_delta(self) -> int:
        return sum(hunk.line_delta for hunk in self.hunks)

    def render(self) -> str:
        """Return the section as diff text, preferring the original bytes."""
        if self.raw:
            return self.raw if self.raw.endswith("\n") else self.raw + "\n"
        source = self.source_path or self.path
        header = f"diff --git a/{source} b/{self.path}\n--- a/{source}\n+++ b/{self.path}\n"
        return header + "".join(hunk.render() for hunk in self.hunks)

    def __str__(self) -> str:
        return self.render()


__all__ = ["Hunk", "HunkLine", "LineTag", "PatchedFile"]
