"""Unified diff reader that turns raw patch text into addressable hunks."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterator, List, Sequence, Tuple

from ..errors import HunkCountError, ParseError
from .model import Hunk, HunkLine, LineTag, PatchedFile

LOGGER = logging.getLogger(__name__)

_HUNK_HEADER = re.compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? "
    r"\+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@ ?(?P<section>.*)$"
)
_EXTENDED_HEADERS = (
    "index ",
    "old mode ",
    "new mode ",
    "deleted file mode ",
    "new file mode ",
    "similarity index ",
    "dissimilarity index ",
    "rename from ",
    "rename to ",
    "copy from ",
    "copy to ",
)
_DEV_NULL = "/dev/null"


@dataclass(frozen=True, slots=True)
class ParseFailure:
    """Diagnosable gap left by a file section that could not be parsed."""

    path: str | None
    line: int | None
    reason: str


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Files parsed from a diff, in diff order, plus the sections that failed."""

    files: Tuple[PatchedFile, ...] = ()
    failures: Tuple[ParseFailure, ...] = field(default=())

    def __iter__(self) -> Iterator[PatchedFile]:
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.files)

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    @property
    def is_empty(self) -> bool:
        """True when nothing usable was found; callers treat this as "not a diff"."""
        return not self.files


def normalise_line_endings(text: str) -> str:
    """Convert CRLF/CR sequences to LF."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _normalise_header_path(operand: str) -> str | None:
    """Translate a ``---``/``+++``/``diff --git`` operand into a relative path."""
    candidate = operand.split("\t", 1)[0].strip()
    if len(candidate) >= 2 and candidate.startswith('"') and candidate.endswith('"'):
        candidate = candidate[1:-1]
    if not candidate or candidate == _DEV_NULL:
        return None
    if candidate.startswith(("a/", "b/")):
        candidate = candidate[2:]
    candidate = candidate.lstrip("/")
    return candidate or None


def _split_git_header(line: str) -> tuple[str | None, str | None]:
    rest = line[len("diff --git "):].strip()
    split_at = rest.rfind(" b/")
    if split_at < 0:
        split_at = rest.rfind(" ")
    if split_at < 0:
        return None, None
    return _normalise_header_path(rest[:split_at]), _normalise_header_path(rest[split_at + 1:])


def _is_file_start(lines: Sequence[str], index: int) -> bool:
    line = lines[index]
    if line.startswith("diff --git "):
        return True
    return (
        line.startswith("--- ")
        and index + 1 < len(lines)
        and lines[index + 1].startswith("+++ ")
    )


def _is_plain_section_start(lines: Sequence[str], index: int) -> bool:
    # A bare ---/+++ pair is only a new file once an @@ header follows it.
    return (
        _is_file_start(lines, index)
        and index + 2 < len(lines)
        and lines[index + 2].startswith("@@ ")
    )


def _next_file_start(lines: Sequence[str], index: int) -> int:
    while index < len(lines) and not _is_file_start(lines, index):
        index += 1
    return index


def _count(value: str | None) -> int:
    return int(value) if value is not None else 1


class DiffReader:
    """Parse unified diffs, isolating malformed file sections.

    A section that cannot be parsed is recorded as a :class:`ParseFailure` and
    the reader moves on to the next file header, so one corrupt hunk never
    discards the rest of the patch. With ``strict=True`` the first failure is
    raised instead.
    """

    def __init__(self, *, strict: bool = False) -> None:
        self.strict = strict

    def parse(self, raw_text: str) -> ParseResult:
        lines = normalise_line_endings(raw_text or "").split("\n")
        if lines and lines[-1] == "":
            lines.pop()

        files: List[PatchedFile] = []
        failures: List[ParseFailure] = []
        index = _next_file_start(lines, 0)
        while index < len(lines):
            start = index
            try:
                patched, index = self._read_section(lines, start)
            except ParseError as error:
                if self.strict:
                    raise
                failure = ParseFailure(path=error.path, line=error.line, reason=str(error))
                LOGGER.info("Could not understand %s: %s", error.path or "<unknown>", error)
                failures.append(failure)
                resume = (error.line or 0) - 1
                index = _next_file_start(lines, max(resume, start + 1))
                continue
            files.append(patched)
            index = _next_file_start(lines, index)

        LOGGER.debug("Parsed %d file(s) from diff, %d failure(s)", len(files), len(failures))
        return ParseResult(files=tuple(files), failures=tuple(failures))

    def _read_section(self, lines: Sequence[str], start: int) -> tuple[PatchedFile, int]:
        index = start
        total = len(lines)
        git_left = git_right = None
        rename_from = rename_to = None
        change_type = "modify"

        if lines[index].startswith("diff --git "):
            git_left, git_right = _split_git_header(lines[index])
            index += 1
            while index < total and lines[index].startswith(_EXTENDED_HEADERS):
                header = lines[index]
                if header.startswith("new file mode "):
                    change_type = "add"
                elif header.startswith("deleted file mode "):
                    change_type = "delete"
                elif header.startswith("rename from "):
                    rename_from = _normalise_header_path(header[len("rename from "):])
                    change_type = "rename"
                elif header.startswith("rename to "):
                    rename_to = _normalise_header_path(header[len("rename to "):])
                    change_type = "rename"
                index += 1

        old_path = new_path = None
        if index + 1 < total and lines[index].startswith("--- ") and lines[index + 1].startswith("+++ "):
            old_operand = lines[index][4:]
            new_operand = lines[index + 1][4:]
            old_path = _normalise_header_path(old_operand)
            new_path = _normalise_header_path(new_operand)
            if new_path is None and new_operand.split("\t", 1)[0].strip() == _DEV_NULL:
                change_type = "delete"
            elif old_path is None and old_operand.split("\t", 1)[0].strip() == _DEV_NULL:
                change_type = "add"
            index += 2

        path = new_path or old_path or rename_to or git_right or git_left
        source_path = old_path or rename_from or git_left
        if not path:
            raise ParseError("Unable to determine the target path of a file section", line=index + 1)

        hunks: List[Hunk] = []
        while index < total and lines[index].startswith("@@"):
            hunk, index = self._read_hunk(lines, index, path)
            hunks.append(hunk)
            while index < total and not lines[index].startswith("@@") and not _is_file_start(lines, index):
                if lines[index][:1] in ("+", "-", " "):
                    raise HunkCountError(
                        f"Hunk {hunk.header} in {path} has more body lines than its header declares",
                        path=path,
                        line=index + 1,
                    )
                index += 1

        if not hunks:
            raise ParseError(f"No hunks found for {path}", path=path, line=index + 1)

        raw = "\n".join(lines[start:index]) + "\n"
        patched = PatchedFile(
            path=path,
            hunks=tuple(hunks),
            source_path=source_path,
            change_type=change_type,
            raw=raw,
        )
        return patched, index

    def _read_hunk(self, lines: Sequence[str], index: int, path: str) -> tuple[Hunk, int]:
        header_line = lines[index]
        match = _HUNK_HEADER.match(header_line)
        if not match:
            raise ParseError(f"Malformed hunk header in {path}: {header_line}", path=path, line=index + 1)

        old_count = _count(match.group("old_count"))
        new_count = _count(match.group("new_count"))
        remaining_old = old_count
        remaining_new = new_count
        body: List[HunkLine] = []

        index += 1
        while (remaining_old or remaining_new) and index < len(lines):
            line = lines[index]
            if line.startswith("\\"):
                index += 1
                continue
            if line.startswith("@@") or line.startswith("diff --git "):
                break
            if _is_plain_section_start(lines, index):
                break
            marker = line[:1]
            if marker == " " or line == "":
                if not (remaining_old and remaining_new):
                    break
                tag = LineTag.CONTEXT
                remaining_old -= 1
                remaining_new -= 1
            elif marker == "-":
                if not remaining_old:
                    break
                tag = LineTag.REMOVED
                remaining_old -= 1
            elif marker == "+":
                if not remaining_new:
                    break
                tag = LineTag.ADDED
                remaining_new -= 1
            else:
                # Unrecognised marker: stop rather than mis-tag.
                break
            body.append(HunkLine(tag=tag, text=line[1:]))
            index += 1

        if remaining_old or remaining_new:
            raise HunkCountError(
                f"Hunk line count mismatch for {path}: expected -{old_count}/+{new_count} "
                f"but saw -{old_count - remaining_old}/+{new_count - remaining_new}.",
                path=path,
                line=index + 1,
            )

        while index < len(lines) and lines[index].startswith("\\"):
            index += 1

        try:
            hunk = Hunk(
                old_start=int(match.group("old_start")),
                old_count=old_count,
                new_start=int(match.group("new_start")),
                new_count=new_count,
                lines=tuple(body),
                section=match.group("section").strip(),
            )
        except ParseError as error:
            raise HunkCountError(str(error), path=path, line=index + 1, details=error.details) from error
        return hunk, index


def parse_patch(raw_text: str, *, strict: bool = False) -> ParseResult:
    """Parse ``raw_text`` with a :class:`DiffReader`."""
    return DiffReader(strict=strict).parse(raw_text)


def parse_hunk(raw_text: str, *, path: str = "<hunk>") -> Hunk:
    """Parse the first ``@@`` block of ``raw_text``, which needs no file headers."""
    lines = normalise_line_endings(raw_text or "").split("\n")
    for index, line in enumerate(lines):
        if line.startswith("@@"):
            hunk, _ = DiffReader(strict=True)._read_hunk(lines, index, path)
            return hunk
    raise ParseError("No hunk header found", path=path)


__all__ = [
    "DiffReader",
    "ParseFailure",
    "ParseResult",
    "normalise_line_endings",
    "parse_hunk",
    "parse_patch",
]
