"""Fuzz-tolerant hunk application against files that drifted from the core copy."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple, Union

from ..errors import ConfigurationError, HunkRejectedError
from .model import Hunk

LOGGER = logging.getLogger(__name__)

DEFAULT_POSITION_SLACK = 3
REJECT_REASON = "no sufficiently similar context found"


@dataclass(frozen=True, slots=True)
class Applied:
    """Hunk located and applied; ``new_text`` is the whole updated body."""

    new_text: str
    fuzz_used: int
    line: int
    relocation: int = 0

    @property
    def applied(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Rejected:
    """Hunk could not be located within the fuzz budget; nothing was changed."""

    reason: str = REJECT_REASON

    @property
    def applied(self) -> bool:
        return False


FuzzResult = Union[Applied, Rejected]


@dataclass(frozen=True, slots=True)
class HunkApplication:
    """Result of applying several hunks of one file in order."""

    text: str
    results: Tuple[FuzzResult, ...]

    @property
    def applied_count(self) -> int:
        return sum(1 for result in self.results if result.applied)

    @property
    def rejected_count(self) -> int:
        return len(self.results) - self.applied_count

    @property
    def changed(self) -> bool:
        return self.applied_count > 0


@dataclass(frozen=True, slots=True)
class _Match:
    level: int
    lead: int
    trail: int
    position: int
    expected_position: int


def _check_budget(fuzz_budget: int, position_slack: int) -> None:
    if isinstance(fuzz_budget, bool) or not isinstance(fuzz_budget, int) or fuzz_budget < 0:
        raise ConfigurationError(f"Fuzz budget must be a non-negative integer, got {fuzz_budget!r}")
    if isinstance(position_slack, bool) or not isinstance(position_slack, int) or position_slack < 0:
        raise ConfigurationError(f"Position slack must be a non-negative integer, got {position_slack!r}")


def _split_target(text: str) -> tuple[List[str], List[str]]:
    """Split ``text`` into lines and the terminator each one carried."""
    if not text:
        return [], []
    pieces = text.split("\n")
    tail = pieces.pop()
    lines: List[str] = []
    endings: List[str] = []
    for piece in pieces:
        if piece.endswith("\r"):
            lines.append(piece[:-1])
            endings.append("\r\n")
        else:
            lines.append(piece)
            endings.append("\n")
    if tail:
        lines.append(tail)
        endings.append("")
    return lines, endings


def _replacement_endings(endings: List[str], position: int, span: int, count: int) -> List[str]:
    """Pick terminators for ``count`` new lines replacing ``endings[position:position + span]``.

    New lines take the terminator of the line they replace position by
    position, then the first terminator in the replaced region, else the
    file's majority style. A missing newline at end of file stays missing,
    which may adjust the terminator of the line before the edit in
    ``endings``.
    """
    region = endings[position:position + span]
    style = next((ending for ending in region if ending), "")
    if not style:
        style = "\r\n" if endings.count("\r\n") > endings.count("\n") else "\n"
    chosen = [region[index] if index < len(region) and region[index] else style for index in range(count)]
    at_eof = position + span == len(endings)
    if at_eof and endings and endings[-1] == "":
        if chosen:
            chosen[-1] = ""
            if not span:
                # Inserting after an unterminated last line.
                endings[-1] = style
        elif position:
            endings[position - 1] = ""
    return chosen


def _deltas(window: int) -> Iterable[int]:
    """Yield 0, -1, +1, -2, +2, ... up to ``window``: nearest first, earlier first."""
    yield 0
    for distance in range(1, window + 1):
        yield -distance
        yield distance


def _matches(target: Sequence[str], expected: Sequence[str], position: int) -> bool:
    if position < 0 or position + len(expected) > len(target):
        return False
    return tuple(target[position:position + len(expected)]) == tuple(expected)


def _nominal_index(hunk: Hunk, offset: int) -> int:
    # A zero-length old side names the line *after which* to insert.
    base = hunk.old_start - 1 if hunk.old_count else hunk.old_start
    return base + offset


def _locate(
    hunk: Hunk,
    target: Sequence[str],
    fuzz_budget: int,
    offset: int,
    position_slack: int,
) -> _Match | None:
    old = hunk.old_lines
    lead_max = hunk.leading_context
    trail_max = hunk.trailing_context
    nominal = _nominal_index(hunk, offset)
    tried: set[tuple[int, int, int]] = set()

    for level in range(fuzz_budget + 1):
        window = level + position_slack if level else 0
        for trimmed in range(level + 1):
            for lead in range(trimmed + 1):
                trail = trimmed - lead
                if lead > lead_max or trail > trail_max:
                    continue
                expected = old[lead:len(old) - trail]
                if old and not expected:
                    continue
                start = nominal + lead
                for delta in _deltas(window):
                    position = start + delta
                    key = (lead, trail, position)
                    if key in tried:
                        continue
                    tried.add(key)
                    if _matches(target, expected, position):
                        return _Match(level, lead, trail, position, start)
    return None


def apply_hunk(
    hunk: Hunk,
    target_text: str,
    fuzz_budget: int,
    *,
    offset: int = 0,
    position_slack: int = DEFAULT_POSITION_SLACK,
) -> FuzzResult:
    """Apply ``hunk`` to ``target_text`` tolerating up to ``fuzz_budget`` lines of drift.

    ``offset`` shifts the hunk's nominal position, typically by the net line
    delta of hunks already applied to the same file. A budget of 0 demands the
    old side to match exactly at the nominal position. Each untouched line
    keeps its own terminator, so mixed CRLF/LF files come back unchanged
    outside the edit; the input is never modified and a hunk is never
    partially applied.

    ``Applied.fuzz_used`` is the lowest fuzz level that located the hunk, not
    the number of context lines trimmed: a hunk found intact but moved away
    from its nominal line reports 1, because relocation is only searched from
    level 1 upwards. ``Applied.relocation`` gives the distance moved.
    """
    _check_budget(fuzz_budget, position_slack)

    target, endings = _split_target(target_text)

    match = _locate(hunk, target, fuzz_budget, offset, position_slack)
    if match is None:
        LOGGER.debug("Rejected %s: %s", hunk.header, REJECT_REASON)
        return Rejected(REJECT_REASON)

    old = hunk.old_lines
    new = hunk.new_lines
    span = len(old) - match.lead - match.trail
    replacement = list(new[match.lead:len(new) - match.trail])
    added_endings = _replacement_endings(endings, match.position, span, len(replacement))
    updated = target[:match.position] + replacement + target[match.position + span:]
    updated_endings = endings[:match.position] + added_endings + endings[match.position + span:]

    new_text = "".join(line + ending for line, ending in zip(updated, updated_endings))

    LOGGER.debug(
        "Applied %s at line %d with fuzz %d",
        hunk.header,
        match.position + 1,
        match.level,
    )
    return Applied(
        new_text=new_text,
        fuzz_used=match.level,
        line=match.position + 1,
        relocation=match.position - match.expected_position,
    )


def apply_hunks(
    hunks: Sequence[Hunk],
    target_text: str,
    fuzz_budget: int,
    *,
    position_slack: int = DEFAULT_POSITION_SLACK,
    strict: bool = False,
) -> HunkApplication:
    """Apply ``hunks`` in order, carrying the line offset from one to the next.

    A rejected hunk leaves the text untouched and later hunks are still
    attempted. With ``strict=True`` the first rejection raises
    :class:`HunkRejectedError`.
    """
    _check_budget(fuzz_budget, position_slack)

    text = target_text
    offset = 0
    results: List[FuzzResult] = []
    for number, hunk in enumerate(hunks, start=1):
        result = apply_hunk(hunk, text, fuzz_budget, offset=offset, position_slack=position_slack)
        results.append(result)
        if isinstance(result, Applied):
            text = result.new_text
            offset += result.relocation + hunk.line_delta
            continue
        if strict:
            raise HunkRejectedError(
                f"Hunk #{number} {hunk.header} rejected: {result.reason}",
                details={"hunk": number, "header": hunk.header, "fuzz_budget": fuzz_budget},
            )
    return HunkApplication(text=text, results=tuple(results))


__all__ = [
    "Applied",
    "DEFAULT_POSITION_SLACK",
    "FuzzResult",
    "HunkApplication",
    "REJECT_REASON",
    "Rejected",
    "apply_hunk",
    "apply_hunks",
]
