"""Unified diff reading and fuzz-tolerant hunk application."""

from .applier import Applied, FuzzResult, HunkApplication, Rejected, apply_hunk, apply_hunks
from .model import Hunk, HunkLine, LineTag, PatchedFile
from .reader import DiffReader, ParseFailure, ParseResult, parse_hunk, parse_patch

__all__ = [
    "Applied",
    "DiffReader",
    "FuzzResult",
    "Hunk",
    "HunkApplication",
    "HunkLine",
    "LineTag",
    "ParseFailure",
    "ParseResult",
    "PatchedFile",
    "Rejected",
    "apply_hunk",
    "apply_hunks",
    "parse_hunk",
    "parse_patch",
]
