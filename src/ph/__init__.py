"""Audit a vendor patch against the overrides that would mask it."""

from .audit import AuditReport, run_audit
from .config import AuditSettings, build_settings
from .errors import (
    ConfigurationError,
    EmptyPatchError,
    HunkCountError,
    HunkRejectedError,
    ParseError,
    PatchHelperError,
)
from .overrides import OverrideFinding, OverrideLocation, OverrideLocator, OverrideValidator, StaticOverrideLocator
from .patchfile import Applied, DiffReader, Hunk, PatchedFile, Rejected, apply_hunk, apply_hunks, parse_patch

__all__ = [
    "Applied",
    "AuditReport",
    "AuditSettings",
    "ConfigurationError",
    "DiffReader",
    "EmptyPatchError",
    "Hunk",
    "HunkCountError",
    "HunkRejectedError",
    "OverrideFinding",
    "OverrideLocation",
    "OverrideLocator",
    "OverrideValidator",
    "ParseError",
    "PatchHelperError",
    "PatchedFile",
    "Rejected",
    "StaticOverrideLocator",
    "apply_hunk",
    "apply_hunks",
    "build_settings",
    "parse_patch",
    "run_audit",
]
