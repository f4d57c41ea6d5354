"""Classify patched core files against the overrides that mask them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from ..patchfile.model import PatchedFile
from .locator import OverrideLocator

LOGGER = logging.getLogger(__name__)

DEFAULT_MODULE_ROOTS: Tuple[str, ...] = ("vendor/", "app/code/", "lib/internal/")
DEFAULT_EXCLUDED_PREFIXES: Tuple[str, ...] = (
    "generated/",
    "pub/static/",
    "var/",
    "vendor/bin/",
    "vendor/composer/",
)


@dataclass(frozen=True, slots=True)
class OverrideFinding:
    """A core file from the diff that is superseded by ``overriding_location``."""

    kind: str
    source_file: str
    overriding_location: str

    def as_row(self) -> Tuple[str, str, str]:
        return (self.kind, self.source_file, self.overriding_location)


def _normalise(path: str) -> str:
    return path.replace("\\", "/").strip().lstrip("/")


def _belongs_to_namespace(location: str, namespaces: Sequence[str]) -> bool:
    segments = {segment.lower() for segment in _normalise(location).split("/") if segment}
    return any(namespace.lower() in segments for namespace in namespaces)


class OverrideValidator:
    """Map each admissible patched file to the overrides its locator reports.

    Classification is read-only and holds no per-call state, so one validator
    may be shared across files and threads. The kind labels are passed through
    untouched; ordering and precedence between kinds are left to the caller.
    """

    def __init__(
        self,
        *,
        module_roots: Iterable[str] = DEFAULT_MODULE_ROOTS,
        excluded_prefixes: Iterable[str] = DEFAULT_EXCLUDED_PREFIXES,
    ) -> None:
        self.module_roots = tuple(_normalise(root) for root in module_roots if root.strip())
        self.excluded_prefixes = tuple(_normalise(prefix) for prefix in excluded_prefixes if prefix.strip())

    def can_validate(self, path: str) -> bool:
        """Return True when ``path`` lives under a recognised module root."""
        candidate = _normalise(path)
        if not candidate:
            return False
        if any(candidate.startswith(prefix) for prefix in self.excluded_prefixes):
            return False
        if not self.module_roots:
            return True
        return any(candidate.startswith(root) for root in self.module_roots)

    def classify(
        self,
        patched_file: PatchedFile,
        locator: OverrideLocator,
        *,
        vendor_namespaces: Sequence[str] = (),
    ) -> Tuple[OverrideFinding, ...]:
        """Return one finding per override of ``patched_file``.

        Inadmissible paths yield no findings. When ``vendor_namespaces`` is
        given, only overrides located in one of those namespaces are kept.
        """
        path = _normalise(patched_file.path)
        if not self.can_validate(path):
            LOGGER.debug("Skipping %s", path)
            return ()

        LOGGER.info("Validating %s", path)
        findings: List[OverrideFinding] = []
        for override in locator.locate(path):
            if vendor_namespaces and not _belongs_to_namespace(override.location, vendor_namespaces):
                continue
            findings.append(
                OverrideFinding(
                    kind=override.kind,
                    source_file=path,
                    overriding_location=override.location,
                )
            )
        return tuple(findings)


__all__ = [
    "DEFAULT_EXCLUDED_PREFIXES",
    "DEFAULT_MODULE_ROOTS",
    "OverrideFinding",
    "OverrideValidator",
]
