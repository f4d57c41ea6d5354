"""Audit loop: parse the vendor patch, classify overrides, optionally propagate hunks."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

from .config import AuditSettings
from .errors import EmptyPatchError, PatchHelperError
from .overrides.locator import OverrideLocator
from .overrides.validator import OverrideFinding, OverrideValidator
from .patchfile.applier import FuzzResult, Rejected, apply_hunks
from .patchfile.model import PatchedFile
from .patchfile.reader import DiffReader, ParseFailure
from .report import AuditRow, build_residual_patch, sort_rows

LOGGER = logging.getLogger(__name__)
TELEMETRY_LOGGER = logging.getLogger("ph.telemetry")

NOT_A_DIFF_MESSAGE = "The patch file could not be parsed, are you sure it's a unified diff?"


@dataclass(frozen=True, slots=True)
class OverrideUpdate:
    """Outcome of propagating a file's hunks into one overriding copy."""

    finding: OverrideFinding
    target: Path
    results: Tuple[FuzzResult, ...] = ()
    written: bool = False
    error: str | None = None

    @property
    def applied_count(self) -> int:
        return sum(1 for result in self.results if result.applied)

    @property
    def rejected_count(self) -> int:
        return sum(1 for result in self.results if not result.applied)


@dataclass(slots=True)
class AuditReport:
    """Everything an audit run produced, in diff order unless sorted."""

    rows: List[AuditRow] = field(default_factory=list)
    findings: List[OverrideFinding] = field(default_factory=list)
    residual_files: List[PatchedFile] = field(default_factory=list)
    parse_failures: Tuple[ParseFailure, ...] = ()
    skipped: List[str] = field(default_factory=list)
    updates: List[OverrideUpdate] = field(default_factory=list)

    @property
    def count_to_check(self) -> int:
        return len(self.rows)

    @property
    def residual_patch(self) -> str:
        return build_residual_patch(self.residual_files)


def _serialise_event_value(value: Any) -> Any:
    """Convert telemetry payload values into JSON-friendly representations."""
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, Path):
        return value.as_posix()
    if isinstance(value, (list, tuple, set)):
        return [_serialise_event_value(item) for item in value]
    if isinstance(value, Mapping):
        return {str(key): _serialise_event_value(child) for key, child in value.items()}
    return str(value)


def _emit_event(event: str, **fields: Any) -> None:
    """Log a structured telemetry event for the audit run."""
    if not TELEMETRY_LOGGER.isEnabledFor(logging.INFO):
        return
    payload: Dict[str, Any] = {"event": event, "timestamp": datetime.now(timezone.utc).isoformat()}
    for key, value in fields.items():
        payload[key] = _serialise_event_value(value)
    TELEMETRY_LOGGER.info(json.dumps(payload, separators=(",", ":"), ensure_ascii=True))


def _display_location(location: str, project_root: Path | None) -> str:
    """Strip the project root from ``location`` so the report stays relative."""
    if project_root is None:
        return location
    root = project_root.as_posix().rstrip("/")
    candidate = location.replace("\\", "/")
    if root and candidate.startswith(root + "/"):
        candidate = candidate[len(root) + 1:]
    return candidate.lstrip("/")


def _resolve_target(location: str, project_root: Path) -> Path:
    path = Path(location)
    return path if path.is_absolute() else project_root / path


def update_override_copy(
    project_root: Path,
    finding: OverrideFinding,
    patched_file: PatchedFile,
    settings: AuditSettings,
) -> OverrideUpdate:
    """Apply ``patched_file``'s hunks to the override copy named by ``finding``.

    The file is rewritten only when at least one hunk applied. Missing or
    unreadable targets are reported on the returned update; strict mode
    raises instead.
    """
    fuzz_budget = settings.fuzz_budget if settings.fuzz_budget is not None else 0
    target = _resolve_target(finding.overriding_location, project_root)
    try:
        original = target.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as error:
        if settings.strict:
            raise PatchHelperError(f"Cannot read override copy {target}: {error}") from error
        LOGGER.warning("Cannot read override copy %s: %s", target, error)
        return OverrideUpdate(finding=finding, target=target, error=str(error))

    application = apply_hunks(
        patched_file.hunks,
        original,
        fuzz_budget,
        position_slack=settings.position_slack,
        strict=settings.strict,
    )
    for number, result in enumerate(application.results, start=1):
        if isinstance(result, Rejected):
            _emit_event(
                "hunk_rejected",
                core=patched_file.path,
                target=target,
                hunk=number,
                reason=result.reason,
                fuzz_budget=fuzz_budget,
            )

    written = False
    if application.changed and application.text != original:
        target.write_bytes(application.text.encode("utf-8"))
        written = True
        _emit_event(
            "override_updated",
            core=patched_file.path,
            target=target,
            applied=application.applied_count,
            rejected=application.rejected_count,
            fuzz_used=[result.fuzz_used for result in application.results if result.applied],
        )
    return OverrideUpdate(
        finding=finding,
        target=target,
        results=application.results,
        written=written,
    )


def run_audit(
    diff_text: str,
    locator: OverrideLocator,
    settings: AuditSettings | None = None,
    *,
    project_root: Path | str | None = None,
    validator: OverrideValidator | None = None,
) -> AuditReport:
    """Classify every file of ``diff_text`` against ``locator``.

    Raises :class:`EmptyPatchError` when nothing in the input parses as a
    unified diff. Individual malformed sections are reported on the result.
    Hunks are propagated into file-copy overrides only when
    ``settings.fuzz_budget`` is set and ``project_root`` is known.
    """
    settings = settings or AuditSettings()
    root = Path(project_root) if project_root is not None else None
    validator = validator or OverrideValidator(
        module_roots=settings.module_roots,
        excluded_prefixes=settings.excluded_prefixes,
    )

    parsed = DiffReader(strict=settings.strict).parse(diff_text)
    if parsed.is_empty:
        raise EmptyPatchError(NOT_A_DIFF_MESSAGE, details={"parse_failures": parsed.failed_count})
    _emit_event("patch_parsed", files=len(parsed), failures=parsed.failed_count)

    report = AuditReport(parse_failures=parsed.failures)
    for patched in parsed:
        if not validator.can_validate(patched.path):
            LOGGER.debug("Skipping %s", patched.path)
            report.skipped.append(patched.path)
            _emit_event("file_skipped", path=patched.path)
            continue

        findings = validator.classify(patched, locator, vendor_namespaces=settings.vendor_namespaces)
        _emit_event("file_classified", path=patched.path, findings=[finding.kind for finding in findings])
        if not findings:
            continue

        report.residual_files.append(patched)
        for finding in findings:
            report.findings.append(finding)
            report.rows.append(
                AuditRow(
                    kind=finding.kind,
                    core=finding.source_file,
                    to_check=_display_location(finding.overriding_location, root),
                )
            )
            if settings.auto_update and root is not None and finding.kind in settings.file_override_kinds:
                report.updates.append(update_override_copy(root, finding, patched, settings))

    if settings.sort_by_type:
        report.rows = sort_rows(report.rows)
    return report


def write_residual_patch(report: AuditReport, destination: Path | str) -> Path:
    """Persist the files that still need review as a unified diff."""
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.residual_patch, encoding="utf-8")
    return path


__all__ = [
    "AuditReport",
    "NOT_A_DIFF_MESSAGE",
    "OverrideUpdate",
    "run_audit",
    "update_override_copy",
    "write_residual_patch",
]
