"""Tabular summary and residual patch rendering for audit results."""

from __future__ import annotations

from typing import Iterable, List, NamedTuple, Sequence

from .patchfile.model import PatchedFile

TABLE_HEADERS = ("Type", "Core", "To Check")


class AuditRow(NamedTuple):
    """One reported override: ``(type, core path, overriding location)``."""

    kind: str
    core: str
    to_check: str


def sort_rows(rows: Iterable[AuditRow]) -> List[AuditRow]:
    """Order rows by type, then core path, then overriding location."""
    return sorted(rows, key=lambda row: (row.kind, row.core, row.to_check))


def render_table(rows: Sequence[Sequence[str]], headers: Sequence[str] = TABLE_HEADERS) -> str:
    """Render ``rows`` as a boxed plain-text table."""
    widths = [len(header) for header in headers]
    for row in rows:
        for column, cell in enumerate(row):
            widths[column] = max(widths[column], len(str(cell)))

    border = "+" + "+".join("-" * (width + 2) for width in widths) + "+"

    def render_line(cells: Sequence[str]) -> str:
        padded = [f" {str(cell).ljust(width)} " for cell, width in zip(cells, widths)]
        return "|" + "|".join(padded) + "|"

    lines = [border, render_line(headers), border]
    lines.extend(render_line(row) for row in rows)
    lines.append(border)
    return "\n".join(lines) + "\n"


def build_residual_patch(files: Iterable[PatchedFile]) -> str:
    """Concatenate the diff sections of ``files`` in their original order."""
    return "".join(patched.render() for patched in files)


__all__ = ["AuditRow", "TABLE_HEADERS", "build_residual_patch", "render_table", "sort_rows"]
