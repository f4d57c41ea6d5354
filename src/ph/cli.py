"""CLI entry point for auditing a vendor patch against project overrides."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from .audit import AuditReport, run_audit, write_residual_patch
from .config import build_settings, load_config
from .errors import EmptyPatchError, PatchHelperError
from .overrides.locator import StaticOverrideLocator
from .report import render_table

APP_HELP = "Find patched vendor files that are masked by project overrides."
DEFAULT_CONFIG_NAME = "patch-helper.yaml"

_VERBOSITY_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)

app = typer.Typer(help=APP_HELP)


@app.callback()
def main(
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase output verbosity (repeatable).",
    ),
) -> None:
    """Configure logging before any command runs."""
    level = _VERBOSITY_LEVELS[min(verbose, len(_VERBOSITY_LEVELS) - 1)]
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _load_project_config(project: Path, config: Optional[Path]) -> Dict[str, Any]:
    """Load the explicit config, else ``patch-helper.yaml`` in the project if present."""
    if config is not None:
        return load_config(config)
    candidate = project / DEFAULT_CONFIG_NAME
    if candidate.is_file():
        return load_config(candidate)
    return {}


def _render_updates(report: AuditReport) -> None:
    for update in report.updates:
        label = update.finding.overriding_location
        if update.error:
            typer.echo(f"Could not update {label}: {update.error}")
            continue
        total = len(update.results)
        status = "updated" if update.written else "unchanged"
        typer.echo(f"{label}: {status} ({update.applied_count}/{total} hunks applied)")
        for number, result in enumerate(update.results, start=1):
            if not result.applied:
                typer.echo(f"  - hunk #{number} rejected: {result.reason}")


@app.command()
def analyse(
    project: Path = typer.Argument(..., help="The path to the project."),
    auto_theme_update: Optional[str] = typer.Option(
        None,
        "--auto-theme-update",
        "-a",
        help="Fuzz factor for automatically applying changes to overriding file copies.",
    ),
    sort_by_type: bool = typer.Option(False, "--sort-by-type", help="Sort the output by override type."),
    vendor_namespaces: Optional[str] = typer.Option(
        None,
        "--vendor-namespaces",
        help="Only show overrides in these namespaces (comma separated list).",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Abort on the first malformed file section or rejected hunk.",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML file with 'analyse' settings and an 'overrides' map.",
    ),
) -> None:
    """Analyse a project which has had a ./vendor.patch file manually created."""
    if not project.is_dir():
        typer.echo("Invalid project directory specified")
        raise typer.Exit(code=1)

    try:
        config_data = _load_project_config(project, config)
        settings = build_settings(
            config_data,
            fuzz_budget=auto_theme_update,
            sort_by_type=sort_by_type or None,
            vendor_namespaces=vendor_namespaces,
            strict=strict or None,
        )
        locator = StaticOverrideLocator.from_config(config_data)
    except PatchHelperError as error:
        typer.echo(str(error))
        raise typer.Exit(code=1) from error

    patch_path = project / settings.patch_filename
    if not patch_path.is_file():
        typer.echo(f"{patch_path} does not exist, create it with a unified diff of your vendor changes")
        raise typer.Exit(code=1)

    diff_text = patch_path.read_text(encoding="utf-8", errors="replace")
    try:
        report = run_audit(diff_text, locator, settings, project_root=project)
    except EmptyPatchError as error:
        typer.echo(str(error))
        raise typer.Exit(code=1) from error
    except PatchHelperError as error:
        typer.echo(f"Error: {error}")
        raise typer.Exit(code=1) from error

    for failure in report.parse_failures:
        typer.echo(f"Could not understand {failure.path or '<unknown>'}: {failure.reason}")

    typer.echo(render_table(report.rows), nl=False)
    _render_updates(report)

    residual_path = write_residual_patch(report, project / settings.residual_filename)
    typer.echo(f"You should review the above {report.count_to_check} items alongside {residual_path}")


if __name__ == "__main__":
    app()
