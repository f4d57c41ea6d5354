from __future__ import annotations

from ph.patchfile import parse_patch
from ph.report import AuditRow, build_residual_patch, render_table, sort_rows


def test_render_table_pads_columns() -> None:
    table = render_table([AuditRow("Plugin", "vendor/a.php", "Acme\\Plugin")])

    lines = table.splitlines()
    assert lines[0] == "+--------+--------------+-------------+"
    assert lines[1] == "| Type   | Core         | To Check    |"
    assert lines[3] == "| Plugin | vendor/a.php | Acme\\Plugin |"
    assert lines[-1] == lines[0]


def test_render_table_without_rows_still_has_headers() -> None:
    assert render_table([]).count("\n") == 4


def test_sort_rows_orders_by_all_columns() -> None:
    rows = [
        AuditRow("Preference", "b", "x"),
        AuditRow("Plugin", "b", "y"),
        AuditRow("Plugin", "a", "z"),
        AuditRow("Plugin", "b", "a"),
    ]

    assert sort_rows(rows) == [
        AuditRow("Plugin", "a", "z"),
        AuditRow("Plugin", "b", "a"),
        AuditRow("Plugin", "b", "y"),
        AuditRow("Preference", "b", "x"),
    ]


def test_residual_patch_rebuilds_sections_without_raw_text() -> None:
    patched = parse_patch("--- a/vendor/a.php\n+++ b/vendor/a.php\n@@ -1 +1 @@\n-a\n+b\n").files[0]
    bare = type(patched)(path=patched.path, hunks=patched.hunks, source_path=patched.source_path)

    assert build_residual_patch([bare]) == (
        "diff --git a/vendor/a.php b/vendor/a.php\n"
        "--- a/vendor/a.php\n"
        "+++ b/vendor/a.php\n"
        "@@ -1,1 +1,1 @@\n"
        "-a\n"
        "+b\n"
    )
