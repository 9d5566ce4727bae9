from __future__ import annotations

from ..models.import_summary import ImportSummary

"""SUMMARY line rendering for the CLI.

Format:
SUMMARY file=<name> sheets=<n> preview=<n> selected=<n> project=<id|-> sink=<sink> elapsed_sec=<s>
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # 指数表記を避ける
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(summary: ImportSummary) -> str:
    """Render the SUMMARY line for one upload run.

    File names containing spaces are kept as-is; ``file=`` is always the first
    field so parsers can split on `` sheets=``.

    >>> s = ImportSummary(file_name="q.xlsx", sheets=2, preview_rows=5,
    ...                   selected_rows=3, sink="dry-run", elapsed_seconds=1.5,
    ...                   project_id="abc")
    >>> render_summary_line(s)
    'SUMMARY file=q.xlsx sheets=2 preview=5 selected=3 project=abc sink=dry-run elapsed_sec=1.5'
    """
    return (
        f"SUMMARY file={summary.file_name} "
        f"sheets={summary.sheets} "
        f"preview={summary.preview_rows} "
        f"selected={summary.selected_rows} "
        f"project={summary.project_id or '-'} "
        f"sink={summary.sink} "
        f"elapsed_sec={_format_seconds(summary.elapsed_seconds)}"
    )
