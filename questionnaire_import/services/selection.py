from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace

from ..models.preview_row import PreviewRow, RowKey

"""Selection manager: curate which preview rows become project rows.

Every function returns a new list; PreviewRow is frozen.
"""

__all__ = [
    "toggle_row",
    "select_all",
    "deselect_all",
    "selected_rows",
    "apply_selection",
]


def toggle_row(rows: Sequence[PreviewRow], row_number: int, source_tab: str) -> list[PreviewRow]:
    """Flip ``selected`` on the row matching both row number and tab."""
    key = (row_number, source_tab)
    return [replace(row, selected=not row.selected) if row.key == key else row for row in rows]


def select_all(rows: Sequence[PreviewRow]) -> list[PreviewRow]:
    return [replace(row, selected=True) for row in rows]


def deselect_all(rows: Sequence[PreviewRow]) -> list[PreviewRow]:
    return [replace(row, selected=False) for row in rows]


def selected_rows(rows: Sequence[PreviewRow]) -> list[PreviewRow]:
    return [row for row in rows if row.selected]


def apply_selection(
    rows: Sequence[PreviewRow],
    exclude: Iterable[RowKey] = (),
    include: Iterable[RowKey] = (),
) -> list[PreviewRow]:
    """Force rows off (``exclude``) then on (``include``) by key.

    Used by the CLI, where selection is given up front rather than toggled.
    """
    excluded = set(exclude)
    included = set(include)
    result: list[PreviewRow] = []
    for row in rows:
        if row.key in included:
            result.append(replace(row, selected=True))
        elif row.key in excluded:
            result.append(replace(row, selected=False))
        else:
            result.append(row)
    return result
