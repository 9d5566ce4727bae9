from __future__ import annotations

from collections.abc import Mapping, Sequence

from ..models.sheet_data import SheetData
from ..models.upload_session import ColumnMode

"""Column resolver: which column holds the question text, per sheet.

Pure predicates over the current session inputs. Nothing is cached; callers
evaluate them on demand so they never drift from the state they derive from.
"""

__all__ = [
    "resolve_mode",
    "active_sheet",
    "common_columns",
    "candidate_columns",
    "detected_rows",
    "all_tabs_have_columns",
    "is_ready",
]


def resolve_mode(sheet_count: int, merge_all_tabs: bool, use_same_column_for_all: bool) -> ColumnMode:
    if sheet_count < 2 or not merge_all_tabs:
        return ColumnMode.SINGLE
    if use_same_column_for_all:
        return ColumnMode.MERGE_SHARED
    return ColumnMode.MERGE_PER_TAB


def active_sheet(
    sheets: Sequence[SheetData], selected_sheet: str, merge_all_tabs: bool
) -> SheetData | None:
    """Reference sheet: the first one when merging, else the selected one.

    An unknown ``selected_sheet`` falls back to the first sheet.
    """
    if not sheets:
        return None
    if merge_all_tabs and len(sheets) > 1:
        return sheets[0]
    if selected_sheet:
        for sheet in sheets:
            if sheet.name == selected_sheet:
                return sheet
    return sheets[0]


def common_columns(sheets: Sequence[SheetData]) -> list[str]:
    """Header names present in every sheet, in the first sheet's order.

    Empty for fewer than two sheets.
    """
    if len(sheets) < 2:
        return []
    column_sets = [set(sheet.columns) for sheet in sheets]
    return [col for col in sheets[0].columns if all(col in s for s in column_sets)]


def candidate_columns(
    sheets: Sequence[SheetData],
    selected_sheet: str,
    merge_all_tabs: bool,
    use_same_column_for_all: bool,
) -> list[str]:
    """Columns offered for the single question-column choice.

    Per-tab mode offers none here; each tab is chosen from its own header.
    """
    if not sheets:
        return []
    mode = resolve_mode(len(sheets), merge_all_tabs, use_same_column_for_all)
    if mode is ColumnMode.MERGE_SHARED:
        return common_columns(sheets)
    if mode is ColumnMode.MERGE_PER_TAB:
        return []
    sheet = active_sheet(sheets, selected_sheet, merge_all_tabs)
    return list(sheet.columns) if sheet else []


def detected_rows(sheets: Sequence[SheetData], selected_sheet: str, merge_all_tabs: bool) -> int:
    if not sheets:
        return 0
    if merge_all_tabs and len(sheets) > 1:
        return sum(sheet.row_count for sheet in sheets)
    sheet = active_sheet(sheets, selected_sheet, merge_all_tabs)
    return sheet.row_count if sheet else 0


def all_tabs_have_columns(
    sheets: Sequence[SheetData],
    merge_all_tabs: bool,
    use_same_column_for_all: bool,
    per_tab_columns: Mapping[str, str],
) -> bool:
    """True outside per-tab mode; in per-tab mode every sheet needs a column."""
    mode = resolve_mode(len(sheets), merge_all_tabs, use_same_column_for_all)
    if mode is not ColumnMode.MERGE_PER_TAB:
        return True
    return all(per_tab_columns.get(sheet.name) for sheet in sheets)


def is_ready(
    sheets: Sequence[SheetData],
    merge_all_tabs: bool,
    use_same_column_for_all: bool,
    question_column: str,
    per_tab_columns: Mapping[str, str],
) -> bool:
    """Whether a complete column mapping exists for the active mode."""
    if not sheets:
        return False
    mode = resolve_mode(len(sheets), merge_all_tabs, use_same_column_for_all)
    if mode is ColumnMode.MERGE_PER_TAB:
        return all_tabs_have_columns(sheets, merge_all_tabs, use_same_column_for_all, per_tab_columns)
    return bool(question_column)
