from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime

from ..errors import ProjectValidationError
from ..models.bulk_project import BulkProject, ProjectRow, ProjectStatus, RowStatus
from ..models.preview_row import PreviewRow
from ..models.sheet_data import SheetData
from ..models.upload_session import ColumnMode
from .columns import active_sheet, all_tabs_have_columns, candidate_columns, resolve_mode
from .selection import selected_rows

"""Project builder: curated preview rows -> BulkProject.

Submission preconditions are checked in a fixed order and each failure has
its own message:
1. a complete column mapping for the active mode
2. at least one preview row
3. at least one selected preview row

Only selected rows become ProjectRows, in preview order, each with a fresh
id, ``pending`` status and an empty response.
"""

__all__ = [
    "MISSING_SHARED_COLUMN",
    "MISSING_TAB_COLUMNS",
    "MISSING_SINGLE_COLUMN",
    "NO_PREVIEW_ROWS",
    "NO_ROWS_SELECTED",
    "DEFAULT_PROJECT_NAME",
    "validate_submission",
    "merged_sheet_name",
    "build_project",
]

MISSING_SHARED_COLUMN = "Select a question column before saving."
MISSING_TAB_COLUMNS = "Select a question column for each tab before saving."
MISSING_SINGLE_COLUMN = "Select a worksheet and question column before saving."
NO_PREVIEW_ROWS = "No question rows detected. Adjust your column selection."
NO_ROWS_SELECTED = "No questions selected. Please select at least one question to include."

DEFAULT_PROJECT_NAME = "Untitled Project"
UNKNOWN_SHEET_NAME = "Unknown"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def _new_id() -> str:
    return str(uuid.uuid4())


def validate_submission(
    sheets: Sequence[SheetData],
    selected_sheet: str,
    merge_all_tabs: bool,
    use_same_column_for_all: bool,
    question_column: str,
    per_tab_columns: Mapping[str, str],
    preview_rows: Sequence[PreviewRow],
) -> list[PreviewRow]:
    """Check submit preconditions in order; return the selected rows.

    Raises:
        ProjectValidationError: first failing precondition
    """
    mode = resolve_mode(len(sheets), merge_all_tabs, use_same_column_for_all)
    if mode is ColumnMode.MERGE_SHARED:
        if not question_column:
            raise ProjectValidationError(MISSING_SHARED_COLUMN)
    elif mode is ColumnMode.MERGE_PER_TAB:
        if not all_tabs_have_columns(sheets, merge_all_tabs, use_same_column_for_all, per_tab_columns):
            raise ProjectValidationError(MISSING_TAB_COLUMNS)
    elif active_sheet(sheets, selected_sheet, merge_all_tabs) is None or not question_column:
        raise ProjectValidationError(MISSING_SINGLE_COLUMN)

    if not preview_rows:
        raise ProjectValidationError(NO_PREVIEW_ROWS)

    chosen = selected_rows(preview_rows)
    if not chosen:
        raise ProjectValidationError(NO_ROWS_SELECTED)
    return chosen


def merged_sheet_name(sheet_count: int) -> str:
    """Sheet label for merged projects; counts every parsed tab, not only contributors."""
    return f"Merged ({sheet_count} tabs)"


def _project_columns(
    sheets: Sequence[SheetData],
    selected_sheet: str,
    merge_all_tabs: bool,
    use_same_column_for_all: bool,
) -> list[str]:
    mode = resolve_mode(len(sheets), merge_all_tabs, use_same_column_for_all)
    if mode is ColumnMode.MERGE_PER_TAB:
        return list(dict.fromkeys(col for sheet in sheets for col in sheet.columns))
    offered = candidate_columns(sheets, selected_sheet, merge_all_tabs, use_same_column_for_all)
    if offered:
        return offered
    sheet = active_sheet(sheets, selected_sheet, merge_all_tabs)
    return list(sheet.columns) if sheet else []


def build_project(
    *,
    sheets: Sequence[SheetData],
    selected_sheet: str,
    merge_all_tabs: bool,
    use_same_column_for_all: bool,
    question_column: str,
    per_tab_columns: Mapping[str, str],
    preview_rows: Sequence[PreviewRow],
    project_name: str = "",
    customer_name: str = "",
    owner_id: str | None = None,
    owner_name: str | None = None,
    id_factory: Callable[[], str] = _new_id,
    clock: Callable[[], str] = _now_iso,
) -> BulkProject:
    """Validate and assemble the BulkProject for submission.

    ``id_factory`` and ``clock`` exist for deterministic tests.

    Raises:
        ProjectValidationError: a submit precondition failed
    """
    chosen = validate_submission(
        sheets,
        selected_sheet,
        merge_all_tabs,
        use_same_column_for_all,
        question_column,
        per_tab_columns,
        preview_rows,
    )

    if merge_all_tabs and len(sheets) > 1:
        sheet_name = merged_sheet_name(len(sheets))
    else:
        sheet = active_sheet(sheets, selected_sheet, merge_all_tabs)
        sheet_name = sheet.name if sheet else UNKNOWN_SHEET_NAME

    tabs_with_rows = list(dict.fromkeys(row.source_tab for row in chosen))
    notes = f"Source tabs: {', '.join(tabs_with_rows)}" if len(tabs_with_rows) > 1 else None

    now = clock()
    return BulkProject(
        id=id_factory(),
        name=project_name.strip() or DEFAULT_PROJECT_NAME,
        sheet_name=sheet_name,
        columns=_project_columns(sheets, selected_sheet, merge_all_tabs, use_same_column_for_all),
        created_at=now,
        last_modified_at=now,
        status=ProjectStatus.DRAFT,
        customer_name=customer_name.strip() or None,
        owner_id=owner_id or None,
        owner_name=owner_name or None,
        notes=notes,
        rows=[
            ProjectRow(
                id=id_factory(),
                row_number=row.row_number,
                question=row.question,
                source_tab=row.source_tab,
                response="",
                status=RowStatus.PENDING,
            )
            for row in chosen
        ],
    )
