from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from ..models.preview_row import PreviewRow
from ..models.sheet_data import SheetData
from ..models.upload_session import ColumnMode

"""Row materializer: resolved (sheet, column) pairs -> flat PreviewRow list.

Sheets are processed in parse order and rows in sheet order. No sorting and
no de-duplication: the same question in two tabs yields two rows.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "HEADER_ROW_OFFSET",
    "materialize_sheet",
    "generate_preview_rows",
]

# data row index 0 is spreadsheet row 2 (row 1 is the header)
HEADER_ROW_OFFSET = 2


def materialize_sheet(sheet: SheetData, column: str) -> list[PreviewRow]:
    """Expand one sheet under ``column``; empty when the header lacks it."""
    column_index = sheet.column_index(column)
    if column_index == -1:
        return []
    rows: list[PreviewRow] = []
    for index, raw in enumerate(sheet.rows):
        cells = {col: (raw[idx] if idx < len(raw) else "") for idx, col in enumerate(sheet.columns)}
        question = raw[column_index].strip() if column_index < len(raw) else ""
        rows.append(
            PreviewRow(
                row_number=index + HEADER_ROW_OFFSET,
                question=question,
                source_tab=sheet.name,
                cells=cells,
                selected=True,
            )
        )
    return rows


def generate_preview_rows(
    sheets: Sequence[SheetData],
    mode: ColumnMode,
    question_column: str = "",
    per_tab_columns: Mapping[str, str] | None = None,
    active: SheetData | None = None,
) -> list[PreviewRow]:
    """Materialize preview rows for the given column mode.

    Args:
        sheets: All parsed sheets, in parse order
        mode: Resolved column mode
        question_column: Column name for SINGLE / MERGE_SHARED
        per_tab_columns: Sheet name -> column for MERGE_PER_TAB
        active: Reference sheet for SINGLE mode
    """
    if mode is ColumnMode.SINGLE:
        if active is None or not question_column:
            return []
        return materialize_sheet(active, question_column)

    if mode is ColumnMode.MERGE_SHARED and not question_column:
        return []

    all_rows: list[PreviewRow] = []
    for sheet in sheets:
        if mode is ColumnMode.MERGE_PER_TAB:
            column = (per_tab_columns or {}).get(sheet.name, "")
            if not column:
                continue
        else:
            column = question_column
        if sheet.column_index(column) == -1:
            # 列を持たないタブは 0 行として扱う
            logger.warning("tab=%s has no column '%s'; contributing 0 rows", sheet.name, column)
            continue
        all_rows.extend(materialize_sheet(sheet, column))
    return all_rows
