from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .preview_row import PreviewRow
from .sheet_data import SheetData

"""UploadSession state and ColumnMode enum.

UploadSession holds everything one upload screen knows between user actions:
parsed sheets, the two mode toggles, the column choices, materialized preview
rows and the single user-visible message. Nothing here is persisted; the
service functions in ``services.upload_session`` are the only writers.
"""

__all__ = [
    "ColumnMode",
    "UploadSession",
]


class ColumnMode(Enum):
    """How the question column is resolved.

    - SINGLE: one sheet (or merge disabled); one column for the active sheet
    - MERGE_SHARED: >=2 sheets merged, one column name for every sheet
    - MERGE_PER_TAB: >=2 sheets merged, independent column per sheet
    """
    SINGLE = "single"
    MERGE_SHARED = "merge_shared"
    MERGE_PER_TAB = "merge_per_tab"


@dataclass
class UploadSession:
    project_name: str = ""
    customer_name: str = ""
    owner_id: str | None = None
    owner_name: str | None = None
    file_name: str | None = None
    sheets: list[SheetData] = field(default_factory=list)
    selected_sheet: str = ""
    merge_all_tabs: bool = True
    use_same_column_for_all: bool = True
    question_column: str = ""
    per_tab_columns: dict[str, str] = field(default_factory=dict)
    preview_rows: list[PreviewRow] = field(default_factory=list)
    is_parsing: bool = False
    is_saving: bool = False
    error_message: str | None = None
    error_type: str | None = None  # UPPER_SNAKE class of the last error, for the error log
    success_message: str | None = None
    created_project_id: str | None = None
