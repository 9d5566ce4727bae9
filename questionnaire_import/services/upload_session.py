from __future__ import annotations

import logging
from typing import Protocol

from ..errors import QuestionnaireImportError
from ..excel.reader import parse_upload
from ..models.bulk_project import BulkProject
from ..models.upload_session import UploadSession
from ..models.uploaded_file import UploadedFile
from . import columns, selection
from .preview import generate_preview_rows
from .project_builder import build_project

"""Upload session: the multi-step upload screen as explicit state transitions.

Each function takes the UploadSession, applies one user action and returns
it. Pipeline errors never escape: they are converted into
``session.error_message`` and the rest of the state is left as it was.

Typical flow:
    load_file -> (choose_sheet | set_merge_all_tabs | set_use_same_column_for_all)
    -> choose_question_column / choose_tab_column -> toggle ... -> save_project
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ProjectSink",
    "SAVE_SUCCESS_MESSAGE",
    "new_session",
    "load_file",
    "choose_sheet",
    "set_merge_all_tabs",
    "set_use_same_column_for_all",
    "choose_question_column",
    "choose_tab_column",
    "toggle",
    "select_all_rows",
    "deselect_all_rows",
    "save_project",
    "workspace_path",
]

SAVE_SUCCESS_MESSAGE = "Project saved! Redirecting to response workspace..."


def workspace_path(project_id: str) -> str:
    """Route of the per-project review workspace."""
    return f"/projects/{project_id}"


class ProjectSink(Protocol):
    """Anything that persists a BulkProject and returns the stored echo."""

    name: str

    def create_project(self, project: BulkProject) -> BulkProject: ...


def new_session(
    merge_all_tabs: bool = True,
    use_same_column_for_all: bool = True,
    owner_id: str | None = None,
    owner_name: str | None = None,
) -> UploadSession:
    return UploadSession(
        merge_all_tabs=merge_all_tabs,
        use_same_column_for_all=use_same_column_for_all,
        owner_id=owner_id,
        owner_name=owner_name,
    )


def _refresh_preview(session: UploadSession) -> None:
    mode = columns.resolve_mode(
        len(session.sheets), session.merge_all_tabs, session.use_same_column_for_all
    )
    session.preview_rows = generate_preview_rows(
        session.sheets,
        mode,
        question_column=session.question_column,
        per_tab_columns=session.per_tab_columns,
        active=columns.active_sheet(session.sheets, session.selected_sheet, session.merge_all_tabs),
    )


def _reset_columns(session: UploadSession) -> None:
    session.question_column = ""
    session.per_tab_columns = {}
    session.preview_rows = []


def load_file(session: UploadSession, upload: UploadedFile) -> UploadSession:
    """Parse a new upload, replacing all sheets, column choices and preview rows."""
    session.file_name = upload.name
    if not session.project_name:
        session.project_name = upload.stem
    session.is_parsing = True
    session.error_message = None
    session.success_message = None
    session.error_type = None
    session.sheets = []
    session.selected_sheet = ""
    _reset_columns(session)
    try:
        sheets = parse_upload(upload)
    except QuestionnaireImportError as e:
        logger.warning("file=%s parse failed: %s", upload.name, e)
        session.error_message = str(e)
        session.error_type = e.error_type
    else:
        session.sheets = sheets
        session.selected_sheet = sheets[0].name
        logger.info(
            "file=%s parsed sheets=%d rows=%d",
            upload.name,
            len(sheets),
            sum(s.row_count for s in sheets),
        )
    finally:
        session.is_parsing = False
    return session


def choose_sheet(session: UploadSession, sheet_name: str) -> UploadSession:
    session.selected_sheet = sheet_name
    session.question_column = ""
    session.preview_rows = []
    return session


def set_merge_all_tabs(session: UploadSession, value: bool) -> UploadSession:
    session.merge_all_tabs = value
    _reset_columns(session)
    return session


def set_use_same_column_for_all(session: UploadSession, value: bool) -> UploadSession:
    session.use_same_column_for_all = value
    _reset_columns(session)
    return session


def choose_question_column(session: UploadSession, column: str) -> UploadSession:
    """Set the single/shared question column and rebuild the preview."""
    session.question_column = column
    if column:
        _refresh_preview(session)
    else:
        session.preview_rows = []
    return session


def choose_tab_column(session: UploadSession, tab_name: str, column: str) -> UploadSession:
    """Set one tab's column in per-tab mode and rebuild the preview."""
    session.per_tab_columns = {**session.per_tab_columns, tab_name: column}
    _refresh_preview(session)
    return session


def toggle(session: UploadSession, row_number: int, source_tab: str) -> UploadSession:
    session.preview_rows = selection.toggle_row(session.preview_rows, row_number, source_tab)
    return session


def select_all_rows(session: UploadSession) -> UploadSession:
    session.preview_rows = selection.select_all(session.preview_rows)
    return session


def deselect_all_rows(session: UploadSession) -> UploadSession:
    session.preview_rows = selection.deselect_all(session.preview_rows)
    return session


def save_project(session: UploadSession, sink: ProjectSink) -> str | None:
    """Build the project from the current selection and submit it.

    Returns the workspace redirect path on success, None on failure (the
    message is in ``session.error_message``; sheets, mapping and selection are
    kept so the user can retry).
    """
    if session.is_saving:
        logger.debug("save already in flight, ignored")
        return None
    session.error_message = None
    session.error_type = None
    session.is_saving = True
    try:
        project = build_project(
            sheets=session.sheets,
            selected_sheet=session.selected_sheet,
            merge_all_tabs=session.merge_all_tabs,
            use_same_column_for_all=session.use_same_column_for_all,
            question_column=session.question_column,
            per_tab_columns=session.per_tab_columns,
            preview_rows=session.preview_rows,
            project_name=session.project_name,
            customer_name=session.customer_name,
            owner_id=session.owner_id,
            owner_name=session.owner_name,
        )
        created = sink.create_project(project)
    except QuestionnaireImportError as e:
        logger.warning("save failed (%s): %s", e.error_type, e)
        session.error_message = str(e)
        session.error_type = e.error_type
        return None
    finally:
        session.is_saving = False

    session.created_project_id = created.id
    session.success_message = SAVE_SUCCESS_MESSAGE
    return workspace_path(created.id)
