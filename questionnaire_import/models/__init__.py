"""Domain models for the questionnaire import pipeline.

Parsed sheets, preview rows, the upload session state and the persisted
project record all live here as plain dataclasses.
"""

from .bulk_project import BulkProject, ProjectRow, ProjectStatus, RowStatus
from .error_record import ErrorRecord
from .import_summary import ImportSummary
from .preview_row import PreviewRow, RowKey
from .sheet_data import SheetData
from .upload_session import ColumnMode, UploadSession
from .uploaded_file import UploadedFile

__all__ = [
    # Parsing
    "SheetData",
    "UploadedFile",
    # Preview / session
    "ColumnMode",
    "PreviewRow",
    "RowKey",
    "UploadSession",
    # Persisted project
    "BulkProject",
    "ProjectRow",
    "ProjectStatus",
    "RowStatus",
    # Reporting
    "ErrorRecord",
    "ImportSummary",
]
