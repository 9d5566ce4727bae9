from __future__ import annotations

"""Exception hierarchy for the questionnaire import pipeline.

Every failure the pipeline can report to a user is one of these classes.
The message string of the exception is the user-facing message; the upload
session and the CLI surface ``str(exc)`` unchanged.
"""

__all__ = [
    "QuestionnaireImportError",
    "UnsupportedFileTypeError",
    "SheetParseError",
    "EmptyUploadError",
    "ProjectValidationError",
    "ProjectSubmitError",
]


class QuestionnaireImportError(Exception):
    """Base class for all pipeline errors."""

    error_type = "IMPORT_ERROR"


class UnsupportedFileTypeError(QuestionnaireImportError):
    """Raised when the upload is not .csv / .xls / .xlsx (checked before parsing)."""

    error_type = "UNSUPPORTED_FILE_TYPE"


class SheetParseError(QuestionnaireImportError):
    """Raised when file content cannot be decoded (corrupt, password protected, I/O)."""

    error_type = "PARSE_FAILURE"


class EmptyUploadError(QuestionnaireImportError):
    """Raised when the file parses but yields no usable data rows."""

    error_type = "EMPTY_RESULT"


class ProjectValidationError(QuestionnaireImportError):
    """Raised when a submit precondition fails (mapping, preview, selection)."""

    error_type = "VALIDATION_ERROR"


class ProjectSubmitError(QuestionnaireImportError):
    """Raised when the project sink rejects or fails to persist a project."""

    error_type = "SUBMISSION_FAILURE"
