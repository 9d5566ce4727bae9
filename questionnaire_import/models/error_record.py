from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

One record per failed upload run. ``row`` is -1 when the failure is not tied
to a specific spreadsheet row (file-level or submit-level errors).
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Uploaded file name
        sheet: Sheet name, or "<FILE_LEVEL>" when not sheet specific
        row: Row number (1-based, header included). -1 when unknown
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: User-facing error message
    """
    timestamp: str
    file: str
    sheet: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(file: str, sheet: str, row: int, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # dataclass のフィールドのみ出力 (追加キー禁止)
        return json.dumps(asdict(self), ensure_ascii=False)
