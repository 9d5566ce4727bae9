from __future__ import annotations

from dataclasses import dataclass

"""ImportSummary: counters rendered into the SUMMARY line after a CLI run."""

__all__ = [
    "ImportSummary",
]


@dataclass(frozen=True)
class ImportSummary:
    file_name: str
    sheets: int  # Parsed (populated) sheets
    preview_rows: int
    selected_rows: int
    sink: str  # api / database / dry-run
    elapsed_seconds: float
    project_id: str | None = None  # None when nothing was created
