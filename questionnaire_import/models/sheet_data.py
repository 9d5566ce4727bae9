from __future__ import annotations

from dataclasses import dataclass

"""SheetData model for the questionnaire import pipeline.

SheetData represents one parsed worksheet (or the whole of a CSV upload)
after header synthesis and blank-row filtering.
"""

__all__ = [
    "SheetData",
]


@dataclass(frozen=True)
class SheetData:
    """One parsed tab: header labels plus raw string-cell body rows.

    The header row is never part of ``rows`` and fully blank rows are already
    dropped, so ``rows`` is never empty (empty tabs are omitted at parse time).
    """
    name: str  # Tab name, or file stem for CSV
    columns: list[str]  # Header labels, blank ones synthesized as "Column N"
    rows: list[list[str]]  # Body rows (header excluded)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def column_index(self, column: str) -> int:
        """Index of ``column`` by exact name match, -1 when absent."""
        try:
            return self.columns.index(column)
        except ValueError:
            return -1
