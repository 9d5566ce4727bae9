from __future__ import annotations

from dataclasses import dataclass, field

"""PreviewRow model for the questionnaire import pipeline.

A PreviewRow is one candidate question extracted from a sheet under the
chosen column mapping, shown to the user before the project is created.
"""

__all__ = [
    "PreviewRow",
    "RowKey",
]

# (row_number, source_tab) - row_number alone is not unique across merged tabs
RowKey = tuple[int, str]


@dataclass(frozen=True)
class PreviewRow:
    """Materialized candidate question.

    ``row_number`` is the 1-based spreadsheet row including the header, so the
    first data row is 2. ``cells`` preserves the sheet's header order.
    """
    row_number: int
    question: str  # Trimmed value of the mapped column ("" when blank)
    source_tab: str  # SheetData.name this row came from
    cells: dict[str, str] = field(default_factory=dict)
    selected: bool = True

    @property
    def key(self) -> RowKey:
        return (self.row_number, self.source_tab)
