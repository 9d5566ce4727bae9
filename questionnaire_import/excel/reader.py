from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable, Sequence
from typing import Any

import pandas as pd

from ..errors import EmptyUploadError, SheetParseError, UnsupportedFileTypeError
from ..models.sheet_data import SheetData
from ..models.uploaded_file import UploadedFile

"""Sheet parser: uploaded CSV / workbook bytes -> list[SheetData].

Rules shared by both paths:
- fully blank rows (every cell empty after trimming) are dropped
- the first remaining row is the header; blank header labels become
  "Column <1-based index>"
- a sheet with no body rows left is not produced

CSV uploads yield exactly one sheet named after the file stem. Workbooks
yield one sheet per populated tab in file order; empty tabs are omitted and
only an entirely empty workbook is an error.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "CSV_EXTENSIONS",
    "EXCEL_EXTENSIONS",
    "detect_file_kind",
    "normalize_sheet",
    "parse_csv",
    "parse_workbook",
    "parse_upload",
]

CSV_EXTENSIONS = {".csv"}
EXCEL_EXTENSIONS = {".xls", ".xlsx"}

DEFAULT_CSV_SHEET_NAME = "CSV Upload"

UNSUPPORTED_MESSAGE = "Unsupported file type. Upload a CSV or Excel workbook."
EMPTY_CSV_MESSAGE = "Uploaded CSV did not contain any data rows."
EMPTY_WORKBOOK_MESSAGE = "No populated worksheets detected in this file."

# Sniffed only when the header line has no comma
_ALT_DELIMITERS = ";\t|"


def detect_file_kind(file_name: str) -> str:
    """Return "csv" or "excel"; reject anything else before any parsing."""
    lowered = file_name.lower()
    if any(lowered.endswith(ext) for ext in CSV_EXTENSIONS):
        return "csv"
    if any(lowered.endswith(ext) for ext in EXCEL_EXTENSIONS):
        return "excel"
    raise UnsupportedFileTypeError(UNSUPPORTED_MESSAGE)


def _is_blank_row(row: Sequence[Any]) -> bool:
    return not any(str(cell if cell is not None else "").strip() for cell in row)


def normalize_sheet(rows: Iterable[Sequence[str]], sheet_name: str) -> SheetData | None:
    """Apply header synthesis and blank-row filtering to raw string rows.

    Returns None when no data rows remain after the header.
    """
    kept = [list(row) for row in rows if not _is_blank_row(row)]
    if not kept:
        return None
    columns = []
    for index, cell in enumerate(kept[0]):
        label = (cell or "").strip()
        columns.append(label if label else f"Column {index + 1}")
    body = kept[1:]
    if not body:
        return None
    return SheetData(name=sheet_name, columns=columns, rows=body)


def _cell_to_str(value: Any) -> str:
    """Coerce a workbook cell to the string the user sees."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):  # pragma: no cover - array-like cell values
        pass
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def _csv_dialect(text: str) -> type[csv.Dialect] | csv.Dialect:
    # 先頭の空行は飛ばしてヘッダ行で判定する
    first_line = next((line for line in text.splitlines() if line.strip()), "")
    if "," in first_line:
        return csv.excel
    try:
        return csv.Sniffer().sniff(first_line, delimiters=_ALT_DELIMITERS)
    except csv.Error:
        return csv.excel


def parse_csv(content: bytes, sheet_name: str) -> SheetData:
    """Parse CSV bytes into a single SheetData.

    Raises:
        SheetParseError: content is not UTF-8 text or not valid CSV
        EmptyUploadError: no data rows remain after filtering
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise SheetParseError(f"Unable to read CSV file: {e}") from e

    try:
        rows = list(csv.reader(io.StringIO(text, newline=""), _csv_dialect(text)))
    except csv.Error as e:
        raise SheetParseError(f"Failed to parse CSV: {e}") from e

    sheet = normalize_sheet(rows, sheet_name or DEFAULT_CSV_SHEET_NAME)
    if sheet is None:
        raise EmptyUploadError(EMPTY_CSV_MESSAGE)
    logger.debug("csv sheet=%s columns=%s rows=%d", sheet.name, sheet.columns, sheet.row_count)
    return sheet


def read_workbook(content: bytes) -> dict[str, list[list[str]]]:
    """Read every tab of a workbook as raw string rows keyed by tab name (file order).

    Raises:
        SheetParseError: the engine cannot open the workbook
    """
    try:
        xls = pd.ExcelFile(io.BytesIO(content))
        raw: dict[str, list[list[str]]] = {}
        for name in xls.sheet_names:
            # ヘッダなしで生読み、型変換は _cell_to_str に任せる
            # "NA" / "N/A" / "NULL" 等も回答テキストとして残す (既定の NaN 変換を無効化)
            df = xls.parse(name, header=None, dtype=object, keep_default_na=False, na_filter=False)
            raw[str(name)] = [
                [_cell_to_str(value) for value in record]
                for record in df.itertuples(index=False, name=None)
            ]
    except Exception as e:
        raise SheetParseError(f"Failed to parse Excel workbook: {e}") from e
    return raw


def parse_workbook(content: bytes) -> list[SheetData]:
    """Parse every populated tab of a workbook.

    Raises:
        SheetParseError: the workbook cannot be opened
        EmptyUploadError: no tab yields data rows
    """
    sheets: list[SheetData] = []
    for name, rows in read_workbook(content).items():
        sheet = normalize_sheet(rows, name)
        if sheet is None:
            logger.debug("workbook tab=%s has no data rows, omitted", name)
            continue
        sheets.append(sheet)
    if not sheets:
        raise EmptyUploadError(EMPTY_WORKBOOK_MESSAGE)
    return sheets


def parse_upload(upload: UploadedFile) -> list[SheetData]:
    """Dispatch on file extension and parse the upload into sheets."""
    kind = detect_file_kind(upload.name)
    if kind == "csv":
        return [parse_csv(upload.content, upload.stem)]
    return parse_workbook(upload.content)
