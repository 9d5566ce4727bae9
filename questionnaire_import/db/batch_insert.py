from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from psycopg2.extras import execute_values

"""Batched INSERT helper built on psycopg2.extras.execute_values.

Identifiers are double-quoted because the project tables use mixed-case
names ("BulkProject", "BulkRow", "rowNumber"). Transaction boundaries are the
caller's job; this function only executes and reports.
"""

__all__ = [
    "BatchInsertError",
    "InsertResult",
    "quote_ident",
    "batch_insert",
]


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int
    elapsed_seconds: float = 0.0


def quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    page_size: int = 500,
) -> InsertResult:
    """Insert ``rows`` into ``table`` in pages of ``page_size``.

    Parameters
    ----------
    cursor: psycopg2 cursor (inside an open transaction)
    table: target table name, quoted here
    columns: insert column order, matching each row's value order
    rows: row value sequences
    page_size: execute_values page size

    Raises
    ------
    BatchInsertError: the driver rejected the statement
    """
    rows_list = list(rows)
    if not rows_list:
        return InsertResult(inserted_rows=0)

    cols_sql = ",".join(quote_ident(c) for c in columns)
    sql = f"INSERT INTO {quote_ident(table)} ({cols_sql}) VALUES %s"

    start = time.perf_counter()
    try:
        execute_values(cursor, sql, rows_list, page_size=page_size)
    except Exception as e:
        raise BatchInsertError(str(e)) from e
    return InsertResult(inserted_rows=len(rows_list), elapsed_seconds=time.perf_counter() - start)
