from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

from ..errors import ProjectSubmitError
from ..models.bulk_project import BulkProject
from .batch_insert import batch_insert, quote_ident

"""Project sinks that persist a BulkProject without the HTTP API.

PostgresProjectStore writes straight into the "BulkProject" / "BulkRow"
tables the web application reads, one transaction per project. Enum columns
store upper-case values (DRAFT, PENDING).

DryRunProjectStore persists nothing and echoes the project back; the CLI
uses it to preview what would be submitted.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "SUBMIT_FAILED_MESSAGE",
    "PROJECT_TABLE",
    "ROW_TABLE",
    "PROJECT_COLUMNS",
    "ROW_COLUMNS",
    "PostgresProjectStore",
    "DryRunProjectStore",
]

SUBMIT_FAILED_MESSAGE = "Failed to save project. Please try again."

PROJECT_TABLE = "BulkProject"
ROW_TABLE = "BulkRow"

PROJECT_COLUMNS = [
    "id",
    "name",
    "sheetName",
    "columns",
    "createdAt",
    "lastModifiedAt",
    "ownerId",
    "ownerName",
    "customerName",
    "status",
    "notes",
]

ROW_COLUMNS = [
    "id",
    "projectId",
    "rowNumber",
    "question",
    "response",
    "status",
    "error",
    "conversationHistory",
    "confidence",
    "sources",
    "remarks",
    "usedSkills",
    "showRecommendation",
]


def _json_or_none(value: Any) -> str | None:
    return json.dumps(value) if value is not None else None


def _project_values(project: BulkProject) -> list[Any]:
    return [
        project.id,
        project.name,
        project.sheet_name,
        list(project.columns),
        project.created_at,
        project.last_modified_at,
        project.owner_id,
        project.owner_name,
        project.customer_name,
        project.status.db_value,
        project.notes,
    ]


def _row_values(project: BulkProject) -> list[list[Any]]:
    return [
        [
            row.id,
            project.id,
            row.row_number,
            row.question,
            row.response,
            row.status.db_value,
            row.error,
            _json_or_none(row.conversation_history),
            row.confidence,
            row.sources,
            row.remarks,
            _json_or_none(row.used_skills),
            row.show_recommendation,
        ]
        for row in project.rows
    ]


class PostgresProjectStore:
    """Insert a project and its rows atomically.

    ``connection_factory`` returns a fresh psycopg2 connection with autocommit
    disabled (see ``db.connection.connect``); the store closes it.
    """

    name = "database"

    def __init__(self, connection_factory: Callable[[], Any]) -> None:
        self._connection_factory = connection_factory

    def create_project(self, project: BulkProject) -> BulkProject:
        try:
            conn = self._connection_factory()
        except Exception as e:
            logger.error("project=%s database connection failed: %s", project.id, e)
            raise ProjectSubmitError(SUBMIT_FAILED_MESSAGE) from e

        try:
            cur = conn.cursor()
            try:
                cols_sql = ",".join(quote_ident(c) for c in PROJECT_COLUMNS)
                placeholders = ",".join(["%s"] * len(PROJECT_COLUMNS))
                cur.execute(
                    f"INSERT INTO {quote_ident(PROJECT_TABLE)} ({cols_sql}) VALUES ({placeholders})",
                    _project_values(project),
                )
                result = batch_insert(cur, ROW_TABLE, ROW_COLUMNS, _row_values(project))
            finally:
                cur.close()
            conn.commit()
        except Exception as e:
            try:
                conn.rollback()
            except Exception:  # pragma: no cover
                logger.debug("rollback failed project=%s", project.id, exc_info=True)
            logger.error("project=%s insert failed, rolled back: %s", project.id, e)
            raise ProjectSubmitError(SUBMIT_FAILED_MESSAGE) from e
        finally:
            conn.close()

        logger.info(
            "project=%s stored rows=%d elapsed=%.3fs",
            project.id,
            result.inserted_rows,
            result.elapsed_seconds,
        )
        return project


class DryRunProjectStore:
    """Accept the project without persisting it."""

    name = "dry-run"

    def create_project(self, project: BulkProject) -> BulkProject:
        payload = json.dumps(project.to_payload(), ensure_ascii=False)
        logger.info("dry-run project=%s rows=%d payload_bytes=%d", project.id, len(project.rows), len(payload))
        return project
