from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""BulkProject / ProjectRow domain models and status enums.

A BulkProject is the persisted unit of work for one questionnaire. This
pipeline only ever creates it (status ``draft``, every row ``pending``); the
answering workflow mutates it later.

Payload helpers translate between the dataclasses and the camelCase JSON the
project-creation API speaks. Unset optional fields are omitted from payloads.
"""

__all__ = [
    "ProjectStatus",
    "RowStatus",
    "ProjectRow",
    "BulkProject",
]


class ProjectStatus(Enum):
    """Project lifecycle: draft -> in_progress -> needs_review -> finalized."""
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    NEEDS_REVIEW = "needs_review"
    FINALIZED = "finalized"

    @classmethod
    def parse(cls, raw: str | None) -> ProjectStatus:
        # DB 側は大文字 (DRAFT / IN_PROGRESS) で返す
        if not raw:
            return cls.DRAFT
        return cls(raw.strip().lower().replace("-", "_"))

    @property
    def db_value(self) -> str:
        return self.value.upper()


class RowStatus(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    ERROR = "error"

    @classmethod
    def parse(cls, raw: str | None) -> RowStatus:
        if not raw:
            return cls.PENDING
        return cls(raw.strip().lower())

    @property
    def db_value(self) -> str:
        return self.value.upper()


@dataclass(frozen=True)
class ProjectRow:
    """One persisted question.

    Optional answer fields stay ``None`` at creation and are filled in by the
    answering workflow.
    """
    id: str
    row_number: int
    question: str
    source_tab: str
    response: str = ""
    status: RowStatus = RowStatus.PENDING
    confidence: str | None = None
    sources: str | None = None
    remarks: str | None = None
    used_skills: list[Any] | None = None
    conversation_history: list[dict[str, str]] | None = None
    error: str | None = None
    show_recommendation: bool = False

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "rowNumber": self.row_number,
            "question": self.question,
            "response": self.response,
            "status": self.status.value,
            "sourceTab": self.source_tab,
            "showRecommendation": self.show_recommendation,
        }
        optional = {
            "confidence": self.confidence,
            "sources": self.sources,
            "remarks": self.remarks,
            "usedSkills": self.used_skills,
            "conversationHistory": self.conversation_history,
            "error": self.error,
        }
        payload.update({k: v for k, v in optional.items() if v is not None})
        return payload

    @staticmethod
    def from_payload(data: dict[str, Any]) -> ProjectRow:
        return ProjectRow(
            id=str(data.get("id", "")),
            row_number=int(data["rowNumber"]),
            question=data.get("question", ""),
            source_tab=data.get("sourceTab", ""),
            response=data.get("response") or "",
            status=RowStatus.parse(data.get("status")),
            confidence=data.get("confidence"),
            sources=data.get("sources"),
            remarks=data.get("remarks"),
            used_skills=data.get("usedSkills"),
            conversation_history=data.get("conversationHistory"),
            error=data.get("error"),
            show_recommendation=bool(data.get("showRecommendation", False)),
        )


@dataclass(frozen=True)
class BulkProject:
    """Questionnaire-processing project as created by the upload pipeline."""
    id: str
    name: str
    sheet_name: str  # Tab name, or "Merged (<n> tabs)"
    columns: list[str]
    created_at: str  # ISO-8601
    last_modified_at: str  # ISO-8601, equal to created_at at creation
    rows: list[ProjectRow] = field(default_factory=list)
    status: ProjectStatus = ProjectStatus.DRAFT
    customer_name: str | None = None
    owner_id: str | None = None
    owner_name: str | None = None
    notes: str | None = None  # "Source tabs: a, b" when >1 tab contributed

    @property
    def source_tabs(self) -> list[str]:
        return list(dict.fromkeys(row.source_tab for row in self.rows))

    def to_payload(self) -> dict[str, Any]:
        """JSON body for the project-creation API (camelCase keys)."""
        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "sheetName": self.sheet_name,
            "columns": list(self.columns),
            "createdAt": self.created_at,
            "lastModifiedAt": self.last_modified_at,
            "status": self.status.value,
            "rows": [row.to_payload() for row in self.rows],
        }
        optional = {
            "customerName": self.customer_name,
            "ownerId": self.owner_id,
            "ownerName": self.owner_name,
            "notes": self.notes,
        }
        payload.update({k: v for k, v in optional.items() if v is not None})
        return payload

    @staticmethod
    def from_payload(data: dict[str, Any]) -> BulkProject:
        """Parse a project echoed back by the API (status may be upper-case)."""
        created = str(data.get("createdAt", ""))
        return BulkProject(
            id=str(data["id"]),
            name=data.get("name", ""),
            sheet_name=data.get("sheetName", ""),
            columns=list(data.get("columns") or []),
            created_at=created,
            last_modified_at=str(data.get("lastModifiedAt") or created),
            rows=[ProjectRow.from_payload(r) for r in data.get("rows") or []],
            status=ProjectStatus.parse(data.get("status")),
            customer_name=data.get("customerName"),
            owner_id=data.get("ownerId"),
            owner_name=data.get("ownerName"),
            notes=data.get("notes"),
        )
