"""Typed shapes for language-model extraction output.

Everything the model returns is parsed into these models on receipt, so
aggregation and resolution never handle raw dicts. Per-chunk results are held
to the strict schema; everywhere else malformed optional fields are defaulted
rather than rejected.
"""

from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from meeting_actions.models.task import Priority


def _clean_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


class ExtractedTask(BaseModel):
    name: str = ""
    description: Optional[str] = None
    due_date: Optional[str] = None  # ISO date string as produced by the model
    assignee_email: Optional[str] = None
    priority: Optional[Priority] = None
    company_slug: Optional[str] = None
    company_name: Optional[str] = None
    labels: List[str] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str:
        if value is None or isinstance(value, (dict, list)):
            return ""
        return str(value)

    @field_validator("description", "due_date", "assignee_email", "company_slug", "company_name", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return _clean_optional_str(value)

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, value: Any) -> Optional[Priority]:
        if isinstance(value, Priority):
            return value
        if not isinstance(value, str):
            return None
        try:
            return Priority(value.strip().upper())
        except ValueError:
            return None

    @field_validator("labels", mode="before")
    @classmethod
    def _coerce_labels(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        out: List[str] = []
        for item in value:
            if isinstance(item, dict):
                item = item.get("name")
            label = _clean_optional_str(item)
            if label:
                out.append(label)
        return out


class CommitTask(ExtractedTask):
    """A task as submitted for commit, possibly edited by the user."""

    company_id: Optional[int] = None
    assigned_to_id: Optional[int] = None


def _coerce_str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if isinstance(v, (str, int, float)) and str(v).strip()]


class StrictTask(BaseModel):
    """A task exactly as the strict schema demands: all keys, exact types."""

    model_config = ConfigDict(extra="forbid", strict=True)

    name: str
    description: str
    due_date: str
    assignee_email: str
    priority: Literal["LOW", "MEDIUM", "HIGH", "URGENT"]
    company_slug: str
    company_name: str
    labels: List[str]


class ChunkExtraction(BaseModel):
    """Strict per-chunk result: every top-level key must be present.

    Raw task dicts must pass StrictTask before they are loosened into
    ExtractedTask, so "" sentinels become None only after the shape checks.
    """

    summary: str
    decisions: List[str]
    tasks: List[ExtractedTask]

    @field_validator("decisions", mode="before")
    @classmethod
    def _coerce_decisions(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            raise ValueError("decisions must be a list")
        return _coerce_str_list(value)

    @field_validator("tasks", mode="before")
    @classmethod
    def _require_strict_tasks(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            raise ValueError("tasks must be a list")
        out: List[Any] = []
        for i, item in enumerate(value):
            if isinstance(item, ExtractedTask):
                out.append(item)
                continue
            try:
                out.append(StrictTask.model_validate(item).model_dump())
            except ValidationError as e:
                raise ValueError(f"task {i} does not match the strict schema: {e}") from e
        return out


class PreviewExtraction(BaseModel):
    summary: str
    tasks: List[ExtractedTask]
    decisions: List[str] = Field(default_factory=list)

    @field_validator("decisions", mode="before")
    @classmethod
    def _coerce_decisions(cls, value: Any) -> List[str]:
        return _coerce_str_list(value)


PreviewSource = Literal["responses", "chat", "none", "skipped"]


class PreviewResult(BaseModel):
    summary: str = ""
    tasks: List[ExtractedTask] = Field(default_factory=list)
    source: PreviewSource = "none"
    note: Optional[str] = None


class AggregatedExtraction(BaseModel):
    summary: str = ""
    decisions: List[str] = Field(default_factory=list)
    tasks: List[ExtractedTask] = Field(default_factory=list)

    @property
    def decisions_text(self) -> str:
        return "\n".join(self.decisions)
