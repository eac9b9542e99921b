from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class Task(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    organization_id: int = Field(index=True)
    company_id: Optional[int] = Field(default=None, index=True, foreign_key="company.id")
    meeting_id: Optional[int] = Field(default=None, index=True, foreign_key="meeting.id")
    name: str
    description: Optional[str] = None
    assigned_to_id: Optional[int] = Field(default=None, foreign_key="user.id")
    reporter_id: int = Field(foreign_key="user.id")
    due_date: Optional[date] = None
    priority: str = Field(default=Priority.MEDIUM.value)
    labels: Optional[str] = None  # JSON list
    status: str = Field(default="TODO")
    created_at: datetime = Field(default_factory=datetime.utcnow)
