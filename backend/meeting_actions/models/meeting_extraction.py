from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional
from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class MeetingExtraction(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    meeting_id: int = Field(index=True, unique=True, foreign_key="meeting.id")
    status: str = Field(default="COMPLETE")
    summary: str = ""
    decisions: str = ""  # newline-joined
    payload: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    updated_at: datetime = Field(default_factory=datetime.utcnow)
