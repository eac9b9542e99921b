from __future__ import annotations

from typing import Optional
from sqlmodel import SQLModel, Field


class TranscriptSegment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    meeting_id: int = Field(index=True, foreign_key="meeting.id")
    start_sec: float = Field(index=True)
    end_sec: float
    speaker: Optional[str] = None
    text: str
