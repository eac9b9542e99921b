from __future__ import annotations

from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field


class TimeEntry(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True, foreign_key="user.id")
    company_id: Optional[int] = Field(default=None, foreign_key="company.id")
    # Set only for meeting-derived entries; backs the [meeting:<id>] tag in notes
    meeting_id: Optional[int] = Field(default=None, unique=True, foreign_key="meeting.id")
    description: str = ""
    start_time: datetime
    end_time: datetime
    duration: int  # seconds
    is_running: bool = False
    is_internal: bool = False
    is_billable: bool = False
    notes: Optional[str] = None
