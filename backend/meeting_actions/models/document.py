from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional
from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


MINUTES_CATEGORY = "meeting_minutes"


class OrganizationDocument(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    organization_id: int = Field(index=True)
    uploaded_by: int = Field(foreign_key="user.id")
    category: str = Field(index=True)
    # Set only for minutes documents; one per meeting
    meeting_id: Optional[int] = Field(default=None, unique=True, foreign_key="meeting.id")
    file_name: str
    file_size: int = 0
    file_url: str = ""
    mime_type: str = "text/html"
    description: Optional[str] = None
    tags: Optional[str] = None  # JSON list
    metadata_json: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    is_template: bool = False
    is_starred: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class DocumentCompanyLink(SQLModel, table=True):
    document_id: int = Field(primary_key=True, foreign_key="organizationdocument.id")
    company_id: int = Field(primary_key=True, foreign_key="company.id")
    linked_by: int = Field(foreign_key="user.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
