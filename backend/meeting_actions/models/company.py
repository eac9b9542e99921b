from __future__ import annotations

from datetime import datetime
from typing import Optional
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class Company(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("organization_id", "slug"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    organization_id: int = Field(index=True)
    name: str = Field(index=True)
    slug: str = Field(index=True)
    status: str = Field(default="ACTIVE")
    type: str = Field(default="CLIENT")
    created_at: datetime = Field(default_factory=datetime.utcnow)


class CompanyContact(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    company_id: int = Field(index=True, foreign_key="company.id")
    name: str
    email: str = Field(index=True)
    is_primary: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)


class CompanyNote(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    company_id: int = Field(index=True, foreign_key="company.id")
    user_id: int = Field(foreign_key="user.id")
    meeting_id: Optional[int] = Field(default=None, index=True, foreign_key="meeting.id")
    category: str = Field(default="general")  # general|meeting_summary
    content: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
