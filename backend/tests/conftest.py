"""Shared fixtures: an isolated in-memory database per test and a fake HTTP layer."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from meeting_actions.config import Settings
from meeting_actions.models.base import init_db
from meeting_actions.models.company import Company
from meeting_actions.models.meeting import Meeting, MeetingStatus
from meeting_actions.models.transcript_segment import TranscriptSegment
from meeting_actions.models.user import User
from meeting_actions.services.extraction_client import ExtractionClient

ORG_ID = 1
OTHER_ORG_ID = 2


@pytest.fixture()
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        data_dir=tmp_path / "data",
        logs_dir=tmp_path / "logs",
        database_path=tmp_path / "data" / "test.db",
        openai_api_key="test-key",
        openai_base_url="http://llm.test/v1",
    )


def fake_response(status: int = 200, body: Any = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.ok = status < 400
    resp.text = json.dumps(body) if body is not None else ""
    if body is None:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = body
    return resp


def responses_body(obj: Any, fenced: bool = False) -> dict:
    text = json.dumps(obj)
    if fenced:
        text = "```json\n" + text + "\n```"
    return {"output": [{"type": "message", "content": [{"type": "output_text", "text": text}]}]}


def chat_body(obj: Any) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": json.dumps(obj)}}]}


def strict_task(name: str, **overrides: Any) -> dict:
    task = {
        "name": name,
        "description": "",
        "due_date": "",
        "assignee_email": "",
        "priority": "MEDIUM",
        "company_slug": "",
        "company_name": "",
        "labels": [],
    }
    task.update(overrides)
    return task


@pytest.fixture()
def http() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def client(settings, http) -> ExtractionClient:
    return ExtractionClient(settings, http=http)


@pytest.fixture()
def user(session) -> User:
    u = User(organization_id=ORG_ID, email="alice@example.com", name="Alice")
    session.add(u)
    session.commit()
    session.refresh(u)
    return u


def add_company(session: Session, name: str, slug: str, organization_id: int = ORG_ID) -> Company:
    company = Company(organization_id=organization_id, name=name, slug=slug)
    session.add(company)
    session.commit()
    session.refresh(company)
    return company


def add_meeting(
    session: Session,
    created_by: int,
    company_id: Optional[int] = None,
    status: MeetingStatus = MeetingStatus.TRANSCRIBED,
    title: Optional[str] = "Weekly sync",
    started_at: Optional[datetime] = None,
    ended_at: Optional[datetime] = None,
    organization_id: int = ORG_ID,
) -> Meeting:
    meeting = Meeting(
        organization_id=organization_id,
        company_id=company_id,
        created_by=created_by,
        title=title,
        status=status.value,
        started_at=started_at,
        ended_at=ended_at,
    )
    session.add(meeting)
    session.commit()
    session.refresh(meeting)
    return meeting


def add_segments(session: Session, meeting_id: int, *rows: tuple) -> None:
    for start, end, speaker, text in rows:
        session.add(TranscriptSegment(meeting_id=meeting_id, start_sec=start, end_sec=end, speaker=speaker, text=text))
    session.commit()
