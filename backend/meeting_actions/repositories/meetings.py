from __future__ import annotations

from typing import Optional
from sqlmodel import Session, select

from meeting_actions.models.meeting import Meeting


class MeetingsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, meeting: Meeting) -> Meeting:
        self.session.add(meeting)
        self.session.flush()
        return meeting

    def get(self, meeting_id: int) -> Optional[Meeting]:
        return self.session.get(Meeting, meeting_id)

    def get_for_organization(self, meeting_id: int, organization_id: int) -> Optional[Meeting]:
        meeting = self.get(meeting_id)
        if meeting is None or meeting.organization_id != organization_id:
            return None
        return meeting

    def list(self, organization_id: int, limit: int = 50, offset: int = 0) -> list[Meeting]:
        statement = (
            select(Meeting)
            .where(Meeting.organization_id == organization_id)
            .order_by(Meeting.created_at.desc(), Meeting.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(self.session.exec(statement))

    def update(self, meeting: Meeting) -> Meeting:
        self.session.add(meeting)
        self.session.flush()
        return meeting
