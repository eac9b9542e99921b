from __future__ import annotations

from typing import Optional
from sqlmodel import Session, select

from meeting_actions.models.time_entry import TimeEntry


class TimeEntriesRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_tag(self, user_id: int, tag: str) -> Optional[TimeEntry]:
        statement = select(TimeEntry).where(TimeEntry.user_id == user_id, TimeEntry.notes.contains(tag))
        return self.session.exec(statement).first()

    def create(self, entry: TimeEntry) -> TimeEntry:
        self.session.add(entry)
        self.session.flush()
        return entry

    def list_by_meeting(self, meeting_id: int) -> list[TimeEntry]:
        statement = select(TimeEntry).where(TimeEntry.meeting_id == meeting_id)
        return list(self.session.exec(statement))
