from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional
from sqlmodel import Session, select

from meeting_actions.models.meeting_extraction import MeetingExtraction


class ExtractionsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def upsert_for_meeting(
        self,
        meeting_id: int,
        summary: str,
        decisions: str,
        payload: Dict[str, Any],
        status: str = "COMPLETE",
    ) -> MeetingExtraction:
        existing = self.get_by_meeting(meeting_id)
        if existing is None:
            extraction = MeetingExtraction(
                meeting_id=meeting_id,
                summary=summary,
                decisions=decisions,
                payload=payload,
                status=status,
            )
            self.session.add(extraction)
            self.session.flush()
            return extraction
        existing.summary = summary
        existing.decisions = decisions
        existing.payload = payload
        existing.status = status
        existing.updated_at = datetime.utcnow()
        self.session.add(existing)
        self.session.flush()
        return existing

    def get_by_meeting(self, meeting_id: int) -> Optional[MeetingExtraction]:
        statement = select(MeetingExtraction).where(MeetingExtraction.meeting_id == meeting_id)
        return self.session.exec(statement).first()
