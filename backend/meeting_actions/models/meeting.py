from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional
from sqlmodel import SQLModel, Field

from meeting_actions.errors import InvalidMeetingStateError


class MeetingStatus(str, Enum):
    RECORDED = "RECORDED"
    TRANSCRIBED = "TRANSCRIBED"
    PROCESSED = "PROCESSED"
    FAILED = "FAILED"


ALLOWED_TRANSITIONS: Dict[MeetingStatus, FrozenSet[MeetingStatus]] = {
    MeetingStatus.RECORDED: frozenset({MeetingStatus.TRANSCRIBED, MeetingStatus.FAILED}),
    MeetingStatus.TRANSCRIBED: frozenset(
        {MeetingStatus.TRANSCRIBED, MeetingStatus.PROCESSED, MeetingStatus.FAILED}
    ),
    # PROCESSED is re-enterable; re-transcription moves it back
    MeetingStatus.PROCESSED: frozenset({MeetingStatus.PROCESSED, MeetingStatus.TRANSCRIBED}),
    MeetingStatus.FAILED: frozenset({MeetingStatus.TRANSCRIBED, MeetingStatus.FAILED}),
}

COMMITTABLE_STATUSES = frozenset({MeetingStatus.TRANSCRIBED, MeetingStatus.PROCESSED})


class Meeting(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    organization_id: int = Field(index=True)
    company_id: Optional[int] = Field(default=None, index=True, foreign_key="company.id")
    created_by: int = Field(foreign_key="user.id")
    title: Optional[str] = None
    language: Optional[str] = None
    audio_url: Optional[str] = None
    transcription_provider: Optional[str] = None  # deepgram|openai
    status: str = Field(default=MeetingStatus.RECORDED.value)
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    @property
    def idempotency_tag(self) -> str:
        return f"[meeting:{self.id}]"

    def transition_to(self, status: MeetingStatus) -> None:
        current = MeetingStatus(self.status)
        if status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidMeetingStateError(
                f"Meeting {self.id} cannot move from {current.value} to {status.value}"
            )
        self.status = status.value

    def is_committable(self) -> bool:
        return MeetingStatus(self.status) in COMMITTABLE_STATUSES
