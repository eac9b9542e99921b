from __future__ import annotations

from typing import Iterable, List, Optional, Tuple
from sqlalchemy import func
from sqlmodel import Session, select

from meeting_actions.models.transcript_segment import TranscriptSegment


class TranscriptsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def replace_for_meeting(self, meeting_id: int, segments: Iterable[TranscriptSegment]) -> List[TranscriptSegment]:
        """Delete every segment of the meeting and insert the new set.

        Nothing is committed here, so the caller decides the transaction
        boundary and a reader never sees a half-replaced transcript.
        """
        for seg in self.list_by_meeting(meeting_id):
            self.session.delete(seg)
        self.session.flush()

        saved: List[TranscriptSegment] = []
        for seg in segments:
            seg.meeting_id = meeting_id
            self.session.add(seg)
            saved.append(seg)
        self.session.flush()
        return saved

    def list_by_meeting(self, meeting_id: int, limit: Optional[int] = None) -> list[TranscriptSegment]:
        statement = (
            select(TranscriptSegment)
            .where(TranscriptSegment.meeting_id == meeting_id)
            .order_by(TranscriptSegment.start_sec.asc(), TranscriptSegment.id.asc())
        )
        if limit is not None:
            statement = statement.limit(limit)
        return list(self.session.exec(statement))

    def count_for_meeting(self, meeting_id: int) -> int:
        statement = select(func.count()).select_from(TranscriptSegment).where(
            TranscriptSegment.meeting_id == meeting_id
        )
        return int(self.session.exec(statement).one())

    def time_span(self, meeting_id: int) -> Optional[Tuple[float, float]]:
        """Return (min start_sec, max end_sec) or None without segments."""
        statement = select(func.min(TranscriptSegment.start_sec), func.max(TranscriptSegment.end_sec)).where(
            TranscriptSegment.meeting_id == meeting_id
        )
        start, end = self.session.exec(statement).one()
        if start is None or end is None:
            return None
        return float(start), float(end)
