from __future__ import annotations

import logging

from pydantic import BaseModel
from sqlmodel import Session

from meeting_actions.config import Settings
from meeting_actions.errors import InvalidMeetingStateError, TranscriptEmptyError
from meeting_actions.repositories.transcripts import TranscriptsRepository
from meeting_actions.services.aggregator import aggregate
from meeting_actions.services.chunker import segments_to_transcript
from meeting_actions.services.commit_coordinator import CommitCoordinator, CommitRequest, CommitResult
from meeting_actions.services.extraction_client import ExtractionClient
from meeting_actions.services.extraction_types import CommitTask

logger = logging.getLogger("meeting_actions.processing")


class ProcessRequest(BaseModel):
    create_minutes: bool = False
    auto_create_companies: bool = False
    auto_create_contacts: bool = False


class ProcessResult(BaseModel):
    chunks: int
    decisions: int
    commit: CommitResult


def process_meeting(
    session: Session,
    client: ExtractionClient,
    settings: Settings,
    meeting_id: int,
    organization_id: int,
    user_id: int,
    options: ProcessRequest | None = None,
) -> ProcessResult:
    """Run transcript -> chunks -> strict extraction -> aggregate -> commit.

    Extraction errors propagate before anything is written.
    """
    opts = options or ProcessRequest()
    coordinator = CommitCoordinator(session, settings)
    meeting = coordinator.load_meeting(meeting_id, organization_id)
    if not meeting.is_committable():
        raise InvalidMeetingStateError(f"Meeting {meeting.id} is {meeting.status}; transcribe it before processing")

    segments = TranscriptsRepository(session).list_by_meeting(meeting.id)
    if not segments:
        raise TranscriptEmptyError(meeting.id)

    results = client.extract_transcript(segments_to_transcript(segments))
    aggregated = aggregate(results)
    logger.info(
        "Meeting %s: %d chunk(s) -> %d task(s), %d decision(s)",
        meeting.id,
        len(results),
        len(aggregated.tasks),
        len(aggregated.decisions),
    )

    request = CommitRequest(
        summary=aggregated.summary,
        decisions=aggregated.decisions_text,
        tasks=[CommitTask.model_validate(t.model_dump()) for t in aggregated.tasks],
        create_minutes=opts.create_minutes,
        auto_create_companies=opts.auto_create_companies,
        auto_create_contacts=opts.auto_create_contacts,
    )
    commit = coordinator.commit(meeting.id, organization_id, user_id, request)
    return ProcessResult(chunks=len(results), decisions=len(aggregated.decisions), commit=commit)
