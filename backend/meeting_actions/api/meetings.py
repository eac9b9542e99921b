from __future__ import annotations

from datetime import datetime
from typing import Optional, Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session
import logging

from meeting_actions.config import Settings
from meeting_actions.deps import RequestContext, get_extraction_client, get_request_context, get_session, get_settings
from meeting_actions.errors import InvalidCompanyError, MeetingNotFoundError
from meeting_actions.models.meeting import Meeting, MeetingStatus
from meeting_actions.repositories.companies import CompaniesRepository
from meeting_actions.repositories.extractions import ExtractionsRepository
from meeting_actions.repositories.meetings import MeetingsRepository
from meeting_actions.repositories.tasks import TasksRepository
from meeting_actions.repositories.transcripts import TranscriptsRepository
from meeting_actions.services.commit_coordinator import CommitCoordinator, CommitRequest, CommitResult
from meeting_actions.services.extraction_client import ExtractionClient
from meeting_actions.services.extraction_types import PreviewResult
from meeting_actions.services.minutes import split_decisions
from meeting_actions.services.processing import ProcessRequest, ProcessResult, process_meeting
from meeting_actions.services.transcription_service import (
    Provider,
    SegmentIn,
    build_preview,
    ingest_transcript,
    mark_transcription_failed,
    normalize_provider_result,
)

logger = logging.getLogger("meeting_actions.api")


router = APIRouter(prefix="/meetings", tags=["meetings"])


def _meeting_or_404(session: Session, meeting_id: int, ctx: RequestContext) -> Meeting:
    meeting = MeetingsRepository(session).get_for_organization(meeting_id, ctx.organization_id)
    if meeting is None:
        raise MeetingNotFoundError(meeting_id)
    return meeting


class CreateMeetingRequest(BaseModel):
    company_id: Optional[int] = None
    title: Optional[str] = None
    language: str = "en"
    audio_url: Optional[str] = None
    transcription_provider: Optional[Provider] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None


@router.post("")
def create_meeting(
    body: CreateMeetingRequest,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, int]:
    if body.company_id is not None:
        if CompaniesRepository(session).get_in_organization(body.company_id, ctx.organization_id) is None:
            raise InvalidCompanyError("Invalid company for this organization")

    meeting = Meeting(
        organization_id=ctx.organization_id,
        company_id=body.company_id,
        created_by=ctx.user_id,
        title=body.title,
        language=body.language,
        audio_url=body.audio_url,
        transcription_provider=body.transcription_provider,
        status=MeetingStatus.RECORDED.value,
        started_at=body.started_at,
        ended_at=body.ended_at,
    )
    meeting = MeetingsRepository(session).create(meeting)
    session.commit()
    logger.info("Created meeting %s for organization %s", meeting.id, ctx.organization_id)
    return {"meeting_id": meeting.id}  # type: ignore[dict-item]


@router.get("")
def list_meetings(
    limit: int = 50,
    offset: int = 0,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
) -> List[Meeting]:
    return MeetingsRepository(session).list(ctx.organization_id, limit=limit, offset=offset)


@router.get("/{meeting_id}")
def get_meeting_detail(
    meeting_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    meeting = _meeting_or_404(session, meeting_id, ctx)
    extraction = ExtractionsRepository(session).get_by_meeting(meeting_id)
    return {
        "meeting": meeting.model_dump(),
        "transcript_segments": [s.model_dump() for s in TranscriptsRepository(session).list_by_meeting(meeting_id)],
        "extraction": extraction.model_dump() if extraction else None,
        "tasks": [t.model_dump() for t in TasksRepository(session).list_by_meeting(meeting_id)],
    }


@router.get("/{meeting_id}/summary")
def get_meeting_summary(
    meeting_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    meeting = _meeting_or_404(session, meeting_id, ctx)
    extraction = ExtractionsRepository(session).get_by_meeting(meeting_id)
    tasks = TasksRepository(session).list_by_meeting(meeting_id)
    segments = TranscriptsRepository(session).list_by_meeting(meeting_id, limit=2000)
    return {
        "status": meeting.status,
        "summary": extraction.summary if extraction else "",
        "decisions": split_decisions(extraction.decisions) if extraction else [],
        "tasks": [
            {"id": t.id, "name": t.name, "due_date": t.due_date, "priority": t.priority, "company_id": t.company_id}
            for t in tasks
        ],
        "segments": [{"t0": s.start_sec, "t1": s.end_sec, "speaker": s.speaker, "text": s.text} for s in segments],
    }


class TranscriptRequest(BaseModel):
    provider: Optional[Provider] = None
    segments: Optional[List[SegmentIn]] = None
    raw: Optional[Dict[str, Any]] = None  # provider response, normalized server-side


class TranscriptResponse(BaseModel):
    provider: Optional[str]
    status: str
    segments: int
    speakers: List[str]
    preview: PreviewResult


@router.post("/{meeting_id}/transcript")
def submit_transcript(
    meeting_id: int,
    body: TranscriptRequest,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
    client: ExtractionClient = Depends(get_extraction_client),
    settings: Settings = Depends(get_settings),
) -> TranscriptResponse:
    meeting = _meeting_or_404(session, meeting_id, ctx)
    provider = body.provider or meeting.transcription_provider or "deepgram"

    if body.segments is not None:
        segments = body.segments
    else:
        segments = normalize_provider_result(provider, body.raw or {})  # type: ignore[arg-type]

    saved = ingest_transcript(session, meeting, segments, provider=provider)
    preview = build_preview(client, settings, saved)
    speakers = sorted({s.speaker for s in saved if s.speaker})
    return TranscriptResponse(
        provider=provider,
        status=MeetingStatus.TRANSCRIBED.value,
        segments=len(saved),
        speakers=speakers,
        preview=preview,
    )


class TranscriptionFailureRequest(BaseModel):
    error: Optional[str] = None


@router.post("/{meeting_id}/transcription-failure")
def report_transcription_failure(
    meeting_id: int,
    body: TranscriptionFailureRequest,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, str]:
    meeting = _meeting_or_404(session, meeting_id, ctx)
    meeting = mark_transcription_failed(session, meeting, body.error)
    return {"status": meeting.status}


@router.get("/{meeting_id}/preview")
def preview_meeting(
    meeting_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
    client: ExtractionClient = Depends(get_extraction_client),
    settings: Settings = Depends(get_settings),
) -> PreviewResult:
    _meeting_or_404(session, meeting_id, ctx)
    segments = TranscriptsRepository(session).list_by_meeting(meeting_id, limit=4000)
    return build_preview(client, settings, segments)


@router.post("/{meeting_id}/process")
def process_endpoint(
    meeting_id: int,
    body: Optional[ProcessRequest] = None,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
    client: ExtractionClient = Depends(get_extraction_client),
    settings: Settings = Depends(get_settings),
) -> ProcessResult:
    return process_meeting(session, client, settings, meeting_id, ctx.organization_id, ctx.user_id, body)


@router.post("/{meeting_id}/commit")
def commit_endpoint(
    meeting_id: int,
    body: CommitRequest,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
    settings: Settings = Depends(get_settings),
) -> CommitResult:
    return CommitCoordinator(session, settings).commit(meeting_id, ctx.organization_id, ctx.user_id, body)


class MinutesResponse(BaseModel):
    id: int
    url: str
    created: bool


@router.post("/{meeting_id}/minutes")
def regenerate_minutes(
    meeting_id: int,
    session: Session = Depends(get_session),
    ctx: RequestContext = Depends(get_request_context),
    settings: Settings = Depends(get_settings),
) -> MinutesResponse:
    """Re-render the minutes document from the last committed extraction."""
    doc, created = CommitCoordinator(session, settings).regenerate_minutes(meeting_id, ctx.organization_id, ctx.user_id)
    return MinutesResponse(id=doc.id, url=doc.file_url, created=created)  # type: ignore[arg-type]
