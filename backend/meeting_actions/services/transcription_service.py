"""Ingest speech-to-text output for a meeting and build the post-transcription preview."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional
import logging

from pydantic import BaseModel
from sqlmodel import Session

from meeting_actions.config import Settings
from meeting_actions.models.meeting import Meeting, MeetingStatus
from meeting_actions.models.transcript_segment import TranscriptSegment
from meeting_actions.repositories.meetings import MeetingsRepository
from meeting_actions.repositories.transcripts import TranscriptsRepository
from meeting_actions.services.chunker import limited_transcript
from meeting_actions.services.extraction_client import ExtractionClient
from meeting_actions.services.extraction_types import PreviewResult

logger = logging.getLogger("meeting_actions.transcription")

Provider = Literal["deepgram", "openai"]


class SegmentIn(BaseModel):
    start_sec: float = 0.0
    end_sec: float = 0.0
    speaker: Optional[str] = None
    text: str


def _speaker_label(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, int):
        return f"Speaker {value}"
    label = str(value).strip()
    return label or None


def segments_from_deepgram(raw: Dict[str, Any]) -> List[SegmentIn]:
    """Group consecutive Deepgram words by speaker into segments."""
    channels = (raw.get("results") or {}).get("channels") or [{}]
    alternatives = channels[0].get("alternatives") or [{}]
    alt = alternatives[0] or {}
    words = alt.get("words") or []

    if not words:
        text = str(alt.get("transcript") or (alt.get("paragraphs") or {}).get("transcript") or "").strip()
        return [SegmentIn(start_sec=0, end_sec=0, text=text)] if text else []

    segments: List[SegmentIn] = []
    buf: List[str] = []
    start = float(words[0].get("start") or 0)
    end = float(words[0].get("end") or 0)
    speaker = words[0].get("speaker", 0)
    for w in words:
        if w.get("speaker", 0) != speaker and buf:
            segments.append(SegmentIn(start_sec=start, end_sec=end, speaker=_speaker_label(speaker), text=" ".join(buf)))
            buf = []
            start = float(w.get("start") or 0)
            speaker = w.get("speaker", 0)
        buf.append(str(w.get("punctuated_word") or w.get("word") or ""))
        end = float(w.get("end") or end)
    if buf:
        segments.append(SegmentIn(start_sec=start, end_sec=end, speaker=_speaker_label(speaker), text=" ".join(buf)))
    return segments


def segments_from_whisper(raw: Dict[str, Any]) -> List[SegmentIn]:
    """Map Whisper verbose_json segments (no diarization)."""
    segments = [
        SegmentIn(
            start_sec=float(seg.get("start") or 0),
            end_sec=float(seg.get("end") or 0),
            text=str(seg.get("text") or "").strip(),
        )
        for seg in raw.get("segments") or []
        if isinstance(seg, dict)
    ]
    if not segments and raw.get("text"):
        segments.append(SegmentIn(start_sec=0, end_sec=0, text=str(raw["text"]).strip()))
    return segments


def normalize_provider_result(provider: Provider, raw: Dict[str, Any]) -> List[SegmentIn]:
    if provider == "deepgram":
        return segments_from_deepgram(raw)
    return segments_from_whisper(raw)


def ingest_transcript(
    session: Session,
    meeting: Meeting,
    segments: List[SegmentIn],
    provider: Optional[str] = None,
) -> List[TranscriptSegment]:
    """Replace the meeting's transcript and mark it TRANSCRIBED in one commit."""
    ordered = sorted((s for s in segments if s.text.strip()), key=lambda s: s.start_sec)
    rows = [
        TranscriptSegment(
            meeting_id=meeting.id,
            start_sec=s.start_sec,
            end_sec=s.end_sec,
            speaker=s.speaker,
            text=s.text.strip(),
        )
        for s in ordered
    ]
    try:
        saved = TranscriptsRepository(session).replace_for_meeting(meeting.id, rows)
        meeting.transition_to(MeetingStatus.TRANSCRIBED)
        if provider:
            meeting.transcription_provider = provider
        MeetingsRepository(session).update(meeting)
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info("Meeting %s transcribed: %d segment(s) via %s", meeting.id, len(saved), provider or "unknown")
    return saved


def mark_transcription_failed(session: Session, meeting: Meeting, message: Optional[str] = None) -> Meeting:
    meeting.transition_to(MeetingStatus.FAILED)
    MeetingsRepository(session).update(meeting)
    session.commit()
    logger.warning("Meeting %s transcription failed: %s", meeting.id, message or "no details")
    return meeting


def build_preview(client: ExtractionClient, settings: Settings, segments: List[TranscriptSegment]) -> PreviewResult:
    """Quick, non-persisted extraction; never raises on service failures."""
    transcript = limited_transcript(segments, settings.preview_max_chars)
    if len(transcript) < settings.preview_min_chars:
        return PreviewResult(source="skipped", note="Transcript too short for preview")
    return client.preview(transcript)
