"""Turn resolved extraction output into durable records in one transaction.

The coordinator owns the transaction boundary: repositories only flush, and
`commit` either commits every artifact (tasks, contacts, companies, the
extraction row, the company note, the time entry and the minutes document)
or rolls all of them back.

Idempotency per meeting:
- MeetingExtraction is upserted.
- The time entry is found by its ``[meeting:<id>]`` tag and reused.
- The minutes document is found by category + meeting and updated in place.
- Company notes are appended on every commit.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional, Tuple
import json
import logging

from pydantic import BaseModel, Field
from sqlmodel import Session

from meeting_actions.config import Settings
from meeting_actions.errors import (
    CommitFailedError,
    InvalidMeetingStateError,
    MeetingNotFoundError,
)
from meeting_actions.models.company import Company, CompanyContact, CompanyNote
from meeting_actions.models.document import MINUTES_CATEGORY, OrganizationDocument
from meeting_actions.models.meeting import Meeting, MeetingStatus
from meeting_actions.models.task import Task
from meeting_actions.models.time_entry import TimeEntry
from meeting_actions.repositories.companies import (
    CompaniesRepository,
    ContactsRepository,
    NotesRepository,
)
from meeting_actions.repositories.documents import DocumentsRepository
from meeting_actions.repositories.extractions import ExtractionsRepository
from meeting_actions.repositories.meetings import MeetingsRepository
from meeting_actions.repositories.tasks import TasksRepository
from meeting_actions.repositories.time_entries import TimeEntriesRepository
from meeting_actions.repositories.transcripts import TranscriptsRepository
from meeting_actions.services.entity_resolver import EntityResolver, ResolvedTask
from meeting_actions.services.extraction_types import CommitTask
from meeting_actions.services.minutes import MinutesTask, render_minutes_html, split_decisions

logger = logging.getLogger("meeting_actions.commit")

MIN_TIME_ENTRY_SECONDS = 60
SUMMARY_NOTE_CATEGORY = "meeting_summary"


class CommitRequest(BaseModel):
    summary: str = ""
    decisions: str = ""  # newline-joined
    tasks: List[CommitTask] = Field(default_factory=list)
    create_minutes: bool = True
    auto_create_companies: bool = False
    auto_create_contacts: bool = False
    minutes_html: Optional[str] = None


class CommitResult(BaseModel):
    ok: bool = True
    created_tasks: int = 0
    created_contacts: int = 0
    created_companies: int = 0
    minutes_document_id: Optional[int] = None
    minutes_document_url: Optional[str] = None
    minutes_document_created: bool = False
    time_entry_id: Optional[int] = None
    time_entry_created: bool = False


def meeting_label(meeting: Meeting) -> str:
    return meeting.title or meeting.created_at.strftime("%b %d, %Y, %I:%M %p")


def minutes_file_name(meeting: Meeting) -> str:
    return f"Meeting Minutes - {meeting.title or meeting.created_at.strftime('%Y-%m-%d_%H-%M')}.html"


class CommitCoordinator:
    def __init__(self, session: Session, settings: Settings) -> None:
        self.session = session
        self.settings = settings
        self.meetings = MeetingsRepository(session)
        self.companies = CompaniesRepository(session)
        self.contacts = ContactsRepository(session)
        self.notes = NotesRepository(session)
        self.tasks = TasksRepository(session)
        self.extractions = ExtractionsRepository(session)
        self.time_entries = TimeEntriesRepository(session)
        self.documents = DocumentsRepository(session)
        self.transcripts = TranscriptsRepository(session)

    def load_meeting(self, meeting_id: int, organization_id: int) -> Meeting:
        meeting = self.meetings.get_for_organization(meeting_id, organization_id)
        if meeting is None:
            raise MeetingNotFoundError(meeting_id)
        return meeting

    def commit(self, meeting_id: int, organization_id: int, user_id: int, request: CommitRequest) -> CommitResult:
        meeting = self.load_meeting(meeting_id, organization_id)
        if not meeting.is_committable():
            raise InvalidMeetingStateError(f"Meeting {meeting.id} is {meeting.status}; transcribe it before committing")

        tasks = [t for t in request.tasks if t.name.strip()]

        resolver, meeting_company = self._load_resolver(meeting, organization_id, tasks)
        staged = resolver.plan_company_creation(tasks) if request.auto_create_companies else []

        result = CommitResult()
        try:
            if staged:
                created = self.companies.create_many(
                    Company(organization_id=organization_id, name=s.name, slug=s.slug) for s in staged
                )
                resolver.register_companies(created)
                result.created_companies = len(created)

            resolved = resolver.resolve_all(tasks)
            created_tasks = self.tasks.create_many(self._task_row(meeting, r) for r in resolved)
            result.created_tasks = len(created_tasks)

            if request.auto_create_contacts:
                result.created_contacts = self._create_missing_contacts(resolved)

            self.extractions.upsert_for_meeting(
                meeting.id,
                summary=request.summary,
                decisions=request.decisions,
                payload={
                    "tasks": [t.model_dump(mode="json") for t in tasks],
                    "decisions": split_decisions(request.decisions),
                },
            )

            if request.summary.strip() and meeting.company_id:
                self.notes.create(
                    CompanyNote(
                        company_id=meeting.company_id,
                        user_id=user_id,
                        meeting_id=meeting.id,
                        category=SUMMARY_NOTE_CATEGORY,
                        content=request.summary,
                    )
                )

            meeting.transition_to(MeetingStatus.PROCESSED)
            self.meetings.update(meeting)

            entry, entry_created = self.ensure_time_entry(meeting)
            result.time_entry_id = entry.id
            result.time_entry_created = entry_created

            if request.create_minutes:
                if request.minutes_html and request.minutes_html.strip():
                    html = request.minutes_html
                else:
                    html = render_minutes_html(
                        title=meeting.title,
                        held_at=meeting.created_at,
                        company_name=meeting_company.name if meeting_company is not None else None,
                        summary=request.summary,
                        decisions_text=request.decisions,
                        tasks=[self._minutes_task(r, resolver) for r in resolved],
                    )
                doc, doc_created = self.ensure_minutes_document(
                    meeting, user_id, html, request.summary, tasks_count=len(resolved)
                )
                result.minutes_document_id = doc.id
                result.minutes_document_url = doc.file_url
                result.minutes_document_created = doc_created

            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.exception("Commit for meeting %s rolled back", meeting_id)
            raise CommitFailedError(meeting_id) from e

        logger.info(
            "Committed meeting %s: tasks=%d contacts=%d companies=%d time_entry=%s(%s) minutes=%s(%s)",
            meeting_id,
            result.created_tasks,
            result.created_contacts,
            result.created_companies,
            result.time_entry_id,
            "created" if result.time_entry_created else "reused",
            result.minutes_document_id,
            "created" if result.minutes_document_created else "reused",
        )
        return result

    def regenerate_minutes(
        self, meeting_id: int, organization_id: int, user_id: int
    ) -> Tuple[OrganizationDocument, bool]:
        """Re-render the minutes document from the stored extraction.

        Tasks go through the same resolution as at commit time, so the
        document names companies the way the committed tasks reference them.
        """
        meeting = self.load_meeting(meeting_id, organization_id)
        extraction = self.extractions.get_by_meeting(meeting.id)
        summary = extraction.summary if extraction else ""
        decisions = extraction.decisions if extraction else ""
        raw_tasks = (extraction.payload or {}).get("tasks", []) if extraction else []
        tasks = [CommitTask.model_validate(t) for t in raw_tasks if isinstance(t, dict)]
        tasks = [t for t in tasks if t.name.strip()]

        resolver, meeting_company = self._load_resolver(meeting, organization_id, tasks)
        resolved = resolver.resolve_all(tasks)
        html = render_minutes_html(
            title=meeting.title,
            held_at=meeting.created_at,
            company_name=meeting_company.name if meeting_company is not None else None,
            summary=summary,
            decisions_text=decisions,
            tasks=[self._minutes_task(r, resolver) for r in resolved],
        )
        try:
            doc, created = self.ensure_minutes_document(meeting, user_id, html, summary, tasks_count=len(resolved))
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info("Minutes for meeting %s %s as document %s", meeting_id, "created" if created else "updated", doc.id)
        return doc, created

    def _load_resolver(
        self, meeting: Meeting, organization_id: int, tasks: List[CommitTask]
    ) -> Tuple[EntityResolver, Optional[Company]]:
        # Read-only resolution queries
        resolver = EntityResolver(
            self.session,
            organization_id,
            meeting_company_id=meeting.company_id,
            description_max_chars=self.settings.description_max_chars,
        )
        resolver.load(tasks)
        meeting_company = (
            self.companies.get_in_organization(meeting.company_id, organization_id) if meeting.company_id else None
        )
        if meeting_company is not None:
            resolver.register_companies([meeting_company])
        return resolver, meeting_company

    def _task_row(self, meeting: Meeting, r: ResolvedTask) -> Task:
        return Task(
            organization_id=meeting.organization_id,
            company_id=r.company_id,
            meeting_id=meeting.id,
            name=r.name,
            description=r.description,
            assigned_to_id=r.assigned_to_id,
            reporter_id=meeting.created_by,
            due_date=r.due_date,
            priority=r.priority.value,
            labels=json.dumps(r.labels) if r.labels else None,
        )

    def _create_missing_contacts(self, resolved: List[ResolvedTask]) -> int:
        """Create a contact per (company, email) for assignees that are not users."""
        created = 0
        for r in resolved:
            if not r.assignee_email or r.assignee_email_is_user or r.company_id is None:
                continue
            if self.contacts.find(r.company_id, r.assignee_email) is not None:
                continue
            self.contacts.create(
                CompanyContact(
                    company_id=r.company_id,
                    name=r.assignee_email.split("@")[0],
                    email=r.assignee_email,
                    is_primary=False,
                )
            )
            created += 1
        return created

    def _minutes_task(self, r: ResolvedTask, resolver: EntityResolver) -> MinutesTask:
        return MinutesTask(
            name=r.name,
            priority=r.priority.value,
            assignee=r.assignee_email,
            company=resolver.company_name(r.company_id) or r.source.company_name,
            due_date=r.due_date.isoformat() if r.due_date else None,
            description=r.description,
        )

    def meeting_duration_seconds(self, meeting: Meeting) -> int:
        seconds = 0
        if meeting.started_at and meeting.ended_at:
            seconds = max(0, round((meeting.ended_at - meeting.started_at).total_seconds()))
        else:
            span = self.transcripts.time_span(meeting.id)
            if span is not None:
                seconds = max(0, round(span[1] - span[0]))
        if seconds <= 0:
            seconds = MIN_TIME_ENTRY_SECONDS
        return seconds

    def ensure_time_entry(self, meeting: Meeting) -> Tuple[TimeEntry, bool]:
        tag = meeting.idempotency_tag
        existing = self.time_entries.find_by_tag(meeting.created_by, tag)
        if existing is not None:
            return existing, False

        seconds = self.meeting_duration_seconds(meeting)
        start = meeting.started_at or (datetime.utcnow() - timedelta(seconds=seconds))
        entry = TimeEntry(
            user_id=meeting.created_by,
            company_id=meeting.company_id,
            meeting_id=meeting.id,
            description=f"Meeting: {meeting_label(meeting)} {tag}",
            start_time=start,
            end_time=start + timedelta(seconds=seconds),
            duration=seconds,
            is_running=False,
            is_internal=meeting.company_id is None,
            is_billable=meeting.company_id is not None,
            notes=tag,
        )
        return self.time_entries.create(entry), True

    def ensure_minutes_document(
        self,
        meeting: Meeting,
        user_id: int,
        html: str,
        summary: str,
        tasks_count: int,
    ) -> Tuple[OrganizationDocument, bool]:
        metadata = {
            "kind": MINUTES_CATEGORY,
            "meetingId": meeting.id,
            "companyId": meeting.company_id,
            "html": html,
            "tasksCount": tasks_count,
        }
        file_size = len(html.encode("utf-8"))
        description = summary[:500] or None

        doc = self.documents.get_minutes_for_meeting(meeting.organization_id, meeting.id)
        created = doc is None
        if doc is None:
            doc = self.documents.save(
                OrganizationDocument(
                    organization_id=meeting.organization_id,
                    uploaded_by=user_id,
                    category=MINUTES_CATEGORY,
                    meeting_id=meeting.id,
                    file_name=minutes_file_name(meeting),
                    file_size=file_size,
                    file_url="",
                    mime_type="text/html",
                    description=description,
                    tags=json.dumps([MINUTES_CATEGORY]),
                    metadata_json=metadata,
                )
            )
        else:
            doc.file_size = file_size
            doc.description = description
            doc.metadata_json = metadata
            doc.updated_at = datetime.utcnow()
            doc = self.documents.save(doc)

        # The URL embeds the id, so it can only be set once the row exists
        url = f"{self.settings.documents_url_prefix.rstrip('/')}/{doc.id}"
        if doc.file_url != url:
            doc.file_url = url
            doc = self.documents.save(doc)

        if meeting.company_id:
            self.documents.ensure_company_link(doc.id, meeting.company_id, user_id)
        return doc, created
