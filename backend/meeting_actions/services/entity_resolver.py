"""Map extracted company/assignee references onto organization records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence
import logging
import re
import unicodedata

from sqlmodel import Session

from meeting_actions.models.company import Company
from meeting_actions.models.task import Priority
from meeting_actions.models.user import User
from meeting_actions.repositories.companies import CompaniesRepository
from meeting_actions.repositories.users import UsersRepository
from meeting_actions.services.extraction_types import CommitTask, ExtractedTask

logger = logging.getLogger("meeting_actions.resolver")

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    text = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii").lower()
    text = _NON_SLUG.sub("-", text).strip("-")
    return text or "company"


def disambiguate_slug(base: str, taken: Iterable[str]) -> str:
    """Return base, or base-2, base-3, ... whichever is not taken yet."""
    used = {s.lower() for s in taken}
    candidate = base
    n = 1
    while candidate in used:
        n += 1
        candidate = f"{base}-{n}"
    return candidate


def normalize_priority(value: Optional[Priority | str]) -> Priority:
    if isinstance(value, Priority):
        return value
    if isinstance(value, str):
        try:
            return Priority(value.strip().upper())
        except ValueError:
            pass
    return Priority.MEDIUM


def parse_due_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


@dataclass
class StagedCompany:
    name: str
    slug: str


@dataclass
class ResolvedTask:
    source: ExtractedTask
    name: str
    description: Optional[str]
    due_date: Optional[date]
    priority: Priority
    labels: List[str]
    company_id: Optional[int]
    assigned_to_id: Optional[int]
    assignee_email: Optional[str] = None
    assignee_is_user: bool = False
    # The contact rule looks at the email alone, not an explicit assigned_to_id
    assignee_email_is_user: bool = False


@dataclass
class ResolutionIndex:
    companies_by_id: Dict[int, Company] = field(default_factory=dict)
    companies_by_slug: Dict[str, Company] = field(default_factory=dict)
    companies_by_name: Dict[str, Company] = field(default_factory=dict)
    users_by_id: Dict[int, User] = field(default_factory=dict)
    users_by_email: Dict[str, User] = field(default_factory=dict)


class EntityResolver:
    """Resolves one task batch against one organization.

    `load` issues all read queries up front. Company creation is staged with
    `plan_company_creation` and the created rows are fed back with
    `register_companies` before any task is resolved.
    """

    def __init__(
        self,
        session: Session,
        organization_id: int,
        meeting_company_id: Optional[int] = None,
        description_max_chars: int = 4000,
    ) -> None:
        self.organization_id = organization_id
        self.meeting_company_id = meeting_company_id
        self.description_max_chars = description_max_chars
        self.companies = CompaniesRepository(session)
        self.users = UsersRepository(session)
        self.index = ResolutionIndex()

    def load(self, tasks: Sequence[ExtractedTask]) -> ResolutionIndex:
        slugs = {t.company_slug for t in tasks if t.company_slug}
        names = {t.company_name for t in tasks if t.company_name}
        emails = {t.assignee_email.lower() for t in tasks if t.assignee_email}
        company_ids = {t.company_id for t in tasks if isinstance(t, CommitTask) and t.company_id}
        user_ids = {t.assigned_to_id for t in tasks if isinstance(t, CommitTask) and t.assigned_to_id}

        for c in self.companies.list_by_ids(self.organization_id, company_ids):
            self.index.companies_by_id[c.id] = c
        for c in self.companies.list_by_slugs(self.organization_id, slugs):
            self.index.companies_by_slug[c.slug.lower()] = c
        for c in self.companies.list_by_names(self.organization_id, names):
            self.index.companies_by_name[c.name] = c
        for u in self.users.list_by_ids(self.organization_id, user_ids):
            self.index.users_by_id[u.id] = u
        for u in self.users.list_by_emails(self.organization_id, emails):
            self.index.users_by_email[u.email.lower()] = u
        return self.index

    def plan_company_creation(self, tasks: Sequence[ExtractedTask]) -> List[StagedCompany]:
        staged: List[StagedCompany] = []
        staged_names: set[str] = set()
        staged_slugs: set[str] = set()
        for t in tasks:
            name = t.company_name
            if not name or name in self.index.companies_by_name or name in staged_names:
                continue
            if t.company_slug and t.company_slug.lower() in self.index.companies_by_slug:
                continue
            base = slugify(name)
            existing = self.companies.slugs_with_prefix(self.organization_id, base)
            slug = disambiguate_slug(base, existing | staged_slugs)
            staged.append(StagedCompany(name=name, slug=slug))
            staged_names.add(name)
            staged_slugs.add(slug)
        return staged

    def register_companies(self, companies: Iterable[Company]) -> None:
        for c in companies:
            self.index.companies_by_id[c.id] = c
            self.index.companies_by_name[c.name] = c

    def resolve_company_id(self, task: ExtractedTask) -> Optional[int]:
        explicit = task.company_id if isinstance(task, CommitTask) else None
        if explicit and explicit in self.index.companies_by_id:
            return explicit
        if task.company_slug:
            match = self.index.companies_by_slug.get(task.company_slug.lower())
            if match is not None:
                return match.id
        if task.company_name:
            match = self.index.companies_by_name.get(task.company_name)
            if match is not None:
                return match.id
        return self.meeting_company_id

    def resolve_assignee(self, task: ExtractedTask) -> Optional[User]:
        explicit = task.assigned_to_id if isinstance(task, CommitTask) else None
        if explicit and explicit in self.index.users_by_id:
            return self.index.users_by_id[explicit]
        if task.assignee_email:
            return self.index.users_by_email.get(task.assignee_email.lower())
        return None

    def resolve(self, task: ExtractedTask) -> ResolvedTask:
        assignee = self.resolve_assignee(task)
        email_user = self.index.users_by_email.get(task.assignee_email.lower()) if task.assignee_email else None
        description = task.description[: self.description_max_chars] if task.description else None
        return ResolvedTask(
            source=task,
            name=task.name.strip(),
            description=description,
            due_date=parse_due_date(task.due_date),
            priority=normalize_priority(task.priority),
            labels=list(task.labels),
            company_id=self.resolve_company_id(task),
            assigned_to_id=assignee.id if assignee is not None else None,
            assignee_email=task.assignee_email.lower() if task.assignee_email else None,
            assignee_is_user=assignee is not None,
            assignee_email_is_user=email_user is not None,
        )

    def resolve_all(self, tasks: Sequence[ExtractedTask]) -> List[ResolvedTask]:
        resolved = [self.resolve(t) for t in tasks if t.name.strip()]
        unresolved = sum(1 for r in resolved if r.assignee_email and not r.assignee_email_is_user)
        if unresolved:
            logger.info("%d task(s) reference an assignee email with no matching user", unresolved)
        return resolved

    def company_name(self, company_id: Optional[int]) -> Optional[str]:
        if company_id is None:
            return None
        company = self.index.companies_by_id.get(company_id)
        if company is None:
            company = next((c for c in self.index.companies_by_name.values() if c.id == company_id), None)
        if company is None:
            company = next((c for c in self.index.companies_by_slug.values() if c.id == company_id), None)
        return company.name if company is not None else None
