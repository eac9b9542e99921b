from __future__ import annotations

from typing import Iterable, List, Optional
from sqlalchemy import func
from sqlmodel import Session, select

from meeting_actions.models.company import Company, CompanyContact, CompanyNote


class CompaniesRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_in_organization(self, company_id: int, organization_id: int) -> Optional[Company]:
        company = self.session.get(Company, company_id)
        if company is None or company.organization_id != organization_id:
            return None
        return company

    def list_by_ids(self, organization_id: int, ids: Iterable[int]) -> list[Company]:
        wanted = list(set(ids))
        if not wanted:
            return []
        statement = select(Company).where(Company.organization_id == organization_id, Company.id.in_(wanted))
        return list(self.session.exec(statement))

    def list_by_slugs(self, organization_id: int, slugs: Iterable[str]) -> list[Company]:
        """Slug lookup ignoring case."""
        wanted = list({s.lower() for s in slugs})
        if not wanted:
            return []
        statement = select(Company).where(
            Company.organization_id == organization_id, func.lower(Company.slug).in_(wanted)
        )
        return list(self.session.exec(statement))

    def list_by_names(self, organization_id: int, names: Iterable[str]) -> list[Company]:
        wanted = list(set(names))
        if not wanted:
            return []
        statement = select(Company).where(Company.organization_id == organization_id, Company.name.in_(wanted))
        return list(self.session.exec(statement))

    def slugs_with_prefix(self, organization_id: int, base: str) -> set[str]:
        statement = select(Company.slug).where(
            Company.organization_id == organization_id, Company.slug.startswith(base)
        )
        return set(self.session.exec(statement))

    def create_many(self, companies: Iterable[Company]) -> List[Company]:
        saved: List[Company] = []
        for company in companies:
            self.session.add(company)
            saved.append(company)
        self.session.flush()
        return saved


class ContactsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find(self, company_id: int, email: str) -> Optional[CompanyContact]:
        statement = select(CompanyContact).where(
            CompanyContact.company_id == company_id, CompanyContact.email == email
        )
        return self.session.exec(statement).first()

    def create(self, contact: CompanyContact) -> CompanyContact:
        self.session.add(contact)
        self.session.flush()
        return contact


class NotesRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, note: CompanyNote) -> CompanyNote:
        self.session.add(note)
        self.session.flush()
        return note

    def list_by_meeting(self, meeting_id: int) -> list[CompanyNote]:
        statement = select(CompanyNote).where(CompanyNote.meeting_id == meeting_id).order_by(CompanyNote.id.asc())
        return list(self.session.exec(statement))
