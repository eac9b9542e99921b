from __future__ import annotations

from typing import Optional
from sqlmodel import Session, select

from meeting_actions.models.document import DocumentCompanyLink, MINUTES_CATEGORY, OrganizationDocument


class DocumentsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_minutes_for_meeting(self, organization_id: int, meeting_id: int) -> Optional[OrganizationDocument]:
        statement = select(OrganizationDocument).where(
            OrganizationDocument.organization_id == organization_id,
            OrganizationDocument.category == MINUTES_CATEGORY,
            OrganizationDocument.meeting_id == meeting_id,
        )
        return self.session.exec(statement).first()

    def save(self, document: OrganizationDocument) -> OrganizationDocument:
        self.session.add(document)
        self.session.flush()
        return document

    def ensure_company_link(self, document_id: int, company_id: int, linked_by: int) -> DocumentCompanyLink:
        link = self.session.get(DocumentCompanyLink, (document_id, company_id))
        if link is not None:
            return link
        link = DocumentCompanyLink(document_id=document_id, company_id=company_id, linked_by=linked_by)
        self.session.add(link)
        self.session.flush()
        return link

    def list_company_links(self, document_id: int) -> list[DocumentCompanyLink]:
        statement = select(DocumentCompanyLink).where(DocumentCompanyLink.document_id == document_id)
        return list(self.session.exec(statement))
