from __future__ import annotations

from typing import Iterable, Optional
from sqlalchemy import func
from sqlmodel import Session, select

from meeting_actions.models.user import User


class UsersRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_in_organization(self, user_id: int, organization_id: int) -> Optional[User]:
        user = self.session.get(User, user_id)
        if user is None or user.organization_id != organization_id:
            return None
        return user

    def list_by_ids(self, organization_id: int, ids: Iterable[int]) -> list[User]:
        wanted = list(set(ids))
        if not wanted:
            return []
        statement = select(User).where(User.organization_id == organization_id, User.id.in_(wanted))
        return list(self.session.exec(statement))

    def list_by_emails(self, organization_id: int, emails: Iterable[str]) -> list[User]:
        """Case-insensitive email lookup within one organization."""
        wanted = list({e.lower() for e in emails})
        if not wanted:
            return []
        statement = select(User).where(User.organization_id == organization_id, func.lower(User.email).in_(wanted))
        return list(self.session.exec(statement))
