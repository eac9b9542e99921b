from __future__ import annotations

from typing import Iterable, List
from sqlmodel import Session, select

from meeting_actions.models.task import Task


class TasksRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def create_many(self, tasks: Iterable[Task]) -> List[Task]:
        saved: List[Task] = []
        for task in tasks:
            self.session.add(task)
            saved.append(task)
        self.session.flush()
        return saved

    def list_by_meeting(self, meeting_id: int) -> list[Task]:
        statement = select(Task).where(Task.meeting_id == meeting_id).order_by(Task.id.asc())
        return list(self.session.exec(statement))
