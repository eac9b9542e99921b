from __future__ import annotations

from sqlmodel import SQLModel, create_engine
from sqlalchemy.engine import Engine
from meeting_actions.config import Settings

_settings = Settings()

# SQLite with WAL enabled
engine: Engine = create_engine(
    f"sqlite:///{_settings.database_path}", connect_args={"check_same_thread": False}
)


def import_all_models() -> None:
    """Register every table on SQLModel.metadata."""
    from meeting_actions.models import (  # noqa: F401
        company,
        document,
        meeting,
        meeting_extraction,
        task,
        time_entry,
        transcript_segment,
        user,
    )


def init_db(bind: Engine | None = None) -> None:
    target = bind if bind is not None else engine
    import_all_models()
    if target.dialect.name == "sqlite":
        with target.begin() as conn:
            conn.exec_driver_sql("PRAGMA journal_mode=WAL;")
            conn.exec_driver_sql("PRAGMA synchronous=NORMAL;")
    SQLModel.metadata.create_all(target)
