from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Iterator, Optional

from fastapi import Depends, Header, HTTPException
from sqlmodel import Session

from meeting_actions.config import Settings
from meeting_actions.models.base import engine
from meeting_actions.services.extraction_client import ExtractionClient


def get_session() -> Iterator[Session]:
    with Session(engine) as session:
        yield session


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def get_extraction_client(settings: Settings = Depends(get_settings)) -> Iterator[ExtractionClient]:
    client = ExtractionClient(settings)
    try:
        yield client
    finally:
        client.close()


@dataclass(frozen=True)
class RequestContext:
    """Caller identity, already authenticated upstream."""

    organization_id: int
    user_id: int


def _header_id(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None


def get_request_context(
    x_organization_id: Optional[str] = Header(default=None),
    x_user_id: Optional[str] = Header(default=None),
) -> RequestContext:
    organization_id = _header_id(x_organization_id)
    user_id = _header_id(x_user_id)
    if organization_id is None or user_id is None:
        raise HTTPException(status_code=401, detail="Missing caller context")
    return RequestContext(organization_id=organization_id, user_id=user_id)
