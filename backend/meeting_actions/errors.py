from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger("meeting_actions.errors")


class MeetingActionsError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MeetingNotFoundError(MeetingActionsError):
    status_code = 404

    def __init__(self, meeting_id: int) -> None:
        super().__init__("Meeting not found")
        self.meeting_id = meeting_id


class InvalidCompanyError(MeetingActionsError):
    status_code = 400


class TranscriptEmptyError(MeetingActionsError):
    status_code = 400

    def __init__(self, meeting_id: int) -> None:
        super().__init__("No transcript segments")
        self.meeting_id = meeting_id


class InvalidMeetingStateError(MeetingActionsError):
    status_code = 409


class ExtractionError(MeetingActionsError):
    """Strict-mode extraction failed; the whole run is aborted."""

    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class CommitFailedError(MeetingActionsError):
    status_code = 500

    def __init__(self, meeting_id: int) -> None:
        super().__init__("Commit failed")
        self.meeting_id = meeting_id


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(MeetingActionsError)
    async def _handle_domain_error(request: Request, exc: MeetingActionsError):  # type: ignore[unused-variable]
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=exc.message).model_dump(),
        )

    @app.exception_handler(HTTPException)
    async def _handle_http_exception(request: Request, exc: HTTPException):  # type: ignore[unused-variable]
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=str(exc.detail)).model_dump(),
        )

    @app.exception_handler(Exception)
    async def _handle_unexpected(request: Request, exc: Exception):  # type: ignore[unused-variable]
        logger.exception("Unhandled exception")
        return JSONResponse(status_code=500, content=ErrorResponse(error="internal error").model_dump())
