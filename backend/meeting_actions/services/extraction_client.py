from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union
import json
import logging
import re

import requests
from pydantic import ValidationError

from meeting_actions.config import Settings
from meeting_actions.errors import ExtractionError
from meeting_actions.models.task import Priority
from meeting_actions.services.chunker import chunk_by_tokens
from meeting_actions.services.extraction_types import (
    ChunkExtraction,
    PreviewExtraction,
    PreviewResult,
)

logger = logging.getLogger("meeting_actions.extraction")


_PRIORITY_VALUES = [p.value for p in Priority]

# Strict mode wants every key listed as required; unknowns are sent as "" / [] / "MEDIUM".
STRICT_TASK_PROPERTIES: Dict[str, Any] = {
    "name": {"type": "string", "maxLength": 120},
    "description": {"type": "string"},
    "due_date": {"type": "string"},
    "assignee_email": {"type": "string"},
    "priority": {"type": "string", "enum": _PRIORITY_VALUES},
    "company_slug": {"type": "string"},
    "company_name": {"type": "string"},
    "labels": {"type": "array", "items": {"type": "string"}},
}

STRICT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "summary": {"type": "string", "maxLength": 1500},
        "decisions": {"type": "array", "items": {"type": "string"}},
        "tasks": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "properties": STRICT_TASK_PROPERTIES,
                "required": list(STRICT_TASK_PROPERTIES.keys()),
            },
        },
    },
    "required": ["summary", "decisions", "tasks"],
}

PREVIEW_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "summary": {"type": "string"},
        "tasks": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                    "due_date": {"type": "string"},
                    "assignee_email": {"type": "string"},
                    "priority": {"type": "string"},
                    "company_slug": {"type": "string"},
                    "company_name": {"type": "string"},
                    "labels": {"type": "array", "items": {"type": "string"}},
                },
            },
        },
    },
    "required": ["summary", "tasks"],
}

STRICT_INSTRUCTIONS = "\n".join(
    [
        "Extract a concise meeting summary, decisions, and concrete tasks.",
        "All task fields are required by schema: if unknown, use an empty string, [] for labels, and 'MEDIUM' for priority.",
        "Dates must be ISO formatted (YYYY-MM-DD).",
        "Only return JSON that conforms to the schema.",
    ]
)

CHUNK_CONTEXT = (
    "This is chunk {index}/{total}. Extract concrete, deduplicated tasks with owners, dates, "
    "and company_slug/company_name if present. If info is missing, leave fields blank."
)

PREVIEW_INSTRUCTIONS = "\n".join(
    [
        "You are generating a quick preview after a meeting transcription.",
        "Return up to {max_tasks} concise concept tasks.",
        "If any field is unknown, use empty string (or [] for labels).",
        "Only return JSON that conforms to the schema.",
    ]
)

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    t = text.strip()
    t = _FENCE_OPEN.sub("", t)
    t = _FENCE_CLOSE.sub("", t)
    return t.strip()


@dataclass(frozen=True)
class InlineJson:
    """The service returned an already-parsed JSON object."""

    value: Any

    def decode(self) -> Any:
        return self.value


@dataclass(frozen=True)
class TextJson:
    """The service returned JSON encoded in a text field, possibly fenced."""

    text: str

    def decode(self) -> Any:
        return json.loads(strip_code_fences(self.text))


ResponsePayload = Union[InlineJson, TextJson]


def payload_from_responses(data: Any) -> Optional[ResponsePayload]:
    """Locate the structured result in a Responses API body."""
    if not isinstance(data, dict):
        return None
    text_fallback: Optional[str] = None
    for item in data.get("output") or []:
        if not isinstance(item, dict):
            continue
        for part in item.get("content") or []:
            if not isinstance(part, dict):
                continue
            kind = part.get("type")
            if kind in ("output_json", "json") and part.get("json") is not None:
                return InlineJson(part["json"])
            if kind in ("output_text", "text") and isinstance(part.get("text"), str) and text_fallback is None:
                text_fallback = part["text"]
    if data.get("output_parsed") is not None:
        return InlineJson(data["output_parsed"])
    if text_fallback is not None:
        return TextJson(text_fallback)
    if isinstance(data.get("output_text"), str) and data["output_text"].strip():
        return TextJson(data["output_text"])
    return None


def payload_from_chat(data: Any) -> Optional[ResponsePayload]:
    """Locate the structured result in a Chat Completions body."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message") or {}
    if message.get("parsed") is not None:
        return InlineJson(message["parsed"])
    content = message.get("content")
    if isinstance(content, str) and content.strip():
        return TextJson(content)
    return None


class ExtractionClient:
    """Client for an OpenAI-compatible structured-output service."""

    def __init__(self, settings: Settings, http: Optional[requests.Session] = None) -> None:
        self.settings = settings
        self._owns_http = http is None
        self.http = http if http is not None else requests.Session()

    def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_http:
            self.http.close()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.settings.openai_api_key:
            headers["Authorization"] = f"Bearer {self.settings.openai_api_key}"
        return headers

    def _post(self, path: str, body: Dict[str, Any]) -> requests.Response:
        url = self.settings.openai_base_url.rstrip("/") + path
        return self.http.post(url, json=body, headers=self._headers(), timeout=self.settings.http_timeout_s)

    # ---- strict (commit-time) ----

    def extract_chunk(self, chunk: str, index: int, total: int) -> ChunkExtraction:
        """Extract one chunk with the strict schema; any failure raises ExtractionError."""
        prompt = CHUNK_CONTEXT.format(index=index, total=total) + "\n\n" + chunk
        body = {
            "model": self.settings.extraction_model,
            "temperature": 0,
            "input": STRICT_INSTRUCTIONS + "\n\n" + prompt,
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "MeetingExtraction",
                    "schema": STRICT_SCHEMA,
                    "strict": True,
                }
            },
        }
        try:
            resp = self._post("/responses", body)
        except requests.RequestException as e:
            raise ExtractionError(f"Structured extraction request failed: {e}") from e

        if not resp.ok:
            raise ExtractionError(
                f"Structured extraction failed: {resp.status_code} {resp.text[:500]}",
                upstream_status=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise ExtractionError("Structured extraction returned a non-JSON body") from e

        payload = payload_from_responses(data)
        if payload is None:
            raise ExtractionError("No structured JSON returned")
        try:
            obj = payload.decode()
        except ValueError as e:
            raise ExtractionError(f"Structured extraction returned unparsable JSON: {e}") from e
        try:
            return ChunkExtraction.model_validate(obj)
        except ValidationError as e:
            raise ExtractionError(f"Structured extraction did not match the schema: {e}") from e

    def extract_transcript(self, transcript: str) -> List[ChunkExtraction]:
        """Chunk the transcript and extract each chunk in order.

        Chunks are issued one after another; the first failure stops the run.
        """
        chunks = chunk_by_tokens(
            transcript,
            max_tokens=self.settings.chunk_max_tokens,
            tokens_per_char=self.settings.tokens_per_char,
        )
        results: List[ChunkExtraction] = []
        for i, chunk in enumerate(chunks, start=1):
            logger.info("Extracting chunk %d/%d (%d chars)", i, len(chunks), len(chunk))
            results.append(self.extract_chunk(chunk, i, len(chunks)))
        return results

    # ---- preview ----

    def preview(self, transcript: str) -> PreviewResult:
        """Permissive extraction: Responses API, then Chat Completions, then empty."""
        instruction = (
            PREVIEW_INSTRUCTIONS.format(max_tasks=self.settings.preview_max_tasks)
            + "\n\nTRANSCRIPT:\n"
            + transcript
        )
        notes: List[str] = []

        parsed = self._preview_via_responses(instruction, notes)
        if parsed is not None:
            logger.info("Preview answered by responses endpoint")
            return PreviewResult(summary=parsed.summary, tasks=parsed.tasks, source="responses")

        parsed = self._preview_via_chat(instruction, notes)
        if parsed is not None:
            logger.info("Preview answered by chat endpoint")
            return PreviewResult(summary=parsed.summary, tasks=parsed.tasks, source="chat")

        note = "; ".join(notes) or "no preview available"
        logger.warning(f"Preview extraction degraded to empty result: {note}")
        return PreviewResult(source="none", note=note)

    def _preview_via_responses(self, instruction: str, notes: List[str]) -> Optional[PreviewExtraction]:
        body = {
            "model": self.settings.extraction_model,
            "temperature": 0,
            "max_output_tokens": self.settings.preview_max_output_tokens,
            "input": instruction,
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "MeetingPreview",
                    "schema": PREVIEW_SCHEMA,
                    "strict": False,
                }
            },
        }
        return self._preview_attempt("/responses", body, payload_from_responses, "responses", notes)

    def _preview_via_chat(self, instruction: str, notes: List[str]) -> Optional[PreviewExtraction]:
        body = {
            "model": self.settings.extraction_model,
            "temperature": 0,
            "max_tokens": self.settings.preview_max_output_tokens,
            "messages": [
                {"role": "system", "content": "You return only JSON that matches the given JSON Schema."},
                {"role": "user", "content": instruction},
            ],
            "response_format": {
                "type": "json_schema",
                "json_schema": {"name": "MeetingPreview", "schema": PREVIEW_SCHEMA, "strict": False},
            },
        }
        return self._preview_attempt("/chat/completions", body, payload_from_chat, "chat", notes)

    def _preview_attempt(self, path, body, locate, label: str, notes: List[str]) -> Optional[PreviewExtraction]:
        try:
            resp = self._post(path, body)
        except requests.RequestException as e:
            notes.append(f"{label}: request failed ({e})")
            return None
        if not resp.ok:
            notes.append(f"{label}: HTTP {resp.status_code}")
            return None
        try:
            payload = locate(resp.json())
            if payload is None:
                notes.append(f"{label}: no JSON payload")
                return None
            return PreviewExtraction.model_validate(payload.decode())
        except (ValueError, ValidationError) as e:
            notes.append(f"{label}: unusable payload ({e.__class__.__name__})")
            return None
