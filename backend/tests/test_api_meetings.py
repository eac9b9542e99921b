from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from meeting_actions.deps import get_extraction_client, get_session, get_settings
from meeting_actions.main import create_app

from conftest import ORG_ID, OTHER_ORG_ID, add_company, fake_response, responses_body, strict_task


@pytest.fixture()
def api(session, settings, client):
    app = create_app()
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_extraction_client] = lambda: client
    return TestClient(app)


@pytest.fixture()
def headers(user):
    return {"X-Organization-Id": str(ORG_ID), "X-User-Id": str(user.id)}


def create_meeting(api, headers, **body):
    resp = api.post("/meetings", json=body, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["meeting_id"]


def test_healthz(api):
    assert api.get("/healthz").json() == {"status": "ok"}


def test_caller_context_is_required(api):
    resp = api.get("/meetings")
    assert resp.status_code == 401
    assert resp.json() == {"ok": False, "error": "Missing caller context"}
    bad = api.get("/meetings", headers={"X-Organization-Id": "acme", "X-User-Id": "1"})
    assert bad.status_code == 401


def test_create_meeting_rejects_foreign_company(api, headers, session):
    foreign = add_company(session, "Elsewhere", "elsewhere", organization_id=OTHER_ORG_ID)
    resp = api.post("/meetings", json={"company_id": foreign.id}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["ok"] is False


def test_unknown_meeting_is_404(api, headers):
    resp = api.get("/meetings/999", headers=headers)
    assert resp.status_code == 404
    assert resp.json() == {"ok": False, "error": "Meeting not found"}


def test_meetings_are_isolated_per_organization(api, headers, user):
    meeting_id = create_meeting(api, headers, title="Private")
    outsider = {"X-Organization-Id": str(OTHER_ORG_ID), "X-User-Id": str(user.id)}

    assert api.get(f"/meetings/{meeting_id}", headers=outsider).status_code == 404
    assert api.get("/meetings", headers=outsider).json() == []
    assert [m["id"] for m in api.get("/meetings", headers=headers).json()] == [meeting_id]


def test_transcript_then_commit_then_minutes(api, headers, session, http):
    acme = add_company(session, "Acme", "acme")
    meeting_id = create_meeting(api, headers, company_id=acme.id, title="Acme kickoff")
    http.post.return_value = fake_response(
        200, responses_body({"summary": "Kickoff done", "tasks": [{"name": "Send SOW"}]})
    )

    resp = api.post(
        f"/meetings/{meeting_id}/transcript",
        json={
            "provider": "deepgram",
            "segments": [
                {"start_sec": 0, "end_sec": 4, "speaker": "Speaker 0", "text": "Thanks for joining the kickoff."},
                {"start_sec": 4, "end_sec": 9, "speaker": "Speaker 1", "text": "We will send the SOW tomorrow."},
            ],
        },
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["status"] == "TRANSCRIBED"
    assert body["segments"] == 2
    assert body["speakers"] == ["Speaker 0", "Speaker 1"]
    assert body["preview"]["source"] == "responses"
    assert body["preview"]["tasks"][0]["name"] == "Send SOW"

    resp = api.post(
        f"/meetings/{meeting_id}/commit",
        json={
            "summary": "Kickoff done",
            "decisions": "Weekly syncs",
            "tasks": [{"name": "Send SOW", "priority": "high", "due_date": "2024-06-01"}],
        },
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    commit = resp.json()
    assert commit["ok"] is True
    assert commit["created_tasks"] == 1
    assert commit["minutes_document_created"] is True

    summary = api.get(f"/meetings/{meeting_id}/summary", headers=headers).json()
    assert summary["status"] == "PROCESSED"
    assert summary["decisions"] == ["Weekly syncs"]
    assert summary["tasks"][0]["priority"] == "HIGH"
    assert summary["tasks"][0]["due_date"] == "2024-06-01"
    assert len(summary["segments"]) == 2

    resp = api.post(f"/meetings/{meeting_id}/minutes", headers=headers)
    assert resp.status_code == 200, resp.text
    minutes = resp.json()
    assert minutes == {
        "id": commit["minutes_document_id"],
        "url": commit["minutes_document_url"],
        "created": False,
    }

    detail = api.get(f"/meetings/{meeting_id}", headers=headers).json()
    assert detail["meeting"]["status"] == "PROCESSED"
    assert detail["extraction"]["summary"] == "Kickoff done"
    assert [t["name"] for t in detail["tasks"]] == ["Send SOW"]


def test_raw_provider_result_is_normalized(api, headers, http):
    meeting_id = create_meeting(api, headers, transcription_provider="openai")

    resp = api.post(
        f"/meetings/{meeting_id}/transcript",
        json={"raw": {"segments": [{"start": 0, "end": 1, "text": "hi"}]}},
        headers=headers,
    )

    body = resp.json()
    assert body["provider"] == "openai"
    assert body["segments"] == 1
    assert body["speakers"] == []
    assert body["preview"]["source"] == "skipped"
    http.post.assert_not_called()


def test_commit_before_transcription_conflicts(api, headers):
    meeting_id = create_meeting(api, headers)
    resp = api.post(f"/meetings/{meeting_id}/commit", json={"summary": "x"}, headers=headers)
    assert resp.status_code == 409
    assert resp.json()["ok"] is False


def test_transcription_failure(api, headers):
    meeting_id = create_meeting(api, headers)
    resp = api.post(f"/meetings/{meeting_id}/transcription-failure", json={"error": "timeout"}, headers=headers)
    assert resp.json() == {"status": "FAILED"}


def test_process_endpoint(api, headers, http):
    meeting_id = create_meeting(api, headers)
    http.post.return_value = fake_response(200, responses_body({"summary": "", "tasks": []}))
    api.post(
        f"/meetings/{meeting_id}/transcript",
        json={"segments": [{"text": "Short."}]},
        headers=headers,
    )
    http.post.return_value = fake_response(
        200, responses_body({"summary": "Done", "decisions": [], "tasks": [strict_task("Follow up")]})
    )

    resp = api.post(f"/meetings/{meeting_id}/process", json={"create_minutes": False}, headers=headers)

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["chunks"] == 1
    assert body["commit"]["created_tasks"] == 1
    assert body["commit"]["minutes_document_id"] is None


def test_process_reports_upstream_failure(api, headers, http):
    meeting_id = create_meeting(api, headers)
    api.post(f"/meetings/{meeting_id}/transcript", json={"segments": [{"text": "Short."}]}, headers=headers)
    http.post.return_value = fake_response(500, {"error": "upstream"})

    resp = api.post(f"/meetings/{meeting_id}/process", headers=headers)

    assert resp.status_code == 502
    assert resp.json()["ok"] is False


def test_process_empty_transcript(api, headers):
    meeting_id = create_meeting(api, headers)
    resp = api.post(f"/meetings/{meeting_id}/process", headers=headers)
    assert resp.status_code == 409  # still RECORDED
