"""Tests for the session HTTP endpoints."""

import pytest
from fastapi.testclient import TestClient

from assessment_engine.common.config import EngineConfig
from assessment_engine.main import create_app

SESSIONS = "/api/v1/sessions"


@pytest.fixture
def client(assessment_store, submission_store):
    app = create_app(assessment_store, submission_store, config=EngineConfig())
    with TestClient(app) as test_client:
        yield test_client


def open_session(client, assessment_id="assessment-1", preview=False):
    response = client.post(f"{SESSIONS}/", json={"assessment_id": assessment_id, "preview": preview})
    assert response.status_code == 201
    return response.json()["data"]


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "sessions": 0}


def test_create_session(client):
    data = open_session(client)

    assert data["session_id"]
    assert data["progress"] == {"current": 1, "total": 3}
    assert data["question"]["id"] == "q1"
    assert data["timer"] is None
    assert client.get("/health").json()["sessions"] == 1


def test_create_session_for_unknown_assessment(client):
    response = client.post(f"{SESSIONS}/", json={"assessment_id": "missing"})

    assert response.status_code == 404
    body = response.json()
    assert body["status"] == "error"
    assert body["code"] == "load_error"


def test_create_session_requires_assessment_id(client):
    response = client.post(f"{SESSIONS}/", json={})

    assert response.status_code == 422
    assert response.json()["code"] == "request_validation"


def test_unknown_session(client):
    response = client.get(f"{SESSIONS}/nope")

    assert response.status_code == 404
    assert response.json()["code"] == "session_not_found"


def test_answer_and_navigate(client):
    session_id = open_session(client)["session_id"]

    response = client.put(
        f"{SESSIONS}/{session_id}/answers/q1", json={"answerData": {"selectedOptionIds": ["a"]}}
    )
    assert response.status_code == 200
    assert response.json()["data"]["answer"] == {"selectedOptionIds": ["a"], "type": "single_choice"}

    response = client.post(f"{SESSIONS}/{session_id}/navigation", json={"action": "next"})
    assert response.json()["data"]["question"]["id"] == "q2"

    response = client.post(f"{SESSIONS}/{session_id}/navigation", json={"action": "jump", "index": 2})
    data = response.json()["data"]
    assert data["question"]["id"] == "q3"
    assert data["is_last"]


def test_jump_requires_index(client):
    session_id = open_session(client)["session_id"]

    response = client.post(f"{SESSIONS}/{session_id}/navigation", json={"action": "jump"})

    assert response.status_code == 422


def test_invalid_answer_is_rejected(client):
    session_id = open_session(client)["session_id"]

    response = client.put(
        f"{SESSIONS}/{session_id}/answers/q1", json={"answerData": {"selectedOptionIds": ["z"]}}
    )

    assert response.status_code == 422
    assert response.json()["code"] == "invalid_local_input"


def test_blocked_submit_moves_to_first_unanswered(client):
    session_id = open_session(client)["session_id"]
    client.put(f"{SESSIONS}/{session_id}/answers/q1", json={"answerData": {"selectedOptionIds": ["a"]}})

    response = client.post(f"{SESSIONS}/{session_id}/submit")

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "validation_blocked"
    assert body["details"]["missing_count"] == 2
    assert body["details"]["question_ids"] == ["q2", "q3"]
    assert client.get(f"{SESSIONS}/{session_id}").json()["data"]["question"]["id"] == "q2"


def test_summary(client):
    session_id = open_session(client)["session_id"]
    client.put(f"{SESSIONS}/{session_id}/answers/q2", json={"answerData": {"selectedOptionIds": ["b"]}})

    data = client.get(f"{SESSIONS}/{session_id}/summary").json()["data"]

    assert data["answered_count"] == 1
    assert data["percent_complete"] == 33
    assert data["unanswered_required"] == 2
    assert data["rows"][1]["status_text"] == "Answered"


def test_submit_then_session_is_read_only(client, submission_store):
    session_id = open_session(client)["session_id"]
    for question_id in ("q1", "q2", "q3"):
        client.put(
            f"{SESSIONS}/{session_id}/answers/{question_id}",
            json={"answerData": {"selectedOptionIds": ["a"]}}
        )

    response = client.post(f"{SESSIONS}/{session_id}/submit")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["state"] == "completed"
    assert data["result_id"] == submission_store.results["assessment-1"].result_id
    assert len(submission_store.submissions["assessment-1"].answers) == 3

    response = client.post(f"{SESSIONS}/{session_id}/submit")
    assert response.status_code == 409
    assert response.json()["code"] == "session_completed"

    response = client.put(
        f"{SESSIONS}/{session_id}/answers/q1", json={"answerData": {"selectedOptionIds": ["b"]}}
    )
    assert response.status_code == 409


def test_preview_submit_does_not_reach_store(client, submission_store):
    session_id = open_session(client, preview=True)["session_id"]

    response = client.post(f"{SESSIONS}/{session_id}/submit")

    assert response.status_code == 200
    assert response.json()["data"]["preview"] is True
    assert submission_store.submissions == {}


def test_delete_session(client):
    session_id = open_session(client)["session_id"]

    response = client.delete(f"{SESSIONS}/{session_id}")
    assert response.status_code == 200

    assert client.get(f"{SESSIONS}/{session_id}").status_code == 404
    assert client.delete(f"{SESSIONS}/{session_id}").status_code == 404


def test_docs_hidden_in_production(assessment_store, submission_store):
    config = EngineConfig(environment={"env": "production"})

    with TestClient(create_app(assessment_store, submission_store, config=config)) as test_client:
        assert test_client.get("/docs").status_code == 404
        assert test_client.get("/health").status_code == 200


def test_routes_mount_under_configured_prefix(assessment_store, submission_store):
    config = EngineConfig(api={"prefix": "/engine"})

    with TestClient(create_app(assessment_store, submission_store, config=config)) as test_client:
        response = test_client.post("/engine/v1/sessions/", json={"assessment_id": "assessment-1"})
        assert response.status_code == 201
        assert test_client.post(f"{SESSIONS}/", json={"assessment_id": "assessment-1"}).status_code == 404
