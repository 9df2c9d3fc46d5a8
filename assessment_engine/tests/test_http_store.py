"""Tests for the aiohttp assessment and submission stores."""

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from assessment_engine.assessments.base.repositories import SubmissionPayload
from assessment_engine.assessments.providers.http_store import (
    HttpAssessmentStore,
    HttpSubmissionStore,
)
from assessment_engine.common.config import CollaboratorConfig
from assessment_engine.common.error_handling import LoadError, SubmissionRejectedError
from assessment_engine.tests.helpers import assessment_payload


def mock_response(status, json_data=None, reason="OK"):
    response = MagicMock()
    response.status = status
    response.reason = reason
    response.json = AsyncMock(return_value=json_data)
    return response


def request_context(response):
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)
    return context


@pytest.fixture
def collaborator_config():
    return CollaboratorConfig(base_url="http://assessments.test/", max_retries=2, retry_delay=0.0)


@pytest.fixture
def http_session():
    return MagicMock()


@pytest.mark.asyncio
async def test_get_assessment(collaborator_config, http_session):
    http_session.get.return_value = request_context(mock_response(200, assessment_payload()))
    store = HttpAssessmentStore(collaborator_config, session=http_session)

    assessment = await store.get_assessment("assessment-42")

    assert assessment.id == "assessment-42"
    assert assessment.time_limit == 30
    http_session.get.assert_called_once_with("http://assessments.test/api/assessments/assessment-42")


@pytest.mark.asyncio
async def test_get_assessment_retries_transport_errors(collaborator_config, http_session):
    http_session.get.side_effect = [
        aiohttp.ClientConnectionError("connection refused"),
        request_context(mock_response(200, assessment_payload())),
    ]
    store = HttpAssessmentStore(collaborator_config, session=http_session)

    assessment = await store.get_assessment("assessment-42")

    assert assessment.title == "Unit 3 Review"
    assert http_session.get.call_count == 2


@pytest.mark.asyncio
async def test_get_assessment_gives_up_after_max_retries(collaborator_config, http_session):
    http_session.get.side_effect = aiohttp.ClientConnectionError("connection refused")
    store = HttpAssessmentStore(collaborator_config, session=http_session)

    with pytest.raises(LoadError) as exc_info:
        await store.get_assessment("assessment-42")

    assert "unreachable" in exc_info.value.message
    assert http_session.get.call_count == 3


@pytest.mark.asyncio
async def test_get_assessment_not_found_is_not_retried(collaborator_config, http_session):
    http_session.get.return_value = request_context(
        mock_response(404, {"error": "Assessment not found"}, reason="Not Found")
    )
    store = HttpAssessmentStore(collaborator_config, session=http_session)

    with pytest.raises(LoadError) as exc_info:
        await store.get_assessment("missing")

    assert exc_info.value.details["status_code"] == 404
    assert "Assessment not found" in exc_info.value.message
    assert http_session.get.call_count == 1


@pytest.mark.asyncio
async def test_get_assessment_malformed(collaborator_config, http_session):
    payload = assessment_payload()
    payload["timeLimit"] = -5
    http_session.get.return_value = request_context(mock_response(200, payload))
    store = HttpAssessmentStore(collaborator_config, session=http_session)

    with pytest.raises(LoadError) as exc_info:
        await store.get_assessment("assessment-42")

    assert "Malformed assessment" in exc_info.value.message


@pytest.mark.asyncio
async def test_submit(collaborator_config, http_session):
    http_session.post.return_value = request_context(mock_response(201, {"resultId": "result-7"}))
    store = HttpSubmissionStore(collaborator_config, session=http_session)
    payload = SubmissionPayload(
        answers=[{"questionId": "q1", "answerData": {"value": True}}], time_spent=42
    )

    result = await store.submit("assessment-1", payload)

    assert result.result_id == "result-7"
    http_session.post.assert_called_once_with(
        "http://assessments.test/api/assessments/assessment-1/submit",
        json={"answers": [{"questionId": "q1", "answerData": {"value": True}}], "timeSpent": 42}
    )


@pytest.mark.asyncio
async def test_submit_conflict(collaborator_config, http_session):
    http_session.post.return_value = request_context(
        mock_response(409, {"error": "Assessment already submitted"}, reason="Conflict")
    )
    store = HttpSubmissionStore(collaborator_config, session=http_session)

    with pytest.raises(SubmissionRejectedError) as exc_info:
        await store.submit("assessment-1", SubmissionPayload(answers=[]))

    assert exc_info.value.already_submitted
    assert "Assessment already submitted" in exc_info.value.message


@pytest.mark.asyncio
async def test_submit_is_never_retried(collaborator_config, http_session):
    http_session.post.side_effect = aiohttp.ClientConnectionError("connection reset")
    store = HttpSubmissionStore(collaborator_config, session=http_session)

    with pytest.raises(SubmissionRejectedError) as exc_info:
        await store.submit("assessment-1", SubmissionPayload(answers=[]))

    assert isinstance(exc_info.value.cause, aiohttp.ClientConnectionError)
    assert http_session.post.call_count == 1


@pytest.mark.asyncio
async def test_submit_without_result_id(collaborator_config, http_session):
    http_session.post.return_value = request_context(mock_response(200, {"ok": True}))
    store = HttpSubmissionStore(collaborator_config, session=http_session)

    with pytest.raises(SubmissionRejectedError):
        await store.submit("assessment-1", SubmissionPayload(answers=[]))


@pytest.mark.asyncio
async def test_session_is_created_lazily_and_closed(collaborator_config):
    store = HttpAssessmentStore(collaborator_config)

    first = await store._ensure_session()
    second = await store._ensure_session()

    assert first is second
    await store.close()
    assert first.closed


@pytest.mark.asyncio
async def test_injected_session_is_not_closed(collaborator_config, http_session):
    http_session.close = AsyncMock()
    store = HttpSubmissionStore(collaborator_config, session=http_session)

    await store.close()

    http_session.close.assert_not_called()


@pytest.mark.asyncio
async def test_get_assessment_other_client_errors_become_load_errors(collaborator_config, http_session):
    http_session.get.side_effect = aiohttp.ClientPayloadError("truncated body")
    store = HttpAssessmentStore(collaborator_config, session=http_session)

    with pytest.raises(LoadError) as exc_info:
        await store.get_assessment("assessment-42")

    assert "truncated body" in exc_info.value.message
    assert isinstance(exc_info.value.cause, aiohttp.ClientPayloadError)
    assert http_session.get.call_count == 1
