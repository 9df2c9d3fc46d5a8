"""
HTTP Collaborator Stores

aiohttp clients for the assessment backend:

- ``GET  {base_url}/api/assessments/{id}`` returns the assessment definition
- ``POST {base_url}/api/assessments/{id}/submit`` accepts
  ``{"answers": [...], "timeSpent": n}`` and answers ``{"resultId": ...}``

Reads are retried with exponential backoff on transport failures. Submissions
are never retried automatically.
"""

import asyncio
from typing import Any, Dict, Optional

import aiohttp

from assessment_engine.assessments.base.models import Assessment
from assessment_engine.assessments.base.repositories import (
    AssessmentStore,
    SubmissionPayload,
    SubmissionResult,
    SubmissionStore,
)
from assessment_engine.common.config import CollaboratorConfig, get_config
from assessment_engine.common.error_handling import (
    CollaboratorError,
    LoadError,
    SubmissionRejectedError,
    retry,
)
from assessment_engine.common.logger import app_logger, log_execution_time

logger = app_logger.getChild("http_store")

TRANSPORT_ERRORS = (aiohttp.ClientConnectionError, asyncio.TimeoutError)


class HttpCollaboratorClient:
    """Shared aiohttp session handling for the HTTP stores."""

    def __init__(
        self,
        config: Optional[CollaboratorConfig] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        self.config = config or get_config().collaborator
        self._session = session
        self._owns_session = session is None
        self._initialize_lock = asyncio.Lock()

    @property
    def base_url(self) -> str:
        return self.config.base_url.rstrip("/")

    def assessment_url(self, assessment_id: str) -> str:
        return f"{self.base_url}/api/assessments/{assessment_id}"

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is not None:
            return self._session
        async with self._initialize_lock:
            if self._session is None:
                self._session = aiohttp.ClientSession(
                    timeout=aiohttp.ClientTimeout(total=self.config.timeout)
                )
        return self._session

    @staticmethod
    async def _error_reason(response: aiohttp.ClientResponse) -> str:
        try:
            body = await response.json(content_type=None)
        except (aiohttp.ContentTypeError, ValueError):
            body = None
        if isinstance(body, dict):
            return str(body.get("error") or body.get("message") or response.reason)
        return str(response.reason or f"HTTP {response.status}")

    async def close(self) -> None:
        """Close the client session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None


class HttpAssessmentStore(HttpCollaboratorClient, AssessmentStore):
    """Assessment store served by the assessment backend."""

    async def _fetch(self, assessment_id: str) -> Dict[str, Any]:
        session = await self._ensure_session()
        async with session.get(self.assessment_url(assessment_id)) as response:
            if response.status != 200:
                raise CollaboratorError(
                    await self._error_reason(response), status_code=response.status
                )
            return await response.json(content_type=None)

    @log_execution_time(logger)
    async def get_assessment(self, assessment_id: str) -> Assessment:
        fetch = retry(
            max_retries=self.config.max_retries,
            retry_delay=self.config.retry_delay,
            backoff_factor=self.config.backoff_factor,
            retry_exceptions=TRANSPORT_ERRORS
        )(self._fetch)

        try:
            data = await fetch(assessment_id)
        except CollaboratorError as e:
            raise LoadError(
                assessment_id, e.message, details={"status_code": e.status_code}, cause=e
            ) from e
        except TRANSPORT_ERRORS as e:
            raise LoadError(assessment_id, f"Assessment service unreachable: {e}", cause=e) from e
        except aiohttp.ClientError as e:
            raise LoadError(assessment_id, f"Assessment request failed: {e}", cause=e) from e
        except ValueError as e:
            raise LoadError(assessment_id, "Response is not valid JSON", cause=e) from e

        try:
            assessment = Assessment.from_dict(data)
        except ValueError as e:
            raise LoadError(assessment_id, f"Malformed assessment: {e}", cause=e) from e

        logger.info(f"Loaded assessment {assessment.id} ({assessment.title})")
        return assessment


class HttpSubmissionStore(HttpCollaboratorClient, SubmissionStore):
    """Submission store served by the assessment backend. At most one POST per call."""

    @log_execution_time(logger)
    async def submit(self, assessment_id: str, payload: SubmissionPayload) -> SubmissionResult:
        session = await self._ensure_session()
        url = f"{self.assessment_url(assessment_id)}/submit"

        try:
            async with session.post(url, json=payload.to_dict()) as response:
                if response.status not in (200, 201):
                    reason = await self._error_reason(response)
                    raise SubmissionRejectedError(assessment_id, reason, status_code=response.status)
                data = await response.json(content_type=None)
        except SubmissionRejectedError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SubmissionRejectedError(
                assessment_id, f"Submission service unreachable: {e}", cause=e
            ) from e
        except ValueError as e:
            raise SubmissionRejectedError(assessment_id, "Response is not valid JSON", cause=e) from e

        if not isinstance(data, dict):
            raise SubmissionRejectedError(assessment_id, "Unexpected submission response")
        try:
            return SubmissionResult.from_dict(data)
        except ValueError as e:
            raise SubmissionRejectedError(assessment_id, str(e), cause=e) from e
