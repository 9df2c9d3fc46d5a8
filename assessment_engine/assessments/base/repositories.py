"""
Collaborator Repositories

This module defines the two collaborator interfaces the delivery engine talks
to (the assessment store it reads definitions from and the submission store it
hands completed attempts to), the payload and result types exchanged with the
submission store, and in-memory implementations for tests and development.
"""

import uuid
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from assessment_engine.assessments.base.models import Assessment
from assessment_engine.common.error_handling import LoadError, SubmissionRejectedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionPayload:
    """
    The body sent to the submission store.

    ``answers`` holds ``{"questionId": ..., "answerData": ...}`` entries;
    ``time_spent`` is in seconds and ``None`` for untimed assessments.
    """
    answers: List[Dict[str, Any]] = field(default_factory=list)
    time_spent: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"answers": list(self.answers), "timeSpent": self.time_spent}


@dataclass(frozen=True)
class SubmissionResult:
    """Opaque submission store response; only ``result_id`` is interpreted."""
    result_id: str
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'SubmissionResult':
        result_id = data.get("resultId") or data.get("result_id")
        if not result_id:
            raise ValueError("Submission response is missing 'resultId'")
        return cls(result_id=str(result_id), raw=dict(data))

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.raw)
        data["resultId"] = self.result_id
        return data


class AssessmentStore(ABC):
    """Read side: where assessment definitions come from."""

    @abstractmethod
    async def get_assessment(self, assessment_id: str) -> Assessment:
        """
        Fetch an assessment definition.

        Args:
            assessment_id: The assessment identifier

        Returns:
            The parsed assessment

        Raises:
            LoadError: If the assessment cannot be fetched or is malformed
        """
        pass


class SubmissionStore(ABC):
    """Write side: where completed attempts go."""

    @abstractmethod
    async def submit(self, assessment_id: str, payload: SubmissionPayload) -> SubmissionResult:
        """
        Submit an attempt. Must be called at most once per attempt.

        Args:
            assessment_id: The assessment identifier
            payload: Answers and time spent

        Returns:
            The store's result, carrying at least the result id

        Raises:
            SubmissionRejectedError: On any non-success response
        """
        pass


class InMemoryAssessmentStore(AssessmentStore):
    """Assessment store backed by a dictionary."""

    def __init__(self, assessments: Optional[List[Union[Assessment, Mapping[str, Any]]]] = None):
        self._assessments: Dict[str, Assessment] = {}
        for assessment in assessments or []:
            self.add(assessment)

    def add(self, assessment: Union[Assessment, Mapping[str, Any]]) -> Assessment:
        """Register an assessment, parsing it first when given in wire form."""
        if not isinstance(assessment, Assessment):
            assessment = Assessment.from_dict(assessment)
        self._assessments[assessment.id] = assessment
        return assessment

    async def get_assessment(self, assessment_id: str) -> Assessment:
        assessment = self._assessments.get(assessment_id)
        if assessment is None:
            raise LoadError(assessment_id, "Assessment not found", details={"status_code": 404})
        return assessment


class InMemorySubmissionStore(SubmissionStore):
    """
    Submission store that records payloads.

    A second submission for the same assessment is rejected with a 409, the
    way the production backend answers duplicate submissions.
    """

    def __init__(self):
        self.submissions: Dict[str, SubmissionPayload] = {}
        self.results: Dict[str, SubmissionResult] = {}

    async def submit(self, assessment_id: str, payload: SubmissionPayload) -> SubmissionResult:
        if assessment_id in self.submissions:
            raise SubmissionRejectedError(assessment_id, "Assessment already submitted", status_code=409)

        result = SubmissionResult(
            result_id=str(uuid.uuid4()),
            raw={"answersCount": len(payload.answers), "timeSpent": payload.time_spent}
        )
        self.submissions[assessment_id] = payload
        self.results[assessment_id] = result
        logger.debug(f"Recorded submission {result.result_id} for assessment {assessment_id}")
        return result
