"""
Submission Pipeline

Decides whether a submit attempt is blocked, completes previews locally, and
otherwise hands the transformed answers to the submission store exactly once
per attempt.

State machine::

    EDITING -> VALIDATING -> BLOCKED -> EDITING
                          -> SUBMITTING -> COMPLETED
                                        -> FAILED -> VALIDATING (retry)
    VALIDATING -> COMPLETED  (preview)
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from assessment_engine.assessments.base.models import Assessment, Question
from assessment_engine.assessments.base.repositories import (
    SubmissionPayload,
    SubmissionResult,
    SubmissionStore,
)
from assessment_engine.assessments.delivery.answer_store import AnswerStore
from assessment_engine.assessments.delivery.navigator import Navigator
from assessment_engine.assessments.delivery.timer import SessionTimer
from assessment_engine.assessments.delivery.validator import find_unanswered, first_unanswered_index
from assessment_engine.assessments.delivery.variants import policy_for
from assessment_engine.common.error_handling import (
    SessionCompletedError,
    SubmissionInProgressError,
    SubmissionRejectedError,
    ValidationBlockedError,
    log_error,
)
from assessment_engine.common.logger import session_logger


class PipelineState(enum.Enum):
    EDITING = "editing"
    VALIDATING = "validating"
    BLOCKED = "blocked"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    FAILED = "failed"


class SubmissionTrigger(enum.Enum):
    """What started a submission. Time expiry skips the completeness check."""
    MANUAL = "manual"
    TIME_EXPIRED = "time_expired"


@dataclass(frozen=True)
class SubmissionOutcome:
    """Result of a completed submission attempt."""
    state: PipelineState
    trigger: SubmissionTrigger
    preview: bool = False
    result: Optional[SubmissionResult] = None

    @property
    def result_id(self) -> Optional[str]:
        return self.result.result_id if self.result else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "trigger": self.trigger.value,
            "preview": self.preview,
            "result_id": self.result_id,
            "result": self.result.to_dict() if self.result else None
        }


class SubmissionPipeline:
    """
    Submission workflow of one session.

    Args:
        session_id: Owning session, for errors and logs
        assessment: The assessment being taken
        questions: The sequenced question list
        answer_store: The session's answers
        navigator: Moved to the first offender when a submit is blocked
        timer: Stopped on completion; source of the time spent
        submission_store: Where completed attempts go
        is_preview: Previews complete without any network call
    """

    def __init__(
        self,
        session_id: str,
        assessment: Assessment,
        questions: Sequence[Question],
        answer_store: AnswerStore,
        navigator: Navigator,
        timer: SessionTimer,
        submission_store: SubmissionStore,
        is_preview: bool = False
    ):
        self.session_id = session_id
        self.assessment = assessment
        self.questions = questions
        self.answer_store = answer_store
        self.navigator = navigator
        self.timer = timer
        self.submission_store = submission_store
        self.is_preview = is_preview
        self.state = PipelineState.EDITING
        self.outcome: Optional[SubmissionOutcome] = None
        self.logger = session_logger("submission", session_id, assessment.id)

    @property
    def is_submitting(self) -> bool:
        return self.state == PipelineState.SUBMITTING

    @property
    def is_completed(self) -> bool:
        return self.state == PipelineState.COMPLETED

    def _transition(self, state: PipelineState) -> None:
        self.logger.debug(f"Submission state {self.state.value} -> {state.value}")
        self.state = state

    def build_payload(self) -> SubmissionPayload:
        """Transform the stored answers into the submission store's wire form."""
        questions = {q.id: q for q in self.questions}
        answers = []
        for question_id, answer in self.answer_store.items():
            policy = policy_for(questions[question_id].question_type)
            answers.append({"questionId": question_id, "answerData": policy.to_wire(answer)})
        return SubmissionPayload(answers=answers, time_spent=self.timer.elapsed_seconds)

    def _complete(self, trigger: SubmissionTrigger, result: Optional[SubmissionResult]) -> SubmissionOutcome:
        self._transition(PipelineState.COMPLETED)
        self.timer.stop()
        self.answer_store.seal()
        self.outcome = SubmissionOutcome(
            state=PipelineState.COMPLETED,
            trigger=trigger,
            preview=self.is_preview,
            result=result
        )
        return self.outcome

    async def submit(self, trigger: SubmissionTrigger = SubmissionTrigger.MANUAL) -> SubmissionOutcome:
        """
        Run one submission attempt.

        Args:
            trigger: MANUAL runs the completeness check; TIME_EXPIRED bypasses it

        Returns:
            The outcome of the completed submission

        Raises:
            SessionCompletedError: If the session already completed
            SubmissionInProgressError: If an attempt is already in flight
            ValidationBlockedError: If required questions are unanswered
            SubmissionRejectedError: If the submission store refused the attempt
        """
        if self.is_completed:
            raise SessionCompletedError(self.session_id, "submit")
        if self.is_submitting:
            raise SubmissionInProgressError(self.session_id)

        self._transition(PipelineState.VALIDATING)

        if trigger == SubmissionTrigger.MANUAL and not self.is_preview:
            unanswered = find_unanswered(self.questions, self.answer_store)
            if unanswered:
                focus_index = first_unanswered_index(self.questions, self.answer_store)
                self.navigator.jump_to(focus_index)
                self._transition(PipelineState.BLOCKED)
                self.logger.warning(
                    f"Submission blocked: {len(unanswered)} required questions unanswered"
                )
                self._transition(PipelineState.EDITING)
                raise ValidationBlockedError([q.id for q in unanswered], focus_index)

        if self.is_preview:
            self.logger.info("Preview completed without submission")
            return self._complete(trigger, None)

        payload = self.build_payload()
        self._transition(PipelineState.SUBMITTING)
        self.logger.info(
            f"Submitting {len(payload.answers)} answers ({trigger.value}, "
            f"time spent: {payload.time_spent})"
        )

        try:
            result = await self.submission_store.submit(self.assessment.id, payload)
        except SubmissionRejectedError as e:
            self._transition(PipelineState.FAILED)
            log_error(e, log=self.logger.logger, context={"session_id": self.session_id})
            raise
        except Exception as e:
            self._transition(PipelineState.FAILED)
            error = SubmissionRejectedError(self.assessment.id, str(e) or type(e).__name__, cause=e)
            log_error(error, log=self.logger.logger, context={"session_id": self.session_id})
            raise error from e

        self.logger.info(f"Submission accepted with result {result.result_id}")
        return self._complete(trigger, result)
