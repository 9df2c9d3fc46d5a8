"""
Assessment Session

Orchestrates one attempt at an assessment: the sequenced questions, the
answer store, navigation, the countdown and the submission pipeline. All
state changes go through the named operations below.
"""

import asyncio
import uuid
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from assessment_engine.assessments.base.models import Assessment, Question, Section
from assessment_engine.assessments.base.answers import StudentAnswer
from assessment_engine.assessments.base.repositories import AssessmentStore, SubmissionStore
from assessment_engine.assessments.delivery.answer_store import AnswerStore
from assessment_engine.assessments.delivery.editors import QuestionEditor
from assessment_engine.assessments.delivery.navigator import Navigator, current_section
from assessment_engine.assessments.delivery.sequencer import sequence
from assessment_engine.assessments.delivery.submission import (
    SubmissionOutcome,
    SubmissionPipeline,
    SubmissionTrigger,
)
from assessment_engine.assessments.delivery.summary import AssessmentSummary, build_summary
from assessment_engine.assessments.delivery.timer import SessionTimer
from assessment_engine.assessments.delivery.variants import policy_for
from assessment_engine.common.config import EngineConfig, get_config
from assessment_engine.common.error_handling import (
    AssessmentEngineError,
    LoadError,
    QuestionNotFoundError,
    SessionCompletedError,
    SubmissionInProgressError,
    SubmissionRejectedError,
    log_error,
)
from assessment_engine.common.logger import session_logger
from assessment_engine.common.randomness import make_rng

TIME_UP_NOTICE = "Time is up! Your assessment will be submitted."


@dataclass(frozen=True)
class SessionState:
    """Snapshot of the mutable state of a session."""
    current_index: int
    remaining_seconds: Optional[int]
    is_submitting: bool
    is_completed: bool


class AssessmentSession:
    """
    A single attempt at an assessment.

    Args:
        assessment: The loaded assessment
        submission_store: Where the attempt is submitted
        is_preview: Preview sessions keep authored order and never submit
        session_id: Identifier; generated when omitted
        rng: Random source for every shuffle in the session
        config: Engine configuration; the process configuration when omitted
    """

    def __init__(
        self,
        assessment: Assessment,
        submission_store: SubmissionStore,
        is_preview: bool = False,
        session_id: Optional[str] = None,
        rng: Optional[random.Random] = None,
        config: Optional[EngineConfig] = None
    ):
        self.id = session_id or str(uuid.uuid4())
        self.assessment = assessment
        self.is_preview = is_preview
        self.created_at = datetime.now()
        self.config = config or get_config()
        self.logger = session_logger("session", self.id, assessment.id)
        self._rng = rng or make_rng()

        self.questions = sequence(assessment, is_preview, self._rng)
        self.answers = AnswerStore(self.questions, owner_id=self.id)
        self.navigator = Navigator(len(self.questions))
        self.timer = SessionTimer(assessment.time_limit, self._on_time_expired, self.config.timer)
        self.pipeline = SubmissionPipeline(
            session_id=self.id,
            assessment=assessment,
            questions=self.questions,
            answer_store=self.answers,
            navigator=self.navigator,
            timer=self.timer,
            submission_store=submission_store,
            is_preview=is_preview
        )
        self.notice: Optional[str] = None
        self._editors: Dict[str, QuestionEditor] = {}
        self._expiry_task: Optional[asyncio.Task] = None

        self.logger.info(
            f"Session created with {len(self.questions)} questions"
            f"{' (preview)' if is_preview else ''}"
        )

    @classmethod
    async def load(
        cls,
        assessment_store: AssessmentStore,
        assessment_id: str,
        submission_store: SubmissionStore,
        is_preview: bool = False,
        rng: Optional[random.Random] = None,
        config: Optional[EngineConfig] = None
    ) -> 'AssessmentSession':
        """
        Fetch an assessment and open a session on it.

        Raises:
            LoadError: If the assessment cannot be fetched or is malformed
        """
        try:
            assessment = await assessment_store.get_assessment(assessment_id)
        except LoadError:
            raise
        except ValueError as e:
            raise LoadError(assessment_id, "Malformed assessment data", cause=e) from e
        except AssessmentEngineError as e:
            raise LoadError(assessment_id, e.message, details=dict(e.details), cause=e) from e
        return cls(assessment, submission_store, is_preview=is_preview, rng=rng, config=config)

    # State

    @property
    def state(self) -> SessionState:
        return SessionState(
            current_index=self.navigator.current_index,
            remaining_seconds=self.timer.remaining_seconds,
            is_submitting=self.pipeline.is_submitting,
            is_completed=self.pipeline.is_completed
        )

    @property
    def is_completed(self) -> bool:
        return self.pipeline.is_completed

    @property
    def is_empty(self) -> bool:
        return not self.questions

    @property
    def current_question(self) -> Optional[Question]:
        if self.is_empty:
            return None
        return self.questions[self.navigator.current_index]

    @property
    def current_section(self) -> Optional[Section]:
        return current_section(self.questions, self.assessment.sections, self.navigator.current_index)

    def _check_active(self, action: str) -> None:
        if self.is_completed:
            raise SessionCompletedError(self.id, action)

    def start(self) -> None:
        """Start the countdown of a timed session."""
        if self.is_empty or self.is_completed:
            return
        self.timer.start()

    # Answers

    def question(self, question_id: str) -> Question:
        for question in self.questions:
            if question.id == question_id:
                return question
        raise QuestionNotFoundError(question_id)

    def editor(self, question_id: str) -> QuestionEditor:
        """The editor of a question, created on first use with any stored answer restored."""
        editor = self._editors.get(question_id)
        if editor is not None:
            return editor

        question = self.question(question_id)
        if self.is_completed:
            on_change = lambda _answer: None
        else:
            on_change = lambda answer: self.answers.set(question.id, answer)
        editor = policy_for(question.question_type).create_editor(
            question, on_change, self.answers.get(question_id), self._rng
        )
        self._editors[question_id] = editor
        return editor

    def apply_answer(self, question_id: str, answer_data: Mapping[str, Any]) -> Optional[StudentAnswer]:
        """
        Apply a wire ``answerData`` payload through the question's editor.

        Raises:
            SessionCompletedError: If the session is completed
            QuestionNotFoundError: If the question is not in this session
            InvalidLocalInputError: If the editor rejects the payload
        """
        self._check_active("change answers")
        editor = self.editor(question_id)
        editor.apply(answer_data)
        return self.answers.get(question_id)

    # Navigation

    def previous(self) -> int:
        self._check_active("navigate")
        return self.navigator.previous()

    def next(self) -> int:
        self._check_active("navigate")
        return self.navigator.next()

    def jump_to(self, index: int) -> int:
        self._check_active("navigate")
        return self.navigator.jump_to(index)

    # Submission

    async def submit(self, trigger: SubmissionTrigger = SubmissionTrigger.MANUAL) -> SubmissionOutcome:
        """
        Submit the attempt. Once time has run out every submit is forced.

        Raises:
            See ``SubmissionPipeline.submit``
        """
        if self.timer.expired:
            trigger = SubmissionTrigger.TIME_EXPIRED
        outcome = await self.pipeline.submit(trigger)
        self.notice = None
        return outcome

    def _on_time_expired(self) -> None:
        self.notice = TIME_UP_NOTICE
        self.logger.warning("Time expired, forcing submission")
        self._expiry_task = asyncio.get_running_loop().create_task(self._submit_on_expiry())

    async def _submit_on_expiry(self) -> None:
        try:
            await self.submit(SubmissionTrigger.TIME_EXPIRED)
        except SubmissionInProgressError:
            self.logger.info("Submission already in flight at expiry")
        except SessionCompletedError:
            self.logger.debug("Session completed before the expiry submission ran")
        except SubmissionRejectedError as e:
            log_error(e, log=self.logger.logger, context={"session_id": self.id, "trigger": "time_expired"})

    async def wait_for_expiry_submission(self) -> None:
        """Wait for a pending time-expiry submission, if one was scheduled."""
        if self._expiry_task is not None:
            await asyncio.shield(self._expiry_task)

    async def teardown(self) -> None:
        """Abandon the session: stop the timer and drop any pending expiry submission."""
        self.timer.stop()
        task = self._expiry_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.logger.info("Session torn down")

    # Views

    def summary(self) -> AssessmentSummary:
        return build_summary(self.questions, self.answers, self.is_preview)

    def view(self) -> Dict[str, Any]:
        """Display model of the session at its current position."""
        current, total = self.navigator.progress
        section = self.current_section
        question = self.current_question
        outcome = self.pipeline.outcome

        return {
            "session_id": self.id,
            "assessment": {
                "id": self.assessment.id,
                "title": self.assessment.title,
                "description": self.assessment.description,
                "instructions": self.assessment.instructions,
                "time_limit": self.assessment.time_limit,
            },
            "preview": self.is_preview,
            "state": {
                "current_index": self.navigator.current_index,
                "is_submitting": self.pipeline.is_submitting,
                "is_completed": self.pipeline.is_completed,
                "pipeline": self.pipeline.state.value,
            },
            "progress": {"current": current, "total": total},
            "is_first": self.navigator.is_first,
            "is_last": self.navigator.is_last,
            "section": {
                "id": section.id,
                "title": section.title,
                "description": section.description,
                "instructions": section.instructions,
            } if section else None,
            "timer": {
                "remaining_seconds": self.timer.remaining_seconds,
                "display": self.timer.format_remaining(),
                "warning": self.timer.is_warning,
            } if self.timer.enabled else None,
            "question": self.editor(question.id).render() if question else None,
            "notice": self.notice,
            "outcome": outcome.to_dict() if outcome else None,
        }
