"""
Summary View Model

Pre-submission overview of a session: answered count, points at stake,
required questions still open, and one status row per question.

Counts here are by presence of an answer entry, not by the emptiness rules of
the completeness check, so an answer cleared back to empty still counts as
answered in the summary. Question types that never block submission are
not counted as required.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from assessment_engine.assessments.base.models import Question
from assessment_engine.assessments.delivery.answer_store import AnswerStore
from assessment_engine.assessments.delivery.variants import policy_for
from assessment_engine.common.serialization import SerializableMixin

STATUS_ANSWERED = "answered"
STATUS_REQUIRED_UNANSWERED = "required_unanswered"
STATUS_OPTIONAL_UNANSWERED = "optional_unanswered"

STATUS_TEXT = {
    STATUS_ANSWERED: "Answered",
    STATUS_REQUIRED_UNANSWERED: "Required - Not Answered",
    STATUS_OPTIONAL_UNANSWERED: "Optional - Not Answered",
}

PREVIEW_NOTICE = (
    "This is a preview of the assessment. In a real assessment, student answers "
    "would be submitted and scored."
)
FINAL_NOTICE = (
    "Once submitted, your answers will be recorded and you won't be able to make changes."
)
REQUIRED_NOTICE = "Please answer all required questions before submitting."


@dataclass
class QuestionStatusRow(SerializableMixin):
    number: int
    question_id: str
    question_type: str
    question_text: str
    points: float
    required: bool
    status: str

    __serializable_fields__ = [
        "number", "question_id", "question_type", "question_text",
        "points", "required", "status", "status_text"
    ]

    @property
    def status_text(self) -> str:
        return STATUS_TEXT[self.status]

    @property
    def label(self) -> str:
        return f"Question {self.number}: {self.question_type}"


@dataclass
class AssessmentSummary(SerializableMixin):
    answered_count: int
    total_questions: int
    percent_complete: int
    total_points: float
    unanswered_required: int
    preview: bool
    rows: List[QuestionStatusRow] = field(default_factory=list)

    __serializable_fields__ = [
        "answered_count", "total_questions", "percent_complete", "total_points",
        "unanswered_required", "preview", "warning", "notices", "rows"
    ]

    @property
    def warning(self) -> Optional[str]:
        if self.unanswered_required > 0 and not self.preview:
            return f"Warning: {self.unanswered_required} required question(s) still unanswered"
        return None

    @property
    def notices(self) -> List[str]:
        if self.preview:
            return [PREVIEW_NOTICE]
        notices = [FINAL_NOTICE]
        if self.unanswered_required > 0:
            notices.append(REQUIRED_NOTICE)
        return notices


def build_summary(
    questions: Sequence[Question],
    answer_store: AnswerStore,
    preview: bool = False
) -> AssessmentSummary:
    """Build the summary of ``questions`` against the current answers."""
    answered_count = len(answer_store)
    total = len(questions)
    percent = math.floor(answered_count / total * 100 + 0.5) if total else 0

    rows = []
    for number, question in enumerate(questions, start=1):
        if answer_store.has(question.id):
            status = STATUS_ANSWERED
        elif question.required and policy_for(question.question_type).blocks_submission:
            status = STATUS_REQUIRED_UNANSWERED
        else:
            status = STATUS_OPTIONAL_UNANSWERED
        rows.append(QuestionStatusRow(
            number=number,
            question_id=question.id,
            question_type=question.type_label,
            question_text=question.question_text,
            points=question.points,
            required=question.required,
            status=status
        ))

    return AssessmentSummary(
        answered_count=answered_count,
        total_questions=total,
        percent_complete=percent,
        total_points=sum(q.points for q in questions),
        unanswered_required=sum(1 for r in rows if r.status == STATUS_REQUIRED_UNANSWERED),
        preview=preview,
        rows=rows
    )
