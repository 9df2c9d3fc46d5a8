"""Per-session mapping from question id to the student's current answer."""

import logging
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from assessment_engine.assessments.base.models import Question
from assessment_engine.assessments.base.answers import StudentAnswer
from assessment_engine.assessments.delivery.variants import policy_for
from assessment_engine.common.error_handling import (
    AnswerTypeMismatchError,
    QuestionNotFoundError,
    SessionCompletedError,
)

logger = logging.getLogger(__name__)


class AnswerStore:
    """
    Answers keyed by question id.

    The store only accepts answers whose type matches the question they are
    stored for, and refuses every write once it has been sealed at completion.
    Insertion order is preserved and used for the submission payload.
    """

    def __init__(self, questions: Sequence[Question], owner_id: str = "local"):
        self._questions: Dict[str, Question] = {q.id: q for q in questions}
        self._answers: Dict[str, StudentAnswer] = {}
        self._owner_id = owner_id
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        """Freeze the store; called once the session completes."""
        self._sealed = True

    def set(self, question_id: str, answer: StudentAnswer) -> None:
        """
        Record ``answer`` for ``question_id``.

        Raises:
            SessionCompletedError: If the store is sealed
            QuestionNotFoundError: If the question is not part of the session
            AnswerTypeMismatchError: If the answer does not fit the question type
        """
        if self._sealed:
            raise SessionCompletedError(self._owner_id, "change answers")

        question = self._questions.get(question_id)
        if question is None:
            raise QuestionNotFoundError(question_id)

        if not policy_for(question.question_type).accepts(answer):
            raise AnswerTypeMismatchError(
                question_id,
                expected=question.question_type.wire_kind,
                actual=f"{type(answer).__name__}({answer.question_type.wire_kind})"
            )

        self._answers[question_id] = answer
        logger.debug(f"Stored {answer.kind} answer for question {question_id}")

    def get(self, question_id: str) -> Optional[StudentAnswer]:
        return self._answers.get(question_id)

    def has(self, question_id: str) -> bool:
        return question_id in self._answers

    def items(self) -> List[Tuple[str, StudentAnswer]]:
        return list(self._answers.items())

    def snapshot(self) -> Mapping[str, StudentAnswer]:
        return dict(self._answers)

    def __contains__(self, question_id: str) -> bool:
        return question_id in self._answers

    def __len__(self) -> int:
        return len(self._answers)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._answers))
