"""
Question Variant Policies

The closed dispatch table of the engine. For each question type it names the
answer class, the editor class, the emptiness predicate used by the
completeness check, and the wire transformations. Adding a question type
without a policy fails at import time.
"""

import math
import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Type

from assessment_engine.assessments.base.models import Question, QuestionType
from assessment_engine.assessments.base.answers import (
    ChoiceAnswer,
    FileUploadAnswer,
    FillInBlankAnswer,
    MatchingAnswer,
    NumericAnswer,
    OrderingAnswer,
    StudentAnswer,
    TextAnswer,
    TrueFalseAnswer,
)
from assessment_engine.assessments.delivery.editors import (
    FileUploadEditor,
    FillInBlankEditor,
    MatchingEditor,
    MultipleChoiceEditor,
    NumericEditor,
    OrderingEditor,
    QuestionEditor,
    SingleChoiceEditor,
    TextEditor,
    TrueFalseEditor,
    UnsupportedEditor,
)


def _choice_empty(answer: ChoiceAnswer) -> bool:
    return not answer.selected_option_ids


def _true_false_empty(answer: TrueFalseAnswer) -> bool:
    return answer.value is None


def _text_empty(answer) -> bool:
    return not (answer.text or "").strip()


def _matching_empty(answer: MatchingAnswer) -> bool:
    return not answer.pairs


def _ordering_empty(answer: OrderingAnswer) -> bool:
    return not answer.order


def _numeric_empty(answer: NumericAnswer) -> bool:
    return answer.value is None or math.isnan(answer.value)


def _file_empty(answer: FileUploadAnswer) -> bool:
    return not answer.file_url


@dataclass(frozen=True)
class VariantPolicy:
    """Everything the engine needs to know about one question type."""
    question_type: QuestionType
    answer_cls: Optional[Type[StudentAnswer]]
    editor_cls: Type[QuestionEditor]
    empty: Callable[[Any], bool]
    blocks_submission: bool = True

    def is_empty(self, answer: Optional[StudentAnswer]) -> bool:
        """Whether ``answer`` counts as unanswered for the completeness check."""
        if answer is None:
            return True
        return self.empty(answer)

    def to_wire(self, answer: StudentAnswer) -> Dict[str, Any]:
        return answer.to_wire()

    def from_wire(self, answer_data: Mapping[str, Any]) -> StudentAnswer:
        """
        Parse an ``answerData`` object without editor constraints.

        Raises:
            ValueError: If the payload has the wrong shape or the type is not answerable
        """
        if self.answer_cls is None:
            raise ValueError(f"{self.question_type.value} questions cannot be answered")
        return self.answer_cls.from_wire(answer_data, self.question_type)

    def accepts(self, answer: StudentAnswer) -> bool:
        return (
            self.answer_cls is not None
            and isinstance(answer, self.answer_cls)
            and answer.question_type == self.question_type
        )

    def create_editor(
        self,
        question: Question,
        on_answer_change: Callable[[StudentAnswer], None],
        current_answer: Optional[StudentAnswer] = None,
        rng: Optional[random.Random] = None
    ) -> QuestionEditor:
        return self.editor_cls(question, on_answer_change, current_answer, rng)

    def render(
        self,
        question: Question,
        answer: Optional[StudentAnswer] = None,
        rng: Optional[random.Random] = None
    ) -> Dict[str, Any]:
        """Display model for ``question`` with ``answer`` restored, without a live editor."""
        return self.create_editor(question, lambda _answer: None, answer, rng).render()


VARIANT_POLICIES: Dict[QuestionType, VariantPolicy] = {
    QuestionType.MULTIPLE_CHOICE: VariantPolicy(
        QuestionType.MULTIPLE_CHOICE, ChoiceAnswer, MultipleChoiceEditor, _choice_empty
    ),
    QuestionType.SINGLE_CHOICE: VariantPolicy(
        QuestionType.SINGLE_CHOICE, ChoiceAnswer, SingleChoiceEditor, _choice_empty
    ),
    QuestionType.TRUE_FALSE: VariantPolicy(
        QuestionType.TRUE_FALSE, TrueFalseAnswer, TrueFalseEditor, _true_false_empty
    ),
    QuestionType.SHORT_ANSWER: VariantPolicy(
        QuestionType.SHORT_ANSWER, TextAnswer, TextEditor, _text_empty
    ),
    QuestionType.LONG_ANSWER: VariantPolicy(
        QuestionType.LONG_ANSWER, TextAnswer, TextEditor, _text_empty
    ),
    QuestionType.MATCHING: VariantPolicy(
        QuestionType.MATCHING, MatchingAnswer, MatchingEditor, _matching_empty
    ),
    QuestionType.ORDERING: VariantPolicy(
        QuestionType.ORDERING, OrderingAnswer, OrderingEditor, _ordering_empty
    ),
    QuestionType.FILL_IN_BLANK: VariantPolicy(
        QuestionType.FILL_IN_BLANK, FillInBlankAnswer, FillInBlankEditor, _text_empty
    ),
    QuestionType.NUMERIC: VariantPolicy(
        QuestionType.NUMERIC, NumericAnswer, NumericEditor, _numeric_empty
    ),
    QuestionType.FILE_UPLOAD: VariantPolicy(
        QuestionType.FILE_UPLOAD, FileUploadAnswer, FileUploadEditor, _file_empty
    ),
    QuestionType.UNSUPPORTED: VariantPolicy(
        QuestionType.UNSUPPORTED, None, UnsupportedEditor, lambda _answer: False,
        blocks_submission=False
    ),
}

_missing = set(QuestionType) - set(VARIANT_POLICIES)
if _missing:
    raise RuntimeError(f"No variant policy for: {sorted(t.value for t in _missing)}")


def policy_for(question_type: QuestionType) -> VariantPolicy:
    return VARIANT_POLICIES[question_type]
