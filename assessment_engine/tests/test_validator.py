"""Tests for the completeness check and the per-type emptiness rules."""

import math

import pytest

from assessment_engine.assessments.base.answers import (
    ChoiceAnswer,
    FileUploadAnswer,
    FillInBlankAnswer,
    MatchingAnswer,
    NumericAnswer,
    OrderingAnswer,
    TextAnswer,
    TrueFalseAnswer,
)
from assessment_engine.assessments.base.models import QuestionType
from assessment_engine.assessments.delivery.answer_store import AnswerStore
from assessment_engine.assessments.delivery.validator import find_unanswered, first_unanswered_index
from assessment_engine.assessments.delivery.variants import VARIANT_POLICIES, policy_for
from assessment_engine.tests.helpers import make_question


def test_every_question_type_has_a_policy():
    assert set(VARIANT_POLICIES) == set(QuestionType)


@pytest.mark.parametrize("question_type,answer,empty", [
    (QuestionType.MULTIPLE_CHOICE, ChoiceAnswer(QuestionType.MULTIPLE_CHOICE, ()), True),
    (QuestionType.MULTIPLE_CHOICE, ChoiceAnswer(QuestionType.MULTIPLE_CHOICE, ("a",)), False),
    (QuestionType.SINGLE_CHOICE, ChoiceAnswer(QuestionType.SINGLE_CHOICE, ()), True),
    (QuestionType.TRUE_FALSE, TrueFalseAnswer(value=None), True),
    (QuestionType.TRUE_FALSE, TrueFalseAnswer(value=False), False),
    (QuestionType.SHORT_ANSWER, TextAnswer(QuestionType.SHORT_ANSWER, "   \n\t"), True),
    (QuestionType.SHORT_ANSWER, TextAnswer(QuestionType.SHORT_ANSWER, " x "), False),
    (QuestionType.LONG_ANSWER, TextAnswer(QuestionType.LONG_ANSWER, ""), True),
    (QuestionType.FILL_IN_BLANK, FillInBlankAnswer(blanks={"b": "x"}, text="  "), True),
    (QuestionType.FILL_IN_BLANK, FillInBlankAnswer(text="[____] is [____]"), False),
    (QuestionType.MATCHING, MatchingAnswer(), True),
    (QuestionType.MATCHING, MatchingAnswer(pairs={"p1": "p2"}), False),
    (QuestionType.ORDERING, OrderingAnswer(), True),
    (QuestionType.ORDERING, OrderingAnswer(order=("a",)), False),
    (QuestionType.NUMERIC, NumericAnswer(value=None), True),
    (QuestionType.NUMERIC, NumericAnswer(value=math.nan), True),
    (QuestionType.NUMERIC, NumericAnswer(value=0.0), False),
    (QuestionType.FILE_UPLOAD, FileUploadAnswer(file_name="a.pdf"), True),
    (QuestionType.FILE_UPLOAD, FileUploadAnswer(file_url="https://files/a.pdf"), False),
])
def test_emptiness_rules(question_type, answer, empty):
    assert policy_for(question_type).is_empty(answer) is empty


def test_missing_answer_is_empty():
    assert policy_for(QuestionType.NUMERIC).is_empty(None)


def test_required_questions_without_answers_are_reported_in_order():
    questions = (
        make_question("q1", QuestionType.SHORT_ANSWER, required=True),
        make_question("q2", QuestionType.SHORT_ANSWER, required=False),
        make_question("q3", QuestionType.NUMERIC, required=True),
        make_question("q4", QuestionType.SHORT_ANSWER, required=True),
    )
    store = AnswerStore(questions)
    store.set("q1", TextAnswer(QuestionType.SHORT_ANSWER, "done"))
    store.set("q3", NumericAnswer(value=0.0))
    store.set("q4", TextAnswer(QuestionType.SHORT_ANSWER, "  "))

    assert [q.id for q in find_unanswered(questions, store)] == ["q4"]
    assert first_unanswered_index(questions, store) == 3


def test_unsupported_questions_never_block():
    questions = (make_question("q1", QuestionType.UNSUPPORTED, required=True, raw_type="HOTSPOT"),)
    store = AnswerStore(questions)

    assert find_unanswered(questions, store) == []
    assert first_unanswered_index(questions, store) is None


def test_find_unanswered_is_idempotent():
    questions = tuple(
        make_question(f"q{i}", QuestionType.TRUE_FALSE, required=True) for i in range(4)
    )
    store = AnswerStore(questions)
    store.set("q2", TrueFalseAnswer(value=True))

    first = find_unanswered(questions, store)
    second = find_unanswered(questions, store)

    assert first == second
    assert [q.id for q in first] == ["q0", "q1", "q3"]
