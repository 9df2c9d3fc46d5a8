"""Tests for the pre-submission summary."""

import json

from assessment_engine.assessments.base.answers import TextAnswer
from assessment_engine.assessments.base.models import QuestionType
from assessment_engine.assessments.delivery.answer_store import AnswerStore
from assessment_engine.assessments.delivery.summary import (
    FINAL_NOTICE,
    PREVIEW_NOTICE,
    REQUIRED_NOTICE,
    build_summary,
)
from assessment_engine.tests.helpers import make_question


def short_answers(count, required=()):
    return tuple(
        make_question(f"q{i}", QuestionType.SHORT_ANSWER, required=f"q{i}" in required, points=i)
        for i in range(1, count + 1)
    )


def test_counts_and_rows():
    questions = short_answers(4, required=("q1", "q2"))
    store = AnswerStore(questions)
    store.set("q1", TextAnswer(QuestionType.SHORT_ANSWER, "answer"))

    summary = build_summary(questions, store)

    assert summary.answered_count == 1
    assert summary.total_questions == 4
    assert summary.percent_complete == 25
    assert summary.total_points == 10
    assert summary.unanswered_required == 1
    assert [row.status_text for row in summary.rows] == [
        "Answered",
        "Required - Not Answered",
        "Optional - Not Answered",
        "Optional - Not Answered",
    ]
    assert summary.rows[1].label == "Question 2: SHORT_ANSWER"
    assert summary.warning == "Warning: 1 required question(s) still unanswered"
    assert summary.notices == [FINAL_NOTICE, REQUIRED_NOTICE]


def test_percent_rounds_half_up():
    questions = short_answers(8)
    store = AnswerStore(questions)
    store.set("q3", TextAnswer(QuestionType.SHORT_ANSWER, "x"))

    assert build_summary(questions, store).percent_complete == 13


def test_cleared_answer_still_counts_as_answered():
    questions = short_answers(2, required=("q1",))
    store = AnswerStore(questions)
    store.set("q1", TextAnswer(QuestionType.SHORT_ANSWER, ""))

    summary = build_summary(questions, store)

    assert summary.answered_count == 1
    assert summary.unanswered_required == 0
    assert summary.warning is None
    assert summary.notices == [FINAL_NOTICE]


def test_preview_summary():
    questions = short_answers(2, required=("q1", "q2"))

    summary = build_summary(questions, AnswerStore(questions), preview=True)

    assert summary.warning is None
    assert summary.notices == [PREVIEW_NOTICE]


def test_empty_summary_serializes():
    summary = build_summary((), AnswerStore(()))

    data = summary.to_dict()
    assert data["percent_complete"] == 0
    assert data["rows"] == []
    assert data["notices"] == [FINAL_NOTICE]


def test_summary_json_includes_status_text():
    questions = short_answers(1, required=("q1",))

    data = json.loads(build_summary(questions, AnswerStore(questions)).to_json())

    assert data["rows"][0]["status_text"] == "Required - Not Answered"
    assert data["warning"] == "Warning: 1 required question(s) still unanswered"


def test_unanswerable_required_question_is_not_counted():
    questions = (
        make_question("q1", QuestionType.SHORT_ANSWER, required=True),
        make_question("q2", QuestionType.UNSUPPORTED, required=True, raw_type="HOTSPOT"),
    )
    store = AnswerStore(questions)
    store.set("q1", TextAnswer(QuestionType.SHORT_ANSWER, "done"))

    summary = build_summary(questions, store)

    assert summary.unanswered_required == 0
    assert summary.rows[1].status_text == "Optional - Not Answered"
    assert summary.warning is None
    assert summary.notices == [FINAL_NOTICE]
