"""Tests for question sequencing."""

import random

from assessment_engine.assessments.base.models import Assessment, QuestionType, Section
from assessment_engine.assessments.delivery.sequencer import sequence
from assessment_engine.tests.helpers import assessment_payload, make_assessment, make_question


def _ids(questions):
    return [q.id for q in questions]


def test_sections_then_intra_section_order():
    assessment = Assessment.from_dict(assessment_payload())

    assert _ids(sequence(assessment)) == ["q-sc", "q-fib", "q-num", "q-hot"]


def test_flat_questions_sorted_by_order_index():
    assessment = make_assessment(questions=[
        make_question("c", order_index=3),
        make_question("a", order_index=1),
        make_question("b", order_index=2),
    ])

    assert _ids(sequence(assessment)) == ["a", "b", "c"]


def test_unindexed_questions_follow_in_definition_order():
    assessment = make_assessment(questions=[
        make_question("x"),
        make_question("b", order_index=2),
        make_question("y"),
        make_question("a", order_index=1),
    ])

    assert _ids(sequence(assessment)) == ["a", "b", "x", "y"]


def test_canonical_order_is_deterministic():
    assessment = Assessment.from_dict(assessment_payload())
    assert sequence(assessment) == sequence(assessment)


def test_sections_replace_flat_questions():
    section = Section(id="s1", title="Only", questions=(make_question("in-section", order_index=1),))
    assessment = make_assessment(questions=[make_question("flat", order_index=1)], sections=[section])

    assert _ids(sequence(assessment)) == ["in-section"]


def test_shuffle_is_a_seeded_permutation():
    questions = [make_question(f"q{i}", order_index=i) for i in range(10)]
    assessment = make_assessment(questions=questions, shuffle_questions=True)

    first = sequence(assessment, rng=random.Random(7))
    second = sequence(assessment, rng=random.Random(7))

    assert first == second
    assert sorted(_ids(first)) == sorted(q.id for q in questions)
    assert _ids(first) != [q.id for q in questions]


def test_preview_never_shuffles():
    questions = [make_question(f"q{i}", order_index=i) for i in range(10)]
    assessment = make_assessment(questions=questions, shuffle_questions=True)

    for seed in range(5):
        assert _ids(sequence(assessment, is_preview=True, rng=random.Random(seed))) == [
            q.id for q in questions
        ]


def test_empty_assessment_yields_empty_tuple():
    assert sequence(make_assessment()) == ()


def test_result_is_immutable_tuple():
    assessment = make_assessment(questions=[make_question("a", QuestionType.TRUE_FALSE, order_index=1)])
    assert isinstance(sequence(assessment), tuple)
