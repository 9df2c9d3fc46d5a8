"""Tests for navigation over the question list."""

from assessment_engine.assessments.base.models import Section
from assessment_engine.assessments.delivery.navigator import Navigator, current_section
from assessment_engine.tests.helpers import make_question


def test_previous_and_next_are_bounded():
    navigator = Navigator(3)

    assert navigator.previous() == 0
    assert navigator.next() == 1
    assert navigator.next() == 2
    assert navigator.next() == 2
    assert navigator.is_last


def test_jump_ignores_out_of_range():
    navigator = Navigator(3)

    assert navigator.jump_to(2) == 2
    assert navigator.jump_to(5) == 2
    assert navigator.jump_to(-1) == 2


def test_progress_is_one_based():
    navigator = Navigator(4)
    navigator.next()
    assert navigator.progress == (2, 4)
    assert not navigator.is_first


def test_empty_navigator():
    navigator = Navigator(0)

    assert navigator.current_index == 0
    assert navigator.next() == 0
    assert navigator.progress == (0, 0)
    assert navigator.is_first and navigator.is_last


def test_current_section_lookup():
    q1, q2, q3 = make_question("q1"), make_question("q2"), make_question("q3")
    sections = [
        Section(id="s1", title="One", questions=(q1,)),
        Section(id="s2", title="Two", questions=(q2,)),
    ]
    questions = (q1, q2, q3)

    assert current_section(questions, sections, 0).id == "s1"
    assert current_section(questions, sections, 1).id == "s2"
    assert current_section(questions, sections, 2) is None
    assert current_section(questions, sections, 9) is None
