"""Completeness check run before a manual submission."""

from typing import List, Optional, Sequence

from assessment_engine.assessments.base.models import Question
from assessment_engine.assessments.delivery.answer_store import AnswerStore
from assessment_engine.assessments.delivery.variants import policy_for


def find_unanswered(questions: Sequence[Question], answer_store: AnswerStore) -> List[Question]:
    """
    Return the required questions that still lack a usable answer, in
    delivery order. Question types that cannot be answered never block.
    """
    unanswered = []
    for question in questions:
        if not question.required:
            continue
        policy = policy_for(question.question_type)
        if not policy.blocks_submission:
            continue
        if policy.is_empty(answer_store.get(question.id)):
            unanswered.append(question)
    return unanswered


def first_unanswered_index(questions: Sequence[Question], answer_store: AnswerStore) -> Optional[int]:
    """Position of the first offending question, or ``None`` when complete."""
    offenders = {q.id for q in find_unanswered(questions, answer_store)}
    for index, question in enumerate(questions):
        if question.id in offenders:
            return index
    return None
