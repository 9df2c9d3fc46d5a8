"""Turns an assessment definition into the fixed question order of a session."""

import logging
import random
from typing import List, Optional, Sequence, Tuple

from assessment_engine.assessments.base.models import Assessment, Question
from assessment_engine.common.randomness import fisher_yates, make_rng

logger = logging.getLogger(__name__)


def _by_order_index(questions: Sequence[Question]) -> List[Question]:
    # Stable: unindexed questions keep definition order after the indexed ones.
    return sorted(
        questions,
        key=lambda q: (q.order_index is None, q.order_index if q.order_index is not None else 0)
    )


def sequence(
    assessment: Assessment,
    is_preview: bool = False,
    rng: Optional[random.Random] = None
) -> Tuple[Question, ...]:
    """
    Compute the delivery order of an assessment's questions.

    Sections are taken in ``order_index`` order and questions in their own
    ``order_index`` order within each section. When the assessment asks for
    shuffling the whole list is permuted, except in preview.

    Args:
        assessment: The assessment to sequence
        is_preview: Preview sessions always keep the authored order
        rng: Random source for the shuffle; unseeded when omitted

    Returns:
        The ordered questions; empty when there is nothing to deliver
    """
    if assessment.sections:
        ordered: List[Question] = []
        for section in sorted(assessment.sections, key=lambda s: s.order_index):
            ordered.extend(_by_order_index(section.questions))
    else:
        ordered = _by_order_index(assessment.questions)

    if assessment.shuffle_questions and not is_preview and len(ordered) > 1:
        ordered = fisher_yates(ordered, rng or make_rng())
        logger.info(f"Shuffled {len(ordered)} questions for assessment {assessment.id}")

    return tuple(ordered)
