"""Builders for assessment fixtures used across the test suite."""

from typing import Any, Dict, Optional, Sequence

from assessment_engine.assessments.base.models import (
    Assessment,
    MatchingPair,
    Question,
    QuestionOption,
    QuestionType,
    Section,
)


def make_options(*option_ids: str) -> tuple:
    return tuple(
        QuestionOption(id=option_id, text=f"Option {option_id}", order_index=index)
        for index, option_id in enumerate(option_ids)
    )


def make_pairs(*pair_ids: str) -> tuple:
    return tuple(
        MatchingPair(
            id=pair_id,
            prompt_text=f"Prompt {pair_id}",
            response_text=f"Response {pair_id}",
            order_index=index
        )
        for index, pair_id in enumerate(pair_ids)
    )


def make_question(
    question_id: str,
    question_type: QuestionType = QuestionType.SHORT_ANSWER,
    required: bool = False,
    order_index: Optional[int] = None,
    points: float = 1,
    **kwargs
) -> Question:
    return Question(
        id=question_id,
        question_text=f"Question {question_id}",
        question_type=question_type,
        required=required,
        points=points,
        order_index=order_index,
        **kwargs
    )


def make_assessment(
    questions: Sequence[Question] = (),
    sections: Sequence[Section] = (),
    time_limit: Optional[float] = None,
    shuffle_questions: bool = False,
    assessment_id: str = "assessment-1"
) -> Assessment:
    return Assessment(
        id=assessment_id,
        title="Sample Assessment",
        time_limit=time_limit,
        questions=tuple(questions),
        sections=tuple(sections),
        shuffle_questions=shuffle_questions
    )


def single_choice_assessment(count: int = 3, time_limit: Optional[float] = None) -> Assessment:
    """``count`` required single-choice questions q1..qN with options a/b."""
    return make_assessment(
        questions=[
            make_question(
                f"q{i}", QuestionType.SINGLE_CHOICE, required=True,
                order_index=i, options=make_options("a", "b")
            )
            for i in range(1, count + 1)
        ],
        time_limit=time_limit
    )


def assessment_payload() -> Dict[str, Any]:
    """A sectioned assessment in the camelCase wire form."""
    return {
        "id": "assessment-42",
        "title": "Unit 3 Review",
        "description": "Covers chapters 5 and 6",
        "instructions": "Answer every required question.",
        "timeLimit": 30,
        "shuffleQuestions": False,
        "status": "ACTIVE",
        "sections": [
            {
                "id": "s2",
                "title": "Part B",
                "orderIndex": 2,
                "questions": [
                    {
                        "id": "q-num",
                        "questionText": "How many grams in a kilogram?",
                        "questionType": "NUMERIC",
                        "orderIndex": 1,
                        "points": 2,
                        "required": True,
                        "format": {"min": 0, "max": 5000, "unit": "g"}
                    },
                    {
                        "id": "q-hot",
                        "questionText": "Click the capital",
                        "questionType": "HOTSPOT",
                        "orderIndex": 2,
                        "required": True
                    }
                ]
            },
            {
                "id": "s1",
                "title": "Part A",
                "orderIndex": 1,
                "questions": [
                    {
                        "id": "q-fib",
                        "questionText": "Complete the sentence",
                        "questionType": "FILL_IN_BLANK",
                        "orderIndex": 2,
                        "required": True,
                        "format": {
                            "text": "Water boils at {blank} degrees and freezes at {BLANK}.",
                            "blanks": [{"id": "b2", "position": 2}, {"id": "b1", "position": 1}]
                        }
                    },
                    {
                        "id": "q-sc",
                        "questionText": "Pick one",
                        "questionType": "SINGLE_CHOICE",
                        "orderIndex": 1,
                        "required": True,
                        "mediaUrl": "https://cdn.example.com/diagram.png",
                        "mediaType": "IMAGE",
                        "options": [
                            {"id": "o2", "text": "Second", "orderIndex": 2},
                            {"id": "o1", "text": "First", "orderIndex": 1, "isCorrect": True}
                        ]
                    }
                ]
            }
        ]
    }
