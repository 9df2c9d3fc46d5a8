"""
Base Assessment Model

Immutable assessment definitions as loaded from the assessment service, the
typed student answers recorded against them, and the abstract stores the
engine reads assessments from and submits attempts to.
"""

from assessment_engine.assessments.base.models import (
    Assessment,
    BlankField,
    FileUploadFormat,
    FillInBlankFormat,
    MatchingPair,
    MediaType,
    NumericFormat,
    Question,
    QuestionOption,
    QuestionType,
    Section,
    TextFormat
)

from assessment_engine.assessments.base.answers import (
    StudentAnswer,
    ChoiceAnswer,
    TrueFalseAnswer,
    TextAnswer,
    MatchingAnswer,
    OrderingAnswer,
    FillInBlankAnswer,
    NumericAnswer,
    FileUploadAnswer
)

from assessment_engine.assessments.base.repositories import (
    AssessmentStore,
    SubmissionStore,
    SubmissionPayload,
    SubmissionResult,
    InMemoryAssessmentStore,
    InMemorySubmissionStore
)

__all__ = [
    # Models
    'Assessment',
    'BlankField',
    'FileUploadFormat',
    'FillInBlankFormat',
    'MatchingPair',
    'MediaType',
    'NumericFormat',
    'Question',
    'QuestionOption',
    'QuestionType',
    'Section',
    'TextFormat',

    # Answers
    'StudentAnswer',
    'ChoiceAnswer',
    'TrueFalseAnswer',
    'TextAnswer',
    'MatchingAnswer',
    'OrderingAnswer',
    'FillInBlankAnswer',
    'NumericAnswer',
    'FileUploadAnswer',

    # Stores
    'AssessmentStore',
    'SubmissionStore',
    'SubmissionPayload',
    'SubmissionResult',
    'InMemoryAssessmentStore',
    'InMemorySubmissionStore'
]
