"""
Assessment Delivery

The session engine: sequencing, per-type editors and policies, the answer
store, navigation, the countdown timer, the submission pipeline and the
summary view. The HTTP endpoints live in ``router`` and are mounted by
``assessment_engine.api``.
"""

from assessment_engine.assessments.delivery.answer_store import AnswerStore
from assessment_engine.assessments.delivery.editors import QuestionEditor
from assessment_engine.assessments.delivery.manager import SessionManager
from assessment_engine.assessments.delivery.navigator import Navigator
from assessment_engine.assessments.delivery.sequencer import sequence
from assessment_engine.assessments.delivery.session import AssessmentSession, SessionState
from assessment_engine.assessments.delivery.submission import (
    PipelineState,
    SubmissionOutcome,
    SubmissionPipeline,
    SubmissionTrigger
)
from assessment_engine.assessments.delivery.summary import AssessmentSummary, build_summary
from assessment_engine.assessments.delivery.timer import SessionTimer
from assessment_engine.assessments.delivery.variants import VARIANT_POLICIES, VariantPolicy, policy_for

__all__ = [
    'AnswerStore',
    'AssessmentSession',
    'AssessmentSummary',
    'Navigator',
    'PipelineState',
    'QuestionEditor',
    'SessionManager',
    'SessionState',
    'SessionTimer',
    'SubmissionOutcome',
    'SubmissionPipeline',
    'SubmissionTrigger',
    'VARIANT_POLICIES',
    'VariantPolicy',
    'build_summary',
    'policy_for',
    'sequence'
]
