"""Stores backed by the assessment service's HTTP API."""

from assessment_engine.assessments.providers.http_store import (
    HttpAssessmentStore,
    HttpSubmissionStore
)

__all__ = ['HttpAssessmentStore', 'HttpSubmissionStore']
