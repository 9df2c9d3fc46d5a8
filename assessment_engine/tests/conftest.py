"""Shared fixtures for the assessment engine tests."""

import random

import pytest

from assessment_engine.assessments.base.repositories import (
    InMemoryAssessmentStore,
    InMemorySubmissionStore,
)
from assessment_engine.common.config import EngineConfig, TimerConfig, get_config, set_config
from assessment_engine.tests.helpers import assessment_payload, single_choice_assessment


@pytest.fixture
def engine_config():
    """Process configuration with a fast timer, restored afterwards."""
    previous = get_config()
    config = EngineConfig(timer=TimerConfig(tick_interval_seconds=0.01))
    set_config(config)
    yield config
    set_config(previous)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def submission_store():
    return InMemorySubmissionStore()


@pytest.fixture
def assessment_store():
    return InMemoryAssessmentStore([
        assessment_payload(),
        single_choice_assessment(3)
    ])
