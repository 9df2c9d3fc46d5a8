"""
Common Components for the Assessment Engine

Infrastructure shared across the engine:
1. Logging - application logger, JSON formatter and session-scoped adapters
2. Configuration - pydantic-settings configuration with YAML/JSON file support
3. Error Handling - the engine's exception hierarchy and retry helper
4. Serialization - dataclass and enum conversion for API responses
5. Randomness - seeded random sources and the shuffle used for delivery
"""

# Initialize logging
from assessment_engine.common.logger import app_logger

from assessment_engine.common.config import EngineConfig, get_config, set_config

from assessment_engine.common.error_handling import AssessmentEngineError, ErrorCode

__all__ = [
    'app_logger',
    'EngineConfig',
    'get_config',
    'set_config',
    'AssessmentEngineError',
    'ErrorCode'
]
