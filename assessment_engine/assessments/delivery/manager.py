"""
Session Manager

Registry of live assessment sessions served by the HTTP API.
"""

import random
from collections import OrderedDict
from typing import Callable, List, Optional

from assessment_engine.assessments.base.repositories import AssessmentStore, SubmissionStore
from assessment_engine.assessments.delivery.session import AssessmentSession
from assessment_engine.common.config import EngineConfig, get_config
from assessment_engine.common.error_handling import SessionNotFoundError
from assessment_engine.common.logger import app_logger, log_execution_time

logger = app_logger.getChild("manager")


class SessionManager:
    """
    Creates sessions from the assessment store and keeps them until they are
    deleted. When ``max_sessions`` is reached the oldest session is torn down
    to make room.

    Args:
        assessment_store: Source of assessment definitions
        submission_store: Destination of completed attempts
        config: Engine configuration; the process configuration when omitted
        rng_factory: Builds the random source of each new session
    """

    def __init__(
        self,
        assessment_store: AssessmentStore,
        submission_store: SubmissionStore,
        config: Optional[EngineConfig] = None,
        rng_factory: Optional[Callable[[], random.Random]] = None
    ):
        self.assessment_store = assessment_store
        self.submission_store = submission_store
        self.config = config or get_config()
        self._rng_factory = rng_factory
        self._sessions: "OrderedDict[str, AssessmentSession]" = OrderedDict()

    @log_execution_time(logger)
    async def create(self, assessment_id: str, preview: bool = False) -> AssessmentSession:
        """
        Load an assessment and start a session on it.

        Raises:
            LoadError: If the assessment cannot be loaded
        """
        session = await AssessmentSession.load(
            self.assessment_store,
            assessment_id,
            self.submission_store,
            is_preview=preview,
            rng=self._rng_factory() if self._rng_factory else None,
            config=self.config
        )

        while len(self._sessions) >= self.config.api.max_sessions:
            oldest_id = next(iter(self._sessions))
            logger.warning(f"Session limit reached, evicting session {oldest_id}")
            await self.remove(oldest_id)

        self._sessions[session.id] = session
        session.start()
        logger.info(f"Opened session {session.id} for assessment {assessment_id}")
        return session

    def get(self, session_id: str) -> AssessmentSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def remove(self, session_id: str) -> None:
        """
        Tear down and forget a session. Nothing is submitted.

        Raises:
            SessionNotFoundError: If no such session exists
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        await session.teardown()

    async def teardown_all(self) -> None:
        for session_id in list(self._sessions):
            await self.remove(session_id)

    def session_ids(self) -> List[str]:
        return list(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)


_session_manager: Optional[SessionManager] = None


def set_session_manager(manager: Optional[SessionManager]) -> None:
    global _session_manager
    _session_manager = manager


def get_session_manager() -> SessionManager:
    """FastAPI dependency returning the process session manager."""
    if _session_manager is None:
        raise RuntimeError("Session manager has not been initialized")
    return _session_manager
