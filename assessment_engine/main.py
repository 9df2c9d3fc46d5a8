"""
Main application entry point for the assessment delivery engine.

Usage:
    - Script: python scripts/run_server.py
    - ASGI server: uvicorn assessment_engine.main:app
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from assessment_engine.api import (
    engine_exception_handler,
    register_routers,
    unhandled_exception_handler,
    validation_exception_handler,
)
from assessment_engine.assessments.base.repositories import AssessmentStore, SubmissionStore
from assessment_engine.assessments.delivery.manager import SessionManager, set_session_manager
from assessment_engine.assessments.providers.http_store import (
    HttpAssessmentStore,
    HttpSubmissionStore,
)
from assessment_engine.common.config import EngineConfig, get_config
from assessment_engine.common.error_handling import AssessmentEngineError
from assessment_engine.common.logger import APP_LOGGER_NAME, app_logger, configure_logger
from assessment_engine.config import settings

logger = app_logger.getChild("main")


def create_app(
    assessment_store: Optional[AssessmentStore] = None,
    submission_store: Optional[SubmissionStore] = None,
    config: Optional[EngineConfig] = None
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Stores default to the HTTP clients pointed at ``ASSESSMENT_API_BASE_URL``.

    Args:
        assessment_store: Source of assessment definitions
        submission_store: Destination of completed attempts
        config: Engine configuration; the process configuration when omitted
    """
    config = config or get_config()
    configure_logger(
        name=APP_LOGGER_NAME,
        level=config.logging.level,
        use_json=config.logging.use_json,
        log_file=config.logging.file_path
    )

    owned_clients = []
    if assessment_store is None or submission_store is None:
        collaborator = config.collaborator.model_copy(
            update={"base_url": settings.ASSESSMENT_API_BASE_URL}
        )
        if assessment_store is None:
            assessment_store = HttpAssessmentStore(collaborator)
            owned_clients.append(assessment_store)
        if submission_store is None:
            submission_store = HttpSubmissionStore(collaborator)
            owned_clients.append(submission_store)

    manager = SessionManager(assessment_store, submission_store, config=config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application startup")
        set_session_manager(manager)
        yield
        logger.info("Application shutdown: tearing down sessions")
        await manager.teardown_all()
        for client in owned_clients:
            await client.close()
        set_session_manager(None)

    app = FastAPI(
        title=config.app_name,
        description="Delivery engine for sectioned, timed assessments",
        version=config.version,
        docs_url=None if config.is_production else "/docs",
        redoc_url=None if config.is_production else "/redoc",
        lifespan=lifespan
    )
    app.state.session_manager = manager

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(register_routers(), prefix=config.api.prefix)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(AssessmentEngineError, engine_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/health")
    async def health():
        return {"status": "ok", "sessions": len(manager)}

    logger.info(f"Application created with {len(app.routes)} routes")
    return app


app = create_app()
