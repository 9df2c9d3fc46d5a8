"""
Central API router and utilities for the assessment delivery engine.

This module provides:
- The central router that includes the session endpoints
- The standard response envelope
- Exception handlers mapping engine errors to HTTP responses
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from assessment_engine.common.error_handling import (
    AnswerTypeMismatchError,
    AssessmentEngineError,
    CollaboratorError,
    InvalidLocalInputError,
    LoadError,
    QuestionNotFoundError,
    SessionCompletedError,
    SessionNotFoundError,
    SubmissionInProgressError,
    SubmissionRejectedError,
    ValidationBlockedError,
    error_response,
    log_error,
)

logger = logging.getLogger(__name__)

API_VERSION = "v1"

main_router = APIRouter()

_STATUS_BY_ERROR = [
    (SessionNotFoundError, status.HTTP_404_NOT_FOUND),
    (QuestionNotFoundError, status.HTTP_404_NOT_FOUND),
    (SubmissionInProgressError, status.HTTP_409_CONFLICT),
    (SessionCompletedError, status.HTTP_409_CONFLICT),
    (ValidationBlockedError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidLocalInputError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (AnswerTypeMismatchError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (SubmissionRejectedError, status.HTTP_502_BAD_GATEWAY),
    (CollaboratorError, status.HTTP_502_BAD_GATEWAY),
]


def status_for(error: AssessmentEngineError) -> int:
    """HTTP status code for an engine error."""
    if isinstance(error, LoadError):
        if error.details.get("status_code") == 404:
            return status.HTTP_404_NOT_FOUND
        return status.HTTP_502_BAD_GATEWAY
    for error_cls, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_cls):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


class APIResponse:
    """Standard API response structure"""

    @staticmethod
    def success(data: Any = None, message: str = "Success") -> Dict[str, Any]:
        return {
            "status": "success",
            "message": message,
            "data": data
        }

    @staticmethod
    def error(message: str, details: Optional[Any] = None, code: Optional[str] = None) -> Dict[str, Any]:
        response = {
            "status": "error",
            "message": message
        }
        if details:
            response["details"] = details
        if code:
            response["code"] = code
        return response


async def engine_exception_handler(request: Request, exc: AssessmentEngineError) -> JSONResponse:
    """
    Convert an engine error into the standard error body.

    Args:
        request: The incoming request
        exc: The engine error
    """
    status_code = status_for(exc)
    level = logging.ERROR if status_code >= 500 else logging.INFO
    log_error(exc, level=level, context={"path": request.url.path}, log=logger)
    return JSONResponse(status_code=status_code, content=error_response(exc))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log_error(exc, include_stack_trace=True, context={"path": request.url.path}, log=logger)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=APIResponse.error("An unexpected error occurred", code="unknown_error")
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle request validation errors and return a standardized response.

    Args:
        request: The incoming request
        exc: The validation exception
    """
    error_details = []
    for error in exc.errors():
        error_details.append({
            "location": list(error.get("loc", [])),
            "message": error.get("msg", "Unknown validation error"),
            "type": error.get("type", "")
        })

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=APIResponse.error("Validation error", details=error_details, code="request_validation")
    )


def register_routers() -> APIRouter:
    """Include the session endpoints in the main router."""
    from assessment_engine.assessments.delivery.router import router as session_router

    if not any(getattr(r, "path", "").startswith(f"/{API_VERSION}/sessions") for r in main_router.routes):
        main_router.include_router(session_router, prefix=f"/{API_VERSION}/sessions", tags=["sessions"])
        logger.info(f"Registered session routes: {len(session_router.routes)}")
    return main_router
