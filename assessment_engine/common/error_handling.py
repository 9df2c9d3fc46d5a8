"""
Error Handling for the Assessment Engine

This module provides:
1. The exception hierarchy raised by the delivery engine
2. Structured error information for logging and API responses
3. A retry decorator with exponential backoff for idempotent collaborator calls
"""

import time
import logging
import traceback
import asyncio
import random
import functools
import json
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type, TypeVar, Union, cast
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar('T')
F = TypeVar('F', bound=Callable)

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for errors"""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCode(Enum):
    """Error codes surfaced by the engine"""
    UNKNOWN_ERROR = "unknown_error"

    # Session lifecycle
    LOAD_ERROR = "load_error"
    SESSION_NOT_FOUND = "session_not_found"
    SESSION_COMPLETED = "session_completed"

    # Submission
    VALIDATION_BLOCKED = "validation_blocked"
    SUBMISSION_REJECTED = "submission_rejected"
    SUBMISSION_IN_PROGRESS = "submission_in_progress"

    # Answers
    INVALID_LOCAL_INPUT = "invalid_local_input"
    ANSWER_TYPE_MISMATCH = "answer_type_mismatch"
    QUESTION_NOT_FOUND = "question_not_found"

    # Collaborators
    COLLABORATOR_ERROR = "collaborator_error"


class ErrorInfo(BaseModel):
    """Structured information about an error"""
    model_config = ConfigDict(use_enum_values=True)

    code: ErrorCode
    message: str
    timestamp: datetime = Field(default_factory=datetime.now)
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Optional[Dict[str, Any]] = None
    exception_type: Optional[str] = None
    stack_trace: Optional[List[str]] = None
    context: Optional[Dict[str, Any]] = None

    @field_validator('stack_trace', mode='before')
    @classmethod
    def split_stack_trace(cls, v):
        if isinstance(v, str):
            return v.splitlines()
        return v


class AssessmentEngineError(Exception):
    """Base exception class for all engine errors"""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.severity = severity
        self.details = details or {}
        self.cause = cause
        self.context = context or {}
        self.timestamp = datetime.now()

    @property
    def recoverable(self) -> bool:
        """Whether the session stays alive after this error."""
        return True

    def to_error_info(self, include_stack_trace: bool = False) -> ErrorInfo:
        details = dict(self.details)
        if self.cause is not None:
            details["cause"] = {
                "type": type(self.cause).__name__,
                "message": str(self.cause)
            }

        return ErrorInfo(
            code=self.code,
            message=self.message,
            timestamp=self.timestamp,
            severity=self.severity,
            details=details,
            exception_type=type(self).__name__,
            stack_trace=traceback.format_exc() if include_stack_trace else None,
            context=self.context
        )

    def to_dict(self, include_stack_trace: bool = False) -> Dict[str, Any]:
        return self.to_error_info(include_stack_trace).model_dump(mode="json")

    def to_json(self, include_stack_trace: bool = False) -> str:
        return json.dumps(self.to_dict(include_stack_trace))

    def __str__(self) -> str:
        base_str = f"{self.code.value}: {self.message}"
        if self.details:
            base_str += f" (details: {self.details})"
        if self.cause:
            base_str += f" caused by {type(self.cause).__name__}: {self.cause}"
        return base_str


class LoadError(AssessmentEngineError):
    """The assessment could not be fetched or was malformed. Fatal to the session."""

    def __init__(
        self,
        assessment_id: str,
        reason: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        details = details or {}
        details["assessment_id"] = assessment_id
        super().__init__(
            message=f"Failed to load assessment {assessment_id}: {reason}",
            code=ErrorCode.LOAD_ERROR,
            severity=ErrorSeverity.ERROR,
            details=details,
            cause=cause
        )
        self.assessment_id = assessment_id

    @property
    def recoverable(self) -> bool:
        return False


class ValidationBlockedError(AssessmentEngineError):
    """Required questions are unanswered at submit time."""

    def __init__(self, question_ids: Sequence[str], focus_index: Optional[int] = None):
        details = {
            "missing_count": len(question_ids),
            "question_ids": list(question_ids),
        }
        if focus_index is not None:
            details["focus_index"] = focus_index
        super().__init__(
            message=(
                "Please answer all required questions before submitting "
                f"({len(question_ids)} remaining)"
            ),
            code=ErrorCode.VALIDATION_BLOCKED,
            severity=ErrorSeverity.WARNING,
            details=details
        )
        self.question_ids = list(question_ids)
        self.focus_index = focus_index

    @property
    def missing_count(self) -> int:
        return len(self.question_ids)


class SubmissionRejectedError(AssessmentEngineError):
    """The submission store returned a non-success response. Retryable."""

    def __init__(
        self,
        assessment_id: str,
        reason: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None
    ):
        details = {"assessment_id": assessment_id}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            message=f"Failed to submit assessment {assessment_id}: {reason}",
            code=ErrorCode.SUBMISSION_REJECTED,
            severity=ErrorSeverity.ERROR,
            details=details,
            cause=cause
        )
        self.assessment_id = assessment_id
        self.status_code = status_code

    @property
    def already_submitted(self) -> bool:
        return self.status_code == 409


class SubmissionInProgressError(AssessmentEngineError):
    """A submit was attempted while another one is in flight."""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Session {session_id} already has a submission in flight",
            code=ErrorCode.SUBMISSION_IN_PROGRESS,
            severity=ErrorSeverity.WARNING,
            details={"session_id": session_id}
        )


class SessionCompletedError(AssessmentEngineError):
    """The session is completed; no further mutation is allowed."""

    def __init__(self, session_id: str, action: str):
        super().__init__(
            message=f"Cannot {action}: session {session_id} is completed",
            code=ErrorCode.SESSION_COMPLETED,
            severity=ErrorSeverity.WARNING,
            details={"session_id": session_id, "action": action}
        )


class InvalidLocalInputError(AssessmentEngineError):
    """An editor rejected user input before it reached the answer store."""

    def __init__(
        self,
        question_id: str,
        reason: str,
        details: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["question_id"] = question_id
        super().__init__(
            message=reason,
            code=ErrorCode.INVALID_LOCAL_INPUT,
            severity=ErrorSeverity.INFO,
            details=details
        )
        self.question_id = question_id
        self.reason = reason


class AnswerTypeMismatchError(AssessmentEngineError):
    """An answer's discriminator does not match its question's type."""

    def __init__(self, question_id: str, expected: str, actual: str):
        super().__init__(
            message=f"Question {question_id} expects a {expected} answer, got {actual}",
            code=ErrorCode.ANSWER_TYPE_MISMATCH,
            severity=ErrorSeverity.ERROR,
            details={"question_id": question_id, "expected": expected, "actual": actual}
        )


class QuestionNotFoundError(AssessmentEngineError):
    """The question is not part of the session's sequence."""

    def __init__(self, question_id: str):
        super().__init__(
            message=f"Question with ID {question_id} not found",
            code=ErrorCode.QUESTION_NOT_FOUND,
            severity=ErrorSeverity.WARNING,
            details={"question_id": question_id}
        )


class SessionNotFoundError(AssessmentEngineError):
    """No live session has the given identifier."""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Session with ID {session_id} not found",
            code=ErrorCode.SESSION_NOT_FOUND,
            severity=ErrorSeverity.WARNING,
            details={"session_id": session_id}
        )


class CollaboratorError(AssessmentEngineError):
    """A transport-level failure talking to a collaborator service."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None
    ):
        details = {}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            message=message,
            code=ErrorCode.COLLABORATOR_ERROR,
            severity=ErrorSeverity.ERROR,
            details=details,
            cause=cause
        )
        self.status_code = status_code


def convert_exception(
    exception: Exception,
    default_message: str = "An unexpected error occurred",
    default_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
    context: Optional[Dict[str, Any]] = None
) -> AssessmentEngineError:
    """
    Wrap an arbitrary exception as an ``AssessmentEngineError``.

    Engine errors are returned as-is, with ``context`` merged in.
    """
    if isinstance(exception, AssessmentEngineError):
        if context:
            exception.context.update(context)
        return exception

    return AssessmentEngineError(
        message=str(exception) or default_message,
        code=default_code,
        severity=ErrorSeverity.ERROR,
        cause=exception,
        context=context
    )


def retry(
    max_retries: int = 3,
    retry_delay: float = 1.0,
    backoff_factor: float = 2.0,
    jitter: float = 0.1,
    retry_exceptions: Tuple[Type[Exception], ...] = (Exception,),
    ignore_exceptions: Tuple[Type[Exception], ...] = (),
    on_retry: Optional[Callable[[int, Exception, float], None]] = None
):
    """
    Decorator for retrying a function or coroutine when it raises.

    Only apply to idempotent operations.

    Args:
        max_retries: Maximum number of retries
        retry_delay: Initial delay between retries in seconds
        backoff_factor: Factor to increase delay with each retry
        jitter: Random jitter factor to add to delay
        retry_exceptions: Exception types that trigger a retry
        ignore_exceptions: Exception types that are re-raised immediately
        on_retry: Optional callback called before each retry
    """
    def next_delay(retries: int, delay: float, func: Callable, e: Exception) -> float:
        actual_delay = delay * (1 + random.uniform(-jitter, jitter))
        if on_retry:
            on_retry(retries, e, actual_delay)
        logger.warning(
            f"Retry {retries}/{max_retries} for {func.__name__} "
            f"after {actual_delay:.2f}s due to {type(e).__name__}: {e}"
        )
        return actual_delay

    def decorator(func: F) -> F:
        if asyncio.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                retries = 0
                delay = retry_delay
                while True:
                    try:
                        return await func(*args, **kwargs)
                    except ignore_exceptions:
                        raise
                    except retry_exceptions as e:
                        retries += 1
                        if retries > max_retries:
                            raise
                        await asyncio.sleep(next_delay(retries, delay, func, e))
                        delay *= backoff_factor

            return cast(F, async_wrapper)

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            retries = 0
            delay = retry_delay
            while True:
                try:
                    return func(*args, **kwargs)
                except ignore_exceptions:
                    raise
                except retry_exceptions as e:
                    retries += 1
                    if retries > max_retries:
                        raise
                    time.sleep(next_delay(retries, delay, func, e))
                    delay *= backoff_factor

        return cast(F, sync_wrapper)

    return decorator


def error_response(
    error: Union[AssessmentEngineError, Exception],
    include_details: bool = True
) -> Dict[str, Any]:
    """
    Build the standard API error body for an exception.

    Returns:
        ``{"status": "error", "code": ..., "message": ..., "details": ...}``
    """
    if not isinstance(error, AssessmentEngineError):
        error = convert_exception(error)

    error_info = error.to_error_info()
    response = {
        "status": "error",
        "code": error_info.code,
        "message": error_info.message
    }
    if include_details and error_info.details:
        response["details"] = error_info.details

    return response


def log_error(
    error: Union[AssessmentEngineError, Exception],
    level: int = logging.ERROR,
    include_stack_trace: bool = False,
    context: Optional[Dict[str, Any]] = None,
    log: Optional[logging.Logger] = None
) -> None:
    """Log an error with its code, context and cause on one line."""
    if not isinstance(error, AssessmentEngineError):
        error = convert_exception(error, context=context)
    elif context:
        error.context.update(context)

    message = f"ERROR [{error.code.value}]: {error.message}"
    if error.context:
        context_str = ", ".join(f"{k}={v}" for k, v in error.context.items())
        message += f" (context: {context_str})"
    if error.cause:
        message += f" caused by {type(error.cause).__name__}: {error.cause}"

    (log or logger).log(level, message, exc_info=include_stack_trace)
