"""
Engine Logger

Logging setup for the assessment engine: a configurable application logger,
an optional JSON formatter for log shippers, and an adapter that stamps every
record with session context (assessment and session identifiers).
"""

import os
import sys
import json
import time
import logging
import datetime
import functools
import asyncio
from typing import Dict, Any, Optional, Union, Callable, TypeVar

DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-40s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

APP_LOGGER_NAME = "assessment_engine"

F = TypeVar('F', bound=Callable[..., Any])

__all__ = [
    'configure_logger',
    'get_logger',
    'LoggerAdapter',
    'JsonFormatter',
    'session_logger',
    'app_logger',
    'log_execution_time'
]


class JsonFormatter(logging.Formatter):
    """
    Formatter that renders each record as a single JSON object.

    Context attached through ``LoggerAdapter`` (the ``data`` extra) is merged
    into the top level of the object.
    """

    def __init__(self, *, indent: Optional[int] = None):
        super().__init__()
        self.indent = indent

    def format(self, record: logging.LogRecord) -> str:
        log_object = {
            "timestamp": datetime.datetime.fromtimestamp(record.created).isoformat(),
            "name": record.name,
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno
        }

        if record.exc_info:
            log_object["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info)
            }

        if hasattr(record, 'data') and isinstance(record.data, dict):
            log_object.update(record.data)

        return json.dumps(log_object, indent=self.indent, default=str)


def configure_logger(
    name: str = APP_LOGGER_NAME,
    level: Union[str, int] = logging.INFO,
    format_string: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    use_json: bool = False,
    log_file: Optional[str] = None,
    console_output: bool = True
) -> logging.Logger:
    """
    Configure a logger with console and/or file handlers.

    Args:
        name: Logger name
        level: Log level (name or number)
        format_string: Format used by the plain-text formatter
        date_format: Date format used by the plain-text formatter
        use_json: Emit JSON records instead of plain text
        log_file: Optional path of a log file
        console_output: Whether to log to stdout

    Returns:
        The configured logger
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers = []

    if use_json:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(format_string, date_format)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        try:
            directory = os.path.dirname(log_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except (FileNotFoundError, PermissionError) as e:
            logger.warning(f"Could not create log file {log_file}: {e}")

    return logger


def get_logger(name: str, parent: Optional[logging.Logger] = None) -> logging.Logger:
    """Return ``parent.getChild(name)`` when a parent is given, else ``logging.getLogger(name)``."""
    if parent:
        return parent.getChild(name)
    return logging.getLogger(name)


class LoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that carries a context dictionary.

    The context is attached to each record under the ``data`` extra so that
    ``JsonFormatter`` can flatten it, and is appended to plain-text messages.
    """

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        super().__init__(logger, context or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        kwargs = kwargs.copy()
        extra = kwargs.get('extra') or {}
        kwargs['extra'] = extra

        data = extra.get('data') or {}
        extra['data'] = data
        if self.extra:
            data.update(self.extra)
            context_str = " ".join(f"{k}={v}" for k, v in self.extra.items())
            msg = f"{msg} [{context_str}]"

        return msg, kwargs

    def with_context(self, **context) -> 'LoggerAdapter':
        """Return a new adapter with ``context`` merged into this one's."""
        new_context = dict(self.extra)
        new_context.update(context)
        return LoggerAdapter(self.logger, new_context)


def session_logger(
    component: str,
    session_id: Optional[str] = None,
    assessment_id: Optional[str] = None
) -> LoggerAdapter:
    """
    Build an adapter for a delivery component bound to one session.

    Args:
        component: Child logger name under the application logger
        session_id: Session identifier, if known
        assessment_id: Assessment identifier, if known
    """
    context = {}
    if session_id:
        context["session_id"] = session_id
    if assessment_id:
        context["assessment_id"] = assessment_id
    return LoggerAdapter(app_logger.getChild(component), context)


def get_app_logger() -> logging.Logger:
    """Return the application logger, configuring it from the environment on first use."""
    logger = logging.getLogger(APP_LOGGER_NAME)

    if not logger.handlers:
        return configure_logger(
            name=APP_LOGGER_NAME,
            level=os.environ.get("LOG_LEVEL", "INFO"),
            use_json=os.environ.get("LOG_JSON", "false").lower() == "true",
            log_file=os.environ.get("LOG_FILE"),
            console_output=True
        )

    return logger


app_logger = get_app_logger()


def log_execution_time(logger: Optional[logging.Logger] = None) -> Callable[[F], F]:
    """
    Decorator that logs how long a function or coroutine took.

    Successful calls are logged at DEBUG, failures at ERROR before re-raising.
    """
    def decorator(func: F) -> F:
        def _log(outcome: str, started: float, level: int) -> None:
            elapsed = time.time() - started
            (logger or get_app_logger()).log(
                level, f"{func.__qualname__} {outcome} after {elapsed:.3f}s"
            )

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _log(f"failed ({type(e).__name__})", started, logging.ERROR)
                raise
            _log("completed", started, logging.DEBUG)
            return result

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.time()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _log(f"failed ({type(e).__name__})", started, logging.ERROR)
                raise
            _log("completed", started, logging.DEBUG)
            return result

        return async_wrapper if asyncio.iscoroutinefunction(func) else wrapper
    return decorator
