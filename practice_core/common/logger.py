"""
Package Logger

Handlers for the ``practice_core`` logger tree. Modules take a child of
``app_logger``; components bound to a storage namespace wrap theirs in a
``LoggerAdapter`` so every record carries that namespace.
"""

import os
import sys
import json
import time
import logging
import datetime
import functools
from typing import Any, Callable, Dict, Optional, TypeVar, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-40s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Root of the package logger tree
APP_LOGGER_NAME = "practice_core"

F = TypeVar('F', bound=Callable[..., Any])

__all__ = [
    'APP_LOGGER_NAME',
    'JsonFormatter',
    'LoggerAdapter',
    'configure_logger',
    'app_logger',
    'log_execution_time'
]


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record.

    Adapter context (the ``context`` extra) is emitted under its own key.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "time": datetime.datetime.fromtimestamp(
                record.created, tz=datetime.timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context:
            payload["context"] = context

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def configure_logger(
    name: str = APP_LOGGER_NAME,
    level: Union[str, int] = logging.WARNING,
    use_json: bool = False,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Replace the handlers of a logger.

    Records always go to stderr; ``log_file`` adds a file handler with the
    same formatter.

    Args:
        name: Logger name
        level: Level name or number
        use_json: Emit JSON instead of the plain line format
        log_file: Optional path of a log file

    Returns:
        The configured logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers = []

    formatter = JsonFormatter() if use_json else logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


class LoggerAdapter(logging.LoggerAdapter):
    """Attaches a fixed context mapping to every record."""

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        super().__init__(logger, dict(context or {}))

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = dict(kwargs.get("extra") or {})
        merged = dict(self.extra)
        merged.update(extra.get("context") or {})
        extra["context"] = merged
        kwargs["extra"] = extra
        return msg, kwargs


def get_app_logger() -> logging.Logger:
    """Package logger, configured from LOG_LEVEL, LOG_JSON and LOG_FILE on first use."""
    logger = logging.getLogger(APP_LOGGER_NAME)
    if logger.handlers:
        return logger

    return configure_logger(
        level=os.environ.get("LOG_LEVEL", "WARNING"),
        use_json=os.environ.get("LOG_JSON", "false").lower() == "true",
        log_file=os.environ.get("LOG_FILE")
    )


app_logger = get_app_logger()


def log_execution_time(logger: Optional[logging.Logger] = None) -> Callable[[F], F]:
    """
    Log how long each call of the decorated function takes.

    Successful calls are logged at debug level, failures at error level
    before the exception propagates.
    """
    target = logger or app_logger

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = (time.perf_counter() - started) * 1000
                target.error(f"{func.__name__} failed after {elapsed:.2f} ms: {e}")
                raise
            elapsed = (time.perf_counter() - started) * 1000
            target.debug(f"{func.__name__} took {elapsed:.2f} ms")
            return result

        return wrapper
    return decorator
