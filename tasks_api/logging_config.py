"""
Logging configuration module.

Console output plus an optional rotating log file. Records carry the task
being worked on (``task_context``) so a request's log lines can be tied to the
task id and title without repeating them in every message.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path

from tasks_api.config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s [%(task_context)s]"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_task_context: ContextVar[dict[str, str]] = ContextVar("task_context")


class TaskContextFilter(logging.Filter):
    """Attach the active task context to each record as ``task_context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = _task_context.get({})
        record.task_context = " ".join(f"{k}={v}" for k, v in ctx.items()) or "-"
        return True


@contextmanager
def task_context(**values: object) -> Iterator[None]:
    """Add ``values`` to the log context for the duration of the block."""
    merged = {**_task_context.get({}), **{k: str(v) for k, v in values.items() if v is not None}}
    token = _task_context.set(merged)
    try:
        yield
    finally:
        _task_context.reset(token)


def current_task_context() -> dict[str, str]:
    return dict(_task_context.get({}))


def setup_logging(settings: Settings) -> logging.Logger:
    """
    Configure the root logger from ``settings``.

    - Console handler on stdout at the configured level
    - Rotating file handler when ``log_file`` is set
    - Existing handlers are replaced, so calling this twice does not duplicate output
    """
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    context_filter = TaskContextFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(context_filter)
    logger.addHandler(console_handler)

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(context_filter)
        logger.addHandler(file_handler)

    logger.info("Logging configured level=%s file=%s", settings.log_level, settings.log_file or "-")
    return logger


def get_logger(name: str = __name__) -> logging.Logger:
    return logging.getLogger(name)
