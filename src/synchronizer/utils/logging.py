"""Structured logging setup for the synchronizer."""

import functools
import logging
import logging.handlers
import sys
import time
from pathlib import Path
from typing import Optional

import colorlog
import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

from ..config.settings import get_settings


# Handlers installed by setup_logging, replaced on every call
_handlers: list[logging.Handler] = []

NOISY_LOGGERS = ("apscheduler", "aiohttp.access", "sqlalchemy.engine")


def add_service_info(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp every event with the application name and version."""
    settings = get_settings()
    event_dict.setdefault("service", settings.name)
    event_dict.setdefault("version", settings.version)
    return event_dict


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None
) -> None:
    """Configure structlog and the stdlib handlers it writes through.

    Arguments override the ``LOG_*`` settings. Calling this again replaces
    the handlers installed by the previous call.
    """
    settings = get_settings()

    level_name = (log_level or settings.logging.level).upper()
    level = getattr(logging, level_name)
    format_type = log_format or settings.logging.format
    file_path = log_file or settings.logging.file_path

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_service_info,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if format_type == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    for handler in _handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _handlers.clear()

    root_logger.setLevel(level)

    if file_path:
        _handlers.append(create_file_handler(file_path, level))
    _handlers.append(create_console_handler(level))

    for handler in _handlers:
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def create_file_handler(file_path: str, level: int) -> logging.Handler:
    """Rotating file handler; structlog has already rendered each line."""
    log_file = Path(file_path)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter("%(message)s"))

    return file_handler


def create_console_handler(level: int) -> logging.Handler:
    """Console handler colouring each line by level."""
    console_handler = colorlog.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(colorlog.ColoredFormatter(
        "%(log_color)s%(message)s",
        reset=True,
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        }
    ))

    return console_handler


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def _log_duration(func, level: str, start_time: float, error: Optional[BaseException] = None) -> None:
    logger = get_logger(func.__module__)
    execution_time = f"{time.time() - start_time:.4f}s"

    if error is None:
        getattr(logger, level)("Call completed", function=func.__qualname__, execution_time=execution_time)
    else:
        logger.error(
            "Call failed",
            function=func.__qualname__,
            execution_time=execution_time,
            error=str(error) or error.__class__.__name__
        )


def log_execution_time(func):
    """Log how long a call took, at debug level; failures at error level."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            _log_duration(func, "debug", start_time, error=e)
            raise
        _log_duration(func, "debug", start_time)
        return result

    return wrapper


def log_async_execution_time(func):
    """Log how long an awaited call took, at info level."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        start_time = time.time()
        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            _log_duration(func, "info", start_time, error=e)
            raise
        _log_duration(func, "info", start_time)
        return result

    return wrapper
