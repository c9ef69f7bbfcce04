"""
Structured logging for tagtab.

Library modules obtain loggers through :func:`get_logger` and emit snake_case
events with key/value context (``records_flushed``, ``type_registered``,
``field_count_mismatch``...). Events are handed to the standard library
logger of the emitting module, so until an application configures logging
they follow stdlib defaults: debug and info are dropped, warnings reach
stderr. Applications and the CLI call :func:`setup_logging` once.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog

from ..core.config import get_config
from ..models.enums import LogLevel

_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.StackInfoRenderer(),
    structlog.dev.set_exc_info,
    structlog.processors.TimeStamper(fmt="iso"),
]

# Handlers added to the root logger by setup_logging
_installed: list[logging.Handler] = []


def _formatter(renderer) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )


def setup_file_logging(
    log_file: Path, max_bytes: int = 10 * 1024 * 1024, backup_count: int = 5
) -> RotatingFileHandler:
    """
    Rotating handler writing one JSON object per event.

    Args:
        log_file: Destination file
        max_bytes: Size that triggers rotation
        backup_count: Rotated files kept next to ``log_file``
    """
    handler = RotatingFileHandler(
        log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
    return handler


def reset_logging() -> None:
    """Remove handlers installed by :func:`setup_logging` and restore structlog defaults."""
    root = logging.getLogger()
    while _installed:
        handler = _installed.pop()
        root.removeHandler(handler)
        handler.close()
    structlog.reset_defaults()


def setup_logging(level: LogLevel | None = None) -> None:
    """
    Configure structlog and the root logger for tagtab.

    Events are rendered on stderr by structlog's ConsoleRenderer. With
    ``log_file`` configured they also land in a rotating JSON file. Calling
    it again replaces the previous setup.

    Args:
        level: Overrides the configured ``log_level``
    """
    config = get_config()
    numeric_level = getattr(logging, (level or config.log_level).value, logging.INFO)
    reset_logging()

    console = logging.StreamHandler()
    console.setFormatter(_formatter(structlog.dev.ConsoleRenderer()))
    handlers: list[logging.Handler] = [console]
    if config.log_file is not None:
        handlers.append(
            setup_file_logging(
                config.log_file,
                max_bytes=config.log_max_bytes,
                backup_count=config.log_backup_count,
            )
        )

    root = logging.getLogger()
    for handler in handlers:
        root.addHandler(handler)
        _installed.append(handler)
    root.setLevel(numeric_level)

    structlog.configure(
        processors=_SHARED_PROCESSORS + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Structured logger backed by the stdlib logger ``name``."""
    return structlog.wrap_logger(logging.getLogger(name))
