"""Structured logging setup (structlog on top of the stdlib logging module)."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Optional

import structlog


def setup_stdlib_logging(level: str = "INFO", file_path: Optional[str] = None,
                         max_bytes: int = 10485760, backup_count: int = 5) -> None:
    """Route stdlib records to stdout and, when configured, a rotating file."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if file_path:
        log_path = Path(file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        root_logger.addHandler(file_handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)


def setup_structlog(fmt: str = "json") -> None:
    """Configure structlog processors; json for production, console otherwise."""
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.contextvars.merge_contextvars,
    ]

    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(settings: Any) -> None:
    """Configure all logging from a LoggingSettings section."""
    setup_stdlib_logging(
        level=settings.level.upper(),
        file_path=settings.file_path,
        max_bytes=settings.max_bytes,
        backup_count=settings.backup_count,
    )
    setup_structlog(settings.format)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance bound to a module name."""
    return structlog.get_logger(name)
