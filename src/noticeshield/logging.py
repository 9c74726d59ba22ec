"""Structured logging for NoticeShield.

Engine modules log through :func:`get_logger`; only the CLI (or an embedding
application) calls :func:`setup_logging`. Records go to stderr so that
verdicts printed on stdout stay machine-readable.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog

from noticeshield.config import Settings, get_settings

_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.StackInfoRenderer(),
    structlog.dev.set_exc_info,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _formatter(renderer: object) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,  # type: ignore[list-item]
        ]
    )


def _file_handler(settings: Settings, level: int) -> RotatingFileHandler | None:
    """Rotating JSON file handler, or None when the log directory is unusable."""
    try:
        Path(settings.log_directory).mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            filename=settings.log_file_path,
            maxBytes=settings.log_file_max_bytes,
            backupCount=settings.log_file_backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        print(f"Warning: file logging disabled: {e}", file=sys.stderr)
        return None
    handler.setLevel(level)
    handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
    return handler


def setup_logging(settings: Settings | None = None) -> None:
    """Route structlog through stdlib handlers on stderr and, optionally, a file.

    Development environments get the colored console renderer; everything
    else is rendered as one JSON object per line.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(
        _formatter(
            structlog.dev.ConsoleRenderer(colors=True)
            if settings.is_development
            else structlog.processors.JSONRenderer()
        )
    )
    handlers: list[logging.Handler] = [console]

    if settings.log_to_file:
        file_handler = _file_handler(settings, level)
        if file_handler is not None:
            handlers.append(file_handler)

    logging.basicConfig(format="%(message)s", level=level, handlers=handlers, force=True)

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a named structlog logger."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]
