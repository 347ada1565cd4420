"""
Structured logging via structlog.

LOG_FORMAT=auto renders coloured console output in development and JSON lines
in production; "console" or "json" force one renderer. Events logged with
``exc_info`` carrying a PipelineError get its kind and stage as fields.
"""

from __future__ import annotations

import logging
import sys

import structlog

from podcaster.core.config import Settings
from podcaster.core.errors import PipelineError

# Capped at WARNING
_QUIET_LOGGERS = ("httpx", "httpcore", "openai", "pypdf", "asyncio")


def add_pipeline_error_fields(
    logger: logging.Logger, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    exc_info = event_dict.get("exc_info")
    if exc_info is True:
        exc_info = sys.exc_info()
    exc = exc_info[1] if isinstance(exc_info, tuple) else exc_info
    if isinstance(exc, PipelineError):
        event_dict.setdefault("error_kind", exc.kind.value)
        event_dict.setdefault("error_stage", exc.stage)
    return event_dict


def _use_json(settings: Settings) -> bool:
    if settings.log_format == "auto":
        return settings.app_env == "production"
    return settings.log_format == "json"


def setup_logging(settings: Settings) -> None:
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_pipeline_error_fields,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if _use_json(settings):
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
        shared_processors.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.log_level.upper())

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
