"""Structured logging configuration with structlog.

Application code logs key-value events through ``get_logger(__name__)``.
Library loggers (uvicorn, httpx, apscheduler, asyncpg) stay on the standard
library and are routed to the same stream.
"""

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from stockpulse.config import Settings

# Library loggers that are too chatty at INFO (httpx logs every feed request)
QUIET_LOGGERS = ("httpx", "httpcore", "apscheduler.executors.default")


def _processors(json_output: bool) -> list[structlog.types.Processor]:
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return processors


def setup_logging(settings: "Settings") -> None:
    """Configure structlog and stdlib logging for the application.

    Development gets a console renderer; staging and production emit one JSON
    object per line.
    """
    level = getattr(logging, settings.log_level)

    structlog.configure(
        processors=_processors(json_output=settings.env != "development"),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


@contextmanager
def pipeline_run_context(day: date) -> Iterator[str]:
    """Tag every event logged during one pipeline run with its id and date."""
    run_id = uuid.uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(run_id=run_id, run_date=day.isoformat()):
        yield run_id


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
