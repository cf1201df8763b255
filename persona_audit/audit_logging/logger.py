"""
Structured logging for assessment runs.

Records go to stderr (stdout carries the CLI summary). Context is carried
through structlog.contextvars: the runner binds target_id around each target
and persona_id around each analyzer call, so anything an analyzer logs is
attributed to its pair without passing loggers around.

LOG_LEVEL (default INFO) and LOG_FORMAT ("json" by default, anything else
selects the console renderer) are read at import; configure_logging() lets
the CLI override them.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog
from structlog._config import BoundLoggerLazyProxy

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "json"


def level_value(name: str | None) -> int:
    """Numeric level for a level name; unknown names fall back to INFO."""
    value = logging.getLevelName((name or DEFAULT_LOG_LEVEL).strip().upper())
    return value if isinstance(value, int) else logging.INFO


def _rename_event(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict["event_type"] = event_dict.pop("event", None)
    return event_dict


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """(Re)configure structlog. Arguments override LOG_LEVEL / LOG_FORMAT."""
    level = level or os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL)
    fmt = (fmt or os.getenv("LOG_FORMAT", DEFAULT_LOG_FORMAT)).strip().lower()

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]
    if fmt == "json":
        processors += [_rename_event, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    # Loggers are not cached so a later configure_logging() applies to module-level loggers too
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_value(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> Any:
    """
    Module logger with logger=name bound.

        logger = get_logger(__name__)
        logger.info("runner_pair_done", persona_id="security", score=85.0)
    """
    # structlog.get_logger(name, logger=name) collides with wrap_logger's own
    # ``logger`` parameter, so build the same lazy proxy directly.
    return BoundLoggerLazyProxy(None, initial_values={"logger": name}, logger_factory_args=(name,))
