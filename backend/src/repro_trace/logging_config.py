"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging.config
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Optional

import structlog

_CONFIGURED = False


def get_correlation_id() -> Optional[str]:
    """Get current correlation_id from contextvars."""
    try:
        ctx = structlog.contextvars.get_contextvars()
        return ctx.get("correlation_id")
    except (TypeError, AttributeError):
        return None


def set_correlation_id(correlation_id: Optional[str]) -> None:
    """Set correlation_id for current context using structlog contextvars."""
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_correlation_id() -> None:
    """Clear correlation_id from context."""
    structlog.contextvars.unbind_contextvars("correlation_id")


@contextmanager
def call_context(**values: Any) -> Iterator[None]:
    """Bind values (trace_id, request_id, ...) for the duration of one call."""
    tokens = structlog.contextvars.bind_contextvars(**values)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)


def configure_logging(log_level: str = "INFO", stream: str = "ext://sys.stderr") -> None:
    """
    Configure structlog with JSON output. Idempotent - safe to call multiple times.

    Logs go to stderr by default so CLI output on stdout stays machine-readable.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: logging stream reference for the console handler
    """
    global _CONFIGURED

    if _CONFIGURED:
        return

    level_num = getattr(logging, log_level.upper())

    shared_processors: list[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", key="ts"),
        structlog.processors.dict_tracebacks,
    ]

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processor": structlog.processors.JSONRenderer(),
                    "foreign_pre_chain": shared_processors,
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                    "stream": stream,
                },
            },
            "root": {
                "level": log_level.upper(),
                "handlers": ["console"],
            },
            "loggers": {
                "repro_trace": {
                    "level": log_level.upper(),
                    "propagate": False,
                    "handlers": ["console"],
                },
                # The OpenAI SDK logs every HTTP request at INFO.
                "openai": {"level": "WARNING"},
                "httpx": {"level": "WARNING"},
            },
        }
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_num),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    _CONFIGURED = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger instance."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]
