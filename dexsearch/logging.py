"""Structured logging helpers.

Context bound with :func:`bind_chat` (the chat id of the update being handled)
is merged into every event logged in that context, including searches the
debouncer starts later from it.
"""

from __future__ import annotations

import logging

import structlog


def configure_logging(level: int | str = logging.INFO) -> None:
    if isinstance(level, str):
        name = level
        level = logging.getLevelName(name.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {name}")
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler()],
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_chat(chat_id: int):
    """Context manager tagging log events with the chat being served."""

    return structlog.contextvars.bound_contextvars(chat_id=chat_id)


logger = structlog.get_logger()

__all__ = ["bind_chat", "configure_logging", "logger"]
