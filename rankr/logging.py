"""structlog setup for rankr.

Events are snake_case names with keyword context (``vote_recorded``,
``snapshot_applied``, ``mutation_failed`` ...). Embedded in a service they are
emitted as JSON lines; in the voting console they are pretty-printed to
stderr so they do not interleave with the match panels on stdout.

Call ``configure_logging`` once from the entry point. The voter uid and the
collection path are bound once per session with ``bind_session_context`` and
then appear on every event of that session.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars
from structlog.processors import (
    JSONRenderer,
    StackInfoRenderer,
    TimeStamper,
    add_log_level,
    format_exc_info,
)


def _resolve_level(log_level: str) -> int:
    # Unknown names (e.g. a typo in LOG_LEVEL) fall back to INFO
    return getattr(logging, log_level.upper(), logging.INFO)


def configure_logging(cli_mode: bool = False, log_level: str = "INFO") -> None:
    """Install the rankr processor chain.

    Args:
        cli_mode: Pretty console output on stderr for ``python -m rankr``;
                  otherwise one JSON object per event on stdout.
        log_level: Minimum level name, as read from LOG_LEVEL
    """
    processors = [
        merge_contextvars,
        add_log_level,
        TimeStamper(fmt="iso"),
        StackInfoRenderer(),
        format_exc_info,
    ]

    if cli_mode:
        from structlog.dev import ConsoleRenderer
        processors.append(ConsoleRenderer(colors=True))
        logger_factory = structlog.PrintLoggerFactory(file=sys.stderr)
    else:
        processors.append(JSONRenderer())
        logger_factory = structlog.PrintLoggerFactory()

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_resolve_level(log_level)),
        context_class=dict,
        logger_factory=logger_factory,
        cache_logger_on_first_use=True,
    )


def bind_session_context(**values: Any) -> None:
    """Replace the per-session context (uid, collection) with ``values``."""
    clear_contextvars()
    bind_contextvars(**values)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Return the module logger for ``name`` (usually ``__name__``)."""
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()
