"""Structured logging for the MindToss client pipeline and backend.

Events are snake_case names with keyword context (``toss_delivered``,
``relay_accepted``, ``session_issued`` ...).  Relay keys, session tokens and
password digests never reach the output: :func:`redact_secrets` masks them.
"""

from __future__ import annotations

import logging
import sys

import structlog

# Libraries whose per-request INFO lines would duplicate our own events.
QUIET_LOGGERS = ("httpx", "httpcore", "aiosqlite")

REDACTED_KEYS = frozenset({"api_key", "token", "session_token", "password_hash", "authorization"})


def redact_secrets(_logger, _method_name: str, event_dict: dict) -> dict:
    """Mask credential-bearing fields before they are rendered."""
    for key in REDACTED_KEYS & event_dict.keys():
        event_dict[key] = "***"
    return event_dict


def setup_logging(*, json: bool = True, level: str = "INFO") -> None:
    """Route structlog and stdlib logging through one stdout handler.

    Called by ``python -m mindtoss_api`` with the backend settings; an app
    embedding the client pipeline calls it once at startup.

    Parameters
    ----------
    json:
        If *True* (the default), output JSON lines.  If *False*, use a
        human-friendly console renderer.
    level:
        Root log level name (e.g. ``"DEBUG"``, ``"INFO"``).
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
