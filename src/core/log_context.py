"""Structured logging setup and scoped logging context.

Uses structlog's ProcessorFormatter so plain ``logging.getLogger(__name__)``
call sites get structured output. Fields bound with :func:`log_context`
(request id, user id, operation) are attached to every record emitted
inside the block.
"""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

_NOISE_LOGGERS = (
    "uvicorn.access",
    "httpx",
    "httpcore",
)

_SECRET_PATTERN = re.compile(
    r"(?i)\b(access_token|id_token|refresh_token|client_secret|token)"
    r"(['\"]?\s*[:=]\s*['\"]?)([^\s,;&'\"]+)"
)
_BEARER_PATTERN = re.compile(r"(?i)\bBearer\s+[A-Za-z0-9._~+/=-]+")


def _build_processors(time_fmt: str) -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt=time_fmt),
        structlog.stdlib.ExtraAdder(),
    ]


def configure_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Configure process-wide logging.

    ``fmt`` is ``"text"`` for console output or ``"json"`` for JSON lines.
    """
    if fmt == "json":
        processors = _build_processors(time_fmt="iso")
        renderer = structlog.processors.JSONRenderer()
    else:
        processors = _build_processors(time_fmt="%H:%M:%S")
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _NOISE_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def log_context(**fields) -> Iterator[None]:
    """Bind ``fields`` to every log record emitted inside the block."""
    bound = {key: value for key, value in fields.items() if value is not None}
    with structlog.contextvars.bound_contextvars(**bound):
        yield


def bind_log_context(**fields) -> None:
    """Bind fields for the rest of the current context (e.g. once the user is known)."""
    structlog.contextvars.bind_contextvars(
        **{key: value for key, value in fields.items() if value is not None}
    )


def redact(message: str) -> str:
    """Mask token-like values in text that may be logged or returned."""
    redacted = _BEARER_PATTERN.sub("Bearer [REDACTED]", message)
    return _SECRET_PATTERN.sub(r"\1\2[REDACTED]", redacted)
