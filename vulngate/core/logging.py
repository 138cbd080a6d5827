"""Structured logging: structlog events rendered through a stdlib handler."""

from __future__ import annotations

import logging
import os
import sys

import structlog

LEVEL_ENV = "VULNGATE_LOG_LEVEL"
FORMAT_ENV = "VULNGATE_LOG_FORMAT"

# Third-party loggers held at a fixed level regardless of the gate's own level.
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "sqlalchemy.engine": logging.WARNING,
    "asyncpg": logging.WARNING,
    "httpx": logging.WARNING,
}

_HANDLER_NAME = "vulngate"


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(fmt: str) -> structlog.types.Processor:
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Route structlog and stdlib records to one stderr handler.

    *level* and *fmt* fall back to ``VULNGATE_LOG_LEVEL`` (default INFO) and
    ``VULNGATE_LOG_FORMAT`` (``console`` or ``json``, default console).
    Calling it again replaces the handler installed by the previous call.
    """
    level = (level or os.environ.get(LEVEL_ENV) or "INFO").upper()
    fmt = (fmt or os.environ.get(FORMAT_ENV) or "console").lower()
    pre_chain = _pre_chain()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # uvicorn and sqlalchemy records go through the same chain as our events
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(fmt),
            ],
        )
    )

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("vulngate").setLevel(level)
    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)
