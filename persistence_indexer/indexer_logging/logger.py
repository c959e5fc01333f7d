"""
Structured logging for the indexer.

Every record carries event_type, level, an ISO-8601 UTC timestamp and the
logger name; handler records also carry block_height, tx_hash and chain_id,
bound once per transaction by the dispatcher (bind_block_context).

LOG_LEVEL and LOG_FORMAT (json | console) are read from the environment after
loading .env with python-dotenv. This module imports nothing from
persistence_indexer, so any module can import it first.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog
from dotenv import load_dotenv

load_dotenv(override=False)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()


def _event_type(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Store the structlog event name under event_type, mirrored to message."""
    name = event_dict.pop("event", None)
    if name is not None:
        event_dict.setdefault("event_type", name)
    if "event_type" in event_dict:
        event_dict.setdefault("message", str(event_dict["event_type"]))
    return event_dict


def _renderer(fmt: str) -> Any:
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_structlog(level: int = LOG_LEVEL_VALUE, fmt: str = LOG_FORMAT) -> None:
    """Install the indexer processor chain; fmt is "json" or anything else for console."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _event_type,
            _renderer(fmt),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger with logger=name bound.

        logger = get_logger(__name__)
        logger.info("block_processed", height=123, processed=4)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_block_context(
    logger: Any,
    *,
    block_height: int,
    tx_hash: str | None = None,
    chain_id: str | None = None,
) -> Any:
    """Return a child logger carrying block/tx fields for one handler invocation."""
    fields: dict[str, Any] = {"block_height": block_height}
    if tx_hash is not None:
        fields["tx_hash"] = tx_hash
    if chain_id is not None:
        fields["chain_id"] = chain_id
    return logger.bind(**fields)
