"""
Structured logging for the Persistence indexer.

JSON logs with timestamp, event_type, block_height and tx_hash.
Use get_logger() in all modules; handlers get a bound per-invocation logger.
"""

from persistence_indexer.indexer_logging.logger import (
    bind_block_context,
    configure_structlog,
    get_logger,
)

__all__ = ["bind_block_context", "configure_structlog", "get_logger"]
