"""
Indexer settings.

Typed, immutable view of the environment (see config.env) used by the replay
entrypoint and the store factory. Resolved once per process; tests call
get_settings.cache_clear() after changing the environment.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from persistence_indexer.config.env import (
    env_bool,
    env_int,
    env_str,
    get_chain_id,
    get_database_url,
)


@dataclass(frozen=True)
class IndexerSettings:
    """Process configuration for one indexing run."""

    database_url: str
    chain_id: str
    start_block: int = 1
    include_failed_tx: bool = False

    def masked_database_url(self) -> str:
        """Database URL without credentials or query string, for logs."""
        return self.database_url.split("?")[0].split("@")[-1]


@lru_cache(maxsize=1)
def get_settings() -> IndexerSettings:
    """Return the current settings, read from environment and .env."""
    start_block = env_int("START_BLOCK", 1)
    if start_block < 1:
        raise ValueError("START_BLOCK must be >= 1")
    return IndexerSettings(
        database_url=get_database_url(),
        chain_id=get_chain_id(),
        start_block=start_block,
        include_failed_tx=env_bool("INCLUDE_FAILED_TX", False),
    )
