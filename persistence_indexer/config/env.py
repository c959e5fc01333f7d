"""
Environment variable loading for the indexer.

- INDEXER_DB_URL / DATABASE_URL: SQLAlchemy URL for the entity store
- INDEXER_DB_PATH: SQLite file used when no URL is set (default: indexer.db)
- CHAIN_ID: chain being indexed (default: core-1, Persistence mainnet)
- START_BLOCK: first block height to process (default: 1)
- INCLUDE_FAILED_TX: also index transactions with a non-zero result code
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is persistence_indexer/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_CHAIN_ID = "core-1"
DEFAULT_SQLITE_PATH = "indexer.db"

_TRUTHY = ("1", "true", "yes", "on")


def load_indexer_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env."""
    load_dotenv(_ENV_PATH, override=False)


def env_str(name: str, default: str = "") -> str:
    load_indexer_env()
    return (os.getenv(name) or default).strip()


def env_int(name: str, default: int) -> int:
    """Integer env var; blank or unset falls back to default. Non-numeric raises ValueError."""
    raw = env_str(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def env_bool(name: str, default: bool = False) -> bool:
    raw = env_str(name).lower()
    if not raw:
        return default
    return raw in _TRUTHY


def get_database_url() -> str:
    """
    Resolve the entity store URL.
    Order: INDEXER_DB_URL > DATABASE_URL > sqlite:///INDEXER_DB_PATH.
    """
    url = env_str("INDEXER_DB_URL") or env_str("DATABASE_URL")
    if url:
        return url
    path = env_str("INDEXER_DB_PATH") or DEFAULT_SQLITE_PATH
    return f"sqlite:///{path}"


def get_chain_id() -> str:
    return env_str("CHAIN_ID") or DEFAULT_CHAIN_ID
