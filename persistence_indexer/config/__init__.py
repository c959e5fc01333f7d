"""
Configuration management for the indexer.

Loads settings from environment variables and an optional .env file.
Exposes a single source of truth for store URL, chain id and run options.
"""

from persistence_indexer.config.settings import IndexerSettings, get_settings  # noqa: F401

__all__ = ["IndexerSettings", "get_settings"]
