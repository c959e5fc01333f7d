"""
Core: cross-cutting error types shared by the store, extractors and handlers.
"""

from persistence_indexer.core.exceptions import (
    IndexerError,
    MalformedPayloadError,
    RequiredFieldMissingError,
    StoreFailureError,
)

__all__ = [
    "IndexerError",
    "MalformedPayloadError",
    "RequiredFieldMissingError",
    "StoreFailureError",
]
