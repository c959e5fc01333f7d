"""
Indexer exceptions.

- RequiredFieldMissingError: decoded message lacks a structural field; aborts the current transaction.
- MalformedPayloadError: an event attribute payload cannot be parsed; skips the current event.
- StoreFailureError: entity store read/write failed; fatal for the run.
"""

from __future__ import annotations


class IndexerError(Exception):
    """Base class for indexer errors."""


class RequiredFieldMissingError(IndexerError):
    def __init__(self, field: str, context: str) -> None:
        self.field = field
        self.context = context
        super().__init__(f"missing {field} in {context}")


class MalformedPayloadError(IndexerError):
    def __init__(self, event_type: str, attribute_key: str, reason: str) -> None:
        self.event_type = event_type
        self.attribute_key = attribute_key
        self.reason = reason
        super().__init__(
            f"malformed {attribute_key!r} attribute in {event_type!r} event: {reason}"
        )


class StoreFailureError(IndexerError):
    def __init__(self, operation: str, entity: str, key: str | None = None) -> None:
        self.operation = operation
        self.entity = entity
        self.key = key
        target = f"{entity}[{key}]" if key is not None else entity
        super().__init__(f"entity store {operation} failed for {target}")
