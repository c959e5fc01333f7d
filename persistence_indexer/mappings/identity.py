"""Deterministic record ids and address canonicalization."""

from __future__ import annotations

from datetime import datetime


def event_record_id(tx_hash: str, msg_index: int | None, event_index: int) -> str:
    """Key for per-event records: "{txHash}-{msgIndex}-{eventIndex}"."""
    return f"{tx_hash}-{msg_index}-{event_index}"


def transaction_record_id(block_height: int, tx_hash: str) -> str:
    """Key for per-transaction records: "{height}-{txHash}"."""
    return f"{block_height}-{tx_hash}"


def activity_record_id(address: str, block_time: datetime) -> str:
    """Key for activity log entries: "{address}-{blockTime}" (ISO 8601)."""
    return f"{address}-{block_time.isoformat()}"


def canonical_address(raw: str) -> str:
    # bech32 is case-insensitive; lower-case is the canonical encoding
    return raw.lower()
