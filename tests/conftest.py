"""
Pytest fixtures for indexer tests. Uses a temporary SQLite entity store per test
and small builders for decoded blocks, transactions and events.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Callable

import pytest

from persistence_indexer.cosmos.models import (
    BlockHeader,
    Coin,
    CosmosEvent,
    CosmosTransaction,
    CosmosTx,
    DecodedMessage,
    EventAttribute,
)

LOCAL_CHAIN = "core-1"
REMOTE_CHAIN = "cosmoshub-4"
DEFAULT_TIME = datetime(2024, 1, 1, 5, 10, tzinfo=timezone.utc)


def _packet_attributes(
    sequence: str = "42",
    sender: str = "addrA",
    receiver: str = "addrB",
    amount: str = "100",
    denom: str = "uxprt",
) -> list[tuple[str, str]]:
    payload = {"amount": amount, "denom": denom, "receiver": receiver, "sender": sender}
    return [
        ("packet_data", json.dumps(payload)),
        ("packet_timeout_height", "0-0"),
        ("packet_sequence", sequence),
        ("packet_src_port", "transfer"),
    ]


@pytest.fixture
def packet_attrs() -> Callable[..., list[tuple[str, str]]]:
    """ICS-20 send_packet / recv_packet attributes; override any payload field."""
    return _packet_attributes


@pytest.fixture
def store(tmp_path, monkeypatch):
    """Fresh SQLite-backed EntityStore; DATABASE_URL unset so settings never leak in."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("INDEXER_DB_URL", raising=False)
    from persistence_indexer.database import get_store

    return get_store(f"sqlite:///{tmp_path / 'indexer.db'}")


@pytest.fixture
def log():
    from persistence_indexer.indexer_logging import bind_block_context, get_logger

    return bind_block_context(get_logger("tests"), block_height=1, tx_hash="TEST")


@pytest.fixture
def make_block() -> Callable[..., BlockHeader]:
    def _make(
        height: int = 100,
        time: datetime = DEFAULT_TIME,
        chain_id: str = LOCAL_CHAIN,
    ) -> BlockHeader:
        return BlockHeader(height=height, time=time, chain_id=chain_id)

    return _make


@pytest.fixture
def make_event(make_block) -> Callable[..., CosmosEvent]:
    """Build a CosmosEvent; attributes are (key, value) pairs."""

    def _make(
        event_type: str,
        attributes: list[tuple[str, str]],
        *,
        msg_type: str | None = None,
        msg_body: dict[str, Any] | None = None,
        msg_idx: int = 0,
        idx: int = 0,
        tx_hash: str = "TXHASH1",
        code: int = 0,
        fee: tuple[Coin, ...] | None = (Coin("5000", "uxprt"),),
        block: BlockHeader | None = None,
    ) -> CosmosEvent:
        msg = None
        if msg_type is not None:
            msg = DecodedMessage(idx=msg_idx, type_url=msg_type, decoded=msg_body or {})
        return CosmosEvent(
            block=block or make_block(),
            tx=CosmosTx(hash=tx_hash, code=code, fee=fee),
            idx=idx,
            type=event_type,
            attributes=tuple(EventAttribute(k, v) for k, v in attributes),
            msg=msg,
        )

    return _make


@pytest.fixture
def make_tx(make_block) -> Callable[..., CosmosTransaction]:
    """
    Build a CosmosTransaction from event specs: (event_type, attributes, msg_type).
    Events get idx in order and share the tx and block.
    """

    def _make(
        events: list[tuple[str, list[tuple[str, str]], str | None]] = (),
        *,
        tx_hash: str = "TXHASH1",
        code: int = 0,
        fee: tuple[Coin, ...] | None = (Coin("5000", "uxprt"),),
        block: BlockHeader | None = None,
        msg_body: dict[str, Any] | None = None,
    ) -> CosmosTransaction:
        block = block or make_block()
        tx = CosmosTx(hash=tx_hash, code=code, fee=fee)
        built = []
        for idx, (event_type, attrs, msg_type) in enumerate(events):
            msg = DecodedMessage(idx=0, type_url=msg_type, decoded=msg_body or {}) if msg_type else None
            built.append(
                CosmosEvent(
                    block=block,
                    tx=tx,
                    idx=idx,
                    type=event_type,
                    attributes=tuple(EventAttribute(k, v) for k, v in attrs),
                    msg=msg,
                )
            )
        return CosmosTransaction(block=block, tx=tx, events=tuple(built))

    return _make
