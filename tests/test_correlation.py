"""
Tests for IBC transfer correlation (mappings.correlation): one record per packet
sequence, merged from send and receive legs arriving in either order.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from persistence_indexer.database import TransferCorrelation, User
from persistence_indexer.mappings.correlation import (
    TransferDirection,
    correlate_packet,
    handle_ibc_receive_event,
    handle_ibc_send_event,
)
from persistence_indexer.mappings.attributes import PacketTransferFields

from conftest import LOCAL_CHAIN, REMOTE_CHAIN

SEND_TIME = datetime(2024, 2, 1, 10, 0, tzinfo=timezone.utc)
RECV_TIME = datetime(2024, 2, 1, 10, 1, tzinfo=timezone.utc)


@pytest.fixture
def send_event(make_event, make_block, packet_attrs):
    def _make(**payload):
        return make_event(
            "send_packet",
            packet_attrs(**payload),
            msg_type="/ibc.applications.transfer.v1.MsgTransfer",
            tx_hash="SENDTX",
            block=make_block(height=500, time=SEND_TIME, chain_id=LOCAL_CHAIN),
        )

    return _make


@pytest.fixture
def recv_event(make_event, make_block, packet_attrs):
    def _make(**payload):
        return make_event(
            "recv_packet",
            packet_attrs(**payload),
            msg_type="/ibc.core.channel.v1.MsgRecvPacket",
            tx_hash="RECVTX",
            block=make_block(height=900, time=RECV_TIME, chain_id=REMOTE_CHAIN),
        )

    return _make


def test_send_only(store, log, send_event):
    """Only the send leg seen: record exists with source provenance and type out."""
    handle_ibc_send_event(store, send_event(), log)
    assert store.count(TransferCorrelation) == 1
    record = store.get(TransferCorrelation, "42")
    assert record.type == "out"
    assert record.source_chain == LOCAL_CHAIN
    assert record.source_chain_transaction == "SENDTX"
    assert record.destination_chain is None
    assert record.destination_chain_transaction is None
    assert record.sender_id == "addra"
    assert record.receiver_id == "addrb"
    assert record.amount == 100
    assert record.denom == "uxprt"
    assert record.block_height == 500
    assert record.block_timestamp == SEND_TIME


def test_receive_only(store, log, recv_event):
    handle_ibc_receive_event(store, recv_event(), log)
    record = store.get(TransferCorrelation, "42")
    assert record.type == "in"
    assert record.destination_chain == REMOTE_CHAIN
    assert record.destination_chain_transaction == "RECVTX"
    assert record.source_chain is None
    assert record.source_chain_transaction is None


def test_send_then_receive(store, log, send_event, recv_event):
    """Send leg first, then receive with another destination chain: one record, both legs, type out."""
    handle_ibc_send_event(store, send_event(), log)
    handle_ibc_receive_event(store, recv_event(), log)

    assert store.all_keys(TransferCorrelation) == ["42"]
    record = store.get(TransferCorrelation, "42")
    assert record.id == "42"
    assert record.type == "out"
    assert record.amount == 100
    assert (record.source_chain, record.source_chain_transaction) == (LOCAL_CHAIN, "SENDTX")
    assert (record.destination_chain, record.destination_chain_transaction) == (REMOTE_CHAIN, "RECVTX")


def test_receive_then_send(store, log, send_event, recv_event):
    handle_ibc_receive_event(store, recv_event(), log)
    handle_ibc_send_event(store, send_event(), log)

    record = store.get(TransferCorrelation, "42")
    assert record.type == "in"
    assert (record.source_chain, record.source_chain_transaction) == (LOCAL_CHAIN, "SENDTX")
    assert (record.destination_chain, record.destination_chain_transaction) == (REMOTE_CHAIN, "RECVTX")


def test_arrival_order_only_changes_first_write_fields(tmp_path, log, send_event, recv_event):
    """Both orders agree on participants, amount and both legs; direction follows the first leg."""
    from persistence_indexer.database import get_store

    a = get_store(f"sqlite:///{tmp_path / 'a.db'}")
    b = get_store(f"sqlite:///{tmp_path / 'b.db'}")
    handle_ibc_send_event(a, send_event(), log)
    handle_ibc_receive_event(a, recv_event(), log)
    handle_ibc_receive_event(b, recv_event(), log)
    handle_ibc_send_event(b, send_event(), log)

    first_write = {"type", "block_height", "block_timestamp", "tx_hash"}
    ra = {k: v for k, v in a.get(TransferCorrelation, "42").to_dict().items() if k not in first_write}
    rb = {k: v for k, v in b.get(TransferCorrelation, "42").to_dict().items() if k not in first_write}
    assert ra == rb
    assert a.get(TransferCorrelation, "42").type == "out"
    assert b.get(TransferCorrelation, "42").type == "in"


def test_second_leg_does_not_overwrite_common_fields(store, log, send_event, recv_event):
    """Amount, denom and participants are fixed by the first leg."""
    handle_ibc_send_event(store, send_event(amount="100"), log)
    handle_ibc_receive_event(store, recv_event(amount="999", sender="other", denom="ibc/XYZ"), log)
    record = store.get(TransferCorrelation, "42")
    assert record.amount == 100
    assert record.denom == "uxprt"
    assert record.sender_id == "addra"


def test_first_leg_registers_participants(store, log, send_event):
    handle_ibc_send_event(store, send_event(sender="Persistence1Sender", receiver="cosmos1Receiver"), log)
    assert store.all_keys(User) == ["cosmos1receiver", "persistence1sender"]


def test_incomplete_packet_is_skipped(store, log, make_event):
    """A packet without a fungible-transfer payload writes nothing."""
    event = make_event("send_packet", [("packet_sequence", "77")])
    assert handle_ibc_send_event(store, event, log) is None
    assert store.count(TransferCorrelation) == 0
    assert store.count(User) == 0


@pytest.mark.parametrize("missing", ["sender", "receiver", "amount", "sequence"])
def test_correlate_packet_requires_all_fields(store, log, send_event, missing):
    fields = {"sender": "a", "receiver": "b", "amount": 1, "denom": "uxprt", "sequence": "5"}
    fields[missing] = None
    result = correlate_packet(store, send_event(), PacketTransferFields(**fields), TransferDirection.OUT, log)
    assert result is None
    assert store.count(TransferCorrelation) == 0


def test_large_amount_round_trips(store, log, send_event):
    """Amounts beyond 64-bit survive storage."""
    big = str(2**80)
    handle_ibc_send_event(store, send_event(amount=big), log)
    assert store.get(TransferCorrelation, "42").amount == 2**80


def test_distinct_sequences_are_separate_records(store, log, send_event):
    handle_ibc_send_event(store, send_event(sequence="1"), log)
    handle_ibc_send_event(store, send_event(sequence="2"), log)
    assert store.all_keys(TransferCorrelation) == ["1", "2"]


def test_blank_amount_skips_without_writing(store, log, send_event):
    """A send leg whose packet amount is empty writes nothing and does not raise."""
    assert handle_ibc_send_event(store, send_event(amount=""), log) is None
    assert store.count(TransferCorrelation) == 0
    assert store.count(User) == 0
