"""
IBC transfer correlation: merge send and receive legs by packet sequence.

A cross-chain transfer shows up twice: a send_packet event on the source
chain and a recv_packet event on the destination chain. The two legs share
the packet sequence but reach the indexer through separate handler calls in
no guaranteed order. One TransferCorrelation is kept per sequence:

- first leg seen: create the record with amount, denom, participants, the
  block/tx of first observation, the direction tag, and this leg's chain id
  and tx hash;
- second leg: only this leg's chain id and tx hash are filled in. Amount,
  participants and the direction tag are left as the first leg wrote them.

The direction tag is therefore tied to arrival order. Once both legs are in,
the record is otherwise identical whichever leg came first.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from persistence_indexer.cosmos.models import CosmosEvent
from persistence_indexer.database import EntityStore, TransferCorrelation
from persistence_indexer.mappings.attributes import PacketTransferFields, extract_packet_transfer
from persistence_indexer.mappings.users import ensure_user


class TransferDirection(str, Enum):
    """Which leg of the transfer an event observes."""

    IN = "in"
    OUT = "out"


def _set_leg_provenance(
    record: TransferCorrelation, direction: TransferDirection, event: CosmosEvent
) -> None:
    if direction is TransferDirection.OUT:
        record.source_chain = event.block.chain_id
        record.source_chain_transaction = event.tx.hash
    else:
        record.destination_chain = event.block.chain_id
        record.destination_chain_transaction = event.tx.hash


def correlate_packet(
    store: EntityStore,
    event: CosmosEvent,
    fields: PacketTransferFields,
    direction: TransferDirection,
    log: Any,
) -> TransferCorrelation | None:
    """
    Create or merge the TransferCorrelation for fields.sequence.

    Returns None (nothing written) when the packet did not carry a complete
    fungible-transfer payload.
    """
    if not fields.is_complete:
        log.debug("ibc_packet_skipped_incomplete", sequence=fields.sequence, direction=direction.value)
        return None

    record = store.get(TransferCorrelation, fields.sequence)
    if record is None:
        observed_at = event.block.time
        record = store.create(
            TransferCorrelation,
            id=fields.sequence,
            block_height=event.block.height,
            block_timestamp=observed_at,
            tx_hash=event.tx.hash,
            sender_id=ensure_user(store, fields.sender, observed_at, log),
            receiver_id=ensure_user(store, fields.receiver, observed_at, log),
            amount=fields.amount,
            denom=fields.denom,
            type=direction.value,
        )
        _set_leg_provenance(record, direction, event)
        log.info(
            "transfer_correlation_created",
            sequence=fields.sequence,
            direction=direction.value,
            amount=str(fields.amount),
            denom=fields.denom,
        )
    else:
        _set_leg_provenance(record, direction, event)
        log.info(
            "transfer_correlation_merged",
            sequence=fields.sequence,
            direction=direction.value,
            first_direction=record.type,
        )
    store.save(record)
    return record


def handle_ibc_send_event(store: EntityStore, event: CosmosEvent, log: Any) -> TransferCorrelation | None:
    """send_packet under MsgTransfer: the outgoing leg."""
    log.info("ibc_send_event", tx_hash=event.tx.hash)
    return correlate_packet(store, event, extract_packet_transfer(event), TransferDirection.OUT, log)


def handle_ibc_receive_event(store: EntityStore, event: CosmosEvent, log: Any) -> TransferCorrelation | None:
    """recv_packet under MsgRecvPacket: the incoming leg."""
    log.info("ibc_receive_event", tx_hash=event.tx.hash)
    return correlate_packet(store, event, extract_packet_transfer(event), TransferDirection.IN, log)
