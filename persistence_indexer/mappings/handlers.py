"""
Entity handlers for delegator rewards, bank transfers and transactions.

Each handler reads what it needs from the decoded event/transaction, builds
the record once from the extracted fields, and saves it before returning.
The IBC handlers live in mappings.correlation.
"""

from __future__ import annotations

from typing import Any

from persistence_indexer.core.exceptions import RequiredFieldMissingError
from persistence_indexer.cosmos.models import CosmosEvent, CosmosTransaction
from persistence_indexer.database import EntityStore, RewardEvent, Transaction, Transfer
from persistence_indexer.mappings.attributes import (
    collect_participants,
    extract_reward,
    extract_transfer,
)
from persistence_indexer.mappings.identity import event_record_id, transaction_record_id
from persistence_indexer.mappings.time_buckets import record_transaction
from persistence_indexer.mappings.users import ensure_user


def handle_delegator_reward_event(store: EntityStore, event: CosmosEvent, log: Any) -> RewardEvent:
    """
    coin_spent under MsgWithdrawDelegatorReward -> RewardEvent.

    The fee comes from the transaction's auth info and is required; the reward
    amount is recorded only when the event carries an amount attribute.
    """
    log.info("delegator_reward_event")
    if not event.tx.fee:
        raise RequiredFieldMissingError("fee", "decodedTx.authInfo")
    fee = event.tx.fee[0]
    msg = event.msg
    reward = extract_reward(event)

    record = store.create(
        RewardEvent,
        id=event_record_id(event.tx.hash, event.msg_idx, event.idx),
        block_height=event.block.height,
        block_timestamp=event.block.time,
        tx_hash=event.tx.hash,
        delegator_address=msg.get("delegatorAddress", "delegator_address") if msg else None,
        validator_address=msg.get("validatorAddress", "validator_address") if msg else None,
        fee_amount=fee.amount,
        fee_denomination=fee.denom,
        reward_amount=reward.amount,
    )
    store.save(record)
    return record


def handle_transfer_event(store: EntityStore, event: CosmosEvent, log: Any) -> Transfer:
    """transfer under MsgSend / MsgReceive -> Transfer."""
    fields = extract_transfer(event)
    record = store.create(
        Transfer,
        id=event_record_id(event.tx.hash, event.msg_idx, event.idx),
        block_height=event.block.height,
        block_timestamp=event.block.time,
        tx_hash=event.tx.hash,
        to_address=fields.recipient,
        from_address=fields.sender,
        amount=fields.amount,
    )
    store.save(record)
    log.debug("transfer_recorded", transfer_id=record.id, amount=fields.amount)
    return record


def handle_transaction(store: EntityStore, tx: CosmosTransaction, log: Any) -> Transaction:
    """
    Record the transaction, register every sender/recipient seen in its events,
    and count it in the hour/day/month buckets.
    """
    record = store.create(
        Transaction,
        id=transaction_record_id(tx.block.height, tx.hash),
        block_height=tx.block.height,
        block_timestamp=tx.block.time,
        tx_hash=tx.hash,
    )
    store.save(record)

    participants = collect_participants(tx.events)
    for address in participants:
        ensure_user(store, address, tx.block.time, log)

    record_transaction(store, tx.block, log)
    log.debug("transaction_recorded", transaction_id=record.id, participants=len(participants))
    return record
