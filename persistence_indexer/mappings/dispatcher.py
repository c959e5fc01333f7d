"""
Mapping dispatcher: route decoded events and transactions to their handler.

HANDLER_MANIFEST lists (event type, emitting message type) filters and the
handler each one maps to, plus the transaction handler. The dispatcher binds
block height, tx hash and chain id to a logger once per transaction and
passes it to every handler call.

Error policy per transaction:
- MalformedPayloadError: the offending event is skipped, later events still run.
- RequiredFieldMissingError: remaining events of the transaction are dropped (the
  Transaction record is already written), the block continues.
- StoreFailureError and anything else: propagates; the run stops.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable

from persistence_indexer.core.exceptions import MalformedPayloadError, RequiredFieldMissingError
from persistence_indexer.cosmos.models import CosmosBlock, CosmosEvent, CosmosTransaction
from persistence_indexer.database import EntityStore
from persistence_indexer.indexer_logging import bind_block_context, get_logger
from persistence_indexer.mappings.correlation import handle_ibc_receive_event, handle_ibc_send_event
from persistence_indexer.mappings.handlers import (
    handle_delegator_reward_event,
    handle_transaction,
    handle_transfer_event,
)

logger = get_logger(__name__)

MSG_WITHDRAW_DELEGATOR_REWARD = "/cosmos.distribution.v1beta1.MsgWithdrawDelegatorReward"
MSG_RECV_PACKET = "/ibc.core.channel.v1.MsgRecvPacket"
MSG_TRANSFER = "/ibc.applications.transfer.v1.MsgTransfer"
MSG_SEND = "/cosmos.bank.v1beta1.MsgSend"
MSG_RECEIVE = "/cosmos.bank.v1beta1.MsgReceive"


class HandlerKind(str, Enum):
    EVENT = "event"
    TRANSACTION = "transaction"


@dataclass(frozen=True)
class HandlerFilter:
    """Event type and emitting message type an event must match; None matches anything."""

    event_type: str | None = None
    message_type: str | None = None
    include_failed_tx: bool = False

    def matches_event(self, event: CosmosEvent) -> bool:
        if self.event_type is not None and event.type != self.event_type:
            return False
        if self.message_type is not None:
            if event.msg is None or event.msg.type_url != self.message_type:
                return False
        return True

    def accepts_tx(self, succeeded: bool) -> bool:
        return succeeded or self.include_failed_tx


@dataclass(frozen=True)
class HandlerSpec:
    name: str
    kind: HandlerKind
    handler: Callable[[EntityStore, Any, Any], Any]
    filter: HandlerFilter = field(default_factory=HandlerFilter)


HANDLER_MANIFEST: tuple[HandlerSpec, ...] = (
    HandlerSpec(
        "handleDelegatorRewardEvent",
        HandlerKind.EVENT,
        handle_delegator_reward_event,
        HandlerFilter("coin_spent", MSG_WITHDRAW_DELEGATOR_REWARD),
    ),
    HandlerSpec(
        "handleIBCReceiveEvent",
        HandlerKind.EVENT,
        handle_ibc_receive_event,
        HandlerFilter("recv_packet", MSG_RECV_PACKET),
    ),
    HandlerSpec(
        "handleIBCSendEvent",
        HandlerKind.EVENT,
        handle_ibc_send_event,
        HandlerFilter("send_packet", MSG_TRANSFER),
    ),
    HandlerSpec(
        "handleTransferEvent",
        HandlerKind.EVENT,
        handle_transfer_event,
        HandlerFilter("transfer", MSG_SEND),
    ),
    HandlerSpec(
        "handleTransferEvent",
        HandlerKind.EVENT,
        handle_transfer_event,
        HandlerFilter("transfer", MSG_RECEIVE),
    ),
    HandlerSpec(
        "handleTransaction",
        HandlerKind.TRANSACTION,
        handle_transaction,
        HandlerFilter(include_failed_tx=False),
    ),
)


@dataclass
class BlockResult:
    """Per-block summary returned by MappingDispatcher.process_block."""

    height: int
    processed: int = 0
    """Transactions handled to completion."""
    skipped: int = 0
    """Failed transactions not indexed."""
    aborted: int = 0
    """Transactions stopped by a missing required field."""
    skipped_events: int = 0
    """Events dropped for a malformed payload."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "height": self.height,
            "processed": self.processed,
            "skipped": self.skipped,
            "aborted": self.aborted,
            "skipped_events": self.skipped_events,
        }


class MappingDispatcher:
    """
    Routes each event to the first matching event handler and each transaction
    to the transaction handler(s). Strictly sequential: one call completes,
    including all store writes, before the next starts.
    """

    def __init__(
        self,
        store: EntityStore,
        manifest: tuple[HandlerSpec, ...] = HANDLER_MANIFEST,
        *,
        include_failed_tx: bool | None = None,
        base_logger: Any = None,
    ) -> None:
        """
        Args:
            store: Entity store every handler reads and writes.
            manifest: Handler specs; event specs are tried in order.
            include_failed_tx: When set, overrides include_failed_tx on every filter.
            base_logger: Logger the per-invocation context is bound onto.
        """
        if include_failed_tx is not None:
            manifest = tuple(
                replace(s, filter=replace(s.filter, include_failed_tx=include_failed_tx))
                for s in manifest
            )
        self._store = store
        self._event_specs = tuple(s for s in manifest if s.kind is HandlerKind.EVENT)
        self._tx_specs = tuple(s for s in manifest if s.kind is HandlerKind.TRANSACTION)
        self._indexes_failed_tx = any(s.filter.include_failed_tx for s in manifest)
        self._logger = base_logger if base_logger is not None else logger

    def _context_logger(self, event_or_tx: CosmosEvent | CosmosTransaction) -> Any:
        return bind_block_context(
            self._logger,
            block_height=event_or_tx.block.height,
            tx_hash=event_or_tx.tx.hash,
            chain_id=event_or_tx.block.chain_id,
        )

    def match_event(self, event: CosmosEvent) -> HandlerSpec | None:
        for spec in self._event_specs:
            if spec.filter.matches_event(event) and spec.filter.accepts_tx(event.tx.succeeded):
                return spec
        return None

    def dispatch_event(self, event: CosmosEvent, log: Any = None) -> HandlerSpec | None:
        """Run the matching handler for one event. Returns the spec used, or None if unrouted."""
        spec = self.match_event(event)
        if spec is None:
            return None
        log = log if log is not None else self._context_logger(event)
        spec.handler(self._store, event, log.bind(handler=spec.name, event_index=event.idx))
        return spec

    def dispatch_transaction(self, tx: CosmosTransaction) -> int:
        """
        Run the transaction handler(s), then event handlers for each event in order.

        The Transaction record and its bucket counts are written before any event
        handler can abort the transaction. Returns the number of events skipped
        for a malformed payload. RequiredFieldMissingError and store failures
        propagate.
        """
        log = self._context_logger(tx)
        for spec in self._tx_specs:
            if spec.filter.accepts_tx(tx.tx.succeeded):
                spec.handler(self._store, tx, log.bind(handler=spec.name))
        skipped_events = 0
        for event in tx.events:
            try:
                self.dispatch_event(event, log)
            except MalformedPayloadError as e:
                skipped_events += 1
                log.warning(
                    "event_skipped_malformed_payload",
                    event_index=event.idx,
                    event_type=e.event_type,
                    attribute_key=e.attribute_key,
                    error=str(e),
                )
        return skipped_events

    def process_block(self, block: CosmosBlock) -> BlockResult:
        """Process every transaction of a block in order."""
        result = BlockResult(height=block.header.height)
        for tx in block.transactions:
            if not tx.tx.succeeded and not self._indexes_failed_tx:
                result.skipped += 1
                continue
            try:
                result.skipped_events += self.dispatch_transaction(tx)
            except RequiredFieldMissingError as e:
                result.aborted += 1
                self._context_logger(tx).error(
                    "transaction_aborted_missing_field",
                    field=e.field,
                    context=e.context,
                    error=str(e),
                )
                continue
            result.processed += 1
        self._logger.info("block_processed", **result.to_dict())
        return result
