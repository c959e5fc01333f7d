# Event mapping and correlation: ids, attribute extraction, user registry,
# IBC transfer correlation, time buckets, entity handlers and the dispatcher.

from persistence_indexer.mappings.correlation import (
    TransferDirection,
    correlate_packet,
    handle_ibc_receive_event,
    handle_ibc_send_event,
)
from persistence_indexer.mappings.dispatcher import (
    HANDLER_MANIFEST,
    BlockResult,
    HandlerFilter,
    HandlerKind,
    HandlerSpec,
    MappingDispatcher,
)
from persistence_indexer.mappings.handlers import (
    handle_delegator_reward_event,
    handle_transaction,
    handle_transfer_event,
)
from persistence_indexer.mappings.time_buckets import BucketGranularity, bucket_id, record_transaction
from persistence_indexer.mappings.users import ensure_user

__all__ = [
    "TransferDirection",
    "correlate_packet",
    "handle_ibc_receive_event",
    "handle_ibc_send_event",
    "HANDLER_MANIFEST",
    "BlockResult",
    "HandlerFilter",
    "HandlerKind",
    "HandlerSpec",
    "MappingDispatcher",
    "handle_delegator_reward_event",
    "handle_transaction",
    "handle_transfer_event",
    "BucketGranularity",
    "bucket_id",
    "record_transaction",
    "ensure_user",
]
