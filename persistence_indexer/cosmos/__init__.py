"""
Decoded Cosmos chain models.

Input types for the mapping handlers: block header, transaction, message,
event and attribute. Fetching and decoding blocks is done upstream.
"""

from persistence_indexer.cosmos.models import (
    BlockHeader,
    Coin,
    CosmosBlock,
    CosmosEvent,
    CosmosTransaction,
    CosmosTx,
    DecodedMessage,
    EventAttribute,
    parse_block_time,
)

__all__ = [
    "BlockHeader",
    "Coin",
    "CosmosBlock",
    "CosmosEvent",
    "CosmosTransaction",
    "CosmosTx",
    "DecodedMessage",
    "EventAttribute",
    "parse_block_time",
]
