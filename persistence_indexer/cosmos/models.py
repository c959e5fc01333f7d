"""
Decoded Cosmos chain data delivered by the block-fetching layer.

Frozen dataclasses for block headers, transactions, messages and events.
from_dict() builders accept the decoded JSON shape (camelCase or snake_case
keys) so blocks can be replayed from files; handlers only see these types.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# Tendermint timestamps carry up to nanoseconds; datetime keeps microseconds
_FRACTION_RE = re.compile(r"\.(\d+)")


def _six_digits(match: re.Match) -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def parse_block_time(value: str | datetime) -> datetime:
    """Parse an RFC 3339 block time to an aware UTC datetime."""
    if isinstance(value, datetime):
        dt = value
    else:
        s = value.strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        s = _FRACTION_RE.sub(_six_digits, s, count=1)
        dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


@dataclass(frozen=True)
class EventAttribute:
    key: str
    value: str

    @classmethod
    def from_dict(cls, item: dict[str, Any]) -> "EventAttribute":
        return cls(key=str(item["key"]), value="" if item.get("value") is None else str(item["value"]))


@dataclass(frozen=True)
class Coin:
    amount: str
    denom: str

    @classmethod
    def from_dict(cls, item: dict[str, Any]) -> "Coin":
        return cls(amount=str(item["amount"]), denom=str(item["denom"]))


@dataclass(frozen=True)
class BlockHeader:
    """Block height, block time (UTC) and the id of the chain that produced it."""

    height: int
    time: datetime
    chain_id: str

    @classmethod
    def from_dict(cls, item: dict[str, Any], default_chain_id: str = "") -> "BlockHeader":
        return cls(
            height=int(item["height"]),
            time=parse_block_time(item["time"]),
            chain_id=str(_pick(item, "chainId", "chain_id", default="") or default_chain_id),
        )


@dataclass(frozen=True)
class DecodedMessage:
    """
    One message of a transaction.

    decoded holds the message body as delivered by the decoder, e.g.
    {"delegatorAddress": ..., "validatorAddress": ...} for MsgWithdrawDelegatorReward.
    """

    idx: int
    type_url: str
    decoded: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, idx: int, item: dict[str, Any]) -> "DecodedMessage":
        return cls(
            idx=idx,
            type_url=str(_pick(item, "typeUrl", "type_url", "@type", default="")),
            decoded=dict(_pick(item, "value", "decodedMsg", "decoded", default={}) or {}),
        )

    def get(self, *keys: str) -> Any:
        """First present key of the decoded body (camelCase and snake_case variants)."""
        return _pick(self.decoded, *keys)


@dataclass(frozen=True)
class CosmosTx:
    """
    Transaction-level data shared by all events of a transaction.

    fee is None when the auth info carries no fee; code 0 means success.
    """

    hash: str
    code: int = 0
    fee: tuple[Coin, ...] | None = None

    @property
    def succeeded(self) -> bool:
        return self.code == 0


@dataclass(frozen=True)
class CosmosEvent:
    """An event plus its position: idx within the tx, and the emitting message (if known)."""

    block: BlockHeader
    tx: CosmosTx
    idx: int
    type: str
    attributes: tuple[EventAttribute, ...]
    msg: DecodedMessage | None = None

    @property
    def msg_idx(self) -> int | None:
        return self.msg.idx if self.msg is not None else None


@dataclass(frozen=True)
class CosmosTransaction:
    block: BlockHeader
    tx: CosmosTx
    events: tuple[CosmosEvent, ...]
    messages: tuple[DecodedMessage, ...] = ()

    @property
    def hash(self) -> str:
        return self.tx.hash

    @classmethod
    def from_dict(cls, block: BlockHeader, item: dict[str, Any]) -> "CosmosTransaction":
        """
        Build from one decoded tx:
        {"hash", "code", "fee": [{"amount", "denom"}], "messages": [...],
         "events": [{"type", "msgIndex", "attributes": [{"key", "value"}]}]}
        """
        raw_fee = _pick(item, "fee", default=None)
        if isinstance(raw_fee, dict):
            raw_fee = raw_fee.get("amount")
        fee = tuple(Coin.from_dict(c) for c in raw_fee) if raw_fee else None
        tx = CosmosTx(hash=str(item["hash"]), code=int(item.get("code") or 0), fee=fee)
        messages = tuple(
            DecodedMessage.from_dict(i, m) for i, m in enumerate(item.get("messages") or [])
        )
        events = []
        for idx, ev in enumerate(item.get("events") or []):
            msg_index = _pick(ev, "msgIndex", "msg_index", default=None)
            msg = None
            if msg_index is not None and 0 <= int(msg_index) < len(messages):
                msg = messages[int(msg_index)]
            events.append(
                CosmosEvent(
                    block=block,
                    tx=tx,
                    idx=idx,
                    type=str(ev["type"]),
                    attributes=tuple(EventAttribute.from_dict(a) for a in ev.get("attributes") or []),
                    msg=msg,
                )
            )
        return cls(block=block, tx=tx, events=tuple(events), messages=messages)


@dataclass(frozen=True)
class CosmosBlock:
    header: BlockHeader
    transactions: tuple[CosmosTransaction, ...] = ()

    @classmethod
    def from_dict(cls, item: dict[str, Any], default_chain_id: str = "") -> "CosmosBlock":
        """default_chain_id fills in headers that do not carry a chain id."""
        header = BlockHeader.from_dict(item["header"], default_chain_id)
        txs = tuple(CosmosTransaction.from_dict(header, t) for t in _pick(item, "txs", "transactions", default=[]) or [])
        return cls(header=header, transactions=txs)
