"""
Domain models for indexed entities.

Reward events, users and their activity log, IBC transfer correlations, bank
transfers, transactions and time-bucket snapshots. Every entity is keyed by a
deterministic string id computed by the caller. Used by the store layer; no
ORM coupling so backends stay swappable.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Any, ClassVar, TypeVar

E = TypeVar("E", bound="Entity")


def _as_utc(value: Any) -> Any:
    """SQLite hands back naive datetimes; all block times are UTC."""
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class Entity:
    """Base for stored entities. ENTITY names the store kind (table)."""

    ENTITY: ClassVar[str] = ""

    id: str

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls: type[E], data: dict[str, Any]) -> E:
        names = {f.name for f in fields(cls)}
        return cls(**{k: _as_utc(v) for k, v in data.items() if k in names})


@dataclass
class RewardEvent(Entity):
    """Delegator reward withdrawal (coin_spent under MsgWithdrawDelegatorReward)."""

    ENTITY: ClassVar[str] = "delegator_rewards"

    block_height: int
    block_timestamp: datetime
    tx_hash: str
    delegator_address: str | None
    validator_address: str | None
    fee_amount: str
    fee_denomination: str
    reward_amount: str | None = None
    """Set only when the event carries an amount attribute."""


@dataclass
class User(Entity):
    """One row per canonical (lower-cased) wallet address."""

    ENTITY: ClassVar[str] = "users"

    first_seen_at: datetime


@dataclass
class ActivityRecord(Entity):
    """Append-only activity log entry: one per (address, block time) observation."""

    ENTITY: ClassVar[str] = "user_activity"

    wallet: str
    block_timestamp: datetime


@dataclass
class TransferCorrelation(Entity):
    """
    Both legs of one IBC fungible transfer, keyed by packet sequence.

    Common fields and type are set by whichever leg is seen first; the other
    leg only fills in its own chain id and tx hash.
    """

    ENTITY: ClassVar[str] = "ibc_events"

    block_height: int
    block_timestamp: datetime
    tx_hash: str
    sender_id: str
    receiver_id: str
    amount: int
    denom: str | None
    type: str
    """Direction tag: in when the receive leg was seen first, out for the send leg."""
    source_chain: str | None = None
    source_chain_transaction: str | None = None
    destination_chain: str | None = None
    destination_chain_transaction: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        # Token amounts overflow BIGINT; stored as decimal text
        out["amount"] = str(self.amount)
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TransferCorrelation":
        record = super().from_dict(data)
        record.amount = int(record.amount)
        return record


@dataclass
class Transfer(Entity):
    """Bank transfer event; fields the event did not carry stay None."""

    ENTITY: ClassVar[str] = "transfers"

    block_height: int
    block_timestamp: datetime
    tx_hash: str
    to_address: str | None
    from_address: str | None
    amount: str | None


@dataclass
class Transaction(Entity):
    ENTITY: ClassVar[str] = "transactions"

    block_height: int
    block_timestamp: datetime
    tx_hash: str


@dataclass
class TimeBucketSnapshot(Entity):
    """Rolling transaction counter for one calendar bucket."""

    block_height: int
    """Height of the last transaction counted."""
    block_timestamp: datetime
    """Block time of the last transaction counted."""
    total_transactions: int = 0


@dataclass
class HourlySnapshot(TimeBucketSnapshot):
    ENTITY: ClassVar[str] = "hourly_snapshots"


@dataclass
class DailySnapshot(TimeBucketSnapshot):
    ENTITY: ClassVar[str] = "daily_snapshots"


@dataclass
class MonthlySnapshot(TimeBucketSnapshot):
    ENTITY: ClassVar[str] = "monthly_snapshots"


ENTITY_TYPES: tuple[type[Entity], ...] = (
    RewardEvent,
    User,
    ActivityRecord,
    TransferCorrelation,
    Transfer,
    Transaction,
    HourlySnapshot,
    DailySnapshot,
    MonthlySnapshot,
)
