"""
Time-bucket aggregation: hourly, daily and monthly transaction counters.

Each processed transaction increments one snapshot per granularity. Bucket
ids are derived from the block time in UTC; a coarser id is a prefix of the
finer one (2024-01-01-05 / 2024-01-01 / 2024-01). Counters are only ever
incremented, so history is never reprocessed; with exactly-once delivery a
bucket's count equals the number of transactions whose block time falls in it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from persistence_indexer.cosmos.models import BlockHeader
from persistence_indexer.database import (
    DailySnapshot,
    EntityStore,
    HourlySnapshot,
    MonthlySnapshot,
    TimeBucketSnapshot,
)


class BucketGranularity(str, Enum):
    HOUR = "hour"
    DAY = "day"
    MONTH = "month"


_FORMATS = {
    BucketGranularity.HOUR: "%Y-%m-%d-%H",
    BucketGranularity.DAY: "%Y-%m-%d",
    BucketGranularity.MONTH: "%Y-%m",
}

SNAPSHOT_TYPES: dict[BucketGranularity, type[TimeBucketSnapshot]] = {
    BucketGranularity.HOUR: HourlySnapshot,
    BucketGranularity.DAY: DailySnapshot,
    BucketGranularity.MONTH: MonthlySnapshot,
}


def bucket_id(ts: datetime, granularity: BucketGranularity) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).strftime(_FORMATS[granularity])


def increment_bucket(
    store: EntityStore,
    granularity: BucketGranularity,
    block: BlockHeader,
) -> TimeBucketSnapshot:
    """Create the bucket with count 1, or bump its count and last-seen height/time."""
    snapshot_type = SNAPSHOT_TYPES[granularity]
    key = bucket_id(block.time, granularity)
    snapshot = store.get(snapshot_type, key)
    if snapshot is None:
        snapshot = store.create(
            snapshot_type,
            id=key,
            block_height=block.height,
            block_timestamp=block.time,
            total_transactions=1,
        )
    else:
        snapshot.total_transactions += 1
        snapshot.block_height = block.height
        snapshot.block_timestamp = block.time
    store.save(snapshot)
    return snapshot


def record_transaction(store: EntityStore, block: BlockHeader, log: Any) -> list[TimeBucketSnapshot]:
    """Count one transaction in its hour, day and month buckets."""
    snapshots = [increment_bucket(store, g, block) for g in BucketGranularity]
    log.debug(
        "time_buckets_incremented",
        buckets={s.ENTITY: s.id for s in snapshots},
        hourly_total=snapshots[0].total_transactions,
    )
    return snapshots
