"""
User registry: one User per canonical address plus an activity log entry per observation.

User creation is idempotent (first-seen time is kept); activity records are
appended on every call, one per distinct (address, block time). Activity is
retained without limit.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from persistence_indexer.database import ActivityRecord, EntityStore, User
from persistence_indexer.mappings.identity import activity_record_id, canonical_address


def ensure_user(store: EntityStore, address: str, observed_at: datetime, log: Any) -> str:
    """Register address if unseen, log the activity, and return the canonical user id."""
    user_id = canonical_address(address)
    if store.get(User, user_id) is None:
        store.save(store.create(User, id=user_id, first_seen_at=observed_at))
        log.debug("user_created", user_id=user_id)

    store.save(
        store.create(
            ActivityRecord,
            id=activity_record_id(user_id, observed_at),
            wallet=user_id,
            block_timestamp=observed_at,
        )
    )
    return user_id
