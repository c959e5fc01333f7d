"""
Tests for the user registry (mappings.users.ensure_user): one User per canonical
address, one ActivityRecord per (address, timestamp) observation.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from persistence_indexer.database import ActivityRecord, User
from persistence_indexer.mappings.users import ensure_user

T0 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_ensure_user_creates_user_and_activity(store, log):
    user_id = ensure_user(store, "Persistence1ABC", T0, log)
    assert user_id == "persistence1abc"
    user = store.get(User, "persistence1abc")
    assert user is not None
    assert user.first_seen_at == T0
    assert store.count(ActivityRecord) == 1


def test_ensure_user_twice_keeps_first_seen(store, log):
    """Same address, two timestamps: one User with the first time, two activity records."""
    ensure_user(store, "persistence1abc", T0, log)
    ensure_user(store, "persistence1abc", T0 + timedelta(minutes=5), log)
    assert store.count(User) == 1
    assert store.get(User, "persistence1abc").first_seen_at == T0
    assert store.count(ActivityRecord) == 2


def test_ensure_user_n_observations(store, log):
    """N distinct timestamps -> 1 User, N ActivityRecords, regardless of address case."""
    spellings = ["persistence1xyz", "PERSISTENCE1XYZ", "Persistence1Xyz", "persistence1XYZ"]
    for i, address in enumerate(spellings):
        ensure_user(store, address, T0 + timedelta(seconds=i), log)
    assert store.all_keys(User) == ["persistence1xyz"]
    assert store.count(ActivityRecord) == len(spellings)
    record = store.get(ActivityRecord, f"persistence1xyz-{T0.isoformat()}")
    assert record.wallet == "persistence1xyz"
    assert record.block_timestamp == T0


def test_ensure_user_same_timestamp_is_one_activity(store, log):
    """Activity is keyed by (address, time); repeating the same observation does not add rows."""
    ensure_user(store, "persistence1abc", T0, log)
    ensure_user(store, "persistence1abc", T0, log)
    assert store.count(ActivityRecord) == 1
