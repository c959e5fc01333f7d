"""
Entity store: get/create/save access to indexed entities.

SQLite via SQLAlchemy by default (get_store()); backend is swappable.
"""

from persistence_indexer.database.database import (
    EntityBackend,
    EntityStore,
    SQLAlchemyBackend,
    get_store,
)
from persistence_indexer.database.models import (
    ENTITY_TYPES,
    ActivityRecord,
    DailySnapshot,
    Entity,
    HourlySnapshot,
    MonthlySnapshot,
    RewardEvent,
    TimeBucketSnapshot,
    Transaction,
    Transfer,
    TransferCorrelation,
    User,
)

__all__ = [
    "EntityBackend",
    "EntityStore",
    "SQLAlchemyBackend",
    "get_store",
    "ENTITY_TYPES",
    "ActivityRecord",
    "DailySnapshot",
    "Entity",
    "HourlySnapshot",
    "MonthlySnapshot",
    "RewardEvent",
    "TimeBucketSnapshot",
    "Transaction",
    "Transfer",
    "TransferCorrelation",
    "User",
]
