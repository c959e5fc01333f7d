"""
Entity store for indexed records.

Point get/create/save access keyed by deterministic string ids; no range
queries, joins or deletes inside the mapping logic. SQLite by default;
any SQLAlchemy URL (e.g. PostgreSQL) works through the same backend.
All access goes through the abstract EntityBackend so the storage can be
swapped without touching the handlers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator, TypeVar

from sqlalchemy import BigInteger, Column, DateTime, Integer, String, create_engine, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from persistence_indexer.core.exceptions import StoreFailureError
from persistence_indexer.database.models import (
    ActivityRecord,
    DailySnapshot,
    Entity,
    HourlySnapshot,
    MonthlySnapshot,
    RewardEvent,
    Transaction,
    Transfer,
    TransferCorrelation,
    User,
)
from persistence_indexer.indexer_logging import get_logger

logger = get_logger(__name__)

E = TypeVar("E", bound=Entity)

Base = declarative_base()

# -----------------------------------------------------------------------------
# SQLAlchemy tables: one per entity kind, column names match the dataclass fields.
# -----------------------------------------------------------------------------


class _BlockColumns:
    block_height = Column(BigInteger, nullable=False)
    block_timestamp = Column(DateTime(timezone=True), nullable=False, index=True)


class RewardEventRow(_BlockColumns, Base):
    __tablename__ = RewardEvent.ENTITY

    id = Column(String(160), primary_key=True)
    tx_hash = Column(String(64), nullable=False, index=True)
    delegator_address = Column(String(128), nullable=True, index=True)
    validator_address = Column(String(128), nullable=True, index=True)
    fee_amount = Column(String(80), nullable=False)
    fee_denomination = Column(String(128), nullable=False)
    reward_amount = Column(String(1024), nullable=True)  # coin list, e.g. "1200uxprt"


class UserRow(Base):
    __tablename__ = User.ENTITY

    id = Column(String(128), primary_key=True)
    first_seen_at = Column(DateTime(timezone=True), nullable=False)


class ActivityRecordRow(Base):
    __tablename__ = ActivityRecord.ENTITY

    id = Column(String(192), primary_key=True)
    wallet = Column(String(128), nullable=False, index=True)
    block_timestamp = Column(DateTime(timezone=True), nullable=False)


class TransferCorrelationRow(_BlockColumns, Base):
    __tablename__ = TransferCorrelation.ENTITY

    id = Column(String(32), primary_key=True)  # packet sequence
    tx_hash = Column(String(64), nullable=False)
    sender_id = Column(String(128), nullable=False, index=True)
    receiver_id = Column(String(128), nullable=False, index=True)
    amount = Column(String(80), nullable=False)
    denom = Column(String(256), nullable=True)
    type = Column(String(8), nullable=False)
    source_chain = Column(String(64), nullable=True)
    source_chain_transaction = Column(String(64), nullable=True)
    destination_chain = Column(String(64), nullable=True)
    destination_chain_transaction = Column(String(64), nullable=True)


class TransferRow(_BlockColumns, Base):
    __tablename__ = Transfer.ENTITY

    id = Column(String(160), primary_key=True)
    tx_hash = Column(String(64), nullable=False, index=True)
    to_address = Column(String(128), nullable=True, index=True)
    from_address = Column(String(128), nullable=True, index=True)
    amount = Column(String(1024), nullable=True)


class TransactionRow(_BlockColumns, Base):
    __tablename__ = Transaction.ENTITY

    id = Column(String(96), primary_key=True)
    tx_hash = Column(String(64), nullable=False, index=True)


class _SnapshotColumns(_BlockColumns):
    id = Column(String(16), primary_key=True)
    total_transactions = Column(Integer, nullable=False, default=0)


class HourlySnapshotRow(_SnapshotColumns, Base):
    __tablename__ = HourlySnapshot.ENTITY


class DailySnapshotRow(_SnapshotColumns, Base):
    __tablename__ = DailySnapshot.ENTITY


class MonthlySnapshotRow(_SnapshotColumns, Base):
    __tablename__ = MonthlySnapshot.ENTITY


_ROWS: dict[str, Any] = {
    row.__tablename__: row
    for row in (
        RewardEventRow,
        UserRow,
        ActivityRecordRow,
        TransferCorrelationRow,
        TransferRow,
        TransactionRow,
        HourlySnapshotRow,
        DailySnapshotRow,
        MonthlySnapshotRow,
    )
}


# -----------------------------------------------------------------------------
# Abstract backend: swap implementation without touching handlers.
# -----------------------------------------------------------------------------


class EntityBackend(ABC):
    """Key-value persistence per entity kind. Each call is one linearizable operation."""

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create tables and indexes if they do not exist."""
        ...

    @abstractmethod
    def load(self, kind: str, key: str) -> dict[str, Any] | None:
        """Return stored fields for (kind, key), or None."""
        ...

    @abstractmethod
    def store(self, kind: str, key: str, fields: dict[str, Any]) -> None:
        """Insert or overwrite the record for (kind, key)."""
        ...

    @abstractmethod
    def count(self, kind: str) -> int:
        ...

    @abstractmethod
    def keys(self, kind: str) -> list[str]:
        """All keys of a kind, sorted. Inspection only; handlers never scan."""
        ...


# -----------------------------------------------------------------------------
# SQLAlchemy backend
# -----------------------------------------------------------------------------


class SQLAlchemyBackend(EntityBackend):
    """SQLAlchemy implementation; one session per operation, committed before returning."""

    def __init__(self, url: str) -> None:
        self._url = url
        engine_kwargs: dict[str, Any] = {"pool_pre_ping": True}
        if url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                # In-memory database must outlive individual connections
                engine_kwargs["poolclass"] = StaticPool
        self._engine = create_engine(url, **engine_kwargs)
        self._session_factory = sessionmaker(
            bind=self._engine, autoflush=False, expire_on_commit=False
        )

    @property
    def url(self) -> str:
        return self._url

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """Commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @staticmethod
    def _row_type(kind: str) -> Any:
        try:
            return _ROWS[kind]
        except KeyError:
            raise ValueError(f"unknown entity kind: {kind}") from None

    def ensure_schema(self) -> None:
        try:
            Base.metadata.create_all(bind=self._engine)
        except SQLAlchemyError as e:
            raise StoreFailureError("ensure_schema", "*") from e
        logger.info("entity_store_schema_ready", url=self._url.split("?")[0].split("@")[-1])

    def load(self, kind: str, key: str) -> dict[str, Any] | None:
        row_type = self._row_type(kind)
        try:
            with self._session_scope() as session:
                row = session.get(row_type, key)
                if row is None:
                    return None
                return {c.name: getattr(row, c.name) for c in row_type.__table__.columns}
        except SQLAlchemyError as e:
            raise StoreFailureError("get", kind, key) from e

    def store(self, kind: str, key: str, fields: dict[str, Any]) -> None:
        row_type = self._row_type(kind)
        try:
            with self._session_scope() as session:
                session.merge(row_type(**fields))
        except SQLAlchemyError as e:
            raise StoreFailureError("save", kind, key) from e

    def count(self, kind: str) -> int:
        row_type = self._row_type(kind)
        try:
            with self._session_scope() as session:
                return int(session.scalar(select(func.count()).select_from(row_type)) or 0)
        except SQLAlchemyError as e:
            raise StoreFailureError("count", kind) from e

    def keys(self, kind: str) -> list[str]:
        row_type = self._row_type(kind)
        try:
            with self._session_scope() as session:
                return list(session.scalars(select(row_type.id).order_by(row_type.id)))
        except SQLAlchemyError as e:
            raise StoreFailureError("keys", kind) from e


# -----------------------------------------------------------------------------
# Store facade: the get/create/save surface used by the mapping handlers.
# -----------------------------------------------------------------------------


class EntityStore:
    """
    get(cls, key) -> entity | None; create(cls, **fields) -> unsaved entity; save(entity).

    Holds no cached state: every get reads the backend, every save writes through.
    """

    def __init__(self, backend: EntityBackend) -> None:
        self._backend = backend

    def ensure_schema(self) -> None:
        self._backend.ensure_schema()

    def get(self, entity_cls: type[E], key: str) -> E | None:
        data = self._backend.load(entity_cls.ENTITY, key)
        if data is None:
            return None
        return entity_cls.from_dict(data)

    def create(self, entity_cls: type[E], **fields: Any) -> E:
        """Build an entity from its complete field set. Not persisted until save()."""
        return entity_cls(**fields)

    def save(self, entity: Entity) -> None:
        self._backend.store(entity.ENTITY, entity.id, entity.to_dict())

    # --- Inspection ---

    def count(self, entity_cls: type[Entity]) -> int:
        return self._backend.count(entity_cls.ENTITY)

    def all_keys(self, entity_cls: type[Entity]) -> list[str]:
        return self._backend.keys(entity_cls.ENTITY)


def get_store(url: str | None = None) -> EntityStore:
    """
    Return an EntityStore with schema ensured.

    url: SQLAlchemy URL; default from settings (INDEXER_DB_URL / DATABASE_URL / sqlite file).
    """
    if url is None:
        from persistence_indexer.config import get_settings

        url = get_settings().database_url
    store = EntityStore(SQLAlchemyBackend(url))
    store.ensure_schema()
    return store
