"""
Database configuration and the SQL record store.

Uses async SQLAlchemy for non-blocking database operations. Every
collection shares one table of JSON payloads keyed by (collection, id);
the domain models own the record shape.

Design Decisions:
- AsyncSession for non-blocking operations
- Connection pooling with sensible defaults
- Explicit transaction management
- Session-per-operation pattern
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from sqlalchemy import JSON, DateTime, String, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from billforge.config import get_settings
from billforge.domain.errors import NotFound

from .store import Record, RecordStore, _check_collection

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class StoredRecord(Base):
    """
    One record of any collection.

    The payload is the domain model's record dict.
    """
    __tablename__ = "records"

    collection: Mapped[str] = mapped_column(String(32), primary_key=True)
    record_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    payload: Mapped[dict] = mapped_column(JSON, default=dict)


# Engine and session factory (initialized lazily)
_engine = None
_session_factory = None


def get_engine():
    """Get or create the async database engine."""
    global _engine
    if _engine is None:
        settings = get_settings()
        if settings.database_url is None:
            raise RuntimeError("DATABASE_URL is not configured")
        _engine = create_async_engine(
            str(settings.database_url),
            echo=settings.debug,
            pool_size=5,
            max_overflow=10,
            pool_timeout=30,
        )
        # Extract host from MultiHostUrl (Pydantic v2)
        hosts = settings.database_url.hosts()
        host_info = hosts[0]["host"] if hosts else "unknown"
        logger.info(f"Database engine created for {host_info}")
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the session factory for creating database sessions."""
    global _session_factory
    if _session_factory is None:
        engine = get_engine()
        _session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session.

    Usage:
        async with get_session() as session:
            session.add(record)
            await session.commit()
    """
    factory = get_session_factory()
    session = factory()
    try:
        yield session
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def init_db() -> None:
    """
    Initialize database tables.

    Call this on application startup to ensure tables exist.
    """
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized")


async def close_db() -> None:
    """Close database connections on shutdown."""
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None
    logger.info("Database connections closed")


class SqlRecordStore(RecordStore):
    """Record store backed by the ``records`` table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        """
        Args:
            session_factory: Session factory. Uses the configured database if None.
        """
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        if self._session_factory is None:
            async with get_session() as session:
                yield session
            return
        session = self._session_factory()
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def get(self, collection: str, record_id: str) -> Record:
        _check_collection(collection)
        async with self._session() as session:
            row = await session.get(StoredRecord, (collection, record_id))
            if row is None:
                raise NotFound(collection, record_id)
            return dict(row.payload)

    async def list(self, collection: str) -> list[Record]:
        _check_collection(collection)
        async with self._session() as session:
            result = await session.scalars(
                select(StoredRecord)
                .where(StoredRecord.collection == collection)
                .order_by(StoredRecord.created_at.desc())
            )
            return [dict(row.payload) for row in result]

    async def insert(self, collection: str, record: Record) -> Record:
        _check_collection(collection)
        async with self._session() as session:
            session.add(StoredRecord(collection=collection, record_id=str(record["id"]), payload=record))
            await session.commit()
        logger.debug(f"Inserted {collection}/{record['id']}")
        return record

    async def update(self, collection: str, record: Record) -> Record:
        _check_collection(collection)
        async with self._session() as session:
            row = await session.get(StoredRecord, (collection, str(record["id"])))
            if row is None:
                raise NotFound(collection, str(record["id"]))
            row.payload = record
            await session.commit()
        return record

    async def delete(self, collection: str, record_id: str) -> bool:
        _check_collection(collection)
        async with self._session() as session:
            row = await session.get(StoredRecord, (collection, record_id))
            if row is None:
                return False
            await session.delete(row)
            await session.commit()
        return True
