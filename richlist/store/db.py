"""Database-backed blob store."""

from datetime import UTC, datetime
from typing import Self

from sqlalchemy import DateTime, LargeBinary, String, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from richlist.helpers.errors import StoreError
from richlist.helpers.logging import get_logger


logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Declarative base for rich list tables."""


class BlobDB(Base):
    """One JSON document per key."""

    __tablename__ = "richlist_blobs"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class DatabaseBlobStore:
    """Blob store on a PostgreSQL table, written with atomic upserts."""

    def __init__(self, engine: AsyncEngine) -> None:
        """Initialize the store.

        Args:
            engine: Async SQLAlchemy engine (psycopg driver)
        """
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_url(cls, database_url: str) -> Self:
        """Create a store with its own engine.

        Example:
            ```python
            store = DatabaseBlobStore.from_url(settings.require_database_url())
            await store.create_tables()
            ```
        """
        return cls(create_async_engine(database_url, echo=False))

    async def create_tables(self) -> None:
        """Create the blob table if it does not exist."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Release pooled connections."""
        await self.engine.dispose()

    async def read(self, key: str) -> bytes | None:
        """Read a blob.

        Raises:
            StoreError: If the database cannot be queried
        """
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(BlobDB.value).where(BlobDB.key == key))
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            msg = f"Error reading blob {key}: {e}"
            raise StoreError(msg) from e

    async def write(self, key: str, data: bytes) -> None:
        """Insert or overwrite a blob in place.

        Raises:
            StoreError: If the write fails
        """
        logger.debug("Writing blob %s (%d bytes)", key, len(data))
        async with self.session_factory() as session:
            try:
                stmt = pg_insert(BlobDB).values(
                    key=key, value=data, updated_at=datetime.now(UTC)
                )
                stmt = stmt.on_conflict_do_update(
                    index_elements=["key"],
                    set_={
                        "value": stmt.excluded.value,
                        "updated_at": stmt.excluded.updated_at,
                    },
                )
                await session.execute(stmt)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                msg = f"Error writing blob {key}: {e}"
                raise StoreError(msg) from e


__all__ = ["Base", "BlobDB", "DatabaseBlobStore"]
