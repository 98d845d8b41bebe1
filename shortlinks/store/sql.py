"""PostgreSQL mapping store built on SQLAlchemy async sessions.

Flow Diagram — create_if_absent()
=================================
::
    ┌─────────────┐
    │ INSERT row  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ COMMIT      │
    └──────┬──────┘
    PK OK?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌──────────┐  ┌─────────┐
│ ROLLBACK │  │ CREATED │
│ ALREADY_ │  └─────────┘
│ EXISTS   │
└──────────┘

Key Behaviours
===============
- The primary key constraint decides races between concurrent inserts;
  exactly one transaction commits, the others see a unique violation.
  Any other IntegrityError (NOT NULL, CHECK) is a StoreError, not a collision.
- Usage increments are a single ``UPDATE ... SET click_count = click_count + 1``
  with no prior read.
- Every other SQLAlchemy or connection failure surfaces as StoreError.
"""

import datetime
import logging

from sqlalchemy import select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shortlinks.enums import CreateOutcome, UpdateOutcome
from shortlinks.errors import StoreError
from shortlinks.models import ShortLink
from shortlinks.records import MappingRecord
from shortlinks.store.base import MappingStore

__all__ = ["SQLMappingStore"]

logger = logging.getLogger("shortlinks.store.sql")

_STORE_FAILURES = (SQLAlchemyError, OSError)

# SQLSTATE unique_violation; the primary key on code is the only unique constraint.
_UNIQUE_VIOLATION = "23505"


def _is_duplicate_code(exc: IntegrityError) -> bool:
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    if sqlstate is not None:
        return sqlstate == _UNIQUE_VIOLATION
    # Drivers without SQLSTATE (sqlite3) only describe the constraint in the message.
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate" in message


class SQLMappingStore(MappingStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create_if_absent(self, record: MappingRecord) -> CreateOutcome:
        try:
            async with self._session_factory() as session:
                session.add(ShortLink.from_record(record))
                try:
                    await session.commit()
                except IntegrityError as exc:
                    await session.rollback()
                    if not _is_duplicate_code(exc):
                        raise
                    return CreateOutcome.ALREADY_EXISTS
        except _STORE_FAILURES as exc:
            raise StoreError(f"Failed to create mapping for {record.code}: {exc}", code=record.code) from exc
        return CreateOutcome.CREATED

    async def get(self, code: str) -> MappingRecord | None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(ShortLink).where(ShortLink.code == code))
                row = result.scalar_one_or_none()
        except _STORE_FAILURES as exc:
            raise StoreError(f"Failed to read mapping for {code}: {exc}", code=code) from exc
        return row.to_record() if row is not None else None

    async def increment_usage(self, code: str, accessed_at: datetime.datetime) -> UpdateOutcome:
        statement = (
            update(ShortLink)
            .where(ShortLink.code == code)
            .values(click_count=ShortLink.click_count + 1, last_accessed_at=accessed_at)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                await session.commit()
        except _STORE_FAILURES as exc:
            raise StoreError(f"Failed to increment usage for {code}: {exc}", code=code) from exc
        if result.rowcount == 0:
            return UpdateOutcome.NOT_FOUND
        return UpdateOutcome.UPDATED

    async def list_created_between(
        self,
        start: datetime.datetime,
        end: datetime.datetime,
        limit: int = 100,
    ) -> list[MappingRecord]:
        statement = (
            select(ShortLink)
            .where(ShortLink.created_at.between(start, end))
            .order_by(ShortLink.created_at)
            .limit(limit)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                rows = result.scalars().all()
        except _STORE_FAILURES as exc:
            raise StoreError(f"Failed to list mappings: {exc}") from exc
        return [row.to_record() for row in rows]

    async def ping(self) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
        except _STORE_FAILURES as exc:
            logger.error(f"Database health check failed: {exc}")
            raise StoreError(f"Database unreachable: {exc}") from exc
