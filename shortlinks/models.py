"""SQLAlchemy ORM model for short link mappings.

Data Model Layout
=================
::
    short_links table
    ├─ code (VARCHAR(20) PRIMARY KEY)
    ├─ target_url (TEXT NOT NULL)
    ├─ created_at (TIMESTAMPTZ NOT NULL, INDEXED)
    ├─ expires_at (BIGINT NULL, epoch seconds)
    ├─ click_count (BIGINT DEFAULT 0)
    ├─ last_accessed_at (TIMESTAMPTZ NULL)
    ├─ created_by (VARCHAR(255) NULL)
    └─ user_agent (TEXT NULL)

Key Behaviours
===============
- ``code`` is the primary key, so the unique constraint is what makes
  inserts conditional: a duplicate raises IntegrityError.
- ``created_at`` is indexed for range listings.
- ``click_count`` is only ever changed by ``click_count + 1`` updates.

Classes:
    ShortLink:  Row form of :class:`~shortlinks.records.MappingRecord`.
"""

import datetime

from sqlalchemy import BigInteger, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from shortlinks.database import Base
from shortlinks.records import MappingRecord

__all__ = ["ShortLink"]


class ShortLink(Base):
    __tablename__ = "short_links"

    code: Mapped[str] = mapped_column(String(20), primary_key=True)
    target_url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)
    expires_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    click_count: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    last_accessed_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)

    @classmethod
    def from_record(cls, record: MappingRecord) -> "ShortLink":
        return cls(
            code=record.code,
            target_url=record.target_url,
            created_at=record.created_at,
            expires_at=record.expires_at,
            click_count=record.click_count,
            last_accessed_at=record.last_accessed_at,
            created_by=record.created_by,
            user_agent=record.user_agent,
        )

    def to_record(self) -> MappingRecord:
        return MappingRecord(
            code=self.code,
            target_url=self.target_url,
            created_at=self.created_at,
            expires_at=self.expires_at,
            click_count=self.click_count,
            last_accessed_at=self.last_accessed_at,
            created_by=self.created_by,
            user_agent=self.user_agent,
        )

    def __repr__(self) -> str:
        return f"<ShortLink(code='{self.code}', click_count={self.click_count})>"
