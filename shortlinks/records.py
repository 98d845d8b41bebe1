"""Canonical mapping record and the outcome types produced by the core.

Record Layout
=============
::
    MappingRecord
    ├─ code: str (primary key, immutable)
    ├─ target_url: str (immutable)
    ├─ created_at: datetime (UTC, immutable)
    ├─ expires_at: int | None (epoch seconds, immutable)
    ├─ click_count: int (atomic +1 only)
    ├─ last_accessed_at: datetime | None
    ├─ created_by: str | None
    └─ user_agent: str | None

Key Behaviours
===============
- Expiry is always epoch seconds; conversion to ISO-8601 happens in schemas.
- A record counts as expired only when ``expires_at`` is strictly in the past.
- Result types are immutable so they can be handed across tasks safely.
"""

import datetime
import time
from dataclasses import dataclass, field

from shortlinks.enums import RedirectState
from shortlinks.errors import CorruptRecordError, ExpiredError, NotFoundError, ValidationError

__all__ = [
    "AllocationResult",
    "MappingRecord",
    "RedirectResult",
    "StatsResult",
    "is_expired",
    "utcnow",
]


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass
class MappingRecord:
    code: str
    target_url: str
    created_at: datetime.datetime = field(default_factory=utcnow)
    expires_at: int | None = None
    click_count: int = 0
    last_accessed_at: datetime.datetime | None = None
    created_by: str | None = None
    user_agent: str | None = None


def is_expired(record: MappingRecord, now: float | None = None) -> bool:
    """Return True when the record's expiry lies strictly before ``now``.

    Args:
        record: Record to check
        now: Epoch seconds to compare against (defaults to the current time)
    """
    if record.expires_at is None:
        return False
    if now is None:
        now = time.time()
    return record.expires_at < now


@dataclass(frozen=True)
class AllocationResult:
    code: str
    record: MappingRecord


@dataclass(frozen=True)
class RedirectResult:
    state: RedirectState
    code: str
    target_url: str | None = None

    @property
    def is_active(self) -> bool:
        return self.state is RedirectState.ACTIVE

    def raise_for_state(self) -> None:
        """Raise the typed error matching a non-active state.

        Raises:
            ValidationError: state is INVALID
            NotFoundError: state is NOT_FOUND
            ExpiredError: state is EXPIRED
            CorruptRecordError: state is CORRUPT_RECORD
        """
        if self.state is RedirectState.INVALID:
            raise ValidationError(f"Invalid short code format: {self.code!r}", code=self.code)
        if self.state is RedirectState.NOT_FOUND:
            raise NotFoundError(f"Short code not found: {self.code}", code=self.code)
        if self.state is RedirectState.EXPIRED:
            raise ExpiredError(f"Short code has expired: {self.code}", code=self.code)
        if self.state is RedirectState.CORRUPT_RECORD:
            raise CorruptRecordError(f"Stored record has no target URL: {self.code}", code=self.code)


@dataclass(frozen=True)
class StatsResult:
    record: MappingRecord
    is_expired: bool
