"""Read-only usage statistics over mapping records."""

import datetime
import logging
import time
from collections.abc import Callable

from shortlinks.codes import validate_code
from shortlinks.errors import NotFoundError, ValidationError
from shortlinks.records import StatsResult, is_expired
from shortlinks.store.base import MappingStore

__all__ = ["AnalyticsReader"]

MAX_LIST_LIMIT = 1000


def _as_utc(value: datetime.datetime) -> datetime.datetime:
    # Naive bounds are taken as UTC; stored timestamps are always aware.
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


class AnalyticsReader:
    def __init__(
        self,
        store: MappingStore,
        *,
        clock: Callable[[], float] = time.time,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._logger = logger or logging.getLogger("shortlinks.analytics")

    async def stats(self, code: str) -> StatsResult:
        """Project a record into usage stats.

        Raises:
            ValidationError: ``code`` is malformed (no store call is made)
            NotFoundError: no record exists for ``code``
            StoreError: the lookup failed
        """
        validate_code(code)
        record = await self._store.get(code)
        if record is None:
            self._logger.info(f"Stats not found for code: {code}")
            raise NotFoundError(f"Short code not found: {code}", code=code)
        return StatsResult(record=record, is_expired=is_expired(record, self._clock()))

    async def created_between(
        self,
        start: datetime.datetime,
        end: datetime.datetime,
        limit: int = 100,
    ) -> list[StatsResult]:
        start, end = _as_utc(start), _as_utc(end)
        if start > end:
            raise ValidationError("start must not be after end")
        if not 1 <= limit <= MAX_LIST_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_LIST_LIMIT}")
        now = self._clock()
        records = await self._store.list_created_between(start, end, limit)
        return [StatsResult(record=r, is_expired=is_expired(r, now)) for r in records]
