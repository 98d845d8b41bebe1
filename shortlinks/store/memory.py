"""Process-local mapping store.

Used for tests and single-process development. Each operation runs to
completion without awaiting, so under asyncio every call is atomic with
respect to other tasks on the same loop.
"""

import dataclasses
import datetime

from shortlinks.enums import CreateOutcome, UpdateOutcome
from shortlinks.records import MappingRecord
from shortlinks.store.base import MappingStore

__all__ = ["MemoryMappingStore"]


class MemoryMappingStore(MappingStore):
    def __init__(self) -> None:
        self._records: dict[str, MappingRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def create_if_absent(self, record: MappingRecord) -> CreateOutcome:
        if record.code in self._records:
            return CreateOutcome.ALREADY_EXISTS
        self._records[record.code] = dataclasses.replace(record)
        return CreateOutcome.CREATED

    async def get(self, code: str) -> MappingRecord | None:
        record = self._records.get(code)
        # Hand out copies so callers cannot mutate stored state.
        return dataclasses.replace(record) if record is not None else None

    async def increment_usage(self, code: str, accessed_at: datetime.datetime) -> UpdateOutcome:
        record = self._records.get(code)
        if record is None:
            return UpdateOutcome.NOT_FOUND
        record.click_count += 1
        record.last_accessed_at = accessed_at
        return UpdateOutcome.UPDATED

    async def list_created_between(
        self,
        start: datetime.datetime,
        end: datetime.datetime,
        limit: int = 100,
    ) -> list[MappingRecord]:
        matches = sorted(
            (r for r in self._records.values() if start <= r.created_at <= end),
            key=lambda r: r.created_at,
        )
        return [dataclasses.replace(r) for r in matches[:limit]]
