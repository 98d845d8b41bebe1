"""Mapping store contract consumed by the allocator, resolver and analytics.

Every operation is atomic at the store level. Adapters translate their own
driver failures into :class:`~shortlinks.errors.StoreError` and never raise
for the expected outcomes (``ALREADY_EXISTS``, ``NOT_FOUND``), which are
returned as values instead.

Operation Contract
==================
::
    create_if_absent(record)  ──► CREATED | ALREADY_EXISTS
    get(code)                 ──► MappingRecord | None
    increment_usage(code, at) ──► UPDATED | NOT_FOUND
    list_created_between(...) ──► [MappingRecord, ...] (oldest first)
"""

import abc
import datetime

from shortlinks.enums import CreateOutcome, UpdateOutcome
from shortlinks.records import MappingRecord

__all__ = ["MappingStore"]


class MappingStore(abc.ABC):
    """Abstract key-value mapping store keyed by short code."""

    @abc.abstractmethod
    async def create_if_absent(self, record: MappingRecord) -> CreateOutcome:
        """Insert ``record`` only if no record with its code exists."""

    @abc.abstractmethod
    async def get(self, code: str) -> MappingRecord | None:
        """Return the record for ``code`` or None."""

    @abc.abstractmethod
    async def increment_usage(self, code: str, accessed_at: datetime.datetime) -> UpdateOutcome:
        """Atomically add 1 to ``click_count`` and set ``last_accessed_at``."""

    @abc.abstractmethod
    async def list_created_between(
        self,
        start: datetime.datetime,
        end: datetime.datetime,
        limit: int = 100,
    ) -> list[MappingRecord]:
        """Return records with ``start <= created_at <= end``, oldest first."""

    async def ping(self) -> None:
        """Raise StoreError when the backing service is unreachable."""

    async def close(self) -> None:
        """Release connections held by the adapter."""
