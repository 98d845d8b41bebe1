"""Redis mapping store.

Each record is a hash under ``{prefix}:{code}``; a sorted set under
``{prefix}:index:created`` scores codes by creation time for range listings.
Codes never contain ``:``, so index keys cannot clash with record keys.

Flow Diagram — Atomic Operations
================================
::
    create_if_absent               increment_usage
    ┌──────────────┐               ┌──────────────┐
    │ EVAL script  │               │ EVAL script  │
    └──────┬───────┘               └──────┬───────┘
           ▼                              ▼
    EXISTS key? ── yes ─► 0        EXISTS key? ── no ─► -1
           │ no                           │ yes
           ▼                              ▼
    HSET fields + ZADD index       HINCRBY click_count 1
           │                       HSET last_accessed_at
           ▼                              │
           1                              ▼
                                       new count

Key Behaviours
===============
- Both scripts run as one server-side step, so a concurrent racer never
  observes a half-written record or a lost increment.
- ``None`` fields are not written; a hash with no ``target_url`` is returned
  with an empty target so the resolver can flag it as corrupt.
- Client errors surface as StoreError.
"""

import datetime
import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from shortlinks.enums import CreateOutcome, UpdateOutcome
from shortlinks.errors import StoreError
from shortlinks.records import MappingRecord
from shortlinks.store.base import MappingStore

__all__ = ["RedisMappingStore"]

logger = logging.getLogger("shortlinks.store.redis")

_STORE_FAILURES = (RedisError, OSError)

CREATE_IF_ABSENT_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 1 then
    return 0
end
redis.call('HSET', KEYS[1], unpack(ARGV, 3))
redis.call('ZADD', KEYS[2], ARGV[1], ARGV[2])
return 1
"""

INCREMENT_USAGE_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return -1
end
local count = redis.call('HINCRBY', KEYS[1], 'click_count', 1)
redis.call('HSET', KEYS[1], 'last_accessed_at', ARGV[1])
return count
"""


def _encode_record(record: MappingRecord) -> list[str]:
    fields = {
        "code": record.code,
        "target_url": record.target_url,
        "created_at": record.created_at.isoformat(),
        "expires_at": record.expires_at,
        "click_count": record.click_count,
        "last_accessed_at": record.last_accessed_at.isoformat() if record.last_accessed_at else None,
        "created_by": record.created_by,
        "user_agent": record.user_agent,
    }
    flat: list[str] = []
    for name, value in fields.items():
        if value is not None:
            flat.extend((name, str(value)))
    return flat


def _decode_record(code: str, data: dict[str, str]) -> MappingRecord:
    expires_at = data.get("expires_at")
    last_accessed_at = data.get("last_accessed_at")
    created_at = data.get("created_at")
    return MappingRecord(
        code=code,
        target_url=data.get("target_url", ""),
        created_at=(
            datetime.datetime.fromisoformat(created_at)
            if created_at
            else datetime.datetime.fromtimestamp(0, datetime.timezone.utc)
        ),
        expires_at=int(expires_at) if expires_at else None,
        click_count=int(data.get("click_count", 0)),
        last_accessed_at=datetime.datetime.fromisoformat(last_accessed_at) if last_accessed_at else None,
        created_by=data.get("created_by"),
        user_agent=data.get("user_agent"),
    )


class RedisMappingStore(MappingStore):
    def __init__(self, client: redis.Redis, key_prefix: str = "shortlink") -> None:
        self._redis = client
        self._prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "shortlink") -> "RedisMappingStore":
        client = redis.from_url(url, encoding="utf-8", decode_responses=True)
        return cls(client, key_prefix=key_prefix)

    def _key(self, code: str) -> str:
        return f"{self._prefix}:{code}"

    @property
    def _created_index_key(self) -> str:
        return f"{self._prefix}:index:created"

    async def create_if_absent(self, record: MappingRecord) -> CreateOutcome:
        args = [str(record.created_at.timestamp()), record.code, *_encode_record(record)]
        try:
            created = await self._redis.eval(
                CREATE_IF_ABSENT_SCRIPT,
                2,
                self._key(record.code),
                self._created_index_key,
                *args,
            )
        except _STORE_FAILURES as exc:
            raise StoreError(f"Failed to create mapping for {record.code}: {exc}", code=record.code) from exc
        return CreateOutcome.CREATED if int(created) == 1 else CreateOutcome.ALREADY_EXISTS

    async def get(self, code: str) -> MappingRecord | None:
        try:
            data = await self._redis.hgetall(self._key(code))
        except _STORE_FAILURES as exc:
            raise StoreError(f"Failed to read mapping for {code}: {exc}", code=code) from exc
        if not data:
            return None
        return _decode_record(code, data)

    async def increment_usage(self, code: str, accessed_at: datetime.datetime) -> UpdateOutcome:
        try:
            count = await self._redis.eval(INCREMENT_USAGE_SCRIPT, 1, self._key(code), accessed_at.isoformat())
        except _STORE_FAILURES as exc:
            raise StoreError(f"Failed to increment usage for {code}: {exc}", code=code) from exc
        if int(count) < 0:
            return UpdateOutcome.NOT_FOUND
        return UpdateOutcome.UPDATED

    async def list_created_between(
        self,
        start: datetime.datetime,
        end: datetime.datetime,
        limit: int = 100,
    ) -> list[MappingRecord]:
        try:
            codes = await self._redis.zrangebyscore(
                self._created_index_key,
                start.timestamp(),
                end.timestamp(),
                start=0,
                num=limit,
            )
            if not codes:
                return []
            async with self._redis.pipeline(transaction=False) as pipe:
                for code in codes:
                    pipe.hgetall(self._key(code))
                hashes = await pipe.execute()
        except _STORE_FAILURES as exc:
            raise StoreError(f"Failed to list mappings: {exc}") from exc
        # Index entries can outlive hashes reaped by an external retention job.
        return [_decode_record(code, data) for code, data in zip(codes, hashes) if data]

    async def ping(self) -> None:
        try:
            await self._redis.ping()
        except _STORE_FAILURES as exc:
            logger.error(f"Cache health check failed: {exc}")
            raise StoreError(f"Redis unreachable: {exc}") from exc

    async def close(self) -> None:
        await self._redis.aclose()
