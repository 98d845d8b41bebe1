"""Tests for the Redis mapping store against a mocked client."""

import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError

from shortlinks.enums import CreateOutcome, UpdateOutcome
from shortlinks.errors import StoreError
from shortlinks.records import MappingRecord
from shortlinks.store.redis import CREATE_IF_ABSENT_SCRIPT, INCREMENT_USAGE_SCRIPT, RedisMappingStore

UTC = datetime.timezone.utc
CREATED_AT = datetime.datetime(2025, 1, 1, tzinfo=UTC)


@pytest.fixture
def mock_redis() -> AsyncMock:
    client = AsyncMock(spec=redis.Redis)
    client.eval = AsyncMock(return_value=1)
    client.hgetall = AsyncMock(return_value={})
    client.zrangebyscore = AsyncMock(return_value=[])
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def store(mock_redis: AsyncMock) -> RedisMappingStore:
    return RedisMappingStore(mock_redis, key_prefix="sl")


def _record() -> MappingRecord:
    return MappingRecord(code="abc123", target_url="https://example.com", created_at=CREATED_AT, expires_at=1_900_000_000)


@pytest.mark.asyncio
async def test_create_runs_atomic_script(store: RedisMappingStore, mock_redis: AsyncMock) -> None:
    outcome = await store.create_if_absent(_record())

    assert outcome is CreateOutcome.CREATED
    args = mock_redis.eval.await_args.args
    assert args[0] == CREATE_IF_ABSENT_SCRIPT
    assert args[1:4] == (2, "sl:abc123", "sl:index:created")
    assert args[4] == str(CREATED_AT.timestamp())
    assert args[5] == "abc123"
    fields = dict(zip(args[6::2], args[7::2]))
    assert fields["target_url"] == "https://example.com"
    assert fields["expires_at"] == "1900000000"
    assert fields["click_count"] == "0"
    assert "last_accessed_at" not in fields


@pytest.mark.asyncio
async def test_create_existing(store: RedisMappingStore, mock_redis: AsyncMock) -> None:
    mock_redis.eval.return_value = 0

    assert await store.create_if_absent(_record()) is CreateOutcome.ALREADY_EXISTS


@pytest.mark.asyncio
async def test_create_failure(store: RedisMappingStore, mock_redis: AsyncMock) -> None:
    mock_redis.eval.side_effect = RedisConnectionError("refused")

    with pytest.raises(StoreError):
        await store.create_if_absent(_record())


@pytest.mark.asyncio
async def test_get_decodes_hash(store: RedisMappingStore, mock_redis: AsyncMock) -> None:
    mock_redis.hgetall.return_value = {
        "code": "abc123",
        "target_url": "https://example.com",
        "created_at": CREATED_AT.isoformat(),
        "expires_at": "1900000000",
        "click_count": "4",
        "last_accessed_at": CREATED_AT.isoformat(),
    }

    record = await store.get("abc123")

    mock_redis.hgetall.assert_awaited_once_with("sl:abc123")
    assert record.target_url == "https://example.com"
    assert record.created_at == CREATED_AT
    assert record.expires_at == 1_900_000_000
    assert record.click_count == 4
    assert record.last_accessed_at == CREATED_AT
    assert record.created_by is None


@pytest.mark.asyncio
async def test_get_missing(store: RedisMappingStore) -> None:
    assert await store.get("abc123") is None


@pytest.mark.asyncio
async def test_get_hash_without_target_is_returned_empty(store: RedisMappingStore, mock_redis: AsyncMock) -> None:
    mock_redis.hgetall.return_value = {"click_count": "3"}

    record = await store.get("abc123")

    assert record.target_url == ""
    assert record.click_count == 3


@pytest.mark.asyncio
@pytest.mark.parametrize(("reply", "expected"), [(5, UpdateOutcome.UPDATED), (-1, UpdateOutcome.NOT_FOUND)])
async def test_increment_usage(
    store: RedisMappingStore, mock_redis: AsyncMock, reply: int, expected: UpdateOutcome
) -> None:
    mock_redis.eval.return_value = reply

    outcome = await store.increment_usage("abc123", CREATED_AT)

    assert outcome is expected
    mock_redis.eval.assert_awaited_once_with(INCREMENT_USAGE_SCRIPT, 1, "sl:abc123", CREATED_AT.isoformat())


@pytest.mark.asyncio
async def test_list_created_between_skips_reaped_hashes(store: RedisMappingStore, mock_redis: AsyncMock) -> None:
    mock_redis.zrangebyscore.return_value = ["abc123", "gone01"]
    pipe = MagicMock()
    pipe.execute = AsyncMock(
        return_value=[{"target_url": "https://example.com", "created_at": CREATED_AT.isoformat()}, {}]
    )
    pipeline_context = MagicMock()
    pipeline_context.__aenter__.return_value = pipe
    pipeline_context.__aexit__.return_value = False
    mock_redis.pipeline = MagicMock(return_value=pipeline_context)

    records = await store.list_created_between(CREATED_AT, CREATED_AT + datetime.timedelta(days=1), limit=10)

    assert [r.code for r in records] == ["abc123"]
    assert pipe.hgetall.call_count == 2
    mock_redis.zrangebyscore.assert_awaited_once_with(
        "sl:index:created",
        CREATED_AT.timestamp(),
        (CREATED_AT + datetime.timedelta(days=1)).timestamp(),
        start=0,
        num=10,
    )


@pytest.mark.asyncio
async def test_ping_failure(store: RedisMappingStore, mock_redis: AsyncMock) -> None:
    mock_redis.ping.side_effect = RedisConnectionError("down")

    with pytest.raises(StoreError):
        await store.ping()


@pytest.mark.asyncio
async def test_close(store: RedisMappingStore, mock_redis: AsyncMock) -> None:
    await store.close()
    mock_redis.aclose.assert_awaited_once()
