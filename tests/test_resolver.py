"""Tests for redirect resolution, expiry and the detached usage increment."""

import asyncio
import datetime
import time
from unittest.mock import AsyncMock

import pytest

from shortlinks.enums import RedirectState, UpdateOutcome
from shortlinks.errors import CorruptRecordError, ExpiredError, NotFoundError, StoreError, ValidationError
from shortlinks.records import MappingRecord, RedirectResult
from shortlinks.resolver import RedirectResolver
from shortlinks.store.memory import MemoryMappingStore

NOW = 1_800_000_000.0


def _record(code: str = "abc123", target_url: str = "https://example.com/x", **kwargs) -> MappingRecord:
    return MappingRecord(code=code, target_url=target_url, **kwargs)


@pytest.fixture
def resolver(mock_store: AsyncMock) -> RedirectResolver:
    return RedirectResolver(mock_store, clock=lambda: NOW)


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["ab", "a" * 21, "bad-code", "", "../etc", None])
async def test_invalid_code_makes_no_store_call(resolver: RedirectResolver, mock_store: AsyncMock, code) -> None:
    result = await resolver.resolve(code)

    assert result.state is RedirectState.INVALID
    assert result.target_url is None
    assert mock_store.mock_calls == []


@pytest.mark.asyncio
async def test_not_found(resolver: RedirectResolver, mock_store: AsyncMock) -> None:
    result = await resolver.resolve("nothere")

    assert result.state is RedirectState.NOT_FOUND
    mock_store.get.assert_awaited_once_with("nothere")
    mock_store.increment_usage.assert_not_called()


@pytest.mark.asyncio
async def test_active_schedules_one_increment(resolver: RedirectResolver, mock_store: AsyncMock) -> None:
    mock_store.get.return_value = _record(expires_at=int(NOW) + 60)

    result = await resolver.resolve("abc123")
    await resolver.drain()

    assert result.state is RedirectState.ACTIVE
    assert result.target_url == "https://example.com/x"
    mock_store.increment_usage.assert_awaited_once()
    code, accessed_at = mock_store.increment_usage.await_args.args
    assert code == "abc123"
    assert accessed_at.tzinfo is not None


@pytest.mark.asyncio
async def test_active_without_expiry(resolver: RedirectResolver, mock_store: AsyncMock) -> None:
    mock_store.get.return_value = _record(expires_at=None)

    result = await resolver.resolve("abc123")

    assert result.is_active


@pytest.mark.asyncio
async def test_expired_one_second_ago_is_not_counted(resolver: RedirectResolver, mock_store: AsyncMock) -> None:
    mock_store.get.return_value = _record(expires_at=int(NOW) - 1)

    result = await resolver.resolve("abc123")
    await resolver.drain()

    assert result.state is RedirectState.EXPIRED
    assert result.target_url is None
    mock_store.increment_usage.assert_not_called()


@pytest.mark.asyncio
async def test_expiry_boundary_is_still_active(resolver: RedirectResolver, mock_store: AsyncMock) -> None:
    mock_store.get.return_value = _record(expires_at=int(NOW))

    result = await resolver.resolve("abc123")

    assert result.state is RedirectState.ACTIVE


@pytest.mark.asyncio
@pytest.mark.parametrize("target_url", ["", None])
async def test_missing_target_is_corrupt(resolver: RedirectResolver, mock_store: AsyncMock, target_url) -> None:
    mock_store.get.return_value = _record(target_url=target_url)

    result = await resolver.resolve("abc123")

    assert result.state is RedirectState.CORRUPT_RECORD
    mock_store.increment_usage.assert_not_called()


@pytest.mark.asyncio
async def test_increment_failure_does_not_change_result(resolver: RedirectResolver, mock_store: AsyncMock) -> None:
    mock_store.get.return_value = _record()
    mock_store.increment_usage.side_effect = StoreError("throttled")

    result = await resolver.resolve("abc123")
    await resolver.drain()

    assert result.state is RedirectState.ACTIVE
    assert result.target_url == "https://example.com/x"
    mock_store.increment_usage.assert_awaited_once()
    assert resolver.pending_increments == 0


@pytest.mark.asyncio
async def test_increment_not_found_is_only_logged(resolver: RedirectResolver, mock_store: AsyncMock) -> None:
    mock_store.get.return_value = _record()
    mock_store.increment_usage.return_value = UpdateOutcome.NOT_FOUND

    result = await resolver.resolve("abc123")
    await resolver.drain()

    assert result.is_active


@pytest.mark.asyncio
async def test_redirect_does_not_wait_for_increment(resolver: RedirectResolver, mock_store: AsyncMock) -> None:
    gate = asyncio.Event()

    async def slow_increment(code: str, accessed_at: datetime.datetime) -> UpdateOutcome:
        await gate.wait()
        return UpdateOutcome.UPDATED

    mock_store.get.return_value = _record()
    mock_store.increment_usage.side_effect = slow_increment

    result = await asyncio.wait_for(resolver.resolve("abc123"), timeout=1.0)

    assert result.is_active
    assert resolver.pending_increments == 1
    gate.set()
    await resolver.drain()
    assert resolver.pending_increments == 0


@pytest.mark.asyncio
async def test_get_failure_propagates(resolver: RedirectResolver, mock_store: AsyncMock) -> None:
    mock_store.get.side_effect = StoreError("unavailable")

    with pytest.raises(StoreError):
        await resolver.resolve("abc123")

    mock_store.increment_usage.assert_not_called()


@pytest.mark.asyncio
async def test_each_resolution_counts_once() -> None:
    store = MemoryMappingStore()
    await store.create_if_absent(_record())
    resolver = RedirectResolver(store)

    for _ in range(3):
        await resolver.resolve("abc123")
    await resolver.drain()

    record = await store.get("abc123")
    assert record.click_count == 3
    assert record.last_accessed_at is not None


@pytest.mark.asyncio
async def test_default_clock_uses_wall_time() -> None:
    store = MemoryMappingStore()
    await store.create_if_absent(_record(code="old001", expires_at=int(time.time()) - 1))
    resolver = RedirectResolver(store)

    assert (await resolver.resolve("old001")).state is RedirectState.EXPIRED


@pytest.mark.parametrize(
    ("state", "error"),
    [
        (RedirectState.INVALID, ValidationError),
        (RedirectState.NOT_FOUND, NotFoundError),
        (RedirectState.EXPIRED, ExpiredError),
        (RedirectState.CORRUPT_RECORD, CorruptRecordError),
    ],
)
def test_raise_for_state(state: RedirectState, error: type) -> None:
    with pytest.raises(error):
        RedirectResult(state, "abc123").raise_for_state()


def test_raise_for_state_active_is_silent() -> None:
    RedirectResult(RedirectState.ACTIVE, "abc123", "https://example.com").raise_for_state()
