"""Concurrency tests: parallel allocation and parallel redirects share one store."""

import asyncio

import pytest

from shortlinks.service import ShorteningService
from shortlinks.store.memory import MemoryMappingStore


@pytest.mark.asyncio
async def test_parallel_allocations_are_unique() -> None:
    store = MemoryMappingStore()
    service = ShorteningService(store, default_code_length=3)

    results = await asyncio.gather(*(service.shorten(f"https://example.com/{i}") for i in range(200)))

    codes = [r.code for r in results]
    assert len(set(codes)) == 200
    assert len(store) == 200
    for result in results:
        assert (await store.get(result.code)).target_url == result.record.target_url


@pytest.mark.asyncio
async def test_parallel_redirects_count_every_click() -> None:
    store = MemoryMappingStore()
    service = ShorteningService(store)
    created = await service.shorten("https://example.com", custom_code="busy01")

    results = await asyncio.gather(*(service.resolve(created.code) for _ in range(50)))
    await service.close()

    assert all(r.is_active for r in results)
    assert (await store.get("busy01")).click_count == 50
