"""Stats and listing endpoint behavior tests."""

import time

import pytest
from httpx import AsyncClient

from shortlinks.dependencies import ServiceManager
from shortlinks.records import MappingRecord
from shortlinks.store.memory import MemoryMappingStore


@pytest.mark.asyncio
async def test_stats_valid_code(client: AsyncClient) -> None:
    create_resp = await client.post("/api/shorten", json={"url": "https://www.google.com"})
    code = create_resp.json()["code"]

    response = await client.get(f"/api/stats/{code}")
    assert response.status_code == 200
    data = response.json()
    assert data["code"] == code
    assert data["target_url"] == "https://www.google.com"
    assert data["click_count"] == 0
    assert data["is_expired"] is False
    assert data["last_accessed_at"] is None
    assert data["originalUrl"] == "https://www.google.com"
    assert data["clickCount"] == 0
    assert data["isExpired"] is False


@pytest.mark.asyncio
async def test_stats_unknown_code(client: AsyncClient) -> None:
    response = await client.get("/api/stats/nonexistent")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_stats_malformed_code(client: AsyncClient) -> None:
    response = await client.get("/api/stats/x")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_stats_expired_link_is_still_readable(client: AsyncClient, memory_store: MemoryMappingStore) -> None:
    await memory_store.create_if_absent(
        MappingRecord(code="old123", target_url="https://www.example.com", expires_at=int(time.time()) - 60)
    )

    response = await client.get("/api/stats/old123")

    assert response.status_code == 200
    assert response.json()["is_expired"] is True


@pytest.mark.asyncio
async def test_stats_after_clicks(client: AsyncClient, service_manager: ServiceManager) -> None:
    create_resp = await client.post("/api/shorten", json={"url": "https://www.example.com"})
    code = create_resp.json()["code"]

    for _ in range(5):
        await client.get(f"/{code}", follow_redirects=False)
    await service_manager.service.resolver.drain()

    response = await client.get(f"/api/stats/{code}")
    data = response.json()
    assert data["click_count"] == 5
    assert data["last_accessed_at"] is not None


@pytest.mark.asyncio
async def test_list_links(client: AsyncClient) -> None:
    for code in ("first1", "second2"):
        await client.post("/api/shorten", json={"url": "https://www.example.com", "custom_code": code})

    response = await client.get("/api/links", params={"start": "2000-01-01T00:00:00Z"})

    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert [item["code"] for item in data["items"]] == ["first1", "second2"]


@pytest.mark.asyncio
async def test_list_links_rejects_inverted_range(client: AsyncClient) -> None:
    response = await client.get(
        "/api/links",
        params={"start": "2030-01-02T00:00:00Z", "end": "2030-01-01T00:00:00Z"},
    )
    assert response.status_code == 400
