"""Shared pytest fixtures for core, store and API tests."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from shortlinks.config import Settings, StoreBackend
from shortlinks.dependencies import ServiceManager, get_service_manager
from shortlinks.enums import CreateOutcome, UpdateOutcome
from shortlinks.main import app
from shortlinks.store.base import MappingStore
from shortlinks.store.memory import MemoryMappingStore


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        STORE_BACKEND=StoreBackend.MEMORY,
        BASE_URL="http://sho.rt",
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def memory_store() -> MemoryMappingStore:
    return MemoryMappingStore()


@pytest.fixture
def mock_store() -> AsyncMock:
    """Store double that records every call; creates and increments succeed by default."""
    store = AsyncMock(spec=MappingStore)
    store.create_if_absent.return_value = CreateOutcome.CREATED
    store.get.return_value = None
    store.increment_usage.return_value = UpdateOutcome.UPDATED
    store.list_created_between.return_value = []
    return store


@pytest_asyncio.fixture
async def service_manager(settings: Settings, memory_store: MemoryMappingStore) -> AsyncGenerator[ServiceManager, None]:
    manager = ServiceManager()
    await manager.initialize(settings, store=memory_store)
    yield manager
    await manager.cleanup()


@pytest_asyncio.fixture
async def client(service_manager: ServiceManager) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_service_manager() -> ServiceManager:
        return service_manager

    app.dependency_overrides[get_service_manager] = override_get_service_manager

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
