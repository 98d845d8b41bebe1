"""Dependency injection with a process-wide service manager.

This module builds the mapping store selected by configuration once at
startup, wires it into a :class:`~shortlinks.service.ShorteningService`, and
hands it to every endpoint together with a lightweight request context.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from shortlinks.config import Settings, StoreBackend, get_settings
from shortlinks.database import close_db, create_engine, create_session_factory, init_db
from shortlinks.service import ShorteningService
from shortlinks.store.base import MappingStore
from shortlinks.store.memory import MemoryMappingStore


# ============================================================================
# SERVICE MANAGER
# ============================================================================


class ServiceManager:
    """Holder for resources shared across requests.

    The store is created once per process; tests pass their own store to
    :meth:`initialize` instead of the configured backend.
    """

    def __init__(self) -> None:
        self._initialized = False
        self._engine: AsyncEngine | None = None
        self.settings: Settings | None = None
        self.logger: logging.Logger | None = None
        self.store: MappingStore | None = None
        self.service: ShorteningService | None = None

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self, settings: Settings | None = None, store: MappingStore | None = None) -> None:
        """Initialize shared resources once at startup."""
        if self._initialized:
            return
        self.settings = settings or get_settings()
        self.logger = self._setup_logger()
        self.store = store if store is not None else await self._setup_store()
        self.service = ShorteningService.from_settings(self.store, self.settings)
        self._initialized = True
        self.logger.info(f"Service manager ready with {type(self.store).__name__}")

    def _setup_logger(self) -> logging.Logger:
        """Setup logger once."""
        logger = logging.getLogger("shortlinks")
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        logger.setLevel(self.settings.LOG_LEVEL.upper())
        return logger

    async def _setup_store(self) -> MappingStore:
        """Build the store named by STORE_BACKEND."""
        backend = self.settings.STORE_BACKEND
        if backend is StoreBackend.MEMORY:
            self.logger.warning("Using in-memory store; mappings are lost on restart")
            return MemoryMappingStore()
        if backend is StoreBackend.REDIS:
            from shortlinks.store.redis import RedisMappingStore

            return RedisMappingStore.from_url(self.settings.REDIS_URL, key_prefix=self.settings.REDIS_KEY_PREFIX)

        from shortlinks.store.sql import SQLMappingStore

        self._engine = create_engine(self.settings)
        await init_db(self._engine)
        return SQLMappingStore(create_session_factory(self._engine))

    async def cleanup(self) -> None:
        """Cleanup shared resources at shutdown."""
        if self.service is not None:
            await self.service.close()
        if self.store is not None:
            await self.store.close()
        if self._engine is not None:
            await close_db(self._engine)
            self._engine = None
        self._initialized = False


# Process-wide instance used by the application lifespan
_service_manager = ServiceManager()


# ============================================================================
# LIGHTWEIGHT REQUEST CONTEXT
# ============================================================================


@dataclass
class RequestContext:
    """Per-request tracking data plus access to shared resources.

    Attributes:
        service_manager: Service manager with shared resources
        request_id: Unique identifier for this request
        user_agent: Client user agent string
        client_ip: Client IP address
        referer: Referring page, if the client sent one
        start_time: Request start timestamp
    """

    service_manager: ServiceManager
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None
    referer: Optional[str] = None
    start_time: float = field(default_factory=lambda: time.time())

    @property
    def service(self) -> ShorteningService:
        return self.service_manager.service

    @property
    def settings(self) -> Settings:
        return self.service_manager.settings

    @property
    def logger(self) -> logging.LoggerAdapter:
        """Get shared logger with request context."""
        return logging.LoggerAdapter(
            self.service_manager.logger,
            {
                "request_id": self.request_id,
                "client_ip": self.client_ip,
                "user_agent": self.user_agent,
            },
        )

    def get_duration(self) -> float:
        """Get request duration in milliseconds."""
        return (time.time() - self.start_time) * 1000


# ============================================================================
# DEPENDENCY FUNCTIONS
# ============================================================================


async def get_service_manager() -> ServiceManager:
    if not _service_manager.initialized:
        await _service_manager.initialize()
    return _service_manager


async def get_request_context(
    request: Request,
    manager: ServiceManager = Depends(get_service_manager),
) -> RequestContext:
    client_ip = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")
    referer = request.headers.get("referer")
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())

    return RequestContext(
        service_manager=manager,
        request_id=request_id,
        user_agent=user_agent,
        client_ip=client_ip,
        referer=referer,
    )


def get_shortening_service(ctx: RequestContext = Depends(get_request_context)) -> ShorteningService:
    return ctx.service
