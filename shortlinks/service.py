"""Shortening service: the entry point the transport layer calls.

Composes URL normalization, expiry computation, allocation, resolution and
stats behind one object built from a single mapping store.

Flow Diagram — shorten()
========================
::
    ┌─────────────┐
    │ raw URL     │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ normalize   │──► ValidationError
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ expires_at =│
    │ now + days  │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ allocator   │──► CodeConflictError / AllocationExhaustedError
    └──────┬──────┘
           ▼
     AllocationResult
"""

import logging
import time
from collections.abc import Callable

from shortlinks.allocator import UniquenessAllocator
from shortlinks.analytics import AnalyticsReader
from shortlinks.config import Settings
from shortlinks.errors import ValidationError
from shortlinks.records import AllocationResult, RedirectResult, StatsResult
from shortlinks.resolver import RedirectResolver
from shortlinks.store.base import MappingStore
from shortlinks.urls import normalize_target_url

__all__ = ["ShorteningService"]

SECONDS_PER_DAY = 24 * 60 * 60


class ShorteningService:
    """Facade over allocator, resolver and analytics sharing one store.

    Example:
        >>> service = ShorteningService.from_settings(MemoryMappingStore(), get_settings())
        >>> result = await service.shorten("example.com/x")
        >>> (await service.resolve(result.code)).target_url
        'https://example.com/x'
    """

    def __init__(
        self,
        store: MappingStore,
        *,
        default_expiry_days: int = 365,
        default_code_length: int = 6,
        max_allocation_attempts: int = 5,
        fallback_code_length: int = 12,
        clock: Callable[[], float] = time.time,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self.store = store
        self._default_expiry_days = default_expiry_days
        self._clock = clock
        self._logger = logger or logging.getLogger("shortlinks.service")
        self.allocator = UniquenessAllocator(
            store,
            default_length=default_code_length,
            max_attempts=max_allocation_attempts,
            fallback_length=fallback_code_length,
            logger=logger,
        )
        self.resolver = RedirectResolver(store, clock=clock, logger=logger)
        self.analytics = AnalyticsReader(store, clock=clock, logger=logger)

    @classmethod
    def from_settings(
        cls,
        store: MappingStore,
        settings: Settings,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> "ShorteningService":
        return cls(
            store,
            default_expiry_days=settings.DEFAULT_EXPIRY_DAYS,
            default_code_length=settings.DEFAULT_CODE_LENGTH,
            max_allocation_attempts=settings.MAX_ALLOCATION_ATTEMPTS,
            fallback_code_length=settings.FALLBACK_CODE_LENGTH,
            logger=logger,
        )

    async def shorten(
        self,
        url: str,
        custom_code: str | None = None,
        expiration_days: int | None = None,
        *,
        created_by: str | None = None,
        user_agent: str | None = None,
    ) -> AllocationResult:
        """Normalize ``url``, compute its expiry and allocate a short code.

        Args:
            url: Target URL; ``https://`` is assumed when no scheme is given
            custom_code: Optional caller-chosen code
            expiration_days: Retention in days (defaults to the configured value)
            created_by: Creator address kept on the record
            user_agent: Creator user agent kept on the record

        Raises:
            ValidationError: Bad URL, code or expiration_days
            CodeConflictError: ``custom_code`` is taken
            AllocationExhaustedError: No unique code could be reserved
            StoreError: The store failed
        """
        target_url = normalize_target_url(url)

        days = self._default_expiry_days if expiration_days is None else expiration_days
        if isinstance(days, bool) or not isinstance(days, int) or days < 1:
            raise ValidationError(f"expiration_days must be a positive integer, got {days!r}")
        expires_at = int(self._clock()) + days * SECONDS_PER_DAY

        return await self.allocator.allocate(
            target_url,
            custom_code,
            expires_at=expires_at,
            created_by=created_by,
            user_agent=user_agent,
        )

    async def resolve(self, code: str) -> RedirectResult:
        return await self.resolver.resolve(code)

    async def stats(self, code: str) -> StatsResult:
        return await self.analytics.stats(code)

    async def close(self) -> None:
        await self.resolver.drain()
