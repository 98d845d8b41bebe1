"""Uniqueness allocator: turns candidate codes into durably reserved ones.

The conditional create of the mapping store is the single atomic event that
settles races between concurrent allocators proposing the same code. A
collision is an ordinary branch of the loop below, not an error.

Allocation Flow
===============
::
    ┌──────────────┐
    │ custom code? │
    └──────┬───────┘
    YES    │    NO
    ┌──────┴──────────────────────┐
    ▼                             ▼
┌──────────────┐          ┌──────────────────┐
│ validate     │          │ attempt 1..N:    │
│ create once  │          │ generate, create │◄─┐
└──────┬───────┘          └────────┬─────────┘  │
  EXISTS?                    EXISTS? ── yes ────┘
  ├─ yes ─► CodeConflictError      │ no (or N used up)
  └─ no  ─► AllocationResult       ▼
                          ┌──────────────────┐
                          │ fallback: 128-bit│
                          │ id, create once  │
                          └────────┬─────────┘
                             EXISTS?
                             ├─ yes ─► AllocationExhaustedError
                             └─ no  ─► AllocationResult

How to Use
===========
**Step 1 — Build with a store**::
    allocator = UniquenessAllocator(store, default_length=6, max_attempts=5)

**Step 2 — Allocate**::
    result = await allocator.allocate("https://example.com/x")
    print(result.code, result.record.created_at)

**Step 3 — Custom code**::
    try:
        await allocator.allocate("https://example.com", custom_code="promo1")
    except CodeConflictError:
        ...

Key Behaviours
===============
- Expected cost is one store round trip; worst case is max_attempts + 1.
- Store failures other than a collision propagate on the first occurrence.
- The returned record is the one written, so no read-after-write is needed.
"""

import logging
import time

from shortlinks.codes import fallback_code, generate_short_code, is_reserved_code, validate_code
from shortlinks.enums import CreateOutcome
from shortlinks.errors import AllocationExhaustedError, CodeConflictError, ShortenerError, ValidationError
from shortlinks.metrics import (
    ALLOCATION_COLLISIONS_TOTAL,
    ALLOCATION_DURATION,
    ALLOCATION_FALLBACKS_TOTAL,
    ALLOCATION_REQUESTS_TOTAL,
)
from shortlinks.records import AllocationResult, MappingRecord, utcnow
from shortlinks.store.base import MappingStore

__all__ = ["UniquenessAllocator"]


class UniquenessAllocator:
    """Reserve unique short codes through conditional creates.

    Args:
        store: Mapping store used for conditional creates
        default_length: Length of generated candidates
        max_attempts: Random candidates tried before the fallback
        fallback_length: Length of the fallback candidate
        logger: Logger to use (defaults to ``shortlinks.allocator``)
    """

    def __init__(
        self,
        store: MappingStore,
        *,
        default_length: int = 6,
        max_attempts: int = 5,
        fallback_length: int = 12,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self._store = store
        self._default_length = default_length
        self._max_attempts = max_attempts
        self._fallback_length = fallback_length
        self._logger = logger or logging.getLogger("shortlinks.allocator")

    async def allocate(
        self,
        target_url: str,
        custom_code: str | None = None,
        length: int | None = None,
        max_attempts: int | None = None,
        *,
        expires_at: int | None = None,
        created_by: str | None = None,
        user_agent: str | None = None,
    ) -> AllocationResult:
        """Allocate a unique code for ``target_url`` and persist its record.

        Args:
            target_url: Normalized absolute URL the code will point to
            custom_code: Caller-chosen code; tried once, never retried
            length: Generated code length (defaults to ``default_length``)
            max_attempts: Random candidates to try (defaults to ``max_attempts``)
            expires_at: Expiry in epoch seconds, or None for no expiry
            created_by: Creator address kept on the record
            user_agent: Creator user agent kept on the record

        Returns:
            AllocationResult: The allocated code and the record written

        Raises:
            ValidationError: Empty target URL, or a malformed or reserved code
            CodeConflictError: ``custom_code`` is already taken
            AllocationExhaustedError: Every candidate collided
            StoreError: The store failed for a reason other than a collision
        """
        if not target_url:
            raise ValidationError("Target URL is required")

        length = self._default_length if length is None else length
        max_attempts = self._max_attempts if max_attempts is None else max_attempts
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts!r}")

        start_time = time.perf_counter()
        try:
            if custom_code is not None:
                result = await self._allocate_custom(
                    custom_code, target_url, expires_at, created_by, user_agent
                )
            else:
                result = await self._allocate_generated(
                    length, max_attempts, target_url, expires_at, created_by, user_agent
                )
        except ShortenerError as exc:
            ALLOCATION_REQUESTS_TOTAL.labels(status=exc.kind).inc()
            raise
        finally:
            ALLOCATION_DURATION.observe(time.perf_counter() - start_time)

        ALLOCATION_REQUESTS_TOTAL.labels(status="success").inc()
        self._logger.info(f"Allocated short code {result.code} -> {target_url}")
        return result

    async def _allocate_custom(
        self,
        custom_code: str,
        target_url: str,
        expires_at: int | None,
        created_by: str | None,
        user_agent: str | None,
    ) -> AllocationResult:
        code = validate_code(custom_code)
        if is_reserved_code(code):
            raise ValidationError(f"Short code '{code}' is reserved", code=code)
        record = self._new_record(code, target_url, expires_at, created_by, user_agent)
        outcome = await self._store.create_if_absent(record)
        if outcome is CreateOutcome.ALREADY_EXISTS:
            self._logger.info(f"Custom code already taken: {code}")
            raise CodeConflictError(f"Custom code '{code}' is already taken", code=code)
        return AllocationResult(code=code, record=record)

    async def _allocate_generated(
        self,
        length: int,
        max_attempts: int,
        target_url: str,
        expires_at: int | None,
        created_by: str | None,
        user_agent: str | None,
    ) -> AllocationResult:
        for attempt in range(1, max_attempts + 1):
            code = validate_code(generate_short_code(length))
            if is_reserved_code(code):
                self._logger.debug(f"Skipping reserved code {code} (attempt {attempt}/{max_attempts})")
                continue
            record = self._new_record(code, target_url, expires_at, created_by, user_agent)
            outcome = await self._store.create_if_absent(record)
            if outcome is CreateOutcome.CREATED:
                return AllocationResult(code=code, record=record)
            ALLOCATION_COLLISIONS_TOTAL.inc()
            self._logger.debug(f"Collision on generated code {code} (attempt {attempt}/{max_attempts})")

        ALLOCATION_FALLBACKS_TOTAL.inc()
        code = validate_code(fallback_code(self._fallback_length))
        self._logger.warning(f"Random allocation exhausted after {max_attempts} attempts, trying fallback {code}")
        if not is_reserved_code(code):
            record = self._new_record(code, target_url, expires_at, created_by, user_agent)
            outcome = await self._store.create_if_absent(record)
            if outcome is CreateOutcome.CREATED:
                return AllocationResult(code=code, record=record)

        ALLOCATION_COLLISIONS_TOTAL.inc()
        self._logger.error(f"Fallback code {code} collided, giving up")
        raise AllocationExhaustedError(
            f"Could not allocate a unique short code after {max_attempts + 1} attempts"
        )

    @staticmethod
    def _new_record(
        code: str,
        target_url: str,
        expires_at: int | None,
        created_by: str | None,
        user_agent: str | None,
    ) -> MappingRecord:
        return MappingRecord(
            code=code,
            target_url=target_url,
            created_at=utcnow(),
            expires_at=expires_at,
            created_by=created_by,
            user_agent=user_agent,
        )
