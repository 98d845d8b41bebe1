"""Redirect resolver: short code to target URL with expiry enforcement.

Resolution Flow
===============
::
    ┌─────────────┐
    │ resolve()   │
    └──────┬──────┘
           ▼
    format valid? ── no ──► INVALID (no store call)
           │ yes
           ▼
    ┌─────────────┐
    │ store.get() │── StoreError ──► propagates
    └──────┬──────┘
           ▼
    record? ── no ──► NOT_FOUND
           │ yes
           ▼
    expires_at < now? ── yes ──► EXPIRED (no increment)
           │ no
           ▼
    target_url? ── no ──► CORRUPT_RECORD
           │ yes
           ▼
    ┌──────────────────┐
    │ spawn detached   │──► increment_usage ──► log/metric on failure
    │ usage increment  │
    └──────┬───────────┘
           ▼
        ACTIVE(target_url)

How to Use
===========
**Step 1 — Build with a store**::
    resolver = RedirectResolver(store)

**Step 2 — Resolve**::
    result = await resolver.resolve("abc123")
    if result.is_active:
        return RedirectResponse(result.target_url)
    result.raise_for_state()

**Step 3 — Drain on shutdown**::
    await resolver.drain()

Key Behaviours
===============
- The usage increment is never awaited on the redirect path; its outcome
  only reaches logs and the failure counter.
- Pending increment tasks are held by the resolver so they are not garbage
  collected mid-flight.
- ``clock`` returns epoch seconds and can be replaced in tests.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from shortlinks.codes import is_valid_code
from shortlinks.enums import RedirectState, UpdateOutcome
from shortlinks.metrics import REDIRECT_RESOLUTIONS_TOTAL, USAGE_INCREMENT_FAILURES_TOTAL
from shortlinks.records import RedirectResult, is_expired, utcnow
from shortlinks.store.base import MappingStore

__all__ = ["RedirectResolver"]


class RedirectResolver:
    def __init__(
        self,
        store: MappingStore,
        *,
        clock: Callable[[], float] = time.time,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._logger = logger or logging.getLogger("shortlinks.resolver")
        self._pending: set[asyncio.Task] = set()

    @property
    def pending_increments(self) -> int:
        return len(self._pending)

    async def resolve(self, code: str) -> RedirectResult:
        """Resolve ``code`` to one of the terminal redirect states.

        Args:
            code: Short code taken from the request path

        Returns:
            RedirectResult: State, code and (for ACTIVE only) the target URL

        Raises:
            StoreError: The record lookup failed
        """
        if not is_valid_code(code):
            self._logger.info(f"Rejected malformed short code: {code!r}")
            return self._finish(RedirectResult(RedirectState.INVALID, str(code)))

        record = await self._store.get(code)
        if record is None:
            self._logger.info(f"Short code not found: {code}")
            return self._finish(RedirectResult(RedirectState.NOT_FOUND, code))

        if is_expired(record, self._clock()):
            self._logger.info(f"Short code expired: {code}")
            return self._finish(RedirectResult(RedirectState.EXPIRED, code))

        if not record.target_url:
            self._logger.error(f"No target URL stored for short code: {code}")
            return self._finish(RedirectResult(RedirectState.CORRUPT_RECORD, code))

        self._spawn_usage_increment(code)
        self._logger.debug(f"Resolved {code} -> {record.target_url}")
        return self._finish(RedirectResult(RedirectState.ACTIVE, code, record.target_url))

    async def drain(self) -> None:
        """Wait for every usage increment scheduled so far."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _finish(self, result: RedirectResult) -> RedirectResult:
        REDIRECT_RESOLUTIONS_TOTAL.labels(state=result.state).inc()
        return result

    def _spawn_usage_increment(self, code: str) -> None:
        task = asyncio.create_task(self._increment_usage(code), name=f"usage-increment:{code}")
        self._pending.add(task)
        task.add_done_callback(self._on_increment_done)

    async def _increment_usage(self, code: str) -> tuple[str, UpdateOutcome]:
        outcome = await self._store.increment_usage(code, utcnow())
        return code, outcome

    def _on_increment_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return

        exc = task.exception()
        if exc is not None:
            USAGE_INCREMENT_FAILURES_TOTAL.labels(reason=type(exc).__name__).inc()
            self._logger.error(f"Usage increment failed ({task.get_name()}): {exc}")
            return

        code, outcome = task.result()
        if outcome is UpdateOutcome.NOT_FOUND:
            USAGE_INCREMENT_FAILURES_TOTAL.labels(reason="not_found").inc()
            self._logger.warning(f"Usage increment found no record for {code}")
