"""Exception taxonomy for allocation, resolution and storage failures.

Every error carries an :class:`~shortlinks.enums.ErrorKind` so the transport
layer can map it to a response without inspecting messages.

Propagation
===========
::
    create_if_absent / get  ──► StoreError ──► caller (never swallowed)
    increment_usage         ──► StoreError ──► log + metric only
    collision               ──► retry loop (bounded) ──► AllocationExhaustedError
"""

from shortlinks.enums import ErrorKind

__all__ = [
    "AllocationExhaustedError",
    "CodeConflictError",
    "CorruptRecordError",
    "ExpiredError",
    "NotFoundError",
    "ShortenerError",
    "StoreError",
    "ValidationError",
]


class ShortenerError(Exception):
    kind: ErrorKind = ErrorKind.STORE

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class ValidationError(ShortenerError):
    """Malformed URL or short code; fixed by correcting the input."""

    kind = ErrorKind.VALIDATION


class CodeConflictError(ShortenerError):
    """The requested custom code is already taken."""

    kind = ErrorKind.CODE_CONFLICT


class AllocationExhaustedError(ShortenerError):
    """Random and fallback candidates all collided. Safe to retry."""

    kind = ErrorKind.ALLOCATION_EXHAUSTED


class NotFoundError(ShortenerError):
    kind = ErrorKind.NOT_FOUND


class ExpiredError(ShortenerError):
    kind = ErrorKind.EXPIRED


class CorruptRecordError(ShortenerError):
    """A record exists but has no usable target URL."""

    kind = ErrorKind.CORRUPT_RECORD


class StoreError(ShortenerError):
    """Infrastructure failure reported by a mapping store adapter."""

    kind = ErrorKind.STORE
