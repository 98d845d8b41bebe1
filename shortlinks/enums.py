"""Shared enums for the shortlinks service.

This module defines all status and state enums used across the codebase.
Using enums instead of string literals provides type safety and prevents typos.
"""

from enum import StrEnum

__all__ = ["CreateOutcome", "ErrorKind", "HealthStatus", "RedirectState", "UpdateOutcome"]


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class CreateOutcome(StrEnum):
    """Result of a conditional insert against the mapping store."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


class UpdateOutcome(StrEnum):
    """Result of an atomic usage increment."""

    UPDATED = "updated"
    NOT_FOUND = "not_found"


class RedirectState(StrEnum):
    """Terminal states of a redirect resolution."""

    INVALID = "invalid"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    CORRUPT_RECORD = "corrupt_record"
    ACTIVE = "active"


class ErrorKind(StrEnum):
    """Error tags handed to the transport layer for status code mapping."""

    VALIDATION = "validation_error"
    CODE_CONFLICT = "code_conflict"
    ALLOCATION_EXHAUSTED = "allocation_exhausted"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    CORRUPT_RECORD = "corrupt_record"
    STORE = "store_error"
