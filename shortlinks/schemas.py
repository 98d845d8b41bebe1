"""Pydantic schemas for request/response validation in the shortlinks API.

This module defines Pydantic models for API input parsing and output
serialization. Format rules (URL shape, code pattern, expiry range) are
enforced by the core so HTTP and library callers get the same errors; the
schemas only fix types and wire names.

Schema Hierarchy
=================
::
    ShortenRequest (Input)
    ├─ url: str            (aliases: longUrl, originalUrl)
    ├─ custom_code: str?   (alias: customCode)
    └─ expiration_days: int? (alias: expirationDays)

    LinkResponse (Output)
    ├─ code, short_url, target_url
    ├─ created_at, expires_at (ISO-8601)
    ├─ click_count
    └─ legacy: shortCode, shortId, shortUrl, originalUrl, longUrl

    StatsResponse (Output)
    ├─ code, target_url, created_at, expires_at
    ├─ click_count, last_accessed_at, is_expired
    └─ legacy: shortCode, originalUrl, clickCount, isExpired

    LinkListResponse (Output)
    ├─ count: int
    └─ items: list[StatsResponse]

    HealthResponse / ErrorResponse (Output)

Key Behaviours
===============
- Legacy camelCase names are serialized alongside the canonical ones so older
  clients keep working without a second code path in the core.
- Expiry is stored as epoch seconds and rendered here as UTC datetimes.
"""

import datetime

from pydantic import AliasChoices, BaseModel, Field, computed_field, field_validator

from shortlinks.enums import ErrorKind, HealthStatus
from shortlinks.records import AllocationResult, StatsResult

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "LinkListResponse",
    "LinkResponse",
    "ShortenRequest",
    "StatsResponse",
]


def _from_epoch(value: int | None) -> datetime.datetime | None:
    if value is None:
        return None
    return datetime.datetime.fromtimestamp(value, datetime.timezone.utc)


class ShortenRequest(BaseModel):
    url: str = Field(..., validation_alias=AliasChoices("url", "longUrl", "originalUrl"))
    custom_code: str | None = Field(None, validation_alias=AliasChoices("custom_code", "customCode"))
    expiration_days: int | None = Field(
        None,
        validation_alias=AliasChoices("expiration_days", "expirationDays"),
        description="Retention in days; the server default applies when omitted.",
    )

    @field_validator("custom_code")
    @classmethod
    def blank_custom_code_means_generated(cls, v: str | None) -> str | None:
        # Older clients send an empty customCode when the field is left blank.
        if v is not None and not v.strip():
            return None
        return v


class LinkResponse(BaseModel):
    code: str
    short_url: str
    target_url: str
    created_at: datetime.datetime
    expires_at: datetime.datetime | None
    click_count: int

    @computed_field(alias="shortCode")
    @property
    def legacy_short_code(self) -> str:
        return self.code

    @computed_field(alias="shortId")
    @property
    def legacy_short_id(self) -> str:
        return self.code

    @computed_field(alias="shortUrl")
    @property
    def legacy_short_url(self) -> str:
        return self.short_url

    @computed_field(alias="originalUrl")
    @property
    def legacy_original_url(self) -> str:
        return self.target_url

    @computed_field(alias="longUrl")
    @property
    def legacy_long_url(self) -> str:
        return self.target_url

    @classmethod
    def from_allocation(cls, result: AllocationResult, base_url: str) -> "LinkResponse":
        record = result.record
        return cls(
            code=result.code,
            short_url=f"{base_url.rstrip('/')}/{result.code}",
            target_url=record.target_url,
            created_at=record.created_at,
            expires_at=_from_epoch(record.expires_at),
            click_count=record.click_count,
        )


class StatsResponse(BaseModel):
    code: str
    target_url: str
    created_at: datetime.datetime
    expires_at: datetime.datetime | None
    click_count: int
    last_accessed_at: datetime.datetime | None
    is_expired: bool

    @computed_field(alias="shortCode")
    @property
    def legacy_short_code(self) -> str:
        return self.code

    @computed_field(alias="originalUrl")
    @property
    def legacy_original_url(self) -> str:
        return self.target_url

    @computed_field(alias="clickCount")
    @property
    def legacy_click_count(self) -> int:
        return self.click_count

    @computed_field(alias="isExpired")
    @property
    def legacy_is_expired(self) -> bool:
        return self.is_expired

    @classmethod
    def from_stats(cls, result: StatsResult) -> "StatsResponse":
        record = result.record
        return cls(
            code=record.code,
            target_url=record.target_url,
            created_at=record.created_at,
            expires_at=_from_epoch(record.expires_at),
            click_count=record.click_count,
            last_accessed_at=record.last_accessed_at,
            is_expired=result.is_expired,
        )


class LinkListResponse(BaseModel):
    count: int
    items: list[StatsResponse]


class HealthResponse(BaseModel):
    status: HealthStatus
    store: HealthStatus
    backend: str


class ErrorResponse(BaseModel):
    error: ErrorKind
    message: str
    code: str | None = None
