"""Configuration management for the shortlinks service.

This module provides centralized configuration management using Pydantic BaseSettings
with environment variable support and caching for performance.

Flow Diagram — get_settings()
=============================
::
    ┌─────────────┐
    │  Call get_  │
    │  settings() │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Check cache  │
    │ (lru_cache)  │
    └──────┬──────┘
    HIT?  │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ Create  │  │ Return  │
│ Settings│  │ cached  │
│ instance│  │ value   │
└─────────┘  └─────────┘

How to Use
===========
**Step 1 — Import**::
    from shortlinks.config import get_settings

**Step 2 — Get settings**::
    settings = get_settings()
    length = settings.DEFAULT_CODE_LENGTH

**Step 3 — Pick a store backend**::
    STORE_BACKEND=redis REDIS_URL=redis://localhost:6379/0 uvicorn shortlinks.main:app

Key Behaviours
===============
- Settings are cached after first access for performance.
- Environment variables override defaults automatically.
- Allocation and expiry defaults are validated on load, so a bad
  environment fails at startup rather than on the first request.

Classes:
    Settings:  Pydantic model for all configuration values.
    StoreBackend:  Names of the available mapping store adapters.
"""

__all__ = ["Settings", "StoreBackend", "get_settings"]

from enum import StrEnum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreBackend(StrEnum):
    MEMORY = "memory"
    SQL = "sql"
    REDIS = "redis"


class Settings(BaseSettings):
    APP_NAME: str = "shortlinks"
    APP_ENV: str = "development"
    BASE_URL: str = "http://localhost:8080"
    LOG_LEVEL: str = "INFO"

    # Mapping store
    STORE_BACKEND: StoreBackend = StoreBackend.SQL

    # PostgreSQL
    DATABASE_URL: str = "postgresql+asyncpg://shortlinks:shortlinks@db:5432/shortlinks"

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"
    REDIS_KEY_PREFIX: str = "shortlink"

    # Short code allocation
    DEFAULT_CODE_LENGTH: int = Field(6, ge=3, le=20)
    MAX_ALLOCATION_ATTEMPTS: int = Field(5, ge=1)
    FALLBACK_CODE_LENGTH: int = Field(12, ge=3, le=20)

    # Retention
    DEFAULT_EXPIRY_DAYS: int = Field(365, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
