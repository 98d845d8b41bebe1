"""FastAPI application entry point for the shortlinks service.

This module configures and initializes the FastAPI application with middleware,
lifecycle management, error mapping and route registration.

Application Lifecycle Diagram
===========================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌──────────────┐
    │ lifespan():  │
    │ build store, │
    │ service      │
    └──────┬───────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌──────────────┐
    │ lifespan():  │
    │ drain clicks,│
    │ close store  │
    └──────────────┘

How to Use
===========
**Step 1 — Run with uvicorn**::
    uvicorn shortlinks.main:app --host 0.0.0.0 --port 8080

**Step 2 — Shorten a URL**::
    curl -X POST http://localhost:8080/api/shorten \
         -H "Content-Type: application/json" \
         -d '{"url": "https://example.com", "custom_code": "promo1"}'

**Step 3 — Follow it**::
    curl -i http://localhost:8080/promo1

Key Behaviours
===============
- The mapping store backend is chosen by STORE_BACKEND at startup.
- Pending click count updates are awaited before the store is closed.
- Core errors are turned into JSON error bodies by one exception handler.
- Prometheus metrics are exposed on /metrics.
"""

__all__ = ["app"]

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from shortlinks.config import get_settings
from shortlinks.dependencies import _service_manager
from shortlinks.errors import ShortenerError
from shortlinks.routes import router, shortener_error_handler

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    await _service_manager.initialize(settings)
    yield
    # Shutdown
    await _service_manager.cleanup()


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Short link allocation and redirect service",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.add_exception_handler(ShortenerError, shortener_error_handler)

Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    should_respect_env_var=False,
).instrument(app).expose(app)

app.include_router(router)
