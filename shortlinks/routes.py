"""FastAPI route definitions for the shortlinks REST API.

This module provides the HTTP endpoints and the mapping from core error kinds
to HTTP status codes. All decisions are made by the core; the routes only
translate.

API Endpoint Overview
=====================
::
    GET  /health
        └─ HealthResponse (200)

    POST /api/shorten
        ├─ ShortenRequest (request body)
        └─ LinkResponse (201) or 400/409/503

    GET  /api/stats/:code
        └─ StatsResponse (200) or 400/404/503

    GET  /api/links?start=&end=&limit=
        └─ LinkListResponse (200) or 400/503

    GET  /:code
        └─ 302 Redirect or 400/404/410/500/503

Status Mapping
==============
::
    validation_error     ─► 400
    not_found            ─► 404
    code_conflict        ─► 409
    expired              ─► 410
    corrupt_record       ─► 500
    allocation_exhausted ─► 503
    store_error          ─► 503

Key Behaviours
===============
- Redirects are 302 with caching disabled so every visit reaches the resolver.
- The redirect handler never waits for the click counter update.
- The catch-all ``/{code}`` route is registered last.
"""

import datetime

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse

from shortlinks.dependencies import RequestContext, get_request_context, get_shortening_service
from shortlinks.enums import ErrorKind, HealthStatus
from shortlinks.errors import ShortenerError, StoreError
from shortlinks.schemas import (
    ErrorResponse,
    HealthResponse,
    LinkListResponse,
    LinkResponse,
    ShortenRequest,
    StatsResponse,
)
from shortlinks.service import ShorteningService

__all__ = ["STATUS_BY_KIND", "router", "shortener_error_handler"]

router = APIRouter()

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CODE_CONFLICT: 409,
    ErrorKind.EXPIRED: 410,
    ErrorKind.CORRUPT_RECORD: 500,
    ErrorKind.ALLOCATION_EXHAUSTED: 503,
    ErrorKind.STORE: 503,
}

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


async def shortener_error_handler(request: Request, exc: ShortenerError) -> JSONResponse:
    body = ErrorResponse(error=exc.kind, message=exc.message, code=exc.code)
    return JSONResponse(status_code=STATUS_BY_KIND.get(exc.kind, 500), content=body.model_dump(mode="json"))


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(ctx: RequestContext = Depends(get_request_context)) -> HealthResponse:
    store_status = HealthStatus.HEALTHY
    try:
        await ctx.service.store.ping()
    except StoreError as exc:
        ctx.logger.error(f"Store health check failed: {exc}")
        store_status = HealthStatus.UNHEALTHY

    return HealthResponse(
        status=store_status,
        store=store_status,
        backend=type(ctx.service.store).__name__,
    )


@router.post("/api/shorten", response_model=LinkResponse, status_code=201, tags=["links"])
async def shorten_url(
    payload: ShortenRequest,
    ctx: RequestContext = Depends(get_request_context),
    service: ShorteningService = Depends(get_shortening_service),
) -> LinkResponse:
    ctx.logger.info(
        f"URL shortening requested: {payload.url}",
        extra={"operation": "shorten", "custom_code": payload.custom_code},
    )
    result = await service.shorten(
        payload.url,
        payload.custom_code,
        payload.expiration_days,
        created_by=ctx.client_ip,
        user_agent=ctx.user_agent,
    )
    ctx.logger.info(
        f"URL shortened successfully: {result.code}",
        extra={"operation": "shorten", "short_code": result.code, "duration_ms": ctx.get_duration()},
    )
    return LinkResponse.from_allocation(result, ctx.settings.BASE_URL)


@router.get("/api/stats/{code}", response_model=StatsResponse, tags=["links"])
async def get_stats(
    code: str,
    service: ShorteningService = Depends(get_shortening_service),
) -> StatsResponse:
    return StatsResponse.from_stats(await service.stats(code))


@router.get("/api/links", response_model=LinkListResponse, tags=["links"])
async def list_links(
    start: datetime.datetime,
    end: datetime.datetime | None = None,
    limit: int = Query(100, ge=1, le=1000),
    service: ShorteningService = Depends(get_shortening_service),
) -> LinkListResponse:
    if end is None:
        end = datetime.datetime.now(datetime.timezone.utc)
    results = await service.analytics.created_between(start, end, limit)
    items = [StatsResponse.from_stats(r) for r in results]
    return LinkListResponse(count=len(items), items=items)


@router.get("/{code}", tags=["redirect"])
async def redirect_to_url(
    code: str,
    ctx: RequestContext = Depends(get_request_context),
    service: ShorteningService = Depends(get_shortening_service),
) -> RedirectResponse:
    result = await service.resolve(code)
    result.raise_for_state()

    ctx.logger.info(
        f"Redirect successful: {code} -> {result.target_url}",
        extra={
            "operation": "redirect",
            "short_code": code,
            "referer": ctx.referer,
            "duration_ms": ctx.get_duration(),
        },
    )
    return RedirectResponse(url=result.target_url, status_code=302, headers=NO_CACHE_HEADERS)
