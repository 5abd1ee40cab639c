"""FastAPI application wiring for the rate limit service."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import asynccontextmanager, contextmanager

import redis
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .api.routes import router as v1_router
from .config import Settings, get_settings
from .domain.limiter import RateLimiter
from .errors import ConfigurationError, StoreError
from .store.memory_store import InMemoryCounterStore
from .store.redis_store import RedisCounterStore

logger = logging.getLogger(__name__)

settings = get_settings()


@contextmanager
def open_limiter(settings: Settings) -> Iterator[RateLimiter]:
    """Build the configured store and limiter, releasing the store connection pool on exit."""
    config = settings.limiter_config()
    if settings.rate_limit_backend == "memory":
        logger.info("rate limiter using in-memory backend")
        yield RateLimiter(
            settings.rate_limit_name,
            config,
            store=InMemoryCounterStore(),
            namespace=settings.rate_limit_namespace,
        )
        return
    if settings.rate_limit_backend != "redis":
        raise ConfigurationError(f"unknown rate limit backend {settings.rate_limit_backend!r}")

    pool = redis.ConnectionPool.from_url(settings.redis_url)
    try:
        # fail fast; there is no fallback backend
        redis.Redis(connection_pool=pool).ping()
        logger.info("rate limiter configured for redis backend at %s", settings.redis_url)
        yield RateLimiter(
            settings.rate_limit_name,
            config,
            checkout=RedisCounterStore.checkout(pool),
            namespace=settings.rate_limit_namespace,
        )
    finally:
        pool.disconnect()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the counter store connection and limiter for the app lifecycle."""
    logging.basicConfig(level=settings.log_level)
    with open_limiter(settings) as limiter:
        app.state.limiter = limiter
        yield


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Report counter store failures as 503 without retrying."""
    logger.warning("counter store failure on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "counter store unavailable"},
    )


@app.get("/healthz", tags=["health"])
def healthz() -> dict[str, str]:
    """Return a minimal readiness indicator used by orchestration systems."""
    return {"status": "ok"}


@app.get("/metrics")
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(v1_router)
