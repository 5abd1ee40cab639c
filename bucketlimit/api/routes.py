"""HTTP route definitions for the rate limit service."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from prometheus_client import Counter
from pydantic import BaseModel, Field

from ..config import get_settings
from ..domain.limiter import RateLimiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")

settings = get_settings()

DECISIONS = Counter(
    "bucketlimit_decisions_total",
    "Rate limit decisions returned by the consume endpoint.",
    ["outcome"],
)


class AddEventsRequest(BaseModel):
    """Payload recording activity for a subject."""

    count: int = Field(default=1, ge=1)


class AddEventsResponse(BaseModel):
    """Current bucket total after recording activity."""

    subject: str
    bucket_count: int


class ConsumeRequest(BaseModel):
    """Payload for a check-then-record request against a threshold."""

    count: int = Field(default=1, ge=1)
    interval: float = Field(default=settings.default_interval, gt=0)
    threshold: int = Field(default=settings.default_threshold, ge=1)


class LimitStatusResponse(BaseModel):
    """Windowed count for a subject compared against a threshold."""

    subject: str
    interval: float
    threshold: int
    count: int
    exceeded: bool


def get_limiter(request: Request) -> RateLimiter:
    """Resolve the `RateLimiter` stored on the FastAPI application state."""
    limiter: RateLimiter = request.app.state.limiter
    return limiter


@router.post("/limits/{subject}/events", response_model=AddEventsResponse)
def add_events(
    subject: str,
    payload: AddEventsRequest,
    limiter: RateLimiter = Depends(get_limiter),
) -> AddEventsResponse:
    """Record activity for a subject unconditionally."""
    total = limiter.add(subject, payload.count)
    return AddEventsResponse(subject=subject, bucket_count=total)


@router.get("/limits/{subject}", response_model=LimitStatusResponse)
def get_limit_status(
    subject: str,
    interval: float = Query(default=settings.default_interval, gt=0),
    threshold: int = Query(default=settings.default_threshold, ge=1),
    limiter: RateLimiter = Depends(get_limiter),
) -> LimitStatusResponse:
    """Return the approximate count for a subject over the trailing interval."""
    current = limiter.count(subject, interval)
    return LimitStatusResponse(
        subject=subject,
        interval=interval,
        threshold=threshold,
        count=current,
        exceeded=current >= threshold,
    )


@router.post("/limits/{subject}/consume", response_model=LimitStatusResponse)
def consume(
    subject: str,
    payload: ConsumeRequest,
    limiter: RateLimiter = Depends(get_limiter),
) -> LimitStatusResponse:
    """Record activity only when the subject is still within its threshold."""
    if limiter.exceeded(subject, payload.interval, payload.threshold):
        DECISIONS.labels(outcome="limited").inc()
        logger.warning("rate limited %s at threshold %s", limiter.subject_key(subject), payload.threshold)
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="rate limited")
    limiter.add(subject, payload.count)
    DECISIONS.labels(outcome="allowed").inc()
    current = limiter.count(subject, payload.interval)
    return LimitStatusResponse(
        subject=subject,
        interval=payload.interval,
        threshold=payload.threshold,
        count=current,
        exceeded=current >= payload.threshold,
    )
