"""Approximate sliding-window rate limiting backed by a shared counter store."""

from .domain.buckets import BucketRing
from .domain.contracts import RateLimiterConfig
from .domain.limiter import RateLimiter
from .errors import ConfigurationError, StoreError, ThresholdWaitCancelled, ThresholdWaitTimeout
from .store.base import CounterStore, CounterTransaction
from .store.memory_store import InMemoryCounterStore
from .store.redis_store import RedisCounterStore

__all__ = [
    "BucketRing",
    "ConfigurationError",
    "CounterStore",
    "CounterTransaction",
    "InMemoryCounterStore",
    "RateLimiter",
    "RateLimiterConfig",
    "RedisCounterStore",
    "StoreError",
    "ThresholdWaitCancelled",
    "ThresholdWaitTimeout",
]
