"""Redis-backed counter store."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import AbstractContextManager, contextmanager
from typing import Any

from redis import ConnectionPool, Redis
from redis.client import Pipeline


class _PipelineTransaction:
    """Adapts a MULTI/EXEC pipeline to the ``CounterTransaction`` protocol."""

    def __init__(self, pipeline: Pipeline) -> None:
        self._pipeline = pipeline

    def hash_increment(self, key: str, field: int, delta: int) -> None:
        self._pipeline.hincrby(key, field, delta)

    def hash_delete(self, key: str, field: int) -> None:
        self._pipeline.hdel(key, field)

    def expire(self, key: str, ttl_seconds: int) -> None:
        self._pipeline.expire(key, ttl_seconds)


class RedisCounterStore:
    """Counter store that keeps each subject's bucket map in a Redis hash."""

    def __init__(self, client: Redis) -> None:
        """Store the Redis client used for all transactions and reads."""
        self._client = client

    @property
    def client(self) -> Redis:
        return self._client

    def atomic_transaction(self, build: Callable[[_PipelineTransaction], None]) -> list[Any]:
        """Run the queued operations inside MULTI/EXEC and return their replies."""
        with self._client.pipeline(transaction=True) as pipeline:
            build(_PipelineTransaction(pipeline))
            return pipeline.execute()

    def hash_multi_get(self, key: str, fields: Sequence[int]) -> list[int]:
        if not fields:
            return []
        values = self._client.hmget(key, list(fields))
        return [int(value) if value is not None else 0 for value in values]

    @classmethod
    def checkout(cls, pool: ConnectionPool) -> Callable[[], AbstractContextManager["RedisCounterStore"]]:
        """Return a checkout callable that yields a store bound to a pooled connection."""

        @contextmanager
        def _checkout() -> Iterator[RedisCounterStore]:
            client = Redis(connection_pool=pool)
            try:
                yield cls(client)
            finally:
                client.close()

        return _checkout
