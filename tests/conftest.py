from __future__ import annotations

import fakeredis
import pytest

from bucketlimit.store.redis_store import RedisCounterStore


class FakeClock:
    """Manually advanced wall clock; ``sleep`` moves time forward instead of blocking."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def redis_client() -> fakeredis.FakeStrictRedis:
    client = fakeredis.FakeStrictRedis()
    client.flushall()
    return client


@pytest.fixture()
def redis_store(redis_client) -> RedisCounterStore:
    return RedisCounterStore(redis_client)
