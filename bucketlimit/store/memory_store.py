"""In-process counter store for single-process deployments and tests."""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from threading import Lock
from typing import Any


class _QueuedTransaction:
    """Collects operations so they can be applied under the store lock in one step."""

    def __init__(self) -> None:
        self.operations: list[tuple[str, tuple[Any, ...]]] = []

    def hash_increment(self, key: str, field: int, delta: int) -> None:
        self.operations.append(("hash_increment", (key, field, delta)))

    def hash_delete(self, key: str, field: int) -> None:
        self.operations.append(("hash_delete", (key, field)))

    def expire(self, key: str, ttl_seconds: int) -> None:
        self.operations.append(("expire", (key, ttl_seconds)))


class InMemoryCounterStore:
    """Thread-safe hash store with key-level expiry.

    Counts are not shared across processes; use ``RedisCounterStore`` when
    several workers must see the same windows.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialise the key space, its expiry table, and the lock guarding both."""
        self._clock = clock
        self._hashes: dict[str, dict[int, int]] = {}
        self._expires_at: dict[str, float] = {}
        self._lock = Lock()

    def atomic_transaction(self, build: Callable[[_QueuedTransaction], None]) -> list[Any]:
        transaction = _QueuedTransaction()
        build(transaction)
        with self._lock:
            self._evict_expired()
            return [getattr(self, f"_{name}")(*args) for name, args in transaction.operations]

    def hash_multi_get(self, key: str, fields: Sequence[int]) -> list[int]:
        with self._lock:
            self._evict_expired()
            values = self._hashes.get(key, {})
            return [values.get(int(field), 0) for field in fields]

    def ttl(self, key: str) -> float | None:
        """Return the remaining lifetime of ``key`` or ``None`` when it is absent or persistent."""
        with self._lock:
            self._evict_expired()
            expires_at = self._expires_at.get(key)
            if expires_at is None:
                return None
            return expires_at - self._clock()

    def _evict_expired(self) -> None:
        now = self._clock()
        for key, expires_at in list(self._expires_at.items()):
            if expires_at <= now:
                self._hashes.pop(key, None)
                del self._expires_at[key]

    def _hash_increment(self, key: str, field: int, delta: int) -> int:
        values = self._hashes.setdefault(key, {})
        values[int(field)] = values.get(int(field), 0) + delta
        return values[int(field)]

    def _hash_delete(self, key: str, field: int) -> int:
        values = self._hashes.get(key)
        if values is None or values.pop(int(field), None) is None:
            return 0
        if not values:
            # Redis drops a hash once its last field is removed
            del self._hashes[key]
            self._expires_at.pop(key, None)
        return 1

    def _expire(self, key: str, ttl_seconds: int) -> bool:
        if key not in self._hashes:
            return False
        self._expires_at[key] = self._clock() + ttl_seconds
        return True
