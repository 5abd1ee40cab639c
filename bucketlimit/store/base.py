"""Counter store interfaces.

The limiter depends on these protocols rather than on a concrete client so
that any keyed store with atomic multi-operation transactions can back it.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from contextlib import AbstractContextManager
from typing import Any, Protocol


class CounterTransaction(Protocol):
    """Operations queued inside an atomic transaction; results come back from the store."""

    def hash_increment(self, key: str, field: int, delta: int) -> None: ...

    def hash_delete(self, key: str, field: int) -> None: ...

    def expire(self, key: str, ttl_seconds: int) -> None: ...


class CounterStore(Protocol):
    """Keyed integer-hash store with atomic transactions and key-level expiry."""

    def atomic_transaction(self, build: Callable[[CounterTransaction], None]) -> list[Any]:
        """Queue operations via ``build`` and apply them as one indivisible unit.

        Returns
        -------
        list[Any]
            One result per queued operation, in queue order. ``hash_increment``
            yields the new field value.
        """
        ...

    def hash_multi_get(self, key: str, fields: Sequence[int]) -> list[int]:
        """Return the integer value of each field, ``0`` where missing, in request order."""
        ...


StoreCheckout = Callable[[], AbstractContextManager[CounterStore]]
