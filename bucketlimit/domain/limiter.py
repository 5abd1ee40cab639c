"""Approximate sliding-window rate limiting over a rotating ring of buckets."""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any, TypeVar, cast

from ..errors import ConfigurationError, ThresholdWaitCancelled, ThresholdWaitTimeout
from ..store.base import CounterStore, CounterTransaction, StoreCheckout
from .contracts import RateLimiterConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_NAMESPACE = "ratelimit"
DEFAULT_WAIT_INTERVAL = 30
DEFAULT_WAIT_THRESHOLD = 30


class RateLimiter:
    """Counts subject activity in fixed-width buckets shared through a counter store.

    Each subject owns one hash in the store keyed ``namespace:name:subject``.
    Every write increments the current bucket, clears the two buckets ahead of
    it and refreshes the key TTL in one atomic transaction, so the ring can be
    reused cycle after cycle without stale counts leaking into new windows.

    Parameters
    ----------
    name:
        Identifies this limiter, for example ``"emails"``.
    config:
        A :class:`RateLimiterConfig`, a mapping of its option names, or ``None``
        for the defaults (600 second span, 5 second buckets).
    store:
        Counter store handle owned by the caller.
    checkout:
        Callable returning a context manager that yields a store handle, for
        pooled connections. Mutually exclusive with ``store``.
    clock:
        Wall-clock source in epoch seconds. Every process sharing a subject
        must agree on it for buckets to line up.
    sleep:
        Suspends the calling thread while :meth:`exec_within_threshold` waits.
    """

    def __init__(
        self,
        name: str,
        config: RateLimiterConfig | Mapping[str, Any] | None = None,
        *,
        store: CounterStore | None = None,
        checkout: StoreCheckout | None = None,
        namespace: str = DEFAULT_NAMESPACE,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = RateLimiterConfig.coerce(config)
        if (store is None) == (checkout is None):
            raise ConfigurationError("provide exactly one of store or checkout")
        self._name = name
        self._namespace = namespace
        self._ring = self._config.ring
        self._store = store
        self._checkout = checkout
        self._clock = clock
        self._sleep = sleep

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> RateLimiterConfig:
        return self._config

    def subject_key(self, subject: str) -> str:
        return ":".join((self._namespace, self._name, subject))

    def bucket_of(self, timestamp: float) -> int:
        return self._ring.index_at(timestamp)

    def current_bucket(self) -> int:
        return self._ring.index_at(self._clock())

    def add(self, subject: str, count: int = 1) -> int:
        """Record ``count`` events for ``subject`` and return the current bucket's new total."""
        bucket = self.current_bucket()
        key = self.subject_key(subject)
        expiry = self._config.bucket_expiry

        def _queue(tx: CounterTransaction) -> None:
            tx.hash_increment(key, bucket, count)
            tx.hash_delete(key, self._ring.ahead(bucket, 1))
            tx.hash_delete(key, self._ring.ahead(bucket, 2))
            tx.expire(key, math.ceil(expiry))

        with self._use_store() as store:
            results = store.atomic_transaction(_queue)
        logger.debug("added %s to %s bucket %s", count, key, bucket)
        return int(results[0])

    def count(self, subject: str, interval: float) -> int:
        """Return the approximate number of events for ``subject`` over the trailing ``interval`` seconds.

        The interval is rounded down to whole buckets and never shorter than one
        bucket, so the result may include activity slightly older than requested.
        """
        interval = max(interval, self._config.bucket_interval)
        buckets = self._ring.trailing(self.current_bucket(), int(interval // self._config.bucket_interval))
        with self._use_store() as store:
            values = store.hash_multi_get(self.subject_key(subject), buckets)
        return sum(values)

    def exceeded(self, subject: str, interval: float, threshold: int) -> bool:
        return self.count(subject, interval) >= threshold

    def within_bounds(self, subject: str, interval: float, threshold: int) -> bool:
        return not self.exceeded(subject, interval, threshold)

    def exec_within_threshold(
        self,
        subject: str,
        action: Callable[["RateLimiter"], T],
        *,
        interval: float = DEFAULT_WAIT_INTERVAL,
        threshold: int = DEFAULT_WAIT_THRESHOLD,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
    ) -> T:
        """Block until ``subject`` is within bounds, then call ``action(self)`` and return its result.

        The subject is re-checked once per bucket interval. Without ``timeout``
        or ``cancel`` this waits indefinitely and owns the calling thread.

        Raises
        ------
        ThresholdWaitTimeout
            The next poll would land past ``timeout`` seconds on the limiter clock.
        ThresholdWaitCancelled
            ``cancel`` was set while waiting.
        """
        pause = self._config.bucket_interval
        deadline = None if timeout is None else self._clock() + timeout
        while self.exceeded(subject, interval, threshold):
            if cancel is not None and cancel.is_set():
                raise ThresholdWaitCancelled(f"wait for {self.subject_key(subject)} cancelled")
            if deadline is not None and self._clock() + pause > deadline:
                raise ThresholdWaitTimeout(
                    f"{self.subject_key(subject)} still at or above {threshold} after {timeout}s"
                )
            logger.debug("%s over threshold %s, sleeping %ss", self.subject_key(subject), threshold, pause)
            if cancel is not None:
                if cancel.wait(pause):
                    raise ThresholdWaitCancelled(f"wait for {self.subject_key(subject)} cancelled")
            else:
                self._sleep(pause)
        return action(self)

    @contextmanager
    def _use_store(self) -> Iterator[CounterStore]:
        if self._checkout is not None:
            with self._checkout() as store:
                yield store
        else:
            yield cast(CounterStore, self._store)
