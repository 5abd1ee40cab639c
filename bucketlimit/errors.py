"""Exception types raised by the rate limiter."""

from __future__ import annotations

from redis.exceptions import RedisError as StoreError


class ConfigurationError(ValueError):
    """Raised when limiter options are malformed or violate bucket invariants."""


class ThresholdWaitTimeout(TimeoutError):
    """Raised when ``exec_within_threshold`` passes its deadline before the subject is within bounds."""


class ThresholdWaitCancelled(Exception):
    """Raised when the cancel event passed to ``exec_within_threshold`` is set while waiting."""


__all__ = [
    "ConfigurationError",
    "StoreError",
    "ThresholdWaitCancelled",
    "ThresholdWaitTimeout",
]
