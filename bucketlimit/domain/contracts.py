"""Limiter configuration contract shared by the library and the HTTP service."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from ..errors import ConfigurationError
from .buckets import BucketRing


@dataclass(frozen=True, slots=True)
class RateLimiterConfig:
    """Validated bucket layout for a single named limiter.

    Parameters
    ----------
    bucket_span:
        Total time span tracked, in seconds.
    bucket_interval:
        Width of each bucket in seconds; the resolution of every count.
    bucket_expiry:
        TTL applied to a subject's bucket map after each write. Defaults to
        ``bucket_span`` and may not exceed it.
    """

    bucket_span: float = 600
    bucket_interval: float = 5
    bucket_expiry: float | None = None

    def __post_init__(self) -> None:
        if self.bucket_expiry is None:
            object.__setattr__(self, "bucket_expiry", self.bucket_span)
        for name in ("bucket_span", "bucket_interval", "bucket_expiry"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ConfigurationError(f"{name} must be a finite number, got {value!r}")
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value!r}")
        if self.bucket_expiry > self.bucket_span:
            raise ConfigurationError("Bucket expiry cannot be larger than the bucket span")
        if self.bucket_count < 3:
            raise ConfigurationError("Cannot have less than 3 buckets")

    @property
    def bucket_count(self) -> int:
        # halves round up so every client sizes the ring identically
        return math.floor(self.bucket_span / self.bucket_interval + 0.5)

    @property
    def ring(self) -> BucketRing:
        return BucketRing(span=self.bucket_span, interval=self.bucket_interval, count=self.bucket_count)

    @classmethod
    def coerce(cls, options: "RateLimiterConfig | Mapping[str, Any] | None") -> "RateLimiterConfig":
        """Build a config from an instance, a mapping of option names, or ``None`` for defaults."""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if not isinstance(options, Mapping):
            raise ConfigurationError(
                f"limiter options must be a RateLimiterConfig or a mapping, got {type(options).__name__}"
            )
        known = {field.name for field in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ConfigurationError(f"unknown limiter options: {', '.join(unknown)}")
        return cls(**options)
