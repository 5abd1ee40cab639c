from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os

from .domain.contracts import RateLimiterConfig
from .errors import ConfigurationError


def _parse_number(name: str, raw: str) -> float | None:
    if raw == "":
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be numeric, got {raw!r}") from exc
    return int(value) if value.is_integer() else value


def _env_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Runtime configuration values exposed to FastAPI components."""

    app_name: str = os.getenv("APP_NAME", "bucketlimit")
    version: str = "0.1.0"
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    rate_limit_backend: str = os.getenv("RATE_LIMIT_BACKEND", "redis").lower()
    rate_limit_namespace: str = os.getenv("RATE_LIMIT_NAMESPACE", "ratelimit")
    rate_limit_name: str = os.getenv("RATE_LIMIT_NAME", "default")
    bucket_span: str = os.getenv("RATE_LIMIT_BUCKET_SPAN", "600")
    bucket_interval: str = os.getenv("RATE_LIMIT_BUCKET_INTERVAL", "5")
    bucket_expiry: str = os.getenv("RATE_LIMIT_BUCKET_EXPIRY", "")
    default_interval: int = _env_int("RATE_LIMIT_DEFAULT_INTERVAL", "30")
    default_threshold: int = _env_int("RATE_LIMIT_DEFAULT_THRESHOLD", "30")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    def limiter_config(self) -> RateLimiterConfig:
        """Validate the bucket settings and return them as a ``RateLimiterConfig``."""
        return RateLimiterConfig(
            bucket_span=_parse_number("RATE_LIMIT_BUCKET_SPAN", self.bucket_span),
            bucket_interval=_parse_number("RATE_LIMIT_BUCKET_INTERVAL", self.bucket_interval),
            bucket_expiry=_parse_number("RATE_LIMIT_BUCKET_EXPIRY", self.bucket_expiry),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached Settings instance for the running process."""
    return Settings()
