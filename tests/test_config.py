from __future__ import annotations

import math

import pytest

from bucketlimit.config import Settings, _env_int
from bucketlimit.domain.contracts import RateLimiterConfig
from bucketlimit.errors import ConfigurationError


def test_defaults():
    config = RateLimiterConfig()
    assert config.bucket_span == 600
    assert config.bucket_interval == 5
    assert config.bucket_expiry == 600
    assert config.bucket_count == 120


@pytest.mark.parametrize(
    ("span", "interval", "expected"),
    [(600, 5, 120), (60, 7, 9), (10, 3, 3), (9, 2, 5), (18.0, 4.0, 5)],
)
def test_bucket_count_rounds_span_over_interval(span, interval, expected):
    assert RateLimiterConfig(bucket_span=span, bucket_interval=interval).bucket_count == expected


def test_rejects_expiry_larger_than_span():
    with pytest.raises(ConfigurationError, match="expiry"):
        RateLimiterConfig(bucket_span=60, bucket_interval=5, bucket_expiry=61)


def test_accepts_expiry_equal_to_span():
    assert RateLimiterConfig(bucket_span=60, bucket_interval=5, bucket_expiry=60).bucket_expiry == 60


def test_rejects_fewer_than_three_buckets():
    with pytest.raises(ConfigurationError, match="3 buckets"):
        RateLimiterConfig(bucket_span=10, bucket_interval=5)


@pytest.mark.parametrize("field", ["bucket_span", "bucket_interval", "bucket_expiry"])
def test_rejects_non_positive_values(field):
    with pytest.raises(ConfigurationError):
        RateLimiterConfig(**{field: 0})


def test_rejects_non_numeric_values():
    with pytest.raises(ConfigurationError):
        RateLimiterConfig(bucket_span="600")


def test_config_is_immutable():
    config = RateLimiterConfig()
    with pytest.raises(AttributeError):
        config.bucket_span = 30  # type: ignore[misc]


def test_coerce_accepts_mapping_and_none():
    assert RateLimiterConfig.coerce(None) == RateLimiterConfig()
    assert RateLimiterConfig.coerce({"bucket_span": 60}).bucket_count == 12


def test_coerce_rejects_unknown_options_and_wrong_shape():
    with pytest.raises(ConfigurationError, match="unknown"):
        RateLimiterConfig.coerce({"redis": object()})
    with pytest.raises(ConfigurationError, match="mapping"):
        RateLimiterConfig.coerce(["bucket_span", 60])  # type: ignore[arg-type]


def test_settings_build_limiter_config():
    settings = Settings(bucket_span="120", bucket_interval="2.5", bucket_expiry="")
    config = settings.limiter_config()
    assert config.bucket_span == 120
    assert config.bucket_interval == 2.5
    assert config.bucket_expiry == 120
    assert config.bucket_count == 48


def test_settings_reject_non_numeric_bucket_values():
    with pytest.raises(ConfigurationError, match="RATE_LIMIT_BUCKET_SPAN"):
        Settings(bucket_span="ten minutes").limiter_config()


@pytest.mark.parametrize(
    "options",
    [
        {"bucket_expiry": math.nan},
        {"bucket_span": math.nan},
        {"bucket_interval": math.inf},
        {"bucket_span": math.inf, "bucket_expiry": 600},
    ],
)
def test_rejects_non_finite_values(options):
    with pytest.raises(ConfigurationError, match="finite"):
        RateLimiterConfig(**options)


def test_malformed_default_threshold_raises_configuration_error(monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_DEFAULT_THRESHOLD", "thirty")
    with pytest.raises(ConfigurationError, match="RATE_LIMIT_DEFAULT_THRESHOLD"):
        _env_int("RATE_LIMIT_DEFAULT_THRESHOLD", "30")


def test_default_interval_read_from_environment(monkeypatch):
    monkeypatch.setenv("RATE_LIMIT_DEFAULT_INTERVAL", "45")
    assert _env_int("RATE_LIMIT_DEFAULT_INTERVAL", "30") == 45
