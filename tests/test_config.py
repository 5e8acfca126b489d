"""Tests for configuration objects."""

from __future__ import annotations

from datetime import timedelta

import pytest


@pytest.mark.unit
class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_defaults(self) -> None:
        from walkcity_flows.config import RetryPolicy

        policy = RetryPolicy()

        assert policy.max_attempts == 2
        assert policy.backoff_delay == timedelta(seconds=1)

    @pytest.mark.parametrize(("attempt_count", "expected"), [(1, True), (2, True), (3, False)])
    def test_should_retry(self, attempt_count: int, expected: bool) -> None:
        from walkcity_flows.config import RetryPolicy

        assert RetryPolicy().should_retry(attempt_count) is expected

    def test_rejects_negative_values(self) -> None:
        from walkcity_flows.config import RetryPolicy

        with pytest.raises(ValueError, match="max_attempts"):
            RetryPolicy(max_attempts=-1)
        with pytest.raises(ValueError, match="backoff_delay"):
            RetryPolicy(backoff_delay=timedelta(seconds=-1))


@pytest.mark.unit
class TestWalkCityConfig:
    """Tests for WalkCityConfig."""

    def test_defaults(self) -> None:
        from walkcity_flows.config import WalkCityConfig

        config = WalkCityConfig()

        assert config.history_capacity == 10
        assert config.map_failure_rate == 0.05
        assert config.map_latency == timedelta(milliseconds=800)
        assert config.retry_policy.max_attempts == 2

    def test_invalid_capacity(self) -> None:
        from walkcity_flows.config import WalkCityConfig

        with pytest.raises(ValueError, match="history_capacity"):
            WalkCityConfig(history_capacity=0)

    @pytest.mark.parametrize("rate", [-0.1, 1.5])
    def test_invalid_failure_rate(self, rate: float) -> None:
        from walkcity_flows.config import WalkCityConfig

        with pytest.raises(ValueError, match="map_failure_rate"):
            WalkCityConfig(map_failure_rate=rate)
