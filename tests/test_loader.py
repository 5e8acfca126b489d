"""Tests for the resilient loader."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from tests.conftest import FlakyLoad
    from walkcity_flows.config import RetryPolicy
    from walkcity_flows.core.events import ChangeEvent, ChangeNotifier


def _load_status_changes(events: list[ChangeEvent]) -> list[tuple[str, int, bool]]:
    from walkcity_flows.core.events import LoadStatusChanged

    return [
        (str(event.status), event.attempt_count, event.retry_scheduled)
        for event in events
        if isinstance(event, LoadStatusChanged)
    ]


@pytest.mark.unit
class TestLoaderState:
    """Tests for loader bookkeeping outside a load."""

    def test_initially_idle(self, flaky_load: type[FlakyLoad]) -> None:
        from walkcity_flows.core.types import LoadStatus
        from walkcity_flows.loader import ResilientLoader

        loader = ResilientLoader(flaky_load())

        assert loader.status == LoadStatus.IDLE
        assert loader.params is None
        assert loader.params_version == 0
        assert loader.result is None
        assert not loader.retry_pending

    def test_manual_retry_requires_failure(self, flaky_load: type[FlakyLoad]) -> None:
        from walkcity_flows.exceptions import InvalidStateError
        from walkcity_flows.loader import ResilientLoader

        loader = ResilientLoader(flaky_load(), name="layer")

        with pytest.raises(InvalidStateError, match="loader 'layer' is idle"):
            loader.manual_retry()

    def test_keeps_shared_notifier_without_listeners(
        self, flaky_load: type[FlakyLoad], notifier: ChangeNotifier
    ) -> None:
        """Test a notifier nobody listens to yet is still the one used."""
        from walkcity_flows.loader import ResilientLoader

        loader = ResilientLoader(flaky_load(), notifier=notifier)

        assert loader.notifier is notifier


@pytest.mark.unit
@pytest.mark.asyncio
class TestLoaderRetry:
    """Tests for automatic and manual retry."""

    async def test_success_first_time(self, flaky_load: type[FlakyLoad], fast_policy: RetryPolicy) -> None:
        from walkcity_flows.core.types import LoadStatus
        from walkcity_flows.loader import ResilientLoader

        load = flaky_load()
        loader = ResilientLoader(load, fast_policy)
        loader.trigger("safety")

        attempt = await loader.wait()

        assert attempt.status == LoadStatus.SUCCESS
        assert attempt.attempt_count == 0
        assert loader.result == "data for safety"
        assert load.calls == ["safety"]

    async def test_fail_once_then_succeed(
        self,
        flaky_load: type[FlakyLoad],
        fast_policy: RetryPolicy,
        notifier: ChangeNotifier,
        events: list[ChangeEvent],
    ) -> None:
        """Test the status stays loading across one failure and a scheduled retry."""
        from walkcity_flows.loader import ResilientLoader

        load = flaky_load(failures=1)
        loader = ResilientLoader(load, fast_policy, notifier=notifier)
        loader.trigger("safety")
        await loader.wait()

        assert _load_status_changes(events) == [
            ("loading", 0, False),
            ("loading", 1, True),
            ("loading", 1, False),
            ("success", 0, False),
        ]
        assert load.calls == ["safety", "safety"]
        assert loader.attempt.last_error is None

    async def test_gives_up_after_three_attempts(
        self,
        flaky_load: type[FlakyLoad],
        fast_policy: RetryPolicy,
    ) -> None:
        """Test two automatic retries follow the first attempt and nothing after."""
        from walkcity_flows.core.types import LoadStatus
        from walkcity_flows.exceptions import LoadFailure
        from walkcity_flows.loader import ResilientLoader

        load = flaky_load(failures=100)
        loader = ResilientLoader(load, fast_policy)
        loader.trigger("safety")

        attempt = await loader.wait()

        assert attempt.status == LoadStatus.FAILED
        assert attempt.attempt_count == 3
        assert isinstance(attempt.last_error, LoadFailure)
        assert attempt.last_error.attempt == 3
        assert isinstance(attempt.last_error.cause, ConnectionError)
        assert len(load.calls) == 3

        await asyncio.sleep(fast_policy.backoff_delay.total_seconds() * 5)
        assert len(load.calls) == 3
        assert loader.status == LoadStatus.FAILED

    async def test_manual_retry_restarts_budget(
        self,
        flaky_load: type[FlakyLoad],
        fast_policy: RetryPolicy,
    ) -> None:
        from walkcity_flows.core.types import LoadStatus
        from walkcity_flows.loader import ResilientLoader

        load = flaky_load(failures=3)
        loader = ResilientLoader(load, fast_policy)
        loader.trigger("safety")
        await loader.wait()
        version = loader.params_version

        loader.manual_retry()
        assert loader.status == LoadStatus.LOADING
        assert loader.attempt.attempt_count == 0
        assert loader.params_version == version + 1

        attempt = await loader.wait()
        assert attempt.status == LoadStatus.SUCCESS
        assert loader.result == "data for safety"
        assert len(load.calls) == 4

    async def test_zero_retries(self, flaky_load: type[FlakyLoad]) -> None:
        from walkcity_flows.config import RetryPolicy
        from walkcity_flows.core.types import LoadStatus
        from walkcity_flows.loader import ResilientLoader

        load = flaky_load(failures=1)
        loader = ResilientLoader(load, RetryPolicy(max_attempts=0, backoff_delay=timedelta(0)))
        loader.trigger("safety")

        assert (await loader.wait()).status == LoadStatus.FAILED
        assert len(load.calls) == 1

    async def test_give_up_event_carries_error(
        self,
        flaky_load: type[FlakyLoad],
        fast_policy: RetryPolicy,
        notifier: ChangeNotifier,
        events: list[ChangeEvent],
    ) -> None:
        from walkcity_flows.core.events import LoadStatusChanged
        from walkcity_flows.loader import ResilientLoader

        loader = ResilientLoader(flaky_load(failures=100), fast_policy, notifier=notifier, name="map")
        loader.trigger("safety")
        await loader.wait()

        last = events[-1]
        assert isinstance(last, LoadStatusChanged)
        assert last.source == "map"
        assert last.error == "network down (3)"
        assert last.attempt_count == 3


@pytest.mark.unit
@pytest.mark.asyncio
class TestLoaderParams:
    """Tests for params changes and stale completions."""

    async def test_same_params_ignored(self, flaky_load: type[FlakyLoad], fast_policy: RetryPolicy) -> None:
        from walkcity_flows.loader import ResilientLoader

        load = flaky_load()
        loader = ResilientLoader(load, fast_policy)

        assert loader.trigger("safety") is not None
        assert loader.trigger("safety") is None
        await loader.wait()

        assert load.calls == ["safety"]
        assert loader.params_version == 1

    async def test_result_cleared_while_reloading(
        self, flaky_load: type[FlakyLoad], fast_policy: RetryPolicy
    ) -> None:
        """Test the previous params' result is not reported for new params."""
        from walkcity_flows.core.types import LoadStatus
        from walkcity_flows.loader import ResilientLoader

        loader = ResilientLoader(flaky_load(delay=0.02), fast_policy)
        loader.trigger("safety")
        await loader.wait()
        assert loader.result == "data for safety"

        loader.trigger("comfort")
        assert loader.status == LoadStatus.LOADING
        assert loader.result is None

        await loader.wait()
        assert loader.result == "data for comfort"

    async def test_stale_result_is_discarded(self, fast_policy: RetryPolicy) -> None:
        """Test a slow load for old params never overwrites the newer result."""
        from walkcity_flows.core.types import LoadStatus
        from walkcity_flows.loader import ResilientLoader

        async def load(metric: str) -> str:
            await asyncio.sleep(0.05 if metric == "safety" else 0)
            return metric

        loader = ResilientLoader(load, fast_policy)
        loader.trigger("safety")
        loader.trigger("comfort")

        await loader.wait()
        assert loader.result == "comfort"

        await asyncio.sleep(0.1)
        assert loader.result == "comfort"
        assert loader.status == LoadStatus.SUCCESS
        assert loader.params == "comfort"

    async def test_stale_failure_is_discarded(self, fast_policy: RetryPolicy) -> None:
        from walkcity_flows.core.types import LoadStatus
        from walkcity_flows.loader import ResilientLoader

        async def load(metric: str) -> str:
            if metric == "safety":
                await asyncio.sleep(0.05)
                raise ConnectionError(metric)
            return metric

        loader = ResilientLoader(load, fast_policy)
        loader.trigger("safety")
        loader.trigger("comfort")
        await loader.wait()
        await asyncio.sleep(0.1)

        assert loader.status == LoadStatus.SUCCESS
        assert loader.attempt.attempt_count == 0
        assert not loader.retry_pending

    async def test_pending_retry_cancelled_by_new_params(self) -> None:
        """Test a retry scheduled for old params never fires."""
        from walkcity_flows.config import RetryPolicy
        from walkcity_flows.core.types import LoadStatus
        from walkcity_flows.loader import ResilientLoader

        calls: list[str] = []

        async def load(metric: str) -> str:
            calls.append(metric)
            if metric == "safety":
                raise ConnectionError(metric)
            return metric

        policy = RetryPolicy(max_attempts=2, backoff_delay=timedelta(milliseconds=50))
        loader = ResilientLoader(load, policy)
        loader.trigger("safety")
        await asyncio.sleep(0.01)
        assert loader.retry_pending

        loader.trigger("comfort")
        assert not loader.retry_pending

        assert (await loader.wait()).status == LoadStatus.SUCCESS
        await asyncio.sleep(0.1)
        assert calls == ["safety", "comfort"]

    async def test_cancel_returns_to_idle(self, flaky_load: type[FlakyLoad], fast_policy: RetryPolicy) -> None:
        from walkcity_flows.core.types import LoadStatus
        from walkcity_flows.loader import ResilientLoader

        loader = ResilientLoader(flaky_load(delay=0.05), fast_policy)
        loader.trigger("safety")
        loader.cancel()

        attempt = await loader.wait()
        assert attempt.status == LoadStatus.IDLE
        assert loader.params is None

        await asyncio.sleep(0.1)
        assert loader.status == LoadStatus.IDLE
        assert loader.result is None
