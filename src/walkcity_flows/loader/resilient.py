"""Resilient asynchronous data loading.

This module provides the :class:`ResilientLoader`, which runs a caller-supplied
fallible async load, retries it automatically a bounded number of times after a
constant backoff, and discards completions that belong to superseded params.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic

from walkcity_flows.config import RetryPolicy
from walkcity_flows.core.events import ChangeNotifier, LoadStatusChanged, utcnow
from walkcity_flows.core.types import LoadStatus, P, T
from walkcity_flows.exceptions import InvalidStateError, LoadFailure

__all__ = ["LoadAttempt", "LoadOperation", "ResilientLoader"]

logger = logging.getLogger(__name__)

LoadOperation = Callable[[P], Awaitable[T]]
"""A fallible async callable taking the loader's params."""


@dataclass
class LoadAttempt:
    """Attempt bookkeeping for the current params.

    Attributes:
        max_attempts: Automatic retries allowed after the first attempt.
        attempt_count: Failed attempts recorded for the current params.
        status: Current load status.
        last_error: The most recent load failure, if any.
        params_version: Generation counter; bumped whenever params are superseded.
    """

    max_attempts: int
    attempt_count: int = 0
    status: LoadStatus = LoadStatus.IDLE
    last_error: LoadFailure | None = None
    params_version: int = 0


class ResilientLoader(Generic[P, T]):
    """Controller for a fallible async load with bounded automatic retry.

    Only the load tagged with the latest ``params_version`` is current. Older
    in-flight loads are not interrupted; their completions are dropped when
    they arrive. Pending retry timers are cancelled as soon as they are
    superseded and re-check the version when they wake.

    Attributes:
        name: Identifier used as the event source and in log records.
        policy: Retry policy.
        attempt: Attempt bookkeeping for the current params.
        result: Value of the successful load for the current params, None while loading or idle.
        notifier: Change-event fan-out for the presentation layer.

    Example:
        >>> async def fetch_layer(metric: str) -> dict:
        ...     return await api.get_layer(metric)
        >>> loader = ResilientLoader(fetch_layer, RetryPolicy(max_attempts=2))
        >>> loader.trigger("safety")
        >>> attempt = await loader.wait()
        >>> attempt.status
        <LoadStatus.SUCCESS: 'success'>
    """

    def __init__(
        self,
        load: LoadOperation[P, T],
        policy: RetryPolicy | None = None,
        *,
        name: str = "loader",
        notifier: ChangeNotifier | None = None,
    ) -> None:
        """Initialize an idle loader.

        Args:
            load: The fallible async load operation.
            policy: Retry policy; defaults to 2 retries with a 1 second backoff.
            name: Identifier used as the event source.
            notifier: Optional shared notifier; a private one is created otherwise.
        """
        self._load = load
        self.policy = policy or RetryPolicy()
        self.name = name
        self.notifier = notifier if notifier is not None else ChangeNotifier()
        self.attempt = LoadAttempt(max_attempts=self.policy.max_attempts)
        self.result: T | None = None
        self._params: P | None = None
        self._has_params = False
        self._retry_timer: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._settled = asyncio.Event()
        self._settled.set()

    @property
    def status(self) -> LoadStatus:
        return self.attempt.status

    @property
    def params(self) -> P | None:
        return self._params

    @property
    def params_version(self) -> int:
        return self.attempt.params_version

    @property
    def retry_pending(self) -> bool:
        return self._retry_timer is not None and not self._retry_timer.done()

    def is_current(self, version: int) -> bool:
        return version == self.attempt.params_version

    def trigger(self, params: P) -> asyncio.Task[None] | None:
        """Start loading for ``params`` unless they are already the current params.

        Must be called from within a running event loop.

        Args:
            params: Opaque parameters passed to the load operation.

        Returns:
            The task running the first attempt, or None when params are unchanged.
        """
        if self._has_params and params == self._params:
            logger.debug("Loader '%s' already tracking params %r", self.name, params)
            return None
        self._params = params
        self._has_params = True
        return self._restart()

    def manual_retry(self) -> asyncio.Task[None]:
        """Restart a load that gave up, with the same params.

        Returns:
            The task running the new first attempt.

        Raises:
            InvalidStateError: If the loader is not in the failed state.
        """
        if self.attempt.status != LoadStatus.FAILED:
            raise InvalidStateError("retry manually", f"loader '{self.name}' is {self.attempt.status}")
        logger.info("Loader '%s' retried manually", self.name)
        return self._restart()

    def cancel(self) -> None:
        """Supersede every pending attempt and return to idle."""
        self._supersede()
        self.attempt.status = LoadStatus.IDLE
        self.attempt.attempt_count = 0
        self.attempt.last_error = None
        self._has_params = False
        self._params = None
        self.result = None
        self._settled.set()
        self._emit()

    async def wait(self) -> LoadAttempt:
        """Wait until the current params settle in success, failure or idle.

        Returns:
            The attempt bookkeeping at the time it settled.
        """
        await self._settled.wait()
        return self.attempt

    def _supersede(self) -> int:
        self.attempt.params_version += 1
        if self._retry_timer is not None:
            self._retry_timer.cancel()
            self._retry_timer = None
        return self.attempt.params_version

    def _restart(self) -> asyncio.Task[None]:
        version = self._supersede()
        self.attempt.attempt_count = 0
        self.attempt.last_error = None
        self.result = None
        self.attempt.status = LoadStatus.LOADING
        self._settled.clear()
        self._emit()
        return self._spawn(version)

    def _spawn(self, version: int) -> asyncio.Task[None]:
        task = asyncio.create_task(self._run_attempt(version, self._params))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_attempt(self, version: int, params: P) -> None:
        try:
            result = await self._load(params)
        except Exception as exc:
            self._on_failure(version, exc)
        else:
            self._on_success(version, result)

    def _on_success(self, version: int, result: T) -> None:
        if not self.is_current(version):
            logger.debug("Loader '%s' discarded stale result of version %d", self.name, version)
            return
        self.result = result
        self.attempt.status = LoadStatus.SUCCESS
        self.attempt.attempt_count = 0
        self.attempt.last_error = None
        self._settled.set()
        self._emit()

    def _on_failure(self, version: int, exc: Exception) -> None:
        if not self.is_current(version):
            logger.debug("Loader '%s' discarded stale failure of version %d: %s", self.name, version, exc)
            return
        self.attempt.attempt_count += 1
        self.attempt.last_error = LoadFailure(self.name, self.attempt.attempt_count, exc)

        if self.policy.should_retry(self.attempt.attempt_count):
            logger.warning(
                "Loader '%s' attempt %d failed, retrying in %.3fs: %s",
                self.name,
                self.attempt.attempt_count,
                self.policy.backoff_delay.total_seconds(),
                exc,
            )
            self._retry_timer = asyncio.create_task(self._retry_after_backoff(version))
            self._emit(retry_scheduled=True)
            return

        logger.error("Loader '%s' gave up after %d attempts: %s", self.name, self.attempt.attempt_count, exc)
        self.attempt.status = LoadStatus.FAILED
        self._settled.set()
        self._emit()

    async def _retry_after_backoff(self, version: int) -> None:
        await asyncio.sleep(self.policy.backoff_delay.total_seconds())
        if not self.is_current(version):
            return
        self._retry_timer = None
        self._emit()
        self._spawn(version)

    def _emit(self, *, retry_scheduled: bool = False) -> None:
        error = self.attempt.last_error
        self.notifier.emit(
            LoadStatusChanged(
                source=self.name,
                timestamp=utcnow(),
                status=self.attempt.status,
                attempt_count=self.attempt.attempt_count,
                params_version=self.attempt.params_version,
                error=str(error.cause) if error and error.cause else None,
                retry_scheduled=retry_scheduled,
            )
        )
