"""Configuration objects for walkcity-flows.

Retry counts, backoff, failure simulation and history depth are configuration
rather than constants baked into the screens.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

from walkcity_flows.core.history import DEFAULT_CAPACITY

__all__ = ["RetryPolicy", "WalkCityConfig"]


@dataclass(frozen=True)
class RetryPolicy:
    """Automatic retry policy for resilient loads.

    Attributes:
        max_attempts: Automatic retries allowed after the first attempt. The
            default of 2 gives three attempts in total before giving up.
        backoff_delay: Constant wait before each automatic retry.

    Example:
        >>> policy = RetryPolicy(max_attempts=2, backoff_delay=timedelta(seconds=1))
        >>> policy.should_retry(2)
        True
        >>> policy.should_retry(3)
        False
    """

    max_attempts: int = 2
    backoff_delay: timedelta = timedelta(seconds=1)

    def __post_init__(self) -> None:
        if self.max_attempts < 0:
            msg = f"max_attempts must not be negative, got {self.max_attempts}"
            raise ValueError(msg)
        if self.backoff_delay < timedelta(0):
            msg = f"backoff_delay must not be negative, got {self.backoff_delay}"
            raise ValueError(msg)

    def should_retry(self, attempt_count: int) -> bool:
        """Decide whether another automatic attempt is allowed.

        Args:
            attempt_count: Failed attempts recorded so far for the current params.

        Returns:
            True if an automatic retry should be scheduled.
        """
        return attempt_count <= self.max_attempts


@dataclass
class WalkCityConfig:
    """Application-wide settings shared by the screens.

    Attributes:
        history_capacity: Snapshots kept per workflow for undo.
        retry_policy: Retry policy for map data loads.
        map_failure_rate: Probability that the simulated map source fails a load.
        map_latency: Simulated network delay of the map source.
    """

    history_capacity: int = DEFAULT_CAPACITY
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    map_failure_rate: float = 0.05
    map_latency: timedelta = timedelta(milliseconds=800)

    def __post_init__(self) -> None:
        if self.history_capacity < 1:
            msg = f"history_capacity must be at least 1, got {self.history_capacity}"
            raise ValueError(msg)
        if not 0.0 <= self.map_failure_rate <= 1.0:
            msg = f"map_failure_rate must be between 0 and 1, got {self.map_failure_rate}"
            raise ValueError(msg)
