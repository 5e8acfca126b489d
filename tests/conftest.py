"""Shared test fixtures for walkcity-flows test suite."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Any

import pytest

if TYPE_CHECKING:
    from walkcity_flows.config import RetryPolicy, WalkCityConfig
    from walkcity_flows.core.events import ChangeEvent, ChangeNotifier
    from walkcity_flows.core.protocols import ExportArtifact
    from walkcity_flows.core.types import Coordinates, ExitReason, ExportFormat
    from walkcity_flows.wizard.controller import Submission
    from walkcity_flows.wizard.definition import WizardDefinition


@dataclass
class RecordingRouter:
    """Router double that remembers every ``leave`` call."""

    calls: list[tuple[ExitReason, Submission | None]] = field(default_factory=list)

    def leave(self, reason: ExitReason, submission: Submission | None = None) -> None:
        self.calls.append((reason, submission))


@dataclass
class RecordingExporter:
    """Route exporter double that returns a fixed artifact."""

    calls: list[tuple[tuple[Coordinates, ...], ExportFormat, str]] = field(default_factory=list)

    def export(self, points: Sequence[Coordinates], export_format: ExportFormat, description: str) -> ExportArtifact:
        from walkcity_flows.core.protocols import ExportArtifact
        from walkcity_flows.screens.route_recording import export_filename

        self.calls.append((tuple(points), export_format, description))
        return ExportArtifact(
            filename=export_filename(export_format),
            media_type="application/octet-stream",
            location=f"memory://{len(self.calls)}",
        )


@pytest.fixture
def router() -> RecordingRouter:
    """Router collaborator double."""
    return RecordingRouter()


@pytest.fixture
def exporter() -> RecordingExporter:
    """Route exporter collaborator double."""
    return RecordingExporter()


@pytest.fixture
def notifier() -> ChangeNotifier:
    """A fresh change notifier."""
    from walkcity_flows.core.events import ChangeNotifier

    return ChangeNotifier()


@pytest.fixture
def events(notifier: ChangeNotifier) -> list[ChangeEvent]:
    """Collect every event emitted through ``notifier``.

    Args:
        notifier: The notifier to subscribe to.

    Returns:
        List that grows as events are emitted.
    """
    collected: list[ChangeEvent] = []
    notifier.subscribe(collected.append)
    return collected


@pytest.fixture
def fast_policy() -> RetryPolicy:
    """Default retry budget with a backoff short enough for tests."""
    from walkcity_flows.config import RetryPolicy

    return RetryPolicy(max_attempts=2, backoff_delay=timedelta(milliseconds=10))


@pytest.fixture
def fast_config(fast_policy: RetryPolicy) -> WalkCityConfig:
    """Settings with a reliable, near-instant map source."""
    from walkcity_flows.config import WalkCityConfig

    return WalkCityConfig(retry_policy=fast_policy, map_failure_rate=0.0, map_latency=timedelta(0))


@pytest.fixture
def two_step_definition() -> WizardDefinition:
    """A minimal two-step wizard with a required field on the first step.

    Returns:
        WizardDefinition instance
    """
    from walkcity_flows.wizard.definition import WizardDefinition, WizardStep

    return WizardDefinition(
        name="feedback",
        steps=[
            WizardStep(name="write", title="Write", required_fields=("comment",)),
            WizardStep(name="confirm", title="Confirm"),
        ],
        initial_fields={"comment": "", "rating": 0},
    )


class FlakyLoad:
    """Async load operation failing a fixed number of times before succeeding.

    Attributes:
        failures: Number of leading calls that raise.
        calls: Params of every call, in call order.
    """

    def __init__(self, failures: int = 0, delay: float = 0.0) -> None:
        self.failures = failures
        self.delay = delay
        self.calls: list[Any] = []

    async def __call__(self, params: Any) -> str:
        import asyncio

        self.calls.append(params)
        await asyncio.sleep(self.delay)
        if len(self.calls) <= self.failures:
            msg = f"network down ({len(self.calls)})"
            raise ConnectionError(msg)
        return f"data for {params}"


@pytest.fixture
def flaky_load() -> type[FlakyLoad]:
    """The FlakyLoad factory."""
    return FlakyLoad
