"""Change events for workflow and loader state.

Every state-changing operation on a wizard, loader or screen emits one of these
events through a :class:`ChangeNotifier`. The presentation layer subscribes to
the notifier and re-renders; no implicit dependency tracking is involved.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from walkcity_flows.core.types import ExitReason, LoadStatus, RecordingState

__all__ = [
    "CancelDismissed",
    "CancelRequested",
    "ChangeEvent",
    "ChangeListener",
    "ChangeNotifier",
    "FieldChanged",
    "LoadStatusChanged",
    "RecordingStateChanged",
    "StepChanged",
    "UndoApplied",
    "WorkflowExited",
    "utcnow",
]

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ChangeEvent:
    """Base class for all change events.

    Attributes:
        source: Name of the workflow, screen or loader that changed.
        timestamp: When the change happened.
    """

    source: str
    timestamp: datetime


@dataclass
class FieldChanged(ChangeEvent):
    """Event emitted when a draft field is edited.

    Attributes:
        source: Name of the workflow that changed.
        timestamp: When the edit happened.
        field: Name of the edited field.
        old_value: Value before the edit.
        new_value: Value after the edit.

    Example:
        >>> event = FieldChanged(
        ...     source="issue_report",
        ...     timestamp=utcnow(),
        ...     field="issue_type",
        ...     old_value="",
        ...     new_value="broken_sidewalk",
        ... )
    """

    field: str
    old_value: Any = None
    new_value: Any = None


@dataclass
class StepChanged(ChangeEvent):
    """Event emitted when the wizard moves between steps.

    Attributes:
        from_index: Step index before the move.
        to_index: Step index after the move.
        step_name: Name of the step now current.
    """

    from_index: int
    to_index: int
    step_name: str


@dataclass
class CancelRequested(ChangeEvent):
    """Event emitted when a cancel needs user confirmation.

    Attributes:
        step_index: Step the confirmation was opened from.
    """

    step_index: int


@dataclass
class CancelDismissed(ChangeEvent):
    """Event emitted when the user keeps editing instead of canceling."""

    step_index: int


@dataclass
class UndoApplied(ChangeEvent):
    """Event emitted when a snapshot is restored.

    Attributes:
        sequence: Sequence number of the restored snapshot.
        remaining: Number of snapshots still available for undo.
    """

    sequence: int
    remaining: int = 0


@dataclass
class WorkflowExited(ChangeEvent):
    """Event emitted when a workflow is left for good.

    Attributes:
        instance_id: Identifier of the workflow instance.
        reason: Whether the workflow was submitted or canceled.
        submission_id: Identifier of the submission record, if submitted.
    """

    instance_id: UUID
    reason: ExitReason
    submission_id: UUID | None = None


@dataclass
class LoadStatusChanged(ChangeEvent):
    """Event emitted whenever a loader's attempt state changes.

    Attributes:
        status: The loader status after the change.
        attempt_count: Failed attempts recorded for the current params.
        params_version: Version of the params the change belongs to.
        error: Message of the last load failure, if any.
        retry_scheduled: True when an automatic retry has just been scheduled.
    """

    status: LoadStatus
    attempt_count: int
    params_version: int
    error: str | None = None
    retry_scheduled: bool = False


@dataclass
class RecordingStateChanged(ChangeEvent):
    """Event emitted when a route recording is paused, resumed or stopped."""

    from_state: RecordingState
    to_state: RecordingState


ChangeListener = Callable[[ChangeEvent], None]


class ChangeNotifier:
    """Synchronous fan-out of change events to subscribed listeners.

    Listeners are called in subscription order on the emitting call stack.
    """

    def __init__(self) -> None:
        self._listeners: list[ChangeListener] = []

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a listener.

        Args:
            listener: Callable receiving every emitted event.

        Returns:
            A callable that unsubscribes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: ChangeEvent) -> None:
        """Deliver an event to every current listener.

        Args:
            event: The event to deliver.
        """
        logger.debug("Emitting %s from '%s'", type(event).__name__, event.source)
        for listener in list(self._listeners):
            listener(event)

    def __len__(self) -> int:
        return len(self._listeners)
