"""Route recording workflow.

The recording itself is sampled by the geolocation collaborator; this screen
only tracks the recording state (``recording -> paused -> stopped``), collects
the ordered points it is handed, and then lets the user describe, export and
save the route.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Any

from walkcity_flows.config import WalkCityConfig
from walkcity_flows.core.events import RecordingStateChanged, utcnow
from walkcity_flows.core.types import Coordinates, ExportFormat, GeolocationSignal, RecordingMethod, RecordingState
from walkcity_flows.exceptions import InvalidStateError, InvalidTransitionError
from walkcity_flows.wizard.controller import WizardController
from walkcity_flows.wizard.definition import WizardDefinition, WizardStep

if TYPE_CHECKING:
    from walkcity_flows.core.draft import DraftFormState
    from walkcity_flows.core.events import ChangeNotifier
    from walkcity_flows.core.history import Snapshot
    from walkcity_flows.core.protocols import ExportArtifact, RouteExporter, Router
    from walkcity_flows.wizard.controller import Submission
    from walkcity_flows.wizard.definition import ValidationFailure

__all__ = [
    "DATA_USAGE_MB_PER_HOUR",
    "TRANSITIONS",
    "RouteRecordingFlow",
    "build_route_recording_definition",
    "export_filename",
]

logger = logging.getLogger(__name__)

TRANSITIONS: dict[RecordingState, frozenset[RecordingState]] = {
    RecordingState.RECORDING: frozenset({RecordingState.PAUSED, RecordingState.STOPPED}),
    RecordingState.PAUSED: frozenset({RecordingState.RECORDING, RecordingState.STOPPED}),
    RecordingState.STOPPED: frozenset(),
}
"""Allowed recording-state transitions."""

DATA_USAGE_MB_PER_HOUR: dict[RecordingMethod, int] = {
    RecordingMethod.AUTOMATIC: 3,
    RecordingMethod.MANUAL: 1,
}


def _recording_stopped(draft: DraftFormState) -> str | None:
    if draft.get_field("recording_state") != RecordingState.STOPPED:
        return "Stop the recording before saving the route"
    return None


def _still_recording(draft: DraftFormState) -> bool:
    return draft.get_field("recording_state") != RecordingState.STOPPED


def export_filename(export_format: ExportFormat, day: date | None = None) -> str:
    """Build the download name of an exported route.

    Example:
        >>> export_filename(ExportFormat.GPX, date(2024, 5, 1))
        'walkcity-route-2024-05-01.gpx'
    """
    day = day or utcnow().date()
    return f"walkcity-route-{day.isoformat()}.{export_format.value}"


def _reject_state_edit(_value: Any) -> RecordingState:
    msg = "Use pause, resume and stop to change the recording state"
    raise ValueError(msg)


def _reject_method_edit(_value: Any) -> RecordingMethod:
    msg = "Use the recording method toggle to change the recording method"
    raise ValueError(msg)


def _parse_description(value: Any) -> str:
    if not isinstance(value, str):
        msg = "Description must be text"
        raise TypeError(msg)
    return value


def build_route_recording_definition(history_capacity: int | None = None) -> WizardDefinition:
    return WizardDefinition(
        name="route_recording",
        description="Record and save a walking route",
        steps=[
            WizardStep(name="record", title="Recording", validator=_recording_stopped),
            WizardStep(name="save", title="Save Your Route", validator=_recording_stopped),
        ],
        initial_fields={
            "recording_state": RecordingState.RECORDING,
            "recording_method": RecordingMethod.AUTOMATIC,
            "description": "",
        },
        field_parsers={
            "recording_state": _reject_state_edit,
            "recording_method": _reject_method_edit,
            "description": _parse_description,
        },
        cancel_guard=_still_recording,
        history_capacity=WalkCityConfig().history_capacity if history_capacity is None else history_capacity,
    )


class RouteRecordingFlow:
    """Screen-level operations for recording one route.

    Attributes:
        wizard: The underlying wizard controller.
        points: Ordered points received while recording.
    """

    screen_name = "route_recording"

    def __init__(
        self,
        router: Router | None = None,
        notifier: ChangeNotifier | None = None,
        config: WalkCityConfig | None = None,
    ) -> None:
        config = config or WalkCityConfig()
        self.wizard = WizardController(
            build_route_recording_definition(config.history_capacity),
            router=router,
            notifier=notifier,
        )
        self.points: list[Coordinates] = []

    @property
    def recording_state(self) -> RecordingState:
        return RecordingState(self.wizard.draft.get_field("recording_state"))

    @property
    def recording_method(self) -> RecordingMethod:
        return RecordingMethod(self.wizard.draft.get_field("recording_method"))

    @property
    def data_usage_mb_per_hour(self) -> int:
        return DATA_USAGE_MB_PER_HOUR[self.recording_method]

    def pause(self) -> None:
        self._transition(RecordingState.PAUSED)

    def resume(self) -> None:
        self._transition(RecordingState.RECORDING)

    def toggle_pause(self) -> None:
        if self.recording_state == RecordingState.RECORDING:
            self.pause()
        else:
            self.resume()

    def stop(self) -> None:
        """Stop recording and move on to the save step.

        Stopping is final, so the undo history before it is dropped.
        """
        self._transition(RecordingState.STOPPED)
        self.wizard.advance()
        self.wizard.history.clear()

    def undo(self) -> Snapshot | None:
        """Undo the most recent edit, announcing a restored recording state."""
        previous = self.recording_state
        snapshot = self.wizard.undo()
        if snapshot is not None and self.recording_state != previous:
            self._announce(previous, self.recording_state)
        return snapshot

    def toggle_recording_method(self) -> None:
        if self.recording_state == RecordingState.STOPPED:
            raise InvalidStateError("change the recording method", "the recording is stopped")
        if self.recording_method == RecordingMethod.AUTOMATIC:
            method = RecordingMethod.MANUAL
        else:
            method = RecordingMethod.AUTOMATIC
        self.wizard.edit_field("recording_method", method)

    def handle_geolocation(self, signal: GeolocationSignal) -> None:
        """Apply a start/pause/resume/stop notification from the geolocation collaborator."""
        signal = GeolocationSignal(signal)
        if signal in (GeolocationSignal.START, GeolocationSignal.RESUME):
            if self.recording_state != RecordingState.RECORDING:
                self.resume()
        elif signal == GeolocationSignal.PAUSE:
            if self.recording_state != RecordingState.PAUSED:
                self.pause()
        elif self.recording_state != RecordingState.STOPPED:
            self.stop()

    def record_point(self, latitude: float, longitude: float) -> bool:
        """Append a sampled point if the recording is running.

        Returns:
            True if the point was kept.
        """
        if self.recording_state != RecordingState.RECORDING:
            return False
        self.points.append((latitude, longitude))
        return True

    def describe(self, description: str) -> None:
        self.wizard.edit_field("description", description)

    def export(self, exporter: RouteExporter, export_format: ExportFormat | str) -> ExportArtifact:
        """Hand the recorded route to the export collaborator.

        Raises:
            InvalidStateError: If the recording has not been stopped.
        """
        if self.recording_state != RecordingState.STOPPED:
            raise InvalidStateError("export the route", f"the recording is {self.recording_state}")
        description = self.wizard.draft.get_field("description") or "Recorded route"
        artifact = exporter.export(tuple(self.points), ExportFormat(export_format), description)
        logger.info("Exported %d points as %s", len(self.points), artifact.filename)
        return artifact

    def submit(self) -> Submission | ValidationFailure:
        return self.wizard.submit()

    def _transition(self, target: RecordingState) -> None:
        current = self.recording_state
        if target not in TRANSITIONS[current]:
            raise InvalidTransitionError(current, target)
        self.wizard.edit_field("recording_state", target)
        self._announce(current, target)

    def _announce(self, from_state: RecordingState, to_state: RecordingState) -> None:
        self.wizard.notifier.emit(
            RecordingStateChanged(source=self.wizard.name, timestamp=utcnow(), from_state=from_state, to_state=to_state)
        )
