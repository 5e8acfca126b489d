"""Core domain module for walkcity-flows.

This module exports the building blocks shared by the wizard, the loader and the
screens: types, change events, the undo history and the draft form state.
"""

from __future__ import annotations

from walkcity_flows.core.draft import DraftFormState
from walkcity_flows.core.events import (
    CancelDismissed,
    CancelRequested,
    ChangeEvent,
    ChangeListener,
    ChangeNotifier,
    FieldChanged,
    LoadStatusChanged,
    RecordingStateChanged,
    StepChanged,
    UndoApplied,
    WorkflowExited,
)
from walkcity_flows.core.history import DEFAULT_CAPACITY, HistoryStack, Snapshot
from walkcity_flows.core.protocols import ExportArtifact, RouteExporter, Router
from walkcity_flows.core.types import (
    Coordinates,
    ExitReason,
    ExportFormat,
    FieldMap,
    GeolocationSignal,
    LoadStatus,
    MapClick,
    RecordingMethod,
    RecordingState,
)

__all__ = [
    "DEFAULT_CAPACITY",
    "CancelDismissed",
    "CancelRequested",
    "ChangeEvent",
    "ChangeListener",
    "ChangeNotifier",
    "Coordinates",
    "DraftFormState",
    "ExitReason",
    "ExportArtifact",
    "ExportFormat",
    "FieldChanged",
    "FieldMap",
    "GeolocationSignal",
    "HistoryStack",
    "LoadStatus",
    "LoadStatusChanged",
    "MapClick",
    "RecordingMethod",
    "RecordingState",
    "RecordingStateChanged",
    "RouteExporter",
    "Router",
    "Snapshot",
    "StepChanged",
    "UndoApplied",
    "WorkflowExited",
]
