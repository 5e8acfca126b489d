"""Core type definitions for walkcity-flows.

This module defines the enums, value objects and type aliases shared by the
wizard, history and loader components and by the screens built on them.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeAlias, TypeVar

# StrEnum backport for Python < 3.11
if sys.version_info >= (3, 11):
    from enum import StrEnum
else:

    class StrEnum(str, Enum):
        """String enumeration compatibility for Python < 3.11."""

        def __str__(self) -> str:
            return str(self.value)


__all__ = [
    "Coordinates",
    "ExitReason",
    "ExportFormat",
    "FieldMap",
    "GeolocationSignal",
    "LoadStatus",
    "MapClick",
    "P",
    "RecordingMethod",
    "RecordingState",
    "T",
]


class LoadStatus(StrEnum):
    """Status of a resilient load.

    Attributes:
        IDLE: Nothing has been requested yet, or the loader was canceled.
        LOADING: A load attempt is in flight or an automatic retry is pending.
        FAILED: Automatic retries are exhausted; only a manual retry restarts.
        SUCCESS: The most recent load for the current params succeeded.
    """

    IDLE = "idle"
    LOADING = "loading"
    FAILED = "failed"
    SUCCESS = "success"


class ExitReason(StrEnum):
    """Why a workflow was left.

    Attributes:
        SUBMITTED: The terminal step was submitted.
        CANCELED: The user canceled, with or without a confirmation prompt.
    """

    SUBMITTED = "submitted"
    CANCELED = "canceled"


class RecordingState(StrEnum):
    """State of a route recording."""

    RECORDING = "recording"
    PAUSED = "paused"
    STOPPED = "stopped"


class RecordingMethod(StrEnum):
    """How route points are captured while recording."""

    AUTOMATIC = "automatic"
    MANUAL = "manual"


class GeolocationSignal(StrEnum):
    """Notifications emitted by the geolocation collaborator."""

    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    STOP = "stop"


class ExportFormat(StrEnum):
    """File formats understood by the route exporter collaborator."""

    GPX = "gpx"
    KML = "kml"
    GEOJSON = "geojson"


Coordinates: TypeAlias = tuple[float, float]
"""A ``(latitude, longitude)`` pair."""

FieldMap: TypeAlias = dict[str, Any]
"""Type alias for a workflow's field-name to value mapping."""


@dataclass(frozen=True)
class MapClick:
    """Click event emitted by the map-display collaborator.

    Attributes:
        latitude: Latitude of the clicked point.
        longitude: Longitude of the clicked point.
    """

    latitude: float
    longitude: float

    @property
    def coordinates(self) -> Coordinates:
        return (self.latitude, self.longitude)


P = TypeVar("P")
"""Type variable for loader parameters."""

T = TypeVar("T")
"""Generic type variable for return values."""
