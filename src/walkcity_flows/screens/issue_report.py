"""Issue reporting workflow.

A three-step wizard: pick the location on the map, describe the issue, then
optionally attach a photo and submit.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from walkcity_flows.config import WalkCityConfig
from walkcity_flows.core.types import Coordinates, MapClick
from walkcity_flows.wizard.controller import WizardController
from walkcity_flows.wizard.definition import WizardDefinition, WizardStep

if TYPE_CHECKING:
    from walkcity_flows.core.draft import DraftFormState
    from walkcity_flows.core.events import ChangeNotifier
    from walkcity_flows.core.history import Snapshot
    from walkcity_flows.core.protocols import Router
    from walkcity_flows.wizard.controller import Submission
    from walkcity_flows.wizard.definition import ValidationFailure

__all__ = [
    "DEFAULT_LOCATION",
    "ISSUE_TYPES",
    "MAX_PHOTO_BYTES",
    "IssueReportFlow",
    "PhotoAttachment",
    "build_issue_report_definition",
    "check_coordinates",
]

ISSUE_TYPES: dict[str, str] = {
    "broken_sidewalk": "Broken Sidewalk",
    "missing_crosswalk": "Missing Crosswalk",
    "poor_lighting": "Poor Lighting",
    "accessibility_barrier": "Accessibility Barrier",
    "other": "Other Issue",
}
"""Reportable issue types mapped to their display labels."""

DEFAULT_LOCATION: Coordinates = (40.7128, -74.006)

MAX_PHOTO_BYTES = 5 * 1024 * 1024


@dataclass(frozen=True)
class PhotoAttachment:
    """Reference to a photo picked by the user.

    Attributes:
        filename: Original file name.
        content_type: MIME type, must be an image type.
        size_bytes: File size in bytes, at most 5 MB.
    """

    filename: str
    content_type: str
    size_bytes: int

    def __post_init__(self) -> None:
        if not self.content_type.startswith("image/"):
            msg = f"Photo must be an image, got '{self.content_type}'"
            raise ValueError(msg)
        if self.size_bytes > MAX_PHOTO_BYTES:
            msg = f"Photo is {self.size_bytes} bytes, the limit is {MAX_PHOTO_BYTES}"
            raise ValueError(msg)


def _known_issue_type(draft: DraftFormState) -> str | None:
    issue_type = draft.get_field("issue_type")
    if issue_type not in ISSUE_TYPES:
        return f"Unknown issue type '{issue_type}'"
    return None


def check_coordinates(latitude: float, longitude: float) -> Coordinates:
    """Validate a map position.

    Raises:
        ValueError: If the coordinates are out of range.
    """
    if not -90.0 <= latitude <= 90.0 or not -180.0 <= longitude <= 180.0:
        msg = f"Coordinates out of range: ({latitude}, {longitude})"
        raise ValueError(msg)
    return (latitude, longitude)


def _parse_location(value: Any) -> Coordinates:
    latitude, longitude = value
    if isinstance(latitude, bool) or isinstance(longitude, bool):
        msg = "Coordinates must be numbers"
        raise TypeError(msg)
    return check_coordinates(float(latitude), float(longitude))


def _parse_issue_type(value: Any) -> str:
    if value != "" and value not in ISSUE_TYPES:
        msg = f"Unknown issue type '{value}'"
        raise ValueError(msg)
    return value


def _parse_description(value: Any) -> str:
    if not isinstance(value, str):
        msg = "Description must be text"
        raise TypeError(msg)
    return value


def _parse_photo(value: Any) -> PhotoAttachment | None:
    if value is None or isinstance(value, PhotoAttachment):
        return value
    if not isinstance(value, Mapping):
        msg = "Photo must be an object with filename, content_type and size_bytes"
        raise TypeError(msg)
    return PhotoAttachment(
        filename=str(value["filename"]),
        content_type=str(value["content_type"]),
        size_bytes=int(value["size_bytes"]),
    )


def build_issue_report_definition(history_capacity: int | None = None) -> WizardDefinition:
    """Build the wizard definition for reporting an issue.

    Args:
        history_capacity: Snapshots kept for undo; defaults to the configured value.

    Returns:
        The three-step issue report definition.
    """
    return WizardDefinition(
        name="issue_report",
        description="Report an infrastructure issue",
        steps=[
            WizardStep(
                name="location",
                title="Location",
                guide=(
                    "Select a location on the map where the issue is located. "
                    "Be as precise as possible to help maintenance crews find the spot."
                ),
                required_fields=("location",),
            ),
            WizardStep(
                name="details",
                title="Issue Details",
                guide=(
                    "Select the type of issue and provide a detailed description. "
                    "More details help prioritize fixes."
                ),
                required_fields=("issue_type", "description"),
                validator=_known_issue_type,
            ),
            WizardStep(
                name="photo",
                title="Add Photo",
                guide=(
                    "Add a photo if possible (optional). "
                    "Photos greatly increase the chance and speed of resolution."
                ),
            ),
        ],
        initial_fields={
            "location": DEFAULT_LOCATION,
            "issue_type": "",
            "description": "",
            "photo": None,
        },
        history_capacity=WalkCityConfig().history_capacity if history_capacity is None else history_capacity,
        field_parsers={
            "location": _parse_location,
            "issue_type": _parse_issue_type,
            "description": _parse_description,
            "photo": _parse_photo,
        },
    )


class IssueReportFlow:
    """Screen-level operations for filing one issue report.

    Attributes:
        wizard: The underlying wizard controller.
    """

    screen_name = "issue_report"

    def __init__(
        self,
        router: Router | None = None,
        notifier: ChangeNotifier | None = None,
        config: WalkCityConfig | None = None,
    ) -> None:
        config = config or WalkCityConfig()
        self.wizard = WizardController(
            build_issue_report_definition(config.history_capacity),
            router=router,
            notifier=notifier,
        )

    @property
    def location(self) -> Coordinates:
        return self.wizard.draft.get_field("location")

    @property
    def photo(self) -> PhotoAttachment | None:
        return self.wizard.draft.get_field("photo")

    def handle_map_click(self, click: MapClick) -> None:
        """Move the pin to a clicked point on the map."""
        self.select_location(click.latitude, click.longitude)

    def select_location(self, latitude: float, longitude: float) -> None:
        """Move the pin as an undoable edit.

        Raises:
            ValueError: If the coordinates are out of range.
        """
        self.wizard.edit_field("location", check_coordinates(latitude, longitude))

    def choose_issue_type(self, issue_type: str) -> None:
        """Set the issue type.

        Raises:
            ValueError: If the issue type is not one of :data:`ISSUE_TYPES`.
        """
        if issue_type not in ISSUE_TYPES:
            msg = f"Unknown issue type '{issue_type}'"
            raise ValueError(msg)
        self.wizard.edit_field("issue_type", issue_type)

    def describe(self, description: str) -> None:
        # committed on blur, one undo entry per commit
        self.wizard.edit_field("description", description)

    def attach_photo(self, photo: PhotoAttachment) -> None:
        self.wizard.edit_field("photo", photo)

    def detach_photo(self) -> None:
        if self.photo is None:
            return
        self.wizard.edit_field("photo", None)

    def undo(self) -> Snapshot | None:
        return self.wizard.undo()

    def submit(self) -> Submission | ValidationFailure:
        return self.wizard.submit()

    def summary(self) -> str:
        """Describe the report in one line, as confirmed to the user."""
        latitude, longitude = self.location
        label = ISSUE_TYPES.get(self.wizard.draft.get_field("issue_type"), "Unspecified issue")
        return f"Issue reported: {label} at {latitude}, {longitude}"
