"""Protocols for the external collaborators of the interaction core.

The core never renders, navigates or encodes files itself. It talks to these
collaborators through structural interfaces so that any object with the right
methods can be plugged in.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from walkcity_flows.core.types import Coordinates, ExitReason, ExportFormat
    from walkcity_flows.wizard.controller import Submission

__all__ = ["ExportArtifact", "RouteExporter", "Router"]


@runtime_checkable
class Router(Protocol):
    """Navigation collaborator used to leave a workflow.

    Example:
        >>> class ConsoleRouter:
        ...     def leave(self, reason, submission=None):
        ...         print(f"leaving: {reason}")
    """

    def leave(self, reason: ExitReason, submission: Submission | None = None) -> None:
        """Leave the current workflow.

        Args:
            reason: Whether the workflow was submitted or canceled.
            submission: The immutable submission record when submitted.
        """
        ...


@dataclass(frozen=True)
class ExportArtifact:
    """Downloadable reference returned by a route exporter.

    Attributes:
        filename: Suggested file name, including the extension.
        media_type: MIME type of the serialized document.
        location: Opaque reference to the document (URL, path or key).
    """

    filename: str
    media_type: str
    location: str


@runtime_checkable
class RouteExporter(Protocol):
    """File-export collaborator that serializes a recorded route."""

    def export(
        self,
        points: Sequence[Coordinates],
        export_format: ExportFormat,
        description: str,
    ) -> ExportArtifact:
        """Serialize the ordered route points.

        Args:
            points: Ordered ``(latitude, longitude)`` pairs.
            export_format: Target document format.
            description: Free-text route description.

        Returns:
            A reference to the serialized document.
        """
        ...
