"""Data Transfer Objects for the wizard session web API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from walkcity_flows.sessions import WizardSession
    from walkcity_flows.wizard.definition import ValidationFailure

__all__ = ["EditFieldsDTO", "SessionDTO", "StartSessionDTO", "StepDTO"]


@dataclass
class StartSessionDTO:
    """DTO for starting a new wizard session.

    Attributes:
        screen: Name of a registered screen, e.g. ``issue_report``.
    """

    screen: str


@dataclass
class EditFieldsDTO:
    """DTO for committing field edits as one undoable action.

    Attributes:
        values: Mapping of field names to their new values.
    """

    values: dict[str, Any]


@dataclass
class StepDTO:
    """DTO for the active wizard step."""

    index: int
    name: str
    title: str
    guide: str


@dataclass
class SessionDTO:
    """DTO for the observable state of a wizard session.

    Attributes:
        id: Session ID.
        screen: Screen the session was started from.
        step: The active step.
        step_count: Number of steps in the wizard.
        fields: Current draft fields.
        can_advance: Whether the "next" affordance is enabled.
        can_undo: Whether there is an edit to undo.
        cancel_confirming: Whether a cancel confirmation is pending.
        exited: Whether the workflow was left.
        exit_reason: Why the workflow was left, if it was.
        validation_error: Inline message of the last blocked transition, if any.
        submission_id: ID of the submission record once submitted.
    """

    id: UUID
    screen: str
    step: StepDTO
    step_count: int
    fields: dict[str, Any]
    can_advance: bool
    can_undo: bool
    cancel_confirming: bool
    exited: bool
    exit_reason: str | None = None
    validation_error: str | None = None
    submission_id: UUID | None = None

    @classmethod
    def from_session(cls, session: WizardSession, failure: ValidationFailure | None = None) -> SessionDTO:
        wizard = session.wizard
        step = wizard.current_step
        return cls(
            id=session.id,
            screen=session.screen,
            step=StepDTO(
                index=wizard.state.current_step_index,
                name=step.name,
                title=step.title,
                guide=step.guide,
            ),
            step_count=wizard.step_count,
            fields=wizard.draft.as_dict(),
            can_advance=wizard.can_advance,
            can_undo=wizard.can_undo,
            cancel_confirming=wizard.state.cancel_confirming,
            exited=wizard.state.exited,
            exit_reason=str(wizard.state.exit_reason) if wizard.state.exit_reason else None,
            validation_error=failure.reason if failure else None,
            submission_id=wizard.submission.id if wizard.submission else None,
        )
