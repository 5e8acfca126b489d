"""Linear wizard state machine.

This module provides the :class:`WizardController`, which gates step transitions
on validation, records undo snapshots before every field edit, and manages the
cancel-confirmation sub-state of a single workflow instance.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from walkcity_flows.core.draft import DraftFormState
from walkcity_flows.core.events import (
    CancelDismissed,
    CancelRequested,
    ChangeNotifier,
    FieldChanged,
    StepChanged,
    UndoApplied,
    WorkflowExited,
    utcnow,
)
from walkcity_flows.core.history import HistoryStack
from walkcity_flows.core.types import ExitReason
from walkcity_flows.exceptions import InvalidStateError, WizardDefinitionError

if TYPE_CHECKING:
    from walkcity_flows.core.history import Snapshot
    from walkcity_flows.core.protocols import Router
    from walkcity_flows.wizard.definition import ValidationFailure, WizardDefinition, WizardStep

__all__ = ["Submission", "WizardController", "WorkflowState"]

logger = logging.getLogger(__name__)


@dataclass
class WorkflowState:
    """Navigation state of one wizard instance.

    Attributes:
        current_step_index: Index of the active step, ``0 <= index < N``.
        cancel_confirming: True while a cancel confirmation is pending.
        terminal_reached: True once the terminal step was submitted.
        exit_reason: Why the workflow was left, None while it is active.
    """

    current_step_index: int = 0
    cancel_confirming: bool = False
    terminal_reached: bool = False
    exit_reason: ExitReason | None = None

    @property
    def exited(self) -> bool:
        return self.exit_reason is not None


@dataclass(frozen=True)
class Submission:
    """Immutable record of a submitted workflow.

    Attributes:
        id: Unique identifier of the submission.
        workflow_name: Name of the submitted wizard.
        instance_id: Identifier of the wizard instance.
        fields: Read-only deep copy of the draft at submission time.
        submitted_at: When the workflow was submitted.
    """

    id: UUID
    workflow_name: str
    instance_id: UUID
    fields: Mapping[str, Any]
    submitted_at: datetime


class WizardController:
    """State machine for a linear, validated, cancelable wizard.

    States are ``Step_0 … Step_(N-1)``, ``ConfirmingCancel`` and ``Exited``.
    Field edits are undoable; step navigation is not. Every state change is
    announced through :attr:`notifier`.

    Attributes:
        definition: The wizard's steps and field schema.
        history: Undo stack owned by this instance.
        draft: Live form state owned by this instance.
        state: Navigation state.
        router: Collaborator used to leave the workflow.
        notifier: Change-event fan-out for the presentation layer.
        submission: The submission record once submitted.

    Example:
        >>> wizard = WizardController(definition, router=router)
        >>> wizard.edit_field("description", "Cracked pavement")
        >>> failure = wizard.advance()
        >>> if failure:
        ...     print(failure.reason)
    """

    def __init__(
        self,
        definition: WizardDefinition,
        router: Router | None = None,
        notifier: ChangeNotifier | None = None,
    ) -> None:
        """Initialize a fresh wizard instance at its first step.

        Args:
            definition: The wizard definition.
            router: Optional navigation collaborator.
            notifier: Optional shared notifier; a private one is created otherwise.

        Raises:
            WizardDefinitionError: If the definition does not validate.
        """
        errors = definition.validate()
        if errors:
            raise WizardDefinitionError(errors)

        self.definition = definition
        self.instance_id = uuid4()
        self.history = HistoryStack(definition.history_capacity)
        self.draft = DraftFormState(definition.initial_fields, history=self.history)
        self.state = WorkflowState()
        self.router = router
        self.notifier = notifier if notifier is not None else ChangeNotifier()
        self.submission: Submission | None = None

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def current_step(self) -> WizardStep:
        return self.definition.get_step(self.state.current_step_index)

    @property
    def step_count(self) -> int:
        return len(self.definition.steps)

    @property
    def is_terminal_step(self) -> bool:
        return self.state.current_step_index == self.definition.terminal_index

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_advance(self) -> bool:
        """Whether the "next" affordance should be enabled."""
        if self.state.exited or self.state.cancel_confirming or self.is_terminal_step:
            return False
        return self.validate_current_step() is None

    def validate_current_step(self) -> ValidationFailure | None:
        return self.current_step.validate(self.draft)

    def validate_steps(self) -> ValidationFailure | None:
        """Validate every step up to and including the current one.

        Returns:
            The failure of the first invalid step, or None.
        """
        for step in self.definition.steps[: self.state.current_step_index + 1]:
            failure = step.validate(self.draft)
            if failure is not None:
                return failure
        return None

    def edit_field(self, name: str, value: Any) -> None:
        """Commit a single field edit as one undoable action.

        Args:
            name: Field to edit.
            value: New value.
        """
        self._ensure_navigable("edit a field")
        old_value = self.draft.get_field(name)
        self.draft.set_field(name, value)
        self._emit(FieldChanged, field=name, old_value=old_value, new_value=value)

    def edit_fields(self, values: Mapping[str, Any]) -> None:
        """Commit several field edits as one undoable action.

        Args:
            values: Mapping of field names to new values.
        """
        self._ensure_navigable("edit fields")
        if not values:
            return
        old_values = {name: self.draft.get_field(name) for name in values}
        self.draft.update(values)
        for name, value in values.items():
            self._emit(FieldChanged, field=name, old_value=old_values[name], new_value=value)

    def undo(self) -> Snapshot | None:
        """Restore the draft to the state before the most recent edit.

        Returns:
            The restored snapshot, or None when there is nothing to undo. None
            leaves the draft untouched.
        """
        self._ensure_navigable("undo")
        snapshot = self.history.undo()
        if snapshot is None:
            return None
        self.draft.restore(snapshot)
        self._emit(UndoApplied, sequence=snapshot.sequence, remaining=len(self.history))
        return snapshot

    def advance(self) -> ValidationFailure | None:
        """Move to the next step if the current one validates.

        On the last step this is a no-op. Otherwise a snapshot of the draft is
        recorded before the step index changes.

        Returns:
            The validation failure that blocked the move, or None.
        """
        self._ensure_navigable("advance")
        if self.is_terminal_step:
            return None

        failure = self.validate_current_step()
        if failure is not None:
            logger.debug("Wizard '%s' blocked on step '%s': %s", self.name, failure.step_name, failure.reason)
            return failure

        self.history.record(self.draft.fields)
        self._move_to(self.state.current_step_index + 1)
        return None

    def retreat(self) -> None:
        """Move to the previous step. Field edits are kept and nothing is recorded."""
        self._ensure_navigable("retreat")
        if self.state.current_step_index == 0:
            return
        self._move_to(self.state.current_step_index - 1)

    def go_to(self, name: str) -> ValidationFailure | None:
        """Advance or retreat step by step until the named step is active.

        Moving forward stops at the first step that fails validation.

        Args:
            name: Name of the target step.

        Returns:
            The blocking validation failure, or None when the target was reached.
        """
        target = self.definition.step_index(name)
        while self.state.current_step_index < target:
            failure = self.advance()
            if failure is not None:
                return failure
        while self.state.current_step_index > target:
            self.retreat()
        return None

    def request_cancel(self) -> bool:
        """Ask to leave the workflow without submitting.

        Returns:
            True if a confirmation is now pending, False if the workflow was left
            immediately because there was nothing to lose.
        """
        self._ensure_active("cancel")
        if self.state.cancel_confirming:
            return True

        guard = self.definition.cancel_guard
        needs_confirmation = guard(self.draft) if guard is not None else self.draft.is_dirty()
        if needs_confirmation:
            self.state.cancel_confirming = True
            self._emit(CancelRequested, step_index=self.state.current_step_index)
            return True

        self._exit(ExitReason.CANCELED)
        return False

    def confirm_cancel(self) -> None:
        """Discard the draft and leave the workflow."""
        self._ensure_confirming("confirm cancel")
        self.state.cancel_confirming = False
        self._exit(ExitReason.CANCELED)

    def dismiss_cancel(self) -> None:
        """Close the confirmation and keep editing on the same step."""
        self._ensure_confirming("dismiss cancel")
        self.state.cancel_confirming = False
        self._emit(CancelDismissed, step_index=self.state.current_step_index)

    def submit(self) -> Submission | ValidationFailure:
        """Package the draft into a submission and leave the workflow.

        Returns:
            The submission record, or the failure of the first step that no longer validates.

        Raises:
            InvalidStateError: If the current step is not the terminal step.
        """
        self._ensure_navigable("submit")
        if not self.is_terminal_step:
            raise InvalidStateError(
                "submit",
                f"on step '{self.current_step.name}'",
                reason=f"submission is only allowed from '{self.definition.steps[-1].name}'",
            )

        # undo can blank fields an earlier step required
        failure = self.validate_steps()
        if failure is not None:
            logger.debug(
                "Wizard '%s' submission blocked on step '%s': %s", self.name, failure.step_name, failure.reason
            )
            return failure

        submission = Submission(
            id=uuid4(),
            workflow_name=self.name,
            instance_id=self.instance_id,
            fields=MappingProxyType(self.draft.as_dict()),
            submitted_at=utcnow(),
        )
        self.submission = submission
        self.state.terminal_reached = True
        logger.info("Wizard '%s' submitted as %s", self.name, submission.id)
        self._exit(ExitReason.SUBMITTED, submission)
        return submission

    def _move_to(self, index: int) -> None:
        previous = self.state.current_step_index
        self.state.current_step_index = index
        self._emit(StepChanged, from_index=previous, to_index=index, step_name=self.current_step.name)

    def _exit(self, reason: ExitReason, submission: Submission | None = None) -> None:
        self.state.exit_reason = reason
        self.history.clear()
        self._emit(
            WorkflowExited,
            instance_id=self.instance_id,
            reason=reason,
            submission_id=submission.id if submission else None,
        )
        if self.router is not None:
            self.router.leave(reason, submission)

    def _ensure_active(self, operation: str) -> None:
        if self.state.exited:
            raise InvalidStateError(operation, f"workflow '{self.name}' is {self.state.exit_reason}")

    def _ensure_navigable(self, operation: str) -> None:
        self._ensure_active(operation)
        if self.state.cancel_confirming:
            raise InvalidStateError(operation, "a cancel confirmation is pending")

    def _ensure_confirming(self, operation: str) -> None:
        self._ensure_active(operation)
        if not self.state.cancel_confirming:
            raise InvalidStateError(operation, "no cancel confirmation is pending")

    def _emit(self, event_type: type[Any], **kwargs: Any) -> None:
        self.notifier.emit(event_type(source=self.name, timestamp=utcnow(), **kwargs))
