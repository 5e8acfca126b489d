"""Wizard step and definition structures.

This module provides the declarative pieces a screen uses to describe its wizard:
the ordered steps with their validation rules and the field schema the draft
starts from.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from walkcity_flows.core.history import DEFAULT_CAPACITY

if TYPE_CHECKING:
    from walkcity_flows.core.draft import DraftFormState

__all__ = ["FieldParser", "StepValidator", "ValidationFailure", "WizardDefinition", "WizardStep", "is_blank"]

StepValidator = Callable[["DraftFormState"], "str | None"]
"""Predicate returning a failure reason, or None when the step is valid."""

FieldParser = Callable[[Any], Any]
"""Converts an externally supplied field value, raising ValueError when it is unacceptable."""


def is_blank(value: Any) -> bool:
    """Check whether a field value counts as missing.

    None, empty or whitespace-only strings and empty collections are blank;
    ``0`` and ``False`` are not.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return not value
    return False


@dataclass(frozen=True)
class ValidationFailure:
    """Why a step refused to be left.

    Returned by the wizard instead of being raised: the screen shows the reason
    inline and keeps its "next" affordance disabled.

    Attributes:
        step_name: Step whose validation failed.
        reason: Human-readable message.
        field: Offending field, when the failure is about a single field.
    """

    step_name: str
    reason: str
    field: str | None = None

    def __str__(self) -> str:
        return self.reason


@dataclass
class WizardStep:
    """A single step of a linear wizard.

    Attributes:
        name: Unique identifier for the step within its wizard.
        title: Display title.
        guide: Help text shown while the step is active.
        required_fields: Fields that must not be blank to leave the step.
        validator: Extra predicate run after the required-field check.

    Example:
        >>> step = WizardStep(
        ...     name="details",
        ...     title="Issue details",
        ...     required_fields=("issue_type", "description"),
        ... )
    """

    name: str
    title: str = ""
    guide: str = ""
    required_fields: tuple[str, ...] = ()
    validator: StepValidator | None = None

    def validate(self, draft: DraftFormState) -> ValidationFailure | None:
        """Run the step's checks against the draft.

        Args:
            draft: The workflow's live form state.

        Returns:
            The first failure found, or None when the step is valid.
        """
        for name in self.required_fields:
            if is_blank(draft.get_field(name)):
                label = name.replace("_", " ")
                return ValidationFailure(step_name=self.name, reason=f"Please provide the {label}", field=name)

        if self.validator is not None:
            reason = self.validator(draft)
            if reason:
                return ValidationFailure(step_name=self.name, reason=reason)
        return None


@dataclass
class WizardDefinition:
    """Declarative wizard structure.

    Attributes:
        name: Identifier of the workflow, used as the event source.
        steps: Ordered steps; the last one is the terminal step.
        initial_fields: Field schema with the draft's initial (empty) values.
        description: Human-readable description.
        cancel_guard: Decides whether canceling needs confirmation. Defaults to
            "the draft differs from its initial values".
        history_capacity: Snapshots retained for undo.
        field_parsers: Per-field checks applied to edits coming from outside the
            screen, such as the web API. Fields without a parser are taken as is.
    """

    name: str
    steps: list[WizardStep]
    initial_fields: dict[str, Any] = field(default_factory=dict)
    description: str = ""
    cancel_guard: Callable[[DraftFormState], bool] | None = None
    history_capacity: int = DEFAULT_CAPACITY
    field_parsers: dict[str, FieldParser] = field(default_factory=dict)

    @property
    def terminal_index(self) -> int:
        return len(self.steps) - 1

    def get_step(self, index: int) -> WizardStep:
        return self.steps[index]

    def step_index(self, name: str) -> int:
        """Look up a step's position by name.

        Raises:
            KeyError: If no step has that name.
        """
        for index, step in enumerate(self.steps):
            if step.name == name:
                return index
        msg = f"Step '{name}' not found in wizard '{self.name}'"
        raise KeyError(msg)

    def validate(self) -> list[str]:
        """Validate the definition for common mistakes.

        Returns:
            List of error messages; empty when the definition is usable.
        """
        errors: list[str] = []
        if not self.steps:
            errors.append("Wizard must have at least one step")

        seen: set[str] = set()
        for step in self.steps:
            if step.name in seen:
                errors.append(f"Duplicate step name '{step.name}'")
            seen.add(step.name)
            errors.extend(
                f"Step '{step.name}' requires unknown field '{name}'"
                for name in step.required_fields
                if name not in self.initial_fields
            )

        errors.extend(
            f"Parser given for unknown field '{name}'" for name in self.field_parsers if name not in self.initial_fields
        )

        if self.history_capacity < 1:
            errors.append(f"History capacity must be at least 1, got {self.history_capacity}")
        return errors

    def parse_fields(self, values: Mapping[str, Any]) -> dict[str, Any]:
        """Check and convert externally supplied field edits.

        Args:
            values: Mapping of field names to raw values.

        Returns:
            The converted values, ready for :meth:`WizardController.edit_fields`.

        Raises:
            ValueError: If a field is not part of the schema or its value is rejected.
        """
        unknown = sorted(set(values) - set(self.initial_fields))
        if unknown:
            msg = f"Unknown fields: {', '.join(unknown)}"
            raise ValueError(msg)

        parsed: dict[str, Any] = {}
        for name, value in values.items():
            parser = self.field_parsers.get(name)
            try:
                parsed[name] = parser(value) if parser is not None else value
            except (KeyError, TypeError, ValueError) as e:
                msg = f"Invalid value for '{name}': {e}"
                raise ValueError(msg) from e
        return parsed
