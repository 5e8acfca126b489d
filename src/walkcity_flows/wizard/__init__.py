"""Multi-step wizard with validation gates, undo and cancel confirmation."""

from __future__ import annotations

from walkcity_flows.wizard.controller import Submission, WizardController, WorkflowState
from walkcity_flows.wizard.definition import (
    FieldParser,
    StepValidator,
    ValidationFailure,
    WizardDefinition,
    WizardStep,
    is_blank,
)

__all__ = [
    "FieldParser",
    "StepValidator",
    "Submission",
    "ValidationFailure",
    "WizardController",
    "WizardDefinition",
    "WizardStep",
    "WorkflowState",
    "is_blank",
]
