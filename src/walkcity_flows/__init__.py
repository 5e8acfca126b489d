"""WalkCity Flows - interaction core of the WalkCity walkability app.

This package provides the reusable state machinery behind the app's screens,
so that issue reporting, route recording and the walkability map share one
implementation of their stateful patterns.

Key Features:
    - Linear wizard with validation gates and cancel confirmation
    - Bounded undo history of immutable snapshots
    - Async loader with bounded retry and stale-result suppression
    - Explicit change events for the presentation layer
    - Litestar plugin exposing wizard sessions over REST

Example:
    >>> from walkcity_flows.screens import IssueReportFlow
    >>>
    >>> flow = IssueReportFlow(router=router)
    >>> flow.select_location(40.7130, -74.0060)
    >>> flow.wizard.advance()
    >>> flow.choose_issue_type("broken_sidewalk")
    >>> flow.describe("Raised slab by the bus stop")
    >>> flow.wizard.advance()
    >>> flow.submit()
"""

from __future__ import annotations

from walkcity_flows.__metadata__ import __project__, __version__
from walkcity_flows.config import RetryPolicy, WalkCityConfig
from walkcity_flows.core import ChangeNotifier, DraftFormState, HistoryStack, Snapshot
from walkcity_flows.exceptions import (
    InvalidStateError,
    InvalidTransitionError,
    LoadFailure,
    MapDataUnavailableError,
    SessionNotFoundError,
    UnknownScreenError,
    WalkCityError,
    WizardDefinitionError,
)
from walkcity_flows.loader import LoadAttempt, ResilientLoader
from walkcity_flows.plugin import WalkCityPlugin, WalkCityPluginConfig
from walkcity_flows.sessions import SessionRegistry, WizardSession
from walkcity_flows.wizard import (
    Submission,
    ValidationFailure,
    WizardController,
    WizardDefinition,
    WizardStep,
    WorkflowState,
)

__all__ = (
    "ChangeNotifier",
    "DraftFormState",
    "HistoryStack",
    "InvalidStateError",
    "InvalidTransitionError",
    "LoadAttempt",
    "LoadFailure",
    "MapDataUnavailableError",
    "ResilientLoader",
    "RetryPolicy",
    "SessionNotFoundError",
    "SessionRegistry",
    "Snapshot",
    "Submission",
    "UnknownScreenError",
    "ValidationFailure",
    "WalkCityConfig",
    "WalkCityError",
    "WalkCityPlugin",
    "WalkCityPluginConfig",
    "WizardController",
    "WizardDefinition",
    "WizardDefinitionError",
    "WizardSession",
    "WizardStep",
    "WorkflowState",
    "__project__",
    "__version__",
)
