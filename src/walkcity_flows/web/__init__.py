"""Web API for WalkCity wizard sessions.

This package exposes wizard sessions over REST through the
:class:`~walkcity_flows.plugin.WalkCityPlugin`:

- ``GET    /walkcity/sessions/screens``            - list startable screens
- ``POST   /walkcity/sessions``                    - start a session
- ``GET    /walkcity/sessions/{id}``               - session state
- ``PUT    /walkcity/sessions/{id}/fields``        - commit field edits
- ``POST   /walkcity/sessions/{id}/advance``       - next step
- ``POST   /walkcity/sessions/{id}/retreat``       - previous step
- ``POST   /walkcity/sessions/{id}/undo``          - undo last edit
- ``POST   /walkcity/sessions/{id}/cancel``        - request cancel
- ``POST   /walkcity/sessions/{id}/cancel/confirm`` - discard and exit
- ``POST   /walkcity/sessions/{id}/cancel/dismiss`` - keep editing
- ``POST   /walkcity/sessions/{id}/submit``        - submit
"""

from __future__ import annotations

from walkcity_flows.web.controllers import WizardSessionController
from walkcity_flows.web.dto import EditFieldsDTO, SessionDTO, StartSessionDTO, StepDTO
from walkcity_flows.web.exceptions import exception_handlers, not_found_handler, state_conflict_handler

__all__ = [
    "EditFieldsDTO",
    "SessionDTO",
    "StartSessionDTO",
    "StepDTO",
    "WizardSessionController",
    "exception_handlers",
    "not_found_handler",
    "state_conflict_handler",
]
