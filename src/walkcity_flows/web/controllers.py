"""REST API controller for wizard sessions.

Every endpoint drives one operation of the session's
:class:`~walkcity_flows.wizard.WizardController` and answers with the session's
observable state. Validation failures are reported inline in the body; contract
violations are mapped to HTTP errors by the handlers in
:mod:`walkcity_flows.web.exceptions`.
"""

from __future__ import annotations

from typing import ClassVar
from uuid import UUID

from litestar import Controller, get, post, put
from litestar.exceptions import ValidationException
from litestar.status_codes import HTTP_200_OK

from walkcity_flows.sessions import SessionRegistry  # noqa: TC001 - needed for DI
from walkcity_flows.web.dto import EditFieldsDTO, SessionDTO, StartSessionDTO
from walkcity_flows.wizard.controller import Submission

__all__ = ["WizardSessionController"]


class WizardSessionController(Controller):
    """API controller for wizard sessions.

    Tags: Wizard Sessions
    """

    path = "/sessions"
    tags: ClassVar[list[str]] = ["Wizard Sessions"]

    @get("/screens")
    async def list_screens(self, walkcity_sessions: SessionRegistry) -> list[str]:
        """List the screens sessions can be started for."""
        return walkcity_sessions.list_screens()

    @post("/")
    async def start_session(self, data: StartSessionDTO, walkcity_sessions: SessionRegistry) -> SessionDTO:
        """Start a new wizard session.

        Args:
            data: The screen to start.
            walkcity_sessions: Injected session registry.

        Returns:
            The new session at its first step.
        """
        session = walkcity_sessions.start(data.screen)
        return SessionDTO.from_session(session)

    @get("/{session_id:uuid}")
    async def get_session(self, session_id: UUID, walkcity_sessions: SessionRegistry) -> SessionDTO:
        """Get the current state of a session."""
        return SessionDTO.from_session(walkcity_sessions.get(session_id))

    @put("/{session_id:uuid}/fields")
    async def edit_fields(
        self,
        session_id: UUID,
        data: EditFieldsDTO,
        walkcity_sessions: SessionRegistry,
    ) -> SessionDTO:
        """Commit field edits as one undoable action.

        Raises:
            ValidationException: If a field is not part of the wizard's schema or its value is rejected.
        """
        session = walkcity_sessions.get(session_id)
        try:
            values = session.wizard.definition.parse_fields(data.values)
        except ValueError as e:
            raise ValidationException(detail=str(e)) from e
        session.wizard.edit_fields(values)
        return SessionDTO.from_session(session)

    @post("/{session_id:uuid}/advance", status_code=HTTP_200_OK)
    async def advance(self, session_id: UUID, walkcity_sessions: SessionRegistry) -> SessionDTO:
        """Move to the next step; a blocked move is reported in ``validation_error``."""
        session = walkcity_sessions.get(session_id)
        failure = session.wizard.advance()
        return SessionDTO.from_session(session, failure)

    @post("/{session_id:uuid}/retreat", status_code=HTTP_200_OK)
    async def retreat(self, session_id: UUID, walkcity_sessions: SessionRegistry) -> SessionDTO:
        """Move to the previous step."""
        session = walkcity_sessions.get(session_id)
        session.wizard.retreat()
        return SessionDTO.from_session(session)

    @post("/{session_id:uuid}/undo", status_code=HTTP_200_OK)
    async def undo(self, session_id: UUID, walkcity_sessions: SessionRegistry) -> SessionDTO:
        """Undo the most recent field edit, if any."""
        session = walkcity_sessions.get(session_id)
        session.flow.undo()
        return SessionDTO.from_session(session)

    @post("/{session_id:uuid}/cancel", status_code=HTTP_200_OK)
    async def request_cancel(self, session_id: UUID, walkcity_sessions: SessionRegistry) -> SessionDTO:
        """Request to cancel; either opens a confirmation or exits right away."""
        session = walkcity_sessions.get(session_id)
        session.wizard.request_cancel()
        return SessionDTO.from_session(session)

    @post("/{session_id:uuid}/cancel/confirm", status_code=HTTP_200_OK)
    async def confirm_cancel(self, session_id: UUID, walkcity_sessions: SessionRegistry) -> SessionDTO:
        """Discard the draft and exit."""
        session = walkcity_sessions.get(session_id)
        session.wizard.confirm_cancel()
        return SessionDTO.from_session(session)

    @post("/{session_id:uuid}/cancel/dismiss", status_code=HTTP_200_OK)
    async def dismiss_cancel(self, session_id: UUID, walkcity_sessions: SessionRegistry) -> SessionDTO:
        """Close the confirmation and keep editing."""
        session = walkcity_sessions.get(session_id)
        session.wizard.dismiss_cancel()
        return SessionDTO.from_session(session)

    @post("/{session_id:uuid}/submit", status_code=HTTP_200_OK)
    async def submit(self, session_id: UUID, walkcity_sessions: SessionRegistry) -> SessionDTO:
        """Submit from the terminal step."""
        session = walkcity_sessions.get(session_id)
        outcome = session.wizard.submit()
        failure = None if isinstance(outcome, Submission) else outcome
        return SessionDTO.from_session(session, failure)
