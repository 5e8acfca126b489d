"""Registry of active wizard sessions.

This module provides a registry for screen factories and the wizard sessions
started from them. The registry is also the router collaborator of every session
it starts: a session leaves the registry as soon as its workflow exits.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol
from uuid import UUID, uuid4

from walkcity_flows.config import WalkCityConfig
from walkcity_flows.core.events import ChangeNotifier, utcnow
from walkcity_flows.exceptions import SessionNotFoundError, UnknownScreenError

if TYPE_CHECKING:
    from walkcity_flows.core.history import Snapshot
    from walkcity_flows.core.protocols import Router
    from walkcity_flows.core.types import ExitReason
    from walkcity_flows.wizard.controller import Submission, WizardController

__all__ = ["ScreenFactory", "SessionRegistry", "WizardFlow", "WizardSession"]

logger = logging.getLogger(__name__)


class WizardFlow(Protocol):
    """A screen object exposing its wizard controller."""

    wizard: WizardController

    def undo(self) -> Snapshot | None:
        """Undo the most recent edit, applying any screen-level side effects."""
        ...


ScreenFactory = Callable[..., WizardFlow]
"""Callable accepting ``router``, ``notifier`` and ``config`` keyword arguments."""


@dataclass
class WizardSession:
    """One running workflow started through the registry.

    Attributes:
        id: Unique identifier of the session.
        screen: Name of the screen the session was started from.
        flow: The screen object driving the wizard.
        created_at: When the session was started.
        submission: The submission record once submitted.
    """

    id: UUID
    screen: str
    flow: WizardFlow
    created_at: datetime = field(default_factory=utcnow)
    submission: Submission | None = None

    @property
    def wizard(self) -> WizardController:
        return self.flow.wizard


class _SessionRouter:
    def __init__(self, registry: SessionRegistry, session_id: UUID) -> None:
        self._registry = registry
        self._session_id = session_id

    def leave(self, reason: ExitReason, submission: Submission | None = None) -> None:
        self._registry._on_leave(self._session_id, reason, submission)


class SessionRegistry:
    """Registry of screen factories and the sessions started from them.

    Attributes:
        config: Settings handed to every screen factory.
        notifier: Notifier shared by every started session.
        on_leave: Optional hook called after a session leaves the registry.
    """

    def __init__(
        self,
        config: WalkCityConfig | None = None,
        notifier: ChangeNotifier | None = None,
        on_leave: Callable[[WizardSession, ExitReason], Any] | None = None,
    ) -> None:
        self.config = config if config is not None else WalkCityConfig()
        self.notifier = notifier if notifier is not None else ChangeNotifier()
        self.on_leave = on_leave
        self._screens: dict[str, ScreenFactory] = {}
        self._sessions: dict[UUID, WizardSession] = {}

    def register_screen(self, name: str, factory: ScreenFactory) -> None:
        """Register a screen factory under ``name``.

        Example:
            >>> registry = SessionRegistry()
            >>> registry.register_screen("issue_report", IssueReportFlow)
        """
        self._screens[name] = factory

    def list_screens(self) -> list[str]:
        return sorted(self._screens)

    def start(self, screen: str) -> WizardSession:
        """Start a new session for a registered screen.

        Raises:
            UnknownScreenError: If no factory is registered under ``screen``.
        """
        if screen not in self._screens:
            raise UnknownScreenError(screen)

        session_id = uuid4()
        router: Router = _SessionRouter(self, session_id)
        flow = self._screens[screen](router=router, notifier=self.notifier, config=self.config)
        session = WizardSession(id=session_id, screen=screen, flow=flow)
        self._sessions[session_id] = session
        logger.info("Started %s session %s", screen, session_id)
        return session

    def get(self, session_id: UUID) -> WizardSession:
        """Look up an active session.

        Raises:
            SessionNotFoundError: If the session does not exist or already exited.
        """
        try:
            return self._sessions[session_id]
        except KeyError as e:
            raise SessionNotFoundError(session_id) from e

    def list_sessions(self) -> list[WizardSession]:
        return list(self._sessions.values())

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def _on_leave(self, session_id: UUID, reason: ExitReason, submission: Submission | None) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return
        session.submission = submission
        logger.info("Session %s left: %s", session_id, reason)
        if self.on_leave is not None:
            self.on_leave(session, reason)
