"""Minimal example of walkcity-flows integration.

This example serves the issue report and route recording wizards over REST and
keeps every submitted record in memory.

Run with:
    cd examples/minimal
    litestar run

Or:
    uvicorn app:app --reload
"""

from __future__ import annotations

import logging
from typing import Any

from litestar import Controller, Litestar, get

from walkcity_flows import (
    SessionRegistry,
    WalkCityConfig,
    WalkCityPlugin,
    WalkCityPluginConfig,
    WizardSession,
)
from walkcity_flows.core.types import ExitReason
from walkcity_flows.screens import IssueReportFlow, RouteRecordingFlow

logger = logging.getLogger(__name__)

# =============================================================================
# Submitted records
# =============================================================================

submitted: list[dict[str, Any]] = []


def keep_submission(session: WizardSession, reason: ExitReason) -> None:
    """Store the record of a submitted session."""
    if reason != ExitReason.SUBMITTED or session.submission is None:
        return
    submission = session.submission
    submitted.append(
        {
            "id": str(submission.id),
            "screen": session.screen,
            "submitted_at": submission.submitted_at.isoformat(),
            "fields": {name: str(value) for name, value in submission.fields.items()},
        }
    )
    logger.info("Stored %s submission %s", session.screen, submission.id)


registry = SessionRegistry(config=WalkCityConfig(history_capacity=20), on_leave=keep_submission)


# =============================================================================
# Controllers
# =============================================================================


class SubmissionController(Controller):
    """Read-only view of everything submitted so far."""

    path = "/submissions"

    @get("/")
    async def list_submissions(self) -> list[dict[str, Any]]:
        """List submitted reports and routes."""
        return submitted

    @get("/active")
    async def active_sessions(self, walkcity_sessions: SessionRegistry) -> dict[str, int]:
        """Count wizards that are still open."""
        return {"active": len(walkcity_sessions)}


# =============================================================================
# Application
# =============================================================================

app = Litestar(
    route_handlers=[SubmissionController],
    plugins=[
        WalkCityPlugin(
            config=WalkCityPluginConfig(
                registry=registry,
                screens={
                    IssueReportFlow.screen_name: IssueReportFlow,
                    RouteRecordingFlow.screen_name: RouteRecordingFlow,
                },
            )
        )
    ],
    debug=True,
)
