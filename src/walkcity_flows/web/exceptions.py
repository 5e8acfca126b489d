"""Exception handlers for the wizard session web API.

Contract violations of the interaction core become HTTP errors here; they never
reach the client as 500s.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from litestar import Response
from litestar.status_codes import HTTP_404_NOT_FOUND, HTTP_409_CONFLICT

from walkcity_flows.exceptions import (
    InvalidStateError,
    InvalidTransitionError,
    SessionNotFoundError,
    UnknownScreenError,
    WalkCityError,
)

if TYPE_CHECKING:  # pragma: no cover
    from litestar import Request
    from litestar.types import ExceptionHandlersMap

__all__ = ["exception_handlers", "not_found_handler", "state_conflict_handler"]


def state_conflict_handler(_request: Request, exc: WalkCityError) -> Response:
    """Return a 409 Conflict for operations the session's state forbids.

    Args:
        _request: The Litestar request object.
        exc: The InvalidStateError or InvalidTransitionError.

    Returns:
        Response with error details.
    """
    return Response(
        content={"error": "invalid_state", "message": str(exc)},
        status_code=HTTP_409_CONFLICT,
        media_type="application/json",
    )


def not_found_handler(_request: Request, exc: WalkCityError) -> Response:
    """Return a 404 for unknown sessions and screens.

    Args:
        _request: The Litestar request object.
        exc: The SessionNotFoundError or UnknownScreenError.

    Returns:
        Response with error details.
    """
    return Response(
        content={"error": "not_found", "message": str(exc)},
        status_code=HTTP_404_NOT_FOUND,
        media_type="application/json",
    )


exception_handlers: ExceptionHandlersMap = {
    InvalidStateError: state_conflict_handler,
    InvalidTransitionError: state_conflict_handler,
    SessionNotFoundError: not_found_handler,
    UnknownScreenError: not_found_handler,
}
