"""Exception hierarchy for walkcity-flows."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

__all__ = (
    "InvalidStateError",
    "InvalidTransitionError",
    "LoadFailure",
    "MapDataUnavailableError",
    "SessionNotFoundError",
    "UnknownScreenError",
    "WalkCityError",
    "WizardDefinitionError",
)


class WalkCityError(Exception):
    """Base exception for all walkcity-flows errors.

    Every exception raised by walkcity-flows inherits from this class so callers
    can handle the whole family with a single except clause.
    """


class InvalidStateError(WalkCityError):
    """Raised when an operation is called in a state that forbids it.

    This is a programming-contract violation rather than a user-facing error,
    e.g. submitting from a non-terminal step or retrying a load that has not failed.

    Attributes:
        operation: The operation that was attempted.
        state: Description of the state that forbids it.
    """

    def __init__(self, operation: str, state: str, reason: str | None = None) -> None:
        """Initialize the exception with the rejected operation.

        Args:
            operation: The operation that was attempted.
            state: Description of the state that forbids it.
            reason: Additional context about why the operation is rejected.
        """
        self.operation = operation
        self.state = state
        msg = f"Cannot {operation} while {state}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class InvalidTransitionError(WalkCityError):
    """Raised when an invalid state transition is attempted.

    Used by the route recorder when a recording-state change is not allowed,
    such as resuming a recording that was already stopped.

    Attributes:
        from_state: The state being transitioned from.
        to_state: The state being transitioned to.
    """

    def __init__(self, from_state: str, to_state: str, reason: str | None = None) -> None:
        """Initialize the exception with transition details.

        Args:
            from_state: The state being transitioned from.
            to_state: The state being transitioned to.
            reason: Additional context about why the transition is invalid.
        """
        self.from_state = from_state
        self.to_state = to_state
        msg = f"Invalid transition from '{from_state}' to '{to_state}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class LoadFailure(WalkCityError):
    """A single failed attempt of a resilient load.

    Wraps the exception raised by the caller-supplied load operation. Load
    failures are stored on the loader rather than propagated; they are transient
    and retried until the retry policy is exhausted.

    Attributes:
        loader: Name of the loader that failed.
        attempt: 1-based number of the failed attempt within the current params.
        cause: The underlying exception raised by the load operation.
    """

    def __init__(self, loader: str, attempt: int, cause: BaseException | None = None) -> None:
        """Initialize the exception with attempt details.

        Args:
            loader: Name of the loader that failed.
            attempt: 1-based number of the failed attempt.
            cause: The underlying exception raised by the load operation.
        """
        self.loader = loader
        self.attempt = attempt
        self.cause = cause
        msg = f"Load '{loader}' failed on attempt {attempt}"
        if cause:
            msg += f": {cause}"
        super().__init__(msg)


class WizardDefinitionError(WalkCityError):
    """Raised when a wizard definition fails validation.

    Attributes:
        errors: List of validation error messages.
    """

    def __init__(self, errors: list[str]) -> None:
        """Initialize the exception with validation errors.

        Args:
            errors: List of validation error messages.
        """
        self.errors = errors
        super().__init__(f"Wizard definition is invalid: {'; '.join(errors)}")


class MapDataUnavailableError(WalkCityError):
    """Raised by a map data source when a layer cannot be loaded.

    Attributes:
        metric: The metric whose data could not be loaded.
    """

    def __init__(self, metric: str) -> None:
        """Initialize the exception with the failing metric.

        Args:
            metric: The metric whose data could not be loaded.
        """
        self.metric = metric
        super().__init__(f"Failed to load map data for metric '{metric}'")


class SessionNotFoundError(WalkCityError):
    """Raised when a workflow session is not found.

    Sessions leave the registry as soon as their workflow exits, so this also
    covers sessions that were submitted or canceled.

    Attributes:
        session_id: The ID of the session that was not found.
    """

    def __init__(self, session_id: str | UUID) -> None:
        """Initialize the exception with session details.

        Args:
            session_id: The ID of the session that was not found.
        """
        self.session_id = session_id
        super().__init__(f"Session '{session_id}' not found")


class UnknownScreenError(WalkCityError):
    """Raised when a session is requested for a screen that was never registered.

    Attributes:
        name: The screen name that was requested.
    """

    def __init__(self, name: str) -> None:
        """Initialize the exception with the screen name.

        Args:
            name: The screen name that was requested.
        """
        self.name = name
        super().__init__(f"Screen '{name}' is not registered")
