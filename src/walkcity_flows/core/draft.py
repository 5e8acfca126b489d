"""In-progress form state for a single workflow."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from walkcity_flows.core.history import HistoryStack, Snapshot

__all__ = ["DraftFormState"]


class DraftFormState:
    """Mutable field holder scoped to one workflow instance.

    When attached to a :class:`~walkcity_flows.core.history.HistoryStack`, every
    mutation records a deep copy of the pre-change fields first, so ``undo``
    always restores the immediately preceding state.

    Attributes:
        history: Stack that receives a snapshot before every mutation, if any.

    Example:
        >>> draft = DraftFormState({"description": ""})
        >>> draft.set_field("description", "Cracked pavement")
        >>> draft.get_field("description")
        'Cracked pavement'
        >>> draft.is_dirty()
        True
    """

    def __init__(
        self,
        initial: Mapping[str, Any] | None = None,
        history: HistoryStack | None = None,
    ) -> None:
        """Initialize the draft from its initial (empty) values.

        Args:
            initial: Field schema with starting values, supplied by the screen.
            history: Optional stack to record pre-change snapshots on.
        """
        self._initial: dict[str, Any] = copy.deepcopy(dict(initial or {}))
        self._fields: dict[str, Any] = copy.deepcopy(self._initial)
        self.history = history

    @property
    def fields(self) -> Mapping[str, Any]:
        """Read-only view of the live fields."""
        return MappingProxyType(self._fields)

    def get_field(self, name: str, default: Any = None) -> Any:
        return self._fields.get(name, default)

    def set_field(self, name: str, value: Any) -> None:
        """Set a single field, recording the previous state first.

        Args:
            name: Field to set.
            value: New value.
        """
        self._record()
        self._fields[name] = value

    def update(self, values: Mapping[str, Any]) -> None:
        """Set several fields as one undoable action.

        Args:
            values: Mapping of field names to new values.
        """
        if not values:
            return
        self._record()
        self._fields.update(values)

    def restore(self, snapshot: Snapshot) -> None:
        """Replace the live fields with a snapshot's state without recording."""
        self._fields = snapshot.to_dict()

    def reset(self) -> None:
        self._fields = copy.deepcopy(self._initial)

    def is_dirty(self) -> bool:
        """Check whether any field differs from its initial value."""
        return self._fields != self._initial

    def as_dict(self) -> dict[str, Any]:
        """Return a deep copy of the live fields."""
        return copy.deepcopy(self._fields)

    def _record(self) -> None:
        if self.history is not None:
            self.history.record(self._fields)

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __repr__(self) -> str:
        return f"DraftFormState({self._fields!r})"
