"""Bounded undo history.

This module provides the immutable :class:`Snapshot` and the capacity-bounded
:class:`HistoryStack` used by every workflow to undo field edits.
"""

from __future__ import annotations

import copy
import logging
from collections import deque
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any

from walkcity_flows.core.events import utcnow

__all__ = ["DEFAULT_CAPACITY", "HistoryStack", "Snapshot"]

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10
"""Number of snapshots kept per workflow unless configured otherwise."""


@dataclass(frozen=True)
class Snapshot:
    """Immutable point-in-time copy of a workflow's mutable state.

    The state is deep-copied on creation and again on every read, so neither
    later edits of the live state nor edits of a value read back from
    :attr:`state` can alter a stored snapshot.

    Attributes:
        sequence: Monotonically increasing number within the owning stack.
        taken_at: When the snapshot was captured.

    Example:
        >>> live = {"tags": ["a"]}
        >>> snapshot = Snapshot.of(live, sequence=1)
        >>> live["tags"].append("b")
        >>> snapshot.state["tags"]
        ['a']
    """

    sequence: int
    captured: Mapping[str, Any] = field(repr=False)
    taken_at: datetime = field(default_factory=utcnow)

    @classmethod
    def of(cls, state: Mapping[str, Any], sequence: int) -> Snapshot:
        """Capture a structurally independent copy of ``state``.

        Args:
            state: The live field mapping to copy.
            sequence: Sequence number to tag the snapshot with.

        Returns:
            A new Snapshot.
        """
        return cls(sequence=sequence, captured=MappingProxyType(copy.deepcopy(dict(state))))

    @property
    def state(self) -> Mapping[str, Any]:
        """Read-only deep copy of the captured fields."""
        return MappingProxyType(self.to_dict())

    def to_dict(self) -> dict[str, Any]:
        """Return a fresh, mutable deep copy of the captured state.

        Returns:
            A dict that can be handed to live state without aliasing the snapshot.
        """
        return copy.deepcopy(dict(self.captured))


class HistoryStack:
    """Capacity-bounded LIFO stack of snapshots.

    Pushing beyond capacity evicts the oldest snapshot. Undo pops the most recent
    one; there is no redo. Sequence numbers keep increasing across ``clear()``.

    Attributes:
        capacity: Maximum number of retained snapshots.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        """Initialize an empty stack.

        Args:
            capacity: Maximum number of retained snapshots.

        Raises:
            ValueError: If capacity is smaller than 1.
        """
        if capacity < 1:
            msg = f"History capacity must be at least 1, got {capacity}"
            raise ValueError(msg)
        self._entries: deque[Snapshot] = deque(maxlen=capacity)
        self._last_sequence = 0

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    @property
    def can_undo(self) -> bool:
        return bool(self._entries)

    def capture(self, state: Mapping[str, Any]) -> Snapshot:
        """Create the next snapshot of ``state`` without pushing it.

        Args:
            state: The live field mapping to copy.

        Returns:
            A snapshot tagged with the next sequence number.
        """
        self._last_sequence += 1
        return Snapshot.of(state, sequence=self._last_sequence)

    def push(self, snapshot: Snapshot) -> None:
        """Append a snapshot, evicting the oldest one when over capacity.

        Args:
            snapshot: The snapshot to append.
        """
        if len(self._entries) == self.capacity:
            logger.debug("History full, evicting snapshot %d", self._entries[0].sequence)
        self._entries.append(snapshot)

    def record(self, state: Mapping[str, Any]) -> Snapshot:
        """Capture ``state`` and push it in one step.

        Args:
            state: The pre-mutation field mapping.

        Returns:
            The pushed snapshot.
        """
        snapshot = self.capture(state)
        self.push(snapshot)
        return snapshot

    def undo(self) -> Snapshot | None:
        """Remove and return the most recently pushed snapshot.

        Returns:
            The snapshot, or None when the stack is empty. Callers must treat
            None as a strict no-op.
        """
        if not self._entries:
            return None
        return self._entries.pop()

    def peek(self) -> Snapshot | None:
        return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Snapshot]:
        return iter(self._entries)
