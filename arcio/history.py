"""
Linear undo/redo over whole-graph snapshots.

The past stack always ends with the snapshot of the current state; its
first entry is the baseline (normally the empty graph the editor starts
with) and is never undone past. Undo moves the top snapshot to the front
of the future stack and restores the new top; redo does the reverse.

Snapshots are stored by reference. Graphs are immutable, so holding a
reference is as good as a copy as long as callers replace graphs instead
of mutating them.
"""

import logging
from typing import Optional

from .models import Graph

logger = logging.getLogger(__name__)


class HistoryManager:
    """
    Snapshot-based undo/redo history.

    - take_snapshot() records the state after an edit and drops the redo branch
    - undo() / redo() return the graph to restore, or None if there is none
    """

    def __init__(self, max_history: Optional[int] = 100):
        self._past: list[Graph] = []
        self._future: list[Graph] = []
        self._max_history = max_history

    # --- Properties ---

    @property
    def past(self) -> tuple[Graph, ...]:
        return tuple(self._past)

    @property
    def future(self) -> tuple[Graph, ...]:
        return tuple(self._future)

    @property
    def can_undo(self) -> bool:
        """Check if undo is available (the baseline always stays)."""
        return len(self._past) >= 2

    @property
    def can_redo(self) -> bool:
        """Check if redo is available."""
        return len(self._future) > 0

    @property
    def current(self) -> Optional[Graph]:
        return self._past[-1] if self._past else None

    # --- Operations ---

    def clear(self, baseline: Optional[Graph] = None):
        """Forget all history, optionally seeding a new baseline."""
        self._past.clear()
        self._future.clear()
        if baseline is not None:
            self._past.append(baseline)

    def take_snapshot(self, graph: Graph):
        """Record a graph state after an edit."""
        # New edit invalidates redo stack
        self._future.clear()
        self._past.append(graph)

        # Trim history if too long; the baseline and the current state stay
        if self._max_history and len(self._past) > self._max_history:
            keep = max(self._max_history, 2)
            del self._past[1:len(self._past) - keep + 1]

        logger.debug("Snapshot taken (%d nodes, %d edges), depth %d",
                     len(graph.nodes), len(graph.edges), len(self._past))

    def undo(self) -> Optional[Graph]:
        """Step back one snapshot and return the state to restore."""
        if not self.can_undo:
            return None

        self._future.insert(0, self._past.pop())
        logger.debug("Undo: depth %d, %d redoable", len(self._past), len(self._future))
        return self._past[-1]

    def redo(self) -> Optional[Graph]:
        """Re-apply the most recently undone snapshot and return it."""
        if not self.can_redo:
            return None

        snapshot = self._future.pop(0)
        self._past.append(snapshot)
        logger.debug("Redo: depth %d, %d redoable", len(self._past), len(self._future))
        return snapshot
