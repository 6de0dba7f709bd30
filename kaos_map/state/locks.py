"""
kaos_map/state/locks.py - Position lock / manual override store.

Two independent switches:
    per-node locks - positions recorded when a user finishes dragging a
                     node; locked nodes are never moved by automatic layout
                     until clear_all() (the explicit "re-layout" action).
    global lock    - when set, drags are refused outright and the renderer
                     should not let the user move anything.

Lifetime is one in-memory session. One store belongs to one graph view.
"""

import logging
from typing import Optional

from kaos_map.graph.model import Position, VisualGraph

logger = logging.getLogger(__name__)


class PositionLockStore:
    """Manually assigned node positions plus the global drag lock."""

    def __init__(self) -> None:
        self._positions: dict[str, Position] = {}
        self._locked = False

    def __len__(self) -> int:
        return len(self._positions)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._positions

    @property
    def is_locked(self) -> bool:
        return self._locked

    def record_drag(self, node_id: str, position: Position) -> bool:
        """
        Insert or overwrite the manual position of `node_id`.

        Returns False (and records nothing) while the global lock is set.
        """
        if self._locked:
            logger.debug("Drag of '%s' ignored: view is locked.", node_id)
            return False
        self._positions[node_id] = Position(float(position.x), float(position.y))
        return True

    def clear_all(self) -> None:
        """Forget every manual position; the next layout may move any node."""
        logger.info("Clearing %d locked node positions.", len(self._positions))
        self._positions.clear()

    def toggle_locked(self, locked: Optional[bool] = None) -> bool:
        """Set the global lock (or flip it when `locked` is None); returns the new value."""
        self._locked = (not self._locked) if locked is None else bool(locked)
        return self._locked

    def locked_ids(self) -> frozenset:
        return frozenset(self._positions)

    def position_of(self, node_id: str) -> Optional[Position]:
        return self._positions.get(node_id)

    def apply(self, graph: VisualGraph) -> VisualGraph:
        """Return `graph` with every locked node placed at its recorded position."""
        if not self._positions:
            return graph
        return graph.with_nodes(
            n.moved_to(self._positions[n.id]) if n.id in self._positions else n
            for n in graph.nodes
        )
