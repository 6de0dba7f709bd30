"""
kaos_map/session.py - One stateful graph view.

VisualMapSession wires the pure stages together and owns the only state
that survives between calls: the position lock store, the layout cache
(previous fingerprint + positions) and the active filter. Each rendered
map constructs its own session; two sessions never share anything.

Per snapshot:
    normalize → build → fingerprint ─┬─ changed   → stamp locks → layout → cache
                                     └─ unchanged → copy cached positions
                                     → filter projection → SessionView

User actions (synchronous, each returns the refreshed view):
    on_node_drag_stop(node_id, position)
    on_relayout_requested()
    on_filter_changed(kinds, statuses, query)
    set_edge_dimming(dim), set_direction(direction), toggle_lock(locked)

Usage:
    session = VisualMapSession()
    view = session.update(model_apis, mcp_servers, agents)
    view = session.on_node_drag_stop("Agent/default/agent-1", Position(500, 20))
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Optional

from kaos_map.config import DEFAULT_CONFIG, VisualMapConfig
from kaos_map.filters.highlight import DEFAULT_FILTER, FilterState, apply_filters, make_filter_state
from kaos_map.graph.builder import build_visual_graph
from kaos_map.graph.fingerprint import LayoutCache, resource_fingerprint
from kaos_map.graph.model import GraphEdge, Position, Resource, ResourceNode, VisualGraph
from kaos_map.ingestion.crd_adapter import normalize_collections
from kaos_map.layout import LayoutStrategy, compute_layout
from kaos_map.state.locks import PositionLockStore

logger = logging.getLogger(__name__)


@dataclass
class SessionView:
    """
    What the rendering surface receives after every call.

    Fields:
        graph:        Filtered projection (dimmed/highlighted flags set).
        changed:      True when positions were (re)computed by a layout pass.
        new_node_ids: Resource node ids that appeared in this snapshot and
                      were absent from the previous one.
    """

    graph: VisualGraph
    changed: bool = False
    new_node_ids: frozenset = field(default_factory=frozenset)

    @property
    def nodes(self) -> tuple:
        return self.graph.nodes

    @property
    def edges(self) -> tuple[GraphEdge, ...]:
        return self.graph.edges


class VisualMapSession:
    """Stateful pipeline for one visual map instance."""

    def __init__(
        self,
        config: VisualMapConfig = DEFAULT_CONFIG,
        strategy: Optional[LayoutStrategy] = None,
    ) -> None:
        self.config = config
        self.locks = PositionLockStore()
        self.cache = LayoutCache()
        self.filter_state: FilterState = DEFAULT_FILTER
        self.dim_model_api_edges = False
        self._strategy = strategy
        self._resources: tuple[list[Resource], list[Resource], list[Resource]] = ([], [], [])
        self._graph = VisualGraph()

    # ── Accessors ─────────────────────────────────────────────────────────────

    @property
    def graph(self) -> VisualGraph:
        """Canonical laid-out graph, before filtering."""
        return self._graph

    @property
    def is_locked(self) -> bool:
        return self.locks.is_locked

    def view(self, changed: bool = False, new_node_ids: frozenset = frozenset()) -> SessionView:
        return SessionView(
            graph=apply_filters(self._graph, self.filter_state),
            changed=changed,
            new_node_ids=new_node_ids,
        )

    # ── Snapshots ─────────────────────────────────────────────────────────────

    def update(
        self,
        model_apis: Optional[Iterable[Any]],
        mcp_servers: Optional[Iterable[Any]],
        agents: Optional[Iterable[Any]],
    ) -> SessionView:
        """
        Ingest a new resource snapshot.

        Accepts raw custom resource dicts or canonical Resource objects.
        Layout runs only when the structural fingerprint changed; otherwise
        every node takes the cached position of the same id.
        """
        resources = normalize_collections(model_apis, mcp_servers, agents)
        self._resources = resources
        built = build_visual_graph(*resources, dim_model_api_edges=self.dim_model_api_edges)

        fingerprint = resource_fingerprint(*resources)
        first_snapshot = self.cache.fingerprint is None
        changed = self.cache.check(fingerprint)

        current_ids = frozenset(n.id for n in built.resource_nodes)
        new_ids = frozenset() if first_snapshot else current_ids - self.cache.node_ids
        self.cache.node_ids = current_ids

        if changed:
            graph = self._layout(self.locks.apply(built))
            self.cache.store(fingerprint, graph.positions())
        else:
            graph = self._reuse_positions(built)

        self._graph = graph
        if new_ids:
            logger.info("%d new resource(s) in snapshot: %s", len(new_ids), sorted(new_ids))
        return self.view(changed=changed, new_node_ids=new_ids)

    def _layout(self, graph: VisualGraph) -> VisualGraph:
        return compute_layout(graph, self.locks.locked_ids(), self.config, self._strategy)

    def _reuse_positions(self, built: VisualGraph) -> VisualGraph:
        positions = self.cache.positions
        return built.with_nodes(
            n.moved_to(positions[n.id]) if n.id in positions else n for n in built.nodes
        )

    # ── User actions ──────────────────────────────────────────────────────────

    def on_node_drag_stop(self, node_id: str, position: Position) -> SessionView:
        """Lock `node_id` at `position` (ignored for headers and while the view is locked)."""
        node = self._graph.node(node_id)
        if not isinstance(node, ResourceNode):
            logger.debug("Drag stop on '%s' ignored: not a resource node.", node_id)
            return self.view()
        if not self.locks.record_drag(node_id, position):
            return self.view()

        locked_at = self.locks.position_of(node_id)
        self.cache.update_position(node_id, locked_at)
        self._graph = self._graph.with_nodes(
            n.moved_to(locked_at) if n.id == node_id else n for n in self._graph.nodes
        )
        return self.view()

    def on_relayout_requested(self) -> SessionView:
        """Forget all manual positions and lay the current graph out from scratch."""
        self.locks.clear_all()
        self._graph = self._layout(self._graph)
        self.cache.store(self.cache.fingerprint, self._graph.positions())
        logger.info("Re-layout requested: %d nodes repositioned.", len(self._graph.resource_nodes))
        return self.view(changed=True)

    def on_filter_changed(
        self,
        kinds: Optional[Iterable[str]] = None,
        statuses: Optional[Iterable[str]] = None,
        query: Optional[str] = None,
    ) -> SessionView:
        """Replace the filter state; geometry is untouched."""
        self.filter_state = make_filter_state(kinds, statuses, query)
        return self.view()

    def toggle_lock(self, locked: Optional[bool] = None) -> bool:
        """Set or flip the global drag lock; returns the new value."""
        value = self.locks.toggle_locked(locked)
        logger.debug("Global drag lock is now %s.", "on" if value else "off")
        return value

    def set_edge_dimming(self, dim_model_api_edges: bool) -> SessionView:
        """Mute or restore model edges. Styling only: no layout pass."""
        self.dim_model_api_edges = bool(dim_model_api_edges)
        rebuilt = build_visual_graph(*self._resources, dim_model_api_edges=self.dim_model_api_edges)
        self._graph = self._graph.with_edges(rebuilt.edges)
        return self.view()

    def set_direction(self, direction: str) -> SessionView:
        """Switch the rank axis (LR, RL, TB, BT) and re-lay out, keeping locked nodes."""
        self.config = replace(self.config, direction=direction)
        self._graph = self._layout(self._graph)
        self.cache.store(self.cache.fingerprint, self._graph.positions())
        return self.view(changed=True)
