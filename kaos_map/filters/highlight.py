"""
kaos_map/filters/highlight.py - Filter & highlight projection.

Filtering never removes anything. Non-matching nodes are dimmed and
non-matching edges fade, so edges stay continuous and every node keeps the
place the user remembers. The projection returns new node/edge objects
and leaves the canonical graph untouched, so it can run on every keystroke.

A resource node matches when ALL of:
    - its kind is in the allowed kinds
    - no status filter is active, OR its status bucket is allowed
    - the query is empty, OR the query is a case-insensitive substring of
      the node's label or namespace

Matching nodes are highlighted only while a text query is active; pure
kind/status filtering dims the rest but highlights nothing.
"""

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Optional

from kaos_map.graph.model import (
    RESOURCE_KINDS,
    GraphEdge,
    ResourceNode,
    VisualGraph,
)

logger = logging.getLogger(__name__)

# ── Status buckets ────────────────────────────────────────────────────────────

BUCKET_READY = "ready"
BUCKET_PENDING = "pending"
BUCKET_FAILED = "failed"
BUCKET_UNKNOWN = "unknown"

# Buckets offered by the toolbar.
STATUS_BUCKETS = (BUCKET_READY, BUCKET_PENDING, BUCKET_FAILED)

_STATUS_BUCKET_MAP = {
    "running": BUCKET_READY,
    "ready": BUCKET_READY,
    "pending": BUCKET_PENDING,
    "waiting": BUCKET_PENDING,
    "updating": BUCKET_PENDING,
    "progressing": BUCKET_PENDING,
    "error": BUCKET_FAILED,
    "failed": BUCKET_FAILED,
    "unknown": BUCKET_UNKNOWN,
}

DIMMED_EDGE_OPACITY = 0.1


def status_bucket(status: Optional[str]) -> str:
    """
    Collapse a resource status into its filter bucket.

    Transitional states (updating, progressing, waiting) count as pending;
    missing or blank statuses land in 'unknown'. Any other value is kept
    lower-cased so it can still be filtered on explicitly.
    """
    if not isinstance(status, str) or not status.strip():
        return BUCKET_UNKNOWN
    s = status.strip().lower()
    return _STATUS_BUCKET_MAP.get(s, s)


# ── Filter state ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FilterState:
    """
    Active filter selection of one view.

    Fields:
        kinds:    Allowed resource kinds (never empty).
        statuses: Allowed status buckets; empty means no status filtering.
        query:    Free-text search; surrounding whitespace is ignored.
    """

    kinds: frozenset = frozenset(RESOURCE_KINDS)
    statuses: frozenset = frozenset()
    query: str = ""

    def __post_init__(self) -> None:
        kinds = frozenset(self.kinds)
        if not kinds:
            raise ValueError("At least one resource kind must stay visible.")
        object.__setattr__(self, "kinds", kinds)
        object.__setattr__(self, "statuses", frozenset(s.lower() for s in self.statuses))
        object.__setattr__(self, "query", (self.query or "").strip())

    @property
    def is_searching(self) -> bool:
        return bool(self.query)

    def toggle_kind(self, kind: str) -> "FilterState":
        """Show/hide one kind; hiding the last visible kind is a no-op."""
        if kind in self.kinds:
            if len(self.kinds) == 1:
                return self
            return replace(self, kinds=self.kinds - {kind})
        return replace(self, kinds=self.kinds | {kind})

    def toggle_status(self, bucket: str) -> "FilterState":
        bucket = bucket.lower()
        if bucket in self.statuses:
            return replace(self, statuses=self.statuses - {bucket})
        return replace(self, statuses=self.statuses | {bucket})

    def with_query(self, query: str) -> "FilterState":
        return replace(self, query=query)


DEFAULT_FILTER = FilterState()


def make_filter_state(
    kinds: Optional[Iterable[str]] = None,
    statuses: Optional[Iterable[str]] = None,
    query: Optional[str] = None,
) -> FilterState:
    """Build a FilterState from loose arguments (None = default for that field)."""
    return FilterState(
        kinds=frozenset(kinds) if kinds is not None else frozenset(RESOURCE_KINDS),
        statuses=frozenset(statuses or ()),
        query=query or "",
    )


# ── Projection ────────────────────────────────────────────────────────────────

def node_matches(node: ResourceNode, state: FilterState) -> bool:
    if node.kind not in state.kinds:
        return False
    if state.statuses and status_bucket(node.status) not in state.statuses:
        return False
    if state.query:
        q = state.query.lower()
        if q not in node.label.lower() and q not in node.namespace.lower():
            return False
    return True


def _project_edge(edge: GraphEdge, dimmed: bool) -> GraphEdge:
    return replace(
        edge,
        dimmed=dimmed,
        animated=not dimmed and not edge.muted,
        opacity=DIMMED_EDGE_OPACITY if dimmed else 1.0,
        label_opacity=0.0 if dimmed else 1.0,
    )


def apply_filters(graph: VisualGraph, state: FilterState = DEFAULT_FILTER) -> VisualGraph:
    """
    Project `graph` through `state`.

    Returns:
        A new VisualGraph. Header nodes pass through as-is; resource nodes
        carry is_dimmed / is_highlighted; edges touching a dimmed node are
        dimmed, lose their animation and hide their label. Positions are
        never changed.

    Notes:
        - Idempotent: flags are recomputed from the state alone, so applying
          the same state to an already projected graph changes nothing.
    """
    dimmed_ids: set[str] = set()
    nodes = []
    for node in graph.nodes:
        if not isinstance(node, ResourceNode):
            nodes.append(node)
            continue
        if node_matches(node, state):
            nodes.append(replace(node, is_dimmed=False, is_highlighted=state.is_searching))
        else:
            dimmed_ids.add(node.id)
            nodes.append(replace(node, is_dimmed=True, is_highlighted=False))

    edges = [
        _project_edge(edge, edge.source in dimmed_ids or edge.target in dimmed_ids)
        for edge in graph.edges
    ]

    logger.debug(
        "Filter applied (kinds=%s, statuses=%s, query=%r): %d of %d nodes dimmed.",
        sorted(state.kinds),
        sorted(state.statuses),
        state.query,
        len(dimmed_ids),
        len(graph.resource_nodes),
    )
    return VisualGraph(nodes=tuple(nodes), edges=tuple(edges), metadata=dict(graph.metadata))
