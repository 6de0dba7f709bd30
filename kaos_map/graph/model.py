"""
kaos_map/graph/model.py - Value types shared by every pipeline stage.

Resources are the canonical, already-normalized input (see
kaos_map.ingestion.crd_adapter). Nodes, edges and the VisualGraph container
are the output handed to the rendering surface. All types are frozen: a
stage that needs a different position or flag builds a new object with
dataclasses.replace() and never mutates what it was given.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Union

# ── Resource kinds ────────────────────────────────────────────────────────────

KIND_MODEL_API = "ModelAPI"
KIND_MCP_SERVER = "MCPServer"
KIND_AGENT = "Agent"

# Column order of the three-tier mental model: providers left, agents right.
RESOURCE_KINDS = (KIND_MODEL_API, KIND_MCP_SERVER, KIND_AGENT)

KIND_LABELS = {
    KIND_MODEL_API: "Model APIs",
    KIND_MCP_SERVER: "MCP Servers",
    KIND_AGENT: "Agents",
}

# ── Relation kinds ────────────────────────────────────────────────────────────

RELATION_MODEL = "provides-model"
RELATION_TOOLS = "provides-tool"
RELATION_PEER = "peer-link"

RELATION_LABELS = {
    RELATION_MODEL: "model",
    RELATION_TOOLS: "tools",
    RELATION_PEER: "a2a",
}

RELATION_STYLE_CLASSES = {
    RELATION_MODEL: "modelapi-edge",
    RELATION_TOOLS: "mcpserver-edge",
    RELATION_PEER: "agent-edge",
}

UNKNOWN_STATUS = "Unknown"

_WARNING_MARKERS = ("error", "warning", "fail", "crash")


def node_id_for(kind: str, namespace: str, name: str) -> str:
    """Synthetic identity string of the node wrapping one resource."""
    return f"{kind}/{namespace}/{name}"


def header_id_for(kind: str) -> str:
    return f"header-{kind}"


def edge_id_for(relation: str, source_id: str, target_id: str) -> str:
    """Deterministic edge identity derived from (relation, source, target)."""
    return f"{relation}:{source_id}->{target_id}"


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0


ORIGIN = Position(0.0, 0.0)


@dataclass(frozen=True)
class Resource:
    """
    Canonical shape of one typed resource.

    Fields:
        kind:           'ModelAPI' | 'MCPServer' | 'Agent'
        namespace:      Kubernetes namespace (identity, with name).
        name:           Resource name.
        status_phase:   Resolved phase ('Running', 'Pending', 'Updating', ...).
        status_message: Optional free-text status detail (non-structural).
        model_api:      Agent only: name of the ModelAPI it talks to.
        mcp_servers:    Agent only: names of the MCPServers providing tools.
        peer_agents:    Agent only: names of peer Agents it may call.
    """

    kind: str
    namespace: str
    name: str
    status_phase: str = UNKNOWN_STATUS
    status_message: Optional[str] = None
    model_api: Optional[str] = None
    mcp_servers: tuple[str, ...] = ()
    peer_agents: tuple[str, ...] = ()

    @property
    def node_id(self) -> str:
        return node_id_for(self.kind, self.namespace, self.name)


@dataclass(frozen=True)
class ResourceNode:
    """A positioned, filterable node wrapping exactly one Resource."""

    id: str
    kind: str
    label: str
    namespace: str
    status: str = UNKNOWN_STATUS
    status_message: Optional[str] = None
    position: Position = ORIGIN
    is_dimmed: bool = False
    is_highlighted: bool = False

    @property
    def has_warning(self) -> bool:
        """True when the status message mentions an error-like condition."""
        if not self.status_message:
            return False
        lower = self.status_message.lower()
        return any(marker in lower for marker in _WARNING_MARKERS)

    def moved_to(self, position: Position) -> "ResourceNode":
        return replace(self, position=position)


@dataclass(frozen=True)
class GroupHeaderNode:
    """Non-interactive column header counting the members of one kind."""

    id: str
    kind: str
    label: str
    count: int
    position: Position = ORIGIN

    def moved_to(self, position: Position) -> "GroupHeaderNode":
        return replace(self, position=position)


GraphNode = Union[ResourceNode, GroupHeaderNode]


@dataclass(frozen=True)
class GraphEdge:
    """
    Directed relation between two ResourceNode identities.

    `muted` is the builder-side styling toggle (model edges de-emphasised on
    request); `dimmed`, `opacity` and `label_opacity` are written only by the
    filter projection.
    """

    id: str
    source: str
    target: str
    relation: str
    label: str
    style_class: str
    animated: bool = True
    muted: bool = False
    dimmed: bool = False
    opacity: float = 1.0
    label_opacity: float = 1.0


@dataclass(frozen=True)
class VisualGraph:
    """Output contract: nodes (headers first) and edges, in build order."""

    nodes: tuple[GraphNode, ...] = ()
    edges: tuple[GraphEdge, ...] = ()
    metadata: dict = field(default_factory=dict, compare=False)

    @property
    def resource_nodes(self) -> list[ResourceNode]:
        return [n for n in self.nodes if isinstance(n, ResourceNode)]

    @property
    def header_nodes(self) -> list[GroupHeaderNode]:
        return [n for n in self.nodes if isinstance(n, GroupHeaderNode)]

    def node(self, node_id: str) -> Optional[GraphNode]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def positions(self) -> dict[str, Position]:
        return {n.id: n.position for n in self.nodes}

    def with_nodes(self, nodes) -> "VisualGraph":
        return VisualGraph(nodes=tuple(nodes), edges=self.edges, metadata=dict(self.metadata))

    def with_edges(self, edges) -> "VisualGraph":
        return VisualGraph(nodes=self.nodes, edges=tuple(edges), metadata=dict(self.metadata))
