"""
kaos_map/graph/builder.py - Graph construction layer.

Converts the three canonical resource collections into the node/edge view
consumed by the layout stage and the renderer:

    Header nodes   - one GroupHeaderNode per kind, counting its members
    Resource nodes - one ResourceNode per resource, id "{kind}/{namespace}/{name}"
    Edges          - ModelAPI → Agent   (provides-model, from spec.modelAPI)
                     MCPServer → Agent  (provides-tool,  from spec.mcpServers)
                     Agent → Agent      (peer-link,      from agentNetwork.access)

References resolve by name inside the referencing resource's namespace.
A reference naming a resource that is not in the snapshot (for instance one
still being created) produces no edge.

The builder is pure. Calling it twice with equal input yields equal output
(new objects, same ids, labels and topology); positions are left at the
origin for the layout stage to fill in.
"""

import logging
from typing import Iterable

import networkx as nx

from kaos_map.graph.model import (
    KIND_AGENT,
    KIND_LABELS,
    KIND_MCP_SERVER,
    KIND_MODEL_API,
    RELATION_LABELS,
    RELATION_MODEL,
    RELATION_PEER,
    RELATION_STYLE_CLASSES,
    RELATION_TOOLS,
    RESOURCE_KINDS,
    GraphEdge,
    GroupHeaderNode,
    Resource,
    ResourceNode,
    VisualGraph,
    edge_id_for,
    header_id_for,
    node_id_for,
)

logger = logging.getLogger(__name__)


def build_visual_graph(
    model_apis: Iterable[Resource],
    mcp_servers: Iterable[Resource],
    agents: Iterable[Resource],
    dim_model_api_edges: bool = False,
) -> VisualGraph:
    """
    Build the node/edge view from three resource collections.

    Args:
        model_apis:          ModelAPI resources (backend model providers).
        mcp_servers:         MCPServer resources (tool providers).
        agents:              Agent resources (orchestrating agents).
        dim_model_api_edges: Styling toggle; model edges are emitted muted
                             and not animated. Never affects topology.

    Returns:
        VisualGraph with header nodes first (ModelAPI, MCPServer, Agent
        order), then resource nodes in input order per kind, then edges.
        metadata['dropped_references'] counts unresolved references.

    Notes:
        - Duplicate references (the same MCPServer listed twice) collapse
          into one edge because edge ids are derived from
          (relation, source, target).
        - A resource appearing twice with the same identity yields one node;
          the first occurrence wins.
    """
    collections = {
        KIND_MODEL_API: list(model_apis),
        KIND_MCP_SERVER: list(mcp_servers),
        KIND_AGENT: list(agents),
    }

    # ── Header nodes ──────────────────────────────────────────────────────────
    nodes: list = [
        GroupHeaderNode(
            id=header_id_for(kind),
            kind=kind,
            label=KIND_LABELS[kind],
            count=len(collections[kind]),
        )
        for kind in RESOURCE_KINDS
    ]

    # ── Resource nodes ────────────────────────────────────────────────────────
    known_ids: set[str] = set()
    for kind in RESOURCE_KINDS:
        for resource in collections[kind]:
            node_id = node_id_for(kind, resource.namespace, resource.name)
            if node_id in known_ids:
                logger.debug("Duplicate resource '%s' ignored.", node_id)
                continue
            known_ids.add(node_id)
            nodes.append(
                ResourceNode(
                    id=node_id,
                    kind=kind,
                    label=resource.name,
                    namespace=resource.namespace,
                    status=resource.status_phase,
                    status_message=resource.status_message,
                )
            )

    # ── Reference edges ───────────────────────────────────────────────────────
    edges: dict[str, GraphEdge] = {}
    dropped = 0

    def _link(relation: str, source_id: str, target_id: str, muted: bool = False) -> None:
        nonlocal dropped
        if source_id not in known_ids or target_id not in known_ids:
            dropped += 1
            logger.debug(
                "Dropping %s reference %s -> %s (endpoint not in snapshot).",
                relation,
                source_id,
                target_id,
            )
            return
        edge_id = edge_id_for(relation, source_id, target_id)
        if edge_id in edges:
            return
        edges[edge_id] = GraphEdge(
            id=edge_id,
            source=source_id,
            target=target_id,
            relation=relation,
            label=RELATION_LABELS[relation],
            style_class=RELATION_STYLE_CLASSES[relation],
            animated=not muted,
            muted=muted,
        )

    for agent in collections[KIND_AGENT]:
        ns = agent.namespace
        agent_id = node_id_for(KIND_AGENT, ns, agent.name)

        if agent.model_api:
            _link(
                RELATION_MODEL,
                node_id_for(KIND_MODEL_API, ns, agent.model_api),
                agent_id,
                muted=dim_model_api_edges,
            )

        for mcp_name in agent.mcp_servers:
            _link(RELATION_TOOLS, node_id_for(KIND_MCP_SERVER, ns, mcp_name), agent_id)

        for peer_name in agent.peer_agents:
            _link(RELATION_PEER, agent_id, node_id_for(KIND_AGENT, ns, peer_name))

    logger.info(
        "Visual graph built: %d resource nodes, %d edges (%d references dropped).",
        len(known_ids),
        len(edges),
        dropped,
    )
    return VisualGraph(
        nodes=tuple(nodes),
        edges=tuple(edges.values()),
        metadata={"dropped_references": dropped},
    )


def to_digraph(graph: VisualGraph) -> nx.DiGraph:
    """
    Project the resource part of a VisualGraph onto a NetworkX DiGraph.

    Header nodes are excluded: they take no part in ranking. Node insertion
    order follows graph.nodes and edge insertion order follows graph.edges,
    so iteration over the DiGraph is deterministic.

    Node attributes: kind, label, namespace, status, x, y.
    Edge attributes: relation, edge_id.
    """
    G = nx.DiGraph()
    for node in graph.resource_nodes:
        G.add_node(
            node.id,
            kind=node.kind,
            label=node.label,
            namespace=node.namespace,
            status=node.status,
            x=node.position.x,
            y=node.position.y,
        )
    for edge in graph.edges:
        if edge.source in G and edge.target in G:
            G.add_edge(edge.source, edge.target, relation=edge.relation, edge_id=edge.id)
    return G
