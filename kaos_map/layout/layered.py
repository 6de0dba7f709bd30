"""
kaos_map/layout/layered.py - Strategy B: layered (Sugiyama-style) layout.

Preferred when edge crossings matter, e.g. many agents sharing MCP servers.

Phases:
    1. Cycle removal     - greedy feedback-arc-set ordering; back edges are
                           reversed for layering only (self-loops dropped).
    2. Layer assignment  - longest path over the acyclic graph.
    3. Dummy insertion   - edges spanning k > 1 layers get k - 1 dummies so
                           crossing counts see the whole route.
    4. Crossing minimisation - alternating down/up barycenter sweeps, at most
                           config.crossing_passes, keeping the best ordering.
    5. Coordinates       - layer × (rank extent + rank_sep) on the rank axis,
                           ordered slots of (cross extent + node_sep) centred
                           on 0 on the cross axis.

Locked nodes take part in every phase (their neighbours are ordered
consistently) but their output position is the one they came in with.
"""

import logging

import networkx as nx

from kaos_map.config import DEFAULT_CONFIG, VisualMapConfig
from kaos_map.graph.builder import to_digraph
from kaos_map.graph.model import Position, VisualGraph
from kaos_map.layout.common import cross_extent, finalize, orient, rank_extent, stack_offsets

logger = logging.getLogger(__name__)

DUMMY_PREFIX = "__dummy__"


# ── Cycle removal (greedy FAS) ────────────────────────────────────────────────

def greedy_fas_ordering(G: nx.DiGraph) -> list[str]:
    """
    Node ordering whose backward edges approximate a minimum feedback arc set.

    Repeatedly peels sinks to the tail and sources to the head; when neither
    exists, the node with the largest out-degree minus in-degree goes to the
    head. Ties resolve in G's node order.
    """
    active: dict[str, None] = dict.fromkeys(G.nodes)
    out_deg = {n: sum(1 for s in G.successors(n) if s != n) for n in G.nodes}
    in_deg = {n: sum(1 for p in G.predecessors(n) if p != n) for n in G.nodes}

    head: list[str] = []
    tail: list[str] = []

    def _remove(node: str) -> None:
        del active[node]
        for succ in G.successors(node):
            if succ in active and succ != node:
                in_deg[succ] -= 1
        for pred in G.predecessors(node):
            if pred in active and pred != node:
                out_deg[pred] -= 1

    while active:
        progressed = True
        while progressed:
            progressed = False
            for node in [n for n in active if out_deg[n] == 0]:
                _remove(node)
                tail.append(node)
                progressed = True
            for node in [n for n in active if in_deg[n] == 0]:
                _remove(node)
                head.append(node)
                progressed = True

        if active:
            best = max(active, key=lambda n: out_deg[n] - in_deg[n])
            _remove(best)
            head.append(best)

    tail.reverse()
    return head + tail


def remove_cycles(G: nx.DiGraph) -> tuple[nx.DiGraph, set[tuple[str, str]]]:
    """Return an acyclic copy of G plus the set of original edges that were reversed."""
    order = {node: i for i, node in enumerate(greedy_fas_ordering(G))}
    dag = nx.DiGraph()
    dag.add_nodes_from(G.nodes(data=True))

    reversed_edges: set[tuple[str, str]] = set()
    for u, v, data in G.edges(data=True):
        if u == v:
            continue
        if order[u] > order[v]:
            reversed_edges.add((u, v))
            dag.add_edge(v, u, **data)
        else:
            dag.add_edge(u, v, **data)
    return dag, reversed_edges


# ── Layer assignment ──────────────────────────────────────────────────────────

def assign_layers(dag: nx.DiGraph) -> dict[str, int]:
    """Longest-path layering: sources on layer 0, every edge points down ≥ 1 layer."""
    layers: dict[str, int] = {}
    for node in nx.topological_sort(dag):
        layers[node] = max((layers[p] + 1 for p in dag.predecessors(node)), default=0)
    return {node: layers[node] for node in dag.nodes}


# ── Dummy insertion ───────────────────────────────────────────────────────────

def insert_dummies(dag: nx.DiGraph, layers: dict[str, int]) -> tuple[nx.DiGraph, dict[str, int]]:
    """Split every edge spanning more than one layer into unit-length segments."""
    aug = nx.DiGraph()
    aug.add_nodes_from(dag.nodes)
    aug_layers = dict(layers)

    for index, (u, v) in enumerate(dag.edges()):
        span = aug_layers[v] - aug_layers[u]
        if span <= 1:
            aug.add_edge(u, v)
            continue
        prev = u
        for step in range(1, span):
            dummy = f"{DUMMY_PREFIX}{index}_{step}"
            aug.add_node(dummy)
            aug_layers[dummy] = aug_layers[u] + step
            aug.add_edge(prev, dummy)
            prev = dummy
        aug.add_edge(prev, v)
    return aug, aug_layers


# ── Crossing minimisation ─────────────────────────────────────────────────────

def count_crossings(ordering: list[list[str]], G: nx.DiGraph) -> int:
    """Number of pairwise crossings between consecutive layers."""
    total = 0
    for upper, lower in zip(ordering, ordering[1:]):
        lower_pos = {node: i for i, node in enumerate(lower)}
        segments = [
            (i, lower_pos[succ])
            for i, node in enumerate(upper)
            for succ in G.successors(node)
            if succ in lower_pos
        ]
        for a in range(len(segments)):
            for b in range(a + 1, len(segments)):
                (u1, l1), (u2, l2) = segments[a], segments[b]
                if (u1 - u2) * (l1 - l2) < 0:
                    total += 1
    return total


def _barycenter_sort(layer: list[str], neighbours, reference: list[str]) -> list[str]:
    ref_pos = {node: float(i) for i, node in enumerate(reference)}

    def _key(item):
        index, node = item
        positions = [ref_pos[n] for n in neighbours(node) if n in ref_pos]
        # Nodes without neighbours in the reference layer hold their slot.
        return (sum(positions) / len(positions)) if positions else float(index)

    return [node for _, node in sorted(enumerate(layer), key=_key)]


def minimise_crossings(
    G: nx.DiGraph,
    layers: dict[str, int],
    max_passes: int,
) -> list[list[str]]:
    """Barycenter heuristic; returns one ordered node list per layer."""
    layer_count = (max(layers.values()) + 1) if layers else 0
    ordering: list[list[str]] = [[] for _ in range(layer_count)]
    for node in G.nodes:
        ordering[layers[node]].append(node)

    best = [list(layer) for layer in ordering]
    best_crossings = count_crossings(best, G)

    for _ in range(max_passes):
        if best_crossings == 0:
            break
        for i in range(1, layer_count):
            ordering[i] = _barycenter_sort(ordering[i], G.predecessors, ordering[i - 1])
        for i in range(layer_count - 2, -1, -1):
            ordering[i] = _barycenter_sort(ordering[i], G.successors, ordering[i + 1])

        crossings = count_crossings(ordering, G)
        if crossings >= best_crossings:
            break
        best = [list(layer) for layer in ordering]
        best_crossings = crossings

    logger.debug("Crossing minimisation finished with %d crossings.", best_crossings)
    return best


# ── Entry point ───────────────────────────────────────────────────────────────

def compute_layered_layout(
    graph: VisualGraph,
    locked_ids: frozenset = frozenset(),
    config: VisualMapConfig = DEFAULT_CONFIG,
) -> VisualGraph:
    """
    Lay out `graph` with the layered strategy.

    Same contract as compute_rank_layout(): every node positioned, locked
    nodes returned with their incoming position, headers above their kind.
    """
    G = to_digraph(graph)
    dag, reversed_edges = remove_cycles(G)
    layers = assign_layers(dag)
    aug, aug_layers = insert_dummies(dag, layers)
    ordering = minimise_crossings(aug, aug_layers, config.crossing_passes)

    rank_pitch = rank_extent(config) + config.rank_sep
    extent = cross_extent(config)
    free_positions: dict[str, Position] = {}
    for layer_index, members in enumerate(ordering):
        offsets = stack_offsets(len(members), extent, config.node_sep)
        for node_id, offset in zip(members, offsets):
            if node_id.startswith(DUMMY_PREFIX) or node_id in locked_ids:
                continue
            free_positions[node_id] = orient(layer_index * rank_pitch, offset, config.direction)

    laid_out = finalize(graph, free_positions, frozenset(locked_ids), config)
    logger.info(
        "Layered layout computed: %d nodes on %d layers (%d edges reversed, %d locked).",
        G.number_of_nodes(),
        len(ordering),
        len(reversed_edges),
        len(locked_ids),
    )
    return laid_out
