"""
kaos_map/layout/common.py - Contract shared by every layout strategy.

A strategy computes free-node positions in an abstract (rank, cross) frame.
The helpers here turn that into the external contract:
    - orient()        maps (rank, cross) onto (x, y) for LR / RL / TB / BT
    - avoid_locked()  nudges free nodes off the boxes of locked nodes
    - finalize()      writes positions back, keeps locked nodes verbatim,
                      and places the group headers

Positions are top-left corners of a node_width × node_height card.
"""

import logging
from typing import Iterable

from kaos_map.config import VisualMapConfig
from kaos_map.graph.model import (
    RESOURCE_KINDS,
    GroupHeaderNode,
    Position,
    ResourceNode,
    VisualGraph,
)

logger = logging.getLogger(__name__)


def is_horizontal(direction: str) -> bool:
    """True when ranks advance along x (LR / RL)."""
    return direction in ("LR", "RL")


def rank_extent(config: VisualMapConfig) -> float:
    """Size of a card along the rank axis."""
    return config.node_width if is_horizontal(config.direction) else config.node_height


def cross_extent(config: VisualMapConfig) -> float:
    """Size of a card along the stacking (cross) axis."""
    return config.node_height if is_horizontal(config.direction) else config.node_width


def stack_offsets(count: int, extent: float, gap: float) -> list[float]:
    """
    Offsets of `count` cards of size `extent` stacked with `gap`, centred on 0.

    >>> stack_offsets(2, 120, 40)
    [-140.0, 20.0]
    """
    if count <= 0:
        return []
    pitch = extent + gap
    total = count * extent + (count - 1) * gap
    return [-total / 2.0 + i * pitch for i in range(count)]


def orient(rank_coord: float, cross_coord: float, direction: str) -> Position:
    if direction == "LR":
        return Position(rank_coord, cross_coord)
    if direction == "RL":
        return Position(-rank_coord, cross_coord)
    if direction == "TB":
        return Position(cross_coord, rank_coord)
    if direction == "BT":
        return Position(cross_coord, -rank_coord)
    raise ValueError(f"Unknown layout direction: {direction!r}")


def _overlaps(a: Position, b: Position, config: VisualMapConfig) -> bool:
    return abs(a.x - b.x) < config.node_width and abs(a.y - b.y) < config.node_height


def avoid_locked(
    free: dict[str, Position],
    locked: dict[str, Position],
    config: VisualMapConfig,
) -> dict[str, Position]:
    """
    Push free nodes along the cross axis until they clear every locked box.

    Free nodes are settled in iteration order; a settled free node becomes an
    obstacle for the ones after it, so a nudge never lands on a neighbour.
    Each nudge strictly increases the cross coordinate, so the loop ends
    after at most one pass per obstacle.
    """
    if not locked:
        return dict(free)

    horizontal = is_horizontal(config.direction)
    gap = config.vertical_gap if horizontal else config.node_sep
    step = cross_extent(config) + gap

    obstacles: list[Position] = list(locked.values())
    settled: dict[str, Position] = {}
    for node_id, pos in free.items():
        current = pos
        moved = True
        while moved:
            moved = False
            for obstacle in obstacles:
                if _overlaps(current, obstacle, config):
                    if horizontal:
                        current = Position(current.x, obstacle.y + step)
                    else:
                        current = Position(obstacle.x + step, current.y)
                    moved = True
        if current != pos:
            logger.debug("Node '%s' nudged off a locked node to %s.", node_id, current)
        settled[node_id] = current
        obstacles.append(current)
    return settled


def position_headers(
    resource_nodes: Iterable[ResourceNode],
    headers: Iterable[GroupHeaderNode],
    config: VisualMapConfig,
) -> list[GroupHeaderNode]:
    """
    Place each header above the column holding the topmost member of its kind.

    The header takes the x of that member and sits `header_offset` above
    the highest card overlapping that x, whatever its kind, so it never
    lands inside a card. Headers sharing a column stack upwards in kind
    order. A kind without members keeps a stable slot at its three-tier
    column (ModelAPI, MCPServer, Agent) so the header does not jump around.
    """
    resource_nodes = list(resource_nodes)
    topmost: dict[str, ResourceNode] = {}
    for node in resource_nodes:
        best = topmost.get(node.kind)
        if best is None or (node.position.y, node.position.x) < (best.position.y, best.position.x):
            topmost[node.kind] = node

    taken: list[Position] = []
    placed: list[GroupHeaderNode] = []
    for header in headers:
        top = topmost.get(header.kind)
        if top is not None:
            x = top.position.x
        else:
            column = RESOURCE_KINDS.index(header.kind) if header.kind in RESOURCE_KINDS else 0
            x = column * config.column_spacing

        ceiling = min(
            (n.position.y for n in resource_nodes if abs(n.position.x - x) < config.node_width),
            default=0.0,
        )
        y = ceiling - config.header_offset
        while any(
            abs(p.x - x) < config.node_width and abs(p.y - y) < config.header_offset
            for p in taken
        ):
            y -= config.header_offset

        pos = Position(x, y)
        taken.append(pos)
        placed.append(header.moved_to(pos))
    return placed


def finalize(
    graph: VisualGraph,
    free_positions: dict[str, Position],
    locked_ids: frozenset,
    config: VisualMapConfig,
) -> VisualGraph:
    """
    Produce the laid-out graph.

    Locked nodes are returned with their incoming position untouched; free
    nodes take `free_positions` (after avoid_locked). Node order is kept.
    """
    locked_positions = {
        n.id: n.position for n in graph.resource_nodes if n.id in locked_ids
    }
    settled = avoid_locked(
        {k: v for k, v in free_positions.items() if k not in locked_ids},
        locked_positions,
        config,
    )

    resources: list[ResourceNode] = []
    for node in graph.resource_nodes:
        if node.id in locked_ids:
            resources.append(node)
        else:
            resources.append(node.moved_to(settled.get(node.id, node.position)))

    headers = position_headers(resources, graph.header_nodes, config)
    return graph.with_nodes([*headers, *resources])
