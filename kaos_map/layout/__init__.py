"""
kaos_map.layout - Layout strategies behind one contract.

Every strategy is a callable
    (graph: VisualGraph, locked_ids: frozenset, config: VisualMapConfig) -> VisualGraph
that positions every node and returns locked nodes unchanged.

Modules:
    rank_columns  - Strategy A: breadth-first rank columns (default).
    layered       - Strategy B: Sugiyama-style layered layout.
    common        - Orientation, header placement, locked-node obstacles.
"""

import logging
from typing import Callable, Optional

from kaos_map.config import DEFAULT_CONFIG, VisualMapConfig
from kaos_map.graph.model import VisualGraph
from kaos_map.layout.layered import compute_layered_layout
from kaos_map.layout.rank_columns import compute_rank_layout

logger = logging.getLogger(__name__)

LayoutStrategy = Callable[[VisualGraph, frozenset, VisualMapConfig], VisualGraph]

LAYOUT_STRATEGIES: dict[str, LayoutStrategy] = {
    "rank": compute_rank_layout,
    "layered": compute_layered_layout,
}


def get_layout_strategy(name: str) -> LayoutStrategy:
    """Look up a registered strategy by name."""
    try:
        return LAYOUT_STRATEGIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown layout strategy {name!r}; expected one of {sorted(LAYOUT_STRATEGIES)}"
        ) from None


def compute_layout(
    graph: VisualGraph,
    locked_ids: frozenset = frozenset(),
    config: VisualMapConfig = DEFAULT_CONFIG,
    strategy: Optional[LayoutStrategy] = None,
) -> VisualGraph:
    """Run `strategy` (default: the one named by config.layout_strategy)."""
    layout_fn = strategy or get_layout_strategy(config.layout_strategy)
    return layout_fn(graph, frozenset(locked_ids), config)
