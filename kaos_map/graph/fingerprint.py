"""
kaos_map/graph/fingerprint.py - Structural change detection.

A fingerprint summarises everything that can move a node: resource identity,
status phase and every reference field. Status messages and edge styling toggles are
not part of it, so changing them never forces a re-layout.

Format:
    "<modelapis>|<mcpservers>|<agents>"
    each section = sorted, comma-joined per-resource strings
    per resource  = "namespace/name:phase" (+ ":modelAPI:mcp+mcp:peer+peer" for agents)

'|', ',', ':' and '+' cannot occur in a Kubernetes name or namespace
(DNS-1123 labels), so no two different snapshots collide on a separator.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from kaos_map.graph.model import KIND_AGENT, KIND_MCP_SERVER, KIND_MODEL_API, Position, Resource

logger = logging.getLogger(__name__)

_SECTION_SEP = "|"
_ITEM_SEP = ","
_FIELD_SEP = ":"
_LIST_SEP = "+"


def _canonical(kind: str, resource: Resource) -> str:
    parts = [f"{resource.namespace}/{resource.name}", resource.status_phase or ""]
    if kind == KIND_AGENT:
        parts.append(resource.model_api or "")
        parts.append(_LIST_SEP.join(sorted(resource.mcp_servers)))
        parts.append(_LIST_SEP.join(sorted(resource.peer_agents)))
    return _FIELD_SEP.join(parts)


def _section(kind: str, resources: Iterable[Resource]) -> str:
    return _ITEM_SEP.join(sorted(_canonical(kind, r) for r in resources))


def resource_fingerprint(
    model_apis: Iterable[Resource],
    mcp_servers: Iterable[Resource],
    agents: Iterable[Resource],
) -> str:
    """
    Deterministic structural summary of a resource snapshot.

    Permuting any of the three collections leaves the result unchanged;
    changing a status phase or adding/removing a reference changes it.
    """
    return _SECTION_SEP.join(
        (
            _section(KIND_MODEL_API, model_apis),
            _section(KIND_MCP_SERVER, mcp_servers),
            _section(KIND_AGENT, agents),
        )
    )


def is_structural_change(current: str, previous: Optional[str]) -> bool:
    """True when no previous fingerprint exists or the two differ."""
    if previous is None:
        return True
    return current != previous


@dataclass
class LayoutCache:
    """
    Previous-fingerprint / previous-layout memory of one graph view.

    Fields:
        fingerprint: Fingerprint of the last laid-out snapshot (None before
                     the first layout).
        positions:   node_id → Position of the last canonical layout,
                     including positions changed by drags since.
        node_ids:    Resource node ids of the last snapshot (for new-node
                     detection).
    """

    fingerprint: Optional[str] = None
    positions: dict[str, Position] = field(default_factory=dict)
    node_ids: frozenset = frozenset()

    def check(self, fingerprint: str) -> bool:
        """Report whether `fingerprint` requires a full re-layout."""
        changed = is_structural_change(fingerprint, self.fingerprint)
        if not changed:
            logger.debug("Fingerprint unchanged; reusing %d cached positions.", len(self.positions))
        return changed

    def store(self, fingerprint: Optional[str], positions: dict[str, Position]) -> None:
        self.fingerprint = fingerprint
        self.positions = dict(positions)

    def update_position(self, node_id: str, position: Position) -> None:
        self.positions[node_id] = position
