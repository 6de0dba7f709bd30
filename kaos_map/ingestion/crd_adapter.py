"""
kaos_map/ingestion/crd_adapter.py - Raw custom resources → canonical Resource.

The resource-fetching collaborator hands over Kubernetes-style dicts
(`metadata`, `spec`, `status`) whose optional fields come in several shapes.
This is the only place that knows about those shapes; everything downstream
sees the flat Resource type from kaos_map.graph.model.

Tolerated input:
    - metadata.namespace missing        → "default"
    - status / status.phase missing     → "Unknown"
    - status.deployment replica counts  → effective phase (see effective_phase)
    - spec.mcpServers / agentNetwork.access entries as "name" or {"name": ...}
    - absent or null lists              → empty
    - already-normalized Resource objects pass through, re-kinded to the
      collection they were listed in

Usage:
    from kaos_map.ingestion.crd_adapter import normalize_collections
    model_apis, mcp_servers, agents = normalize_collections(raw_m, raw_s, raw_a)
"""

import logging
from dataclasses import replace
from typing import Any, Iterable, Optional

from kaos_map.graph.model import (
    KIND_AGENT,
    KIND_MCP_SERVER,
    KIND_MODEL_API,
    RESOURCE_KINDS,
    UNKNOWN_STATUS,
    Resource,
)

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "default"


def _mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _name_of(entry: Any) -> Optional[str]:
    if isinstance(entry, str):
        name = entry.strip()
    elif isinstance(entry, dict):
        name = str(entry.get("name") or "").strip()
    else:
        name = ""
    return name or None


def _name_list(value: Any) -> tuple[str, ...]:
    """Names from a list of strings or {'name': ...} mappings, order kept, blanks dropped."""
    if not isinstance(value, (list, tuple)):
        return ()
    names: list[str] = []
    for entry in value:
        name = _name_of(entry)
        if name is None:
            logger.warning("Ignoring malformed reference entry: %r", entry)
            continue
        if name not in names:
            names.append(name)
    return tuple(names)


def effective_phase(status: Any) -> str:
    """
    Resolve the displayed phase from a status block.

    Deployment-aware refinement (when status.deployment has replica counts):
        replicas > 0 and updatedReplicas < replicas   → "Updating"
        replicas > 0 and readyReplicas == 0           → "Pending"
        replicas > 0 and readyReplicas < replicas     → "Progressing"
        readyReplicas > 0 and ready >= replicas       → "Ready"
    Otherwise the declared phase, or "Unknown" when there is none.
    """
    status = _mapping(status)
    phase = status.get("phase")
    if not isinstance(phase, str) or not phase.strip():
        if status.get("phase") is not None:
            logger.warning("Unrecognised status phase %r treated as Unknown.", status.get("phase"))
        phase = UNKNOWN_STATUS

    deployment = status.get("deployment")
    if not isinstance(deployment, dict):
        return phase

    replicas = _int(deployment.get("replicas"))
    ready = _int(deployment.get("readyReplicas"))
    updated = _int(deployment.get("updatedReplicas"))

    if replicas > 0 and updated < replicas:
        return "Updating"
    if replicas > 0 and ready == 0:
        return "Pending"
    if replicas > 0 and ready < replicas:
        return "Progressing"
    if ready > 0 and ready >= replicas:
        return "Ready"
    return phase


def normalize_resource(kind: str, raw: Any) -> Resource:
    """
    Convert one raw custom resource of `kind` into a Resource.

    Raises:
        ValueError: If `kind` is not one of ModelAPI, MCPServer, Agent, or
                    the resource has no metadata.name.
    """
    if kind not in RESOURCE_KINDS:
        raise ValueError(f"Unknown resource kind {kind!r}; expected one of {RESOURCE_KINDS}")
    if isinstance(raw, Resource):
        if raw.kind != kind:
            logger.warning(
                "Resource %s/%s listed as %s but declares kind %s; using %s.",
                raw.namespace,
                raw.name,
                kind,
                raw.kind,
                kind,
            )
            return replace(raw, kind=kind)
        return raw

    raw = _mapping(raw)
    metadata = _mapping(raw.get("metadata"))
    name = str(metadata.get("name") or "").strip()
    if not name:
        raise ValueError(f"{kind} resource without metadata.name: {raw!r}")
    namespace = str(metadata.get("namespace") or "").strip() or DEFAULT_NAMESPACE

    status = _mapping(raw.get("status"))
    message = status.get("message")

    model_api: Optional[str] = None
    mcp_servers: tuple[str, ...] = ()
    peer_agents: tuple[str, ...] = ()
    if kind == KIND_AGENT:
        spec = _mapping(raw.get("spec"))
        model_api = _name_of(spec.get("modelAPI"))
        mcp_servers = _name_list(spec.get("mcpServers"))
        peer_agents = _name_list(_mapping(spec.get("agentNetwork")).get("access"))

    return Resource(
        kind=kind,
        namespace=namespace,
        name=name,
        status_phase=effective_phase(status),
        status_message=message if isinstance(message, str) and message else None,
        model_api=model_api,
        mcp_servers=mcp_servers,
        peer_agents=peer_agents,
    )


def normalize_many(kind: str, raws: Optional[Iterable[Any]]) -> list[Resource]:
    """Normalize one collection, skipping entries that carry no name at all."""
    resources: list[Resource] = []
    for raw in raws or ():
        if not isinstance(raw, Resource) and not _name_of(_mapping(_mapping(raw).get("metadata")).get("name")):
            logger.warning("Skipping %s without metadata.name.", kind)
            continue
        resources.append(normalize_resource(kind, raw))
    return resources


def normalize_collections(
    model_apis: Optional[Iterable[Any]],
    mcp_servers: Optional[Iterable[Any]],
    agents: Optional[Iterable[Any]],
) -> tuple[list[Resource], list[Resource], list[Resource]]:
    """Normalize the three collections in ModelAPI, MCPServer, Agent order."""
    return (
        normalize_many(KIND_MODEL_API, model_apis),
        normalize_many(KIND_MCP_SERVER, mcp_servers),
        normalize_many(KIND_AGENT, agents),
    )
