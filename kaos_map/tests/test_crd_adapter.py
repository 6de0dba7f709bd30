"""
kaos_map/tests/test_crd_adapter.py - Tests for kaos_map.ingestion.crd_adapter.

Tests verify:
- Kubernetes-style dicts normalize into Resource objects.
- Missing namespace, status and lists fall back to defaults.
- Reference entries are accepted as plain names or {"name": ...} mappings.
- Deployment replica counts refine the displayed phase.
- Resource objects pass through, re-kinded to the collection they sit in.
- Nameless entries are rejected (single) or skipped (collections).
"""

import pytest

from kaos_map.graph.model import KIND_AGENT, KIND_MCP_SERVER, KIND_MODEL_API, Resource
from kaos_map.ingestion.crd_adapter import (
    effective_phase,
    normalize_collections,
    normalize_many,
    normalize_resource,
)
from kaos_map.tests.factories import model_api, raw_resource


# ── normalize_resource ────────────────────────────────────────────────────────

class TestNormalizeResource:
    """Tests for converting one raw custom resource."""

    def test_model_api(self):
        """A plain ModelAPI dict maps onto the canonical fields."""
        res = normalize_resource(KIND_MODEL_API, raw_resource("ModelAPI", "api-1", namespace="ml"))
        assert res == Resource(kind=KIND_MODEL_API, namespace="ml", name="api-1", status_phase="Running")

    def test_agent_references(self):
        """Agent references accept names and mappings, and duplicates collapse."""
        raw = raw_resource(
            "Agent",
            "planner",
            spec={
                "modelAPI": "gpt",
                "mcpServers": ["search", {"name": "files"}, "search"],
                "agentNetwork": {"access": ["coder", {"name": "writer"}]},
            },
        )
        res = normalize_resource(KIND_AGENT, raw)
        assert res.model_api == "gpt"
        assert res.mcp_servers == ("search", "files")
        assert res.peer_agents == ("coder", "writer")

    def test_agent_model_as_mapping(self):
        """spec.modelAPI may be a {'name': ...} mapping."""
        raw = raw_resource("Agent", "a", spec={"modelAPI": {"name": "gpt"}})
        assert normalize_resource(KIND_AGENT, raw).model_api == "gpt"

    def test_agent_without_references(self):
        """An agent with an empty spec has no references."""
        res = normalize_resource(KIND_AGENT, raw_resource("Agent", "a"))
        assert res.model_api is None
        assert res.mcp_servers == ()
        assert res.peer_agents == ()

    def test_null_lists_are_empty(self):
        """Null reference lists become empty tuples."""
        raw = raw_resource("Agent", "a", spec={"mcpServers": None, "agentNetwork": None})
        res = normalize_resource(KIND_AGENT, raw)
        assert res.mcp_servers == () and res.peer_agents == ()

    def test_malformed_entries_are_skipped(self):
        """Non-string, nameless and blank entries are dropped."""
        raw = raw_resource("Agent", "a", spec={"mcpServers": ["ok", 42, {"nope": 1}, ""]})
        assert normalize_resource(KIND_AGENT, raw).mcp_servers == ("ok",)

    def test_non_agent_ignores_references(self):
        """Only agents read reference fields."""
        raw = raw_resource("MCPServer", "s", spec={"modelAPI": "gpt"})
        assert normalize_resource(KIND_MCP_SERVER, raw).model_api is None

    def test_default_namespace(self):
        """A missing namespace becomes 'default'."""
        res = normalize_resource(KIND_MODEL_API, raw_resource("ModelAPI", "api-1", namespace=None))
        assert res.namespace == "default"

    def test_missing_status_is_unknown(self):
        """A missing status block becomes 'Unknown'."""
        res = normalize_resource(KIND_MODEL_API, raw_resource("ModelAPI", "api-1", phase=None))
        assert res.status_phase == "Unknown"

    def test_status_message(self):
        """status.message is carried over."""
        raw = raw_resource("ModelAPI", "api-1", message="quota exceeded")
        assert normalize_resource(KIND_MODEL_API, raw).status_message == "quota exceeded"

    def test_resource_passes_through(self):
        """A Resource of the right kind is returned as-is."""
        res = model_api("api-1")
        assert normalize_resource(KIND_MODEL_API, res) is res

    def test_resource_is_rekinded_to_collection(self):
        """A Resource listed under another kind takes the collection's kind."""
        res = Resource(kind=KIND_MODEL_API, namespace="default", name="agent-1", model_api="api-1")
        normalized = normalize_resource(KIND_AGENT, res)
        assert normalized.kind == KIND_AGENT
        assert normalized.model_api == "api-1"
        assert normalized.node_id == "Agent/default/agent-1"

    def test_unknown_kind(self):
        """An unknown kind raises ValueError."""
        with pytest.raises(ValueError):
            normalize_resource("Pod", raw_resource("Pod", "p"))

    def test_missing_name(self):
        """A resource without metadata.name raises ValueError."""
        with pytest.raises(ValueError):
            normalize_resource(KIND_MODEL_API, {"metadata": {"namespace": "default"}})


# ── effective_phase ───────────────────────────────────────────────────────────

class TestEffectivePhase:
    """Tests for the deployment-aware phase."""

    def test_plain_phase(self):
        """Without deployment data the declared phase is used."""
        assert effective_phase({"phase": "Running"}) == "Running"

    def test_no_status(self):
        """No status at all resolves to 'Unknown'."""
        assert effective_phase(None) == "Unknown"
        assert effective_phase({}) == "Unknown"

    def test_non_string_phase(self):
        """A non-string phase resolves to 'Unknown'."""
        assert effective_phase({"phase": 3}) == "Unknown"

    @pytest.mark.parametrize(
        "deployment, phase",
        [
            ({"replicas": 2, "readyReplicas": 2, "updatedReplicas": 1}, "Updating"),
            ({"replicas": 2, "readyReplicas": 0, "updatedReplicas": 2}, "Pending"),
            ({"replicas": 3, "readyReplicas": 1, "updatedReplicas": 3}, "Progressing"),
            ({"replicas": 2, "readyReplicas": 2, "updatedReplicas": 2}, "Ready"),
            ({}, "Running"),
        ],
    )
    def test_deployment_refinement(self, deployment, phase):
        """Replica counts refine the phase in Updating, Pending, Progressing, Ready order."""
        assert effective_phase({"phase": "Running", "deployment": deployment}) == phase

    def test_garbage_replica_counts(self):
        """Unparseable replica counts read as zero."""
        status = {"phase": "Running", "deployment": {"replicas": "lots"}}
        assert effective_phase(status) == "Running"


# ── Collections ───────────────────────────────────────────────────────────────

class TestCollections:
    """Tests for normalizing whole collections."""

    def test_nameless_entries_skipped(self):
        """Entries without a name are skipped instead of raising."""
        raws = [{"metadata": {}}, raw_resource("ModelAPI", "api-1"), "garbage"]
        resources = normalize_many(KIND_MODEL_API, raws)
        assert [r.name for r in resources] == ["api-1"]

    def test_none_collection(self):
        """A None collection normalizes to an empty list."""
        assert normalize_many(KIND_AGENT, None) == []

    def test_normalize_collections(self, raw_snapshot):
        """All three collections normalize in ModelAPI, MCPServer, Agent order."""
        model_apis, mcp_servers, agents = normalize_collections(*raw_snapshot)
        assert [r.kind for r in model_apis] == [KIND_MODEL_API]
        assert [r.kind for r in mcp_servers] == [KIND_MCP_SERVER]
        assert agents[0].model_api == "api-1"
        assert agents[0].mcp_servers == ("tool-1",)
