"""
kaos_map/tests/test_filters.py - Tests for kaos_map.filters.highlight.

Tests verify:
- Status buckets (ready / pending / failed / unknown).
- A text query highlights matches and dims everything else, edges included.
- Kind and status filters dim without highlighting.
- The projection never moves nodes, never removes anything and is idempotent.
- FilterState toggles keep at least one kind visible.
"""

import pytest

from kaos_map.filters.highlight import (
    BUCKET_FAILED,
    BUCKET_PENDING,
    BUCKET_READY,
    BUCKET_UNKNOWN,
    DEFAULT_FILTER,
    FilterState,
    apply_filters,
    make_filter_state,
    status_bucket,
)
from kaos_map.graph.builder import build_visual_graph
from kaos_map.graph.model import KIND_AGENT, KIND_MCP_SERVER, KIND_MODEL_API, RESOURCE_KINDS
from kaos_map.layout.rank_columns import compute_rank_layout
from kaos_map.tests.factories import agent, model_api

API = "ModelAPI/default/api-1"
TOOL = "MCPServer/default/tool-1"
AGENT = "Agent/default/agent-1"


@pytest.fixture
def laid_out(linear_chain):
    return compute_rank_layout(build_visual_graph(*linear_chain))


# ── status_bucket ─────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "status, bucket",
    [
        ("Running", BUCKET_READY),
        ("Ready", BUCKET_READY),
        ("Pending", BUCKET_PENDING),
        ("Updating", BUCKET_PENDING),
        ("Progressing", BUCKET_PENDING),
        ("Error", BUCKET_FAILED),
        ("Failed", BUCKET_FAILED),
        ("Unknown", BUCKET_UNKNOWN),
        (None, BUCKET_UNKNOWN),
        ("  ", BUCKET_UNKNOWN),
        ("Terminated", "terminated"),
    ],
)
def test_status_bucket(status, bucket):
    """Statuses collapse into ready, pending, failed or unknown."""
    assert status_bucket(status) == bucket


# ── Search ────────────────────────────────────────────────────────────────────

class TestSearch:
    """Tests for free-text search."""

    def test_query_highlights_match_and_dims_rest(self, laid_out):
        """A query highlights matches and dims everything else."""
        view = apply_filters(laid_out, make_filter_state(query="agent"))
        assert view.node(AGENT).is_highlighted and not view.node(AGENT).is_dimmed
        for node_id in (API, TOOL):
            assert view.node(node_id).is_dimmed
            assert not view.node(node_id).is_highlighted

    def test_edges_touching_dimmed_nodes_fade(self, laid_out):
        """Edges touching a dimmed node fade and stop animating."""
        view = apply_filters(laid_out, make_filter_state(query="agent"))
        for edge in view.edges:
            assert edge.dimmed
            assert edge.opacity == 0.1
            assert edge.label_opacity == 0.0
            assert edge.animated is False

    def test_query_is_case_insensitive(self, laid_out):
        """Matching ignores case."""
        view = apply_filters(laid_out, make_filter_state(query="AGENT"))
        assert view.node(AGENT).is_highlighted

    def test_query_matches_namespace(self):
        """The query also matches the namespace."""
        graph = build_visual_graph([model_api("api-1", namespace="research")], [], [agent("a")])
        view = apply_filters(graph, make_filter_state(query="search"))
        assert view.node("ModelAPI/research/api-1").is_highlighted
        assert view.node("Agent/default/a").is_dimmed

    def test_surrounding_whitespace_is_ignored(self, laid_out):
        """A trailing space in the query still matches 'agent-1'."""
        view = apply_filters(laid_out, make_filter_state(query="agent "))
        assert view.node(AGENT).is_highlighted and not view.node(AGENT).is_dimmed

    def test_whitespace_query_is_empty(self, laid_out):
        """A whitespace-only query filters nothing."""
        view = apply_filters(laid_out, make_filter_state(query="   "))
        assert not any(n.is_dimmed or n.is_highlighted for n in view.resource_nodes)

    def test_no_match_dims_everything(self, laid_out):
        """A query matching nothing dims every node."""
        view = apply_filters(laid_out, make_filter_state(query="zzz"))
        assert all(n.is_dimmed for n in view.resource_nodes)


# ── Kind / status filters ─────────────────────────────────────────────────────

class TestKindAndStatus:
    """Tests for kind and status filters."""

    def test_kind_filter_dims_without_highlight(self, laid_out):
        """Kind filtering dims other kinds without highlighting."""
        view = apply_filters(laid_out, make_filter_state(kinds=[KIND_AGENT]))
        assert not view.node(AGENT).is_dimmed
        assert not view.node(AGENT).is_highlighted
        assert view.node(API).is_dimmed and view.node(TOOL).is_dimmed

    def test_status_filter(self):
        """Status filtering keeps only the chosen buckets bright."""
        graph = build_visual_graph(
            [model_api("ok"), model_api("broken", status="Error")], [], []
        )
        view = apply_filters(graph, make_filter_state(statuses=[BUCKET_FAILED]))
        assert view.node("ModelAPI/default/broken").is_dimmed is False
        assert view.node("ModelAPI/default/ok").is_dimmed is True

    def test_default_filter_dims_nothing(self, laid_out):
        """The default filter leaves everything bright and animated."""
        view = apply_filters(laid_out)
        assert not any(n.is_dimmed for n in view.resource_nodes)
        assert all(e.opacity == 1.0 and e.animated for e in view.edges)

    def test_edge_between_matching_nodes_stays_bright(self):
        """An edge between two matching nodes is not dimmed."""
        graph = build_visual_graph(
            [], [], [agent("alpha", peers=("beta",)), agent("beta")]
        )
        view = apply_filters(graph, make_filter_state(kinds=[KIND_AGENT]))
        assert view.edges[0].dimmed is False


# ── Projection invariants ─────────────────────────────────────────────────────

class TestProjection:
    """Tests for projection invariants."""

    def test_positions_untouched(self, laid_out):
        """Filtering never moves a node."""
        view = apply_filters(laid_out, make_filter_state(query="agent"))
        assert view.positions() == laid_out.positions()

    def test_nothing_removed(self, laid_out):
        """Filtering never removes nodes or edges."""
        view = apply_filters(laid_out, make_filter_state(kinds=[KIND_MODEL_API], query="x"))
        assert [n.id for n in view.nodes] == [n.id for n in laid_out.nodes]
        assert [e.id for e in view.edges] == [e.id for e in laid_out.edges]

    def test_input_not_mutated(self, laid_out):
        """The canonical graph is left as it was."""
        apply_filters(laid_out, make_filter_state(query="agent"))
        assert not any(n.is_dimmed for n in laid_out.resource_nodes)

    def test_idempotent(self, laid_out):
        """Applying the same filter twice equals applying it once."""
        state = make_filter_state(kinds=[KIND_AGENT, KIND_MCP_SERVER], query="1")
        once = apply_filters(laid_out, state)
        assert apply_filters(once, state) == once

    def test_clearing_filter_restores(self, laid_out):
        """The default filter undoes an earlier projection."""
        dimmed = apply_filters(laid_out, make_filter_state(query="agent"))
        restored = apply_filters(dimmed, DEFAULT_FILTER)
        assert restored == apply_filters(laid_out, DEFAULT_FILTER)

    def test_muted_edge_stays_static_when_not_dimmed(self, linear_chain):
        """A muted edge stays static at full opacity."""
        graph = build_visual_graph(*linear_chain, dim_model_api_edges=True)
        view = apply_filters(graph)
        model_edge = view.edges[0]
        assert model_edge.muted and not model_edge.animated
        assert model_edge.opacity == 1.0


# ── FilterState ───────────────────────────────────────────────────────────────

class TestFilterState:
    """Tests for FilterState construction and toggles."""

    def test_defaults(self):
        """The default state shows every kind and filters nothing."""
        assert DEFAULT_FILTER.kinds == frozenset(RESOURCE_KINDS)
        assert DEFAULT_FILTER.statuses == frozenset()
        assert DEFAULT_FILTER.is_searching is False

    def test_empty_kinds_rejected(self):
        """An empty kind set raises ValueError."""
        with pytest.raises(ValueError):
            FilterState(kinds=frozenset())

    def test_toggle_kind(self):
        """toggle_kind() hides and shows a kind."""
        state = DEFAULT_FILTER.toggle_kind(KIND_AGENT)
        assert KIND_AGENT not in state.kinds
        assert KIND_AGENT in state.toggle_kind(KIND_AGENT).kinds

    def test_last_kind_cannot_be_hidden(self):
        """Hiding the last visible kind is a no-op."""
        state = make_filter_state(kinds=[KIND_AGENT])
        assert state.toggle_kind(KIND_AGENT) is state

    def test_toggle_status_is_case_insensitive(self):
        """Status buckets are lower-cased when toggled."""
        state = DEFAULT_FILTER.toggle_status("Failed")
        assert state.statuses == frozenset({"failed"})
        assert state.toggle_status("failed").statuses == frozenset()

    def test_with_query_strips(self):
        """with_query() strips surrounding whitespace."""
        state = DEFAULT_FILTER.with_query("  planner ")
        assert state.query == "planner"
        assert state.is_searching


# ── Scenarios ─────────────────────────────────────────────────────────────────

def test_search_scenario_two_agents():
    """Query 'agent' highlights agent-1 and dims worker-2 with its edges."""
    graph = compute_rank_layout(
        build_visual_graph(
            [model_api("api-1")],
            [],
            [agent("agent-1", model="api-1"), agent("worker-2", model="api-1")],
        )
    )
    view = apply_filters(graph, make_filter_state(query="agent"))
    matched = view.node("Agent/default/agent-1")
    worker = view.node("Agent/default/worker-2")
    assert matched.is_highlighted and not matched.is_dimmed
    assert worker.is_dimmed and not worker.is_highlighted
    for edge in view.edges:
        if "worker-2" in edge.source or "worker-2" in edge.target:
            assert edge.dimmed
