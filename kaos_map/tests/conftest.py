"""
kaos_map/tests/conftest.py - Shared pytest fixtures for the kaos_map test suite.

Fixtures:
    linear_chain   - api-1 (ModelAPI), tool-1 (MCPServer), agent-1 referencing both.
    fan_in_graph   - Two model APIs, two MCP servers, three agents with peer links.
    raw_snapshot   - Kubernetes-style dicts for the linear chain (adapter input).
    session        - A fresh VisualMapSession with the default config.
"""

import pytest

from kaos_map.session import VisualMapSession
from kaos_map.tests.factories import agent, mcp_server, model_api, raw_resource


@pytest.fixture
def linear_chain():
    return (
        [model_api("api-1")],
        [mcp_server("tool-1")],
        [agent("agent-1", model="api-1", tools=("tool-1",))],
    )


@pytest.fixture
def fan_in_graph():
    return (
        [model_api("gpt"), model_api("llama")],
        [mcp_server("search"), mcp_server("files")],
        [
            agent("planner", model="gpt", tools=("search",), peers=("coder", "writer")),
            agent("coder", model="llama", tools=("files", "search")),
            agent("writer", model="gpt", tools=("files",)),
        ],
    )


@pytest.fixture
def raw_snapshot():
    return (
        [raw_resource("ModelAPI", "api-1", spec={"mode": "Proxy"})],
        [raw_resource("MCPServer", "tool-1", spec={"type": "uvx"})],
        [raw_resource("Agent", "agent-1", spec={"modelAPI": "api-1", "mcpServers": ["tool-1"]})],
    )


@pytest.fixture
def session():
    return VisualMapSession()
