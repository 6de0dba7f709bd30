"""
kaos_map - Layout and incremental positioning engine for the KAOS visual map.

Turns snapshots of the three agentic resource kinds (ModelAPI, MCPServer,
Agent) into a node-link diagram: typed nodes, reference edges, 2-D positions,
and a filter/highlight projection for the rendering surface.

Pipeline (one-way):
    ingestion.crd_adapter  → graph.builder → layout (gated by graph.fingerprint,
    respecting state.locks) → filters.highlight → renderer

Entry point for a live view: kaos_map.session.VisualMapSession.
"""

__version__ = "0.1.0"
