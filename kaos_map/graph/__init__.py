"""
kaos_map.graph - Typed graph model, construction and change detection.

Modules:
    model        - Resource, ResourceNode, GroupHeaderNode, GraphEdge, VisualGraph.
    builder      - Build the node/edge view from three resource collections.
    fingerprint  - Structural fingerprint and the per-view layout cache.

Node kinds : ModelAPI, MCPServer, Agent (+ one header per kind)
Edge kinds : provides-model, provides-tool, peer-link
"""
