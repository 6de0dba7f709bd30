"""
kaos_map.ingestion - Boundary between the resource-fetching collaborator and the core.

Modules:
    crd_adapter  - Normalize raw ModelAPI / MCPServer / Agent custom resources
                   into the canonical Resource shape.

Fetching itself (polling, auth, network errors) happens outside this package;
the core only ever sees the snapshot it is handed.
"""
