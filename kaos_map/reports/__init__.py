"""
kaos_map.reports - Summaries derived from a resource snapshot.

Modules:
    status_legend  - Per-kind ready / pending / failed counts (+ DataFrame export).
"""
