"""
kaos_map.filters - Derived views over a laid-out graph.

Modules:
    highlight  - Kind / status / text filtering with dimming and highlighting.
"""
