"""
kaos_map.state - Per-view mutable state.

Modules:
    locks  - PositionLockStore: manual node positions and the global drag lock.
"""
