"""
kaos_map/config.py - All tunable parameters for the visual map.

No geometry constant should be hardcoded in a layout module. Node sizes,
column spacing and separation parameters live here so that a visual
calibration change is a single-file diff.
"""

from dataclasses import dataclass

LAYOUT_DIRECTIONS = ("LR", "RL", "TB", "BT")
LAYOUT_STRATEGY_NAMES = ("rank", "layered")


@dataclass(frozen=True)
class VisualMapConfig:
    """
    Immutable configuration for the visual map layout pipeline.

    Override by constructing a new VisualMapConfig with the desired values
    (or dataclasses.replace(DEFAULT_CONFIG, ...)).
    """

    # ── Node geometry ─────────────────────────────────────────────────────────
    node_width: float = 240.0
    node_height: float = 120.0
    # Fallback card size used by the renderer when nothing was measured.

    # ── Rank-column layout (strategy "rank") ──────────────────────────────────
    column_spacing: float = 380.0
    # Horizontal distance between two consecutive ranks.

    vertical_gap: float = 40.0
    # Gap between two stacked nodes within one rank.

    header_offset: float = 60.0
    # Group headers sit this far above the topmost member of their kind.

    # ── Layered layout (strategy "layered") ───────────────────────────────────
    node_sep: float = 80.0
    # Separation between neighbouring nodes inside one layer.

    rank_sep: float = 300.0
    # Separation between two layers (added to the node extent on the rank axis).

    crossing_passes: int = 24
    # Upper bound on barycenter sweeps; sweeping stops early once the
    # crossing count no longer improves.

    # ── Shared ────────────────────────────────────────────────────────────────
    direction: str = "LR"
    # Rank axis orientation: LR, RL, TB or BT.

    layout_strategy: str = "rank"
    # "rank" (breadth-first columns) or "layered" (Sugiyama-style).

    def __post_init__(self) -> None:
        if self.direction not in LAYOUT_DIRECTIONS:
            raise ValueError(
                f"direction must be one of {LAYOUT_DIRECTIONS}, got {self.direction!r}"
            )
        if self.layout_strategy not in LAYOUT_STRATEGY_NAMES:
            raise ValueError(
                f"layout_strategy must be one of {LAYOUT_STRATEGY_NAMES}, "
                f"got {self.layout_strategy!r}"
            )
        for name in ("node_width", "node_height", "column_spacing", "rank_sep"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        for name in ("vertical_gap", "header_offset", "node_sep"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
        if self.crossing_passes < 1:
            raise ValueError("crossing_passes must be at least 1")


# Shared default instance; import this everywhere instead of constructing anew.
DEFAULT_CONFIG = VisualMapConfig()
