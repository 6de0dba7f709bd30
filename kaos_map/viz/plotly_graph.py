"""
kaos_map/viz/plotly_graph.py - Interactive Plotly rendering of a map view.

Draws a projected SessionView / VisualGraph as-is: no layout happens here.
Coordinates are the top-left card corners from the layout stage; markers
sit at card centres, and the y axis is reversed so the picture matches a
screen-space canvas (y grows downwards).

Visual encoding:
    - Node color:   Resource kind (ModelAPI teal, MCPServer amber, Agent violet)
    - Node opacity: 0.2 when dimmed by the filter, 1.0 otherwise
    - Border:       Thick dark border when highlighted by a search match,
                    red when the status message carries a warning
    - Edge color:   By relation (model / tools / a2a); dimmed edges faded
    - Headers:      Text annotations "<label> (<count>)"
    - Hover:        Name, namespace, kind, status, status message
"""

import logging

from kaos_map.config import DEFAULT_CONFIG, VisualMapConfig
from kaos_map.graph.model import (
    KIND_AGENT,
    KIND_MCP_SERVER,
    KIND_MODEL_API,
    RELATION_MODEL,
    RELATION_PEER,
    RELATION_TOOLS,
    VisualGraph,
)

logger = logging.getLogger(__name__)

# ── Optional Plotly dependency ─────────────────────────────────────────────────
try:
    import plotly.graph_objects as go
    HAS_PLOTLY = True
except ImportError:
    go = None
    HAS_PLOTLY = False

# ── Visual config ──────────────────────────────────────────────────────────────
_NODE_COLORS_BY_KIND = {
    KIND_MODEL_API: "rgb(20, 160, 150)",
    KIND_MCP_SERVER: "rgb(230, 150, 30)",
    KIND_AGENT: "rgb(140, 90, 210)",
}
_EDGE_COLORS = {
    RELATION_MODEL: "rgba(20, 160, 150, {alpha})",
    RELATION_TOOLS: "rgba(230, 150, 30, {alpha})",
    RELATION_PEER: "rgba(140, 90, 210, {alpha})",
}
_DIMMED_NODE_OPACITY = 0.2


def _center(position, config: VisualMapConfig) -> tuple[float, float]:
    return (position.x + config.node_width / 2.0, position.y + config.node_height / 2.0)


def build_plotly_figure(
    view: VisualGraph,
    config: VisualMapConfig = DEFAULT_CONFIG,
    title: str = "KAOS - Visual Map",
) -> "go.Figure":
    """
    Build a Plotly figure from a laid-out, filtered graph.

    Args:
        view:   VisualGraph (typically SessionView.graph).
        config: Card geometry used to convert corners to centres.
        title:  Figure title.

    Returns:
        Plotly Figure object (no IO, no files written).

    Raises:
        ImportError: If plotly is not installed.
    """
    if not HAS_PLOTLY:
        raise ImportError("plotly is required: pip install plotly")

    centres = {n.id: _center(n.position, config) for n in view.resource_nodes}

    # ── Edge traces grouped by (relation, dimmed) ─────────────────────────────
    edge_groups: dict[tuple[str, bool], list] = {}
    for edge in view.edges:
        if edge.source not in centres or edge.target not in centres:
            continue
        edge_groups.setdefault((edge.relation, edge.dimmed or edge.muted), []).append(edge)

    edge_traces = []
    for (relation, faded), edges in edge_groups.items():
        x_coords: list = []
        y_coords: list = []
        for edge in edges:
            x0, y0 = centres[edge.source]
            x1, y1 = centres[edge.target]
            x_coords += [x0, x1, None]
            y_coords += [y0, y1, None]

        alpha = 0.1 if faded else 0.8
        color = _EDGE_COLORS.get(relation, "rgba(150, 150, 150, {alpha})").format(alpha=alpha)
        edge_traces.append(
            go.Scatter(
                x=x_coords,
                y=y_coords,
                mode="lines",
                line={"width": 1 if faded else 2, "color": color},
                name=edges[0].label,
                legendgroup=f"edge_{relation}",
                showlegend=not faded,
                hoverinfo="none",
            )
        )

    # ── Node traces grouped by kind ───────────────────────────────────────────
    node_traces = []
    by_kind: dict[str, list] = {}
    for node in view.resource_nodes:
        by_kind.setdefault(node.kind, []).append(node)

    for kind, nodes in by_kind.items():
        x_coords = []
        y_coords = []
        opacities = []
        border_colors = []
        border_widths = []
        hover_texts = []
        labels = []

        for node in nodes:
            x, y = centres[node.id]
            x_coords.append(x)
            y_coords.append(y)
            labels.append(node.label)
            opacities.append(_DIMMED_NODE_OPACITY if node.is_dimmed else 1.0)

            if node.is_highlighted:
                border_colors.append("black")
                border_widths.append(4)
            elif node.has_warning:
                border_colors.append("red")
                border_widths.append(2)
            else:
                border_colors.append("white")
                border_widths.append(1)

            hover = (
                f"<b>{node.label}</b><br>"
                f"Namespace: {node.namespace}<br>"
                f"Kind: {kind}<br>"
                f"Status: {node.status}"
            )
            if node.status_message:
                hover += f"<br>{node.status_message}"
            hover_texts.append(hover)

        node_traces.append(
            go.Scatter(
                x=x_coords,
                y=y_coords,
                mode="markers+text",
                name=kind,
                text=labels,
                textposition="bottom center",
                customdata=hover_texts,
                hovertemplate="%{customdata}<extra></extra>",
                marker={
                    "size": 28,
                    "symbol": "square",
                    "color": _NODE_COLORS_BY_KIND.get(kind, "gray"),
                    "opacity": opacities,
                    "line": {"color": border_colors, "width": border_widths},
                },
                legendgroup=f"node_{kind}",
                showlegend=True,
            )
        )

    # ── Header annotations ────────────────────────────────────────────────────
    annotations = [
        {
            "x": header.position.x + config.node_width / 2.0,
            "y": header.position.y,
            "text": f"<b>{header.label}</b> ({header.count})",
            "showarrow": False,
        }
        for header in view.header_nodes
    ]

    all_traces = edge_traces + node_traces
    fig = go.Figure(
        data=all_traces,
        layout=go.Layout(
            title=title,
            showlegend=True,
            hovermode="closest",
            annotations=annotations,
            xaxis={"showgrid": False, "zeroline": False, "showticklabels": False},
            yaxis={
                "showgrid": False,
                "zeroline": False,
                "showticklabels": False,
                "autorange": "reversed",
            },
            margin={"l": 20, "r": 20, "t": 60, "b": 20},
            paper_bgcolor="white",
            plot_bgcolor="white",
        ),
    )

    logger.info(
        "Plotly figure built: %d nodes, %d edges, %d traces.",
        len(view.resource_nodes),
        len(view.edges),
        len(all_traces),
    )
    return fig


def save_figure_html(
    fig: "go.Figure",
    output_path: str,
) -> None:
    """
    Write a Plotly figure to a self-contained HTML file.

    Raises:
        ImportError: If plotly is not installed.
    """
    if not HAS_PLOTLY:
        raise ImportError("plotly is required: pip install plotly")

    fig.write_html(output_path, include_plotlyjs="cdn")
    logger.info("Plotly figure saved to: %s", output_path)
