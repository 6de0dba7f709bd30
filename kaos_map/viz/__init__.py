"""
kaos_map.viz - Optional rendering of a projected map view.

Modules:
    plotly_graph  - Plotly figure of nodes, edges and group headers
                    (requires the 'viz' extra: pip install kaos-map[viz]).

The interactive surface (drag, pan/zoom, minimap) lives outside this
package; this module only draws what the session hands out.
"""
