"""
kaos_map/reports/status_legend.py - Per-kind status legend.

Counts how many resources of each kind are ready, pending or failed, the
small summary shown beside the map. Anything that is neither ready nor
failed (transitional states, Unknown, Terminated) counts as pending.

Rows are ordered Agents, MCP Servers, Model APIs, matching the legend's
top-to-bottom reading order.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Iterable

import pandas as pd

from kaos_map.filters.highlight import BUCKET_FAILED, BUCKET_READY, status_bucket
from kaos_map.graph.model import (
    KIND_AGENT,
    KIND_LABELS,
    KIND_MCP_SERVER,
    KIND_MODEL_API,
    Resource,
)

logger = logging.getLogger(__name__)

LEGEND_ORDER = (KIND_AGENT, KIND_MCP_SERVER, KIND_MODEL_API)


@dataclass
class StatusLegendRow:
    """
    Status counts for one resource kind.

    Fields:
        kind:    'ModelAPI' | 'MCPServer' | 'Agent'
        label:   Display label ('Model APIs', ...).
        ready:   Resources in the ready bucket (Running, Ready).
        pending: Everything neither ready nor failed.
        failed:  Resources in the failed bucket (Error, Failed).
    """

    kind: str
    label: str
    ready: int = 0
    pending: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.ready + self.pending + self.failed


def count_statuses(kind: str, resources: Iterable[Resource]) -> StatusLegendRow:
    row = StatusLegendRow(kind=kind, label=KIND_LABELS[kind])
    for resource in resources:
        bucket = status_bucket(resource.status_phase)
        if bucket == BUCKET_READY:
            row.ready += 1
        elif bucket == BUCKET_FAILED:
            row.failed += 1
        else:
            row.pending += 1
    return row


def build_status_legend(
    model_apis: Iterable[Resource],
    mcp_servers: Iterable[Resource],
    agents: Iterable[Resource],
) -> list[StatusLegendRow]:
    """Legend rows in display order (Agents, MCP Servers, Model APIs)."""
    by_kind = {
        KIND_MODEL_API: model_apis,
        KIND_MCP_SERVER: mcp_servers,
        KIND_AGENT: agents,
    }
    rows = [count_statuses(kind, by_kind[kind]) for kind in LEGEND_ORDER]
    logger.debug(
        "Status legend: %s",
        ", ".join(f"{r.label} {r.ready}/{r.pending}/{r.failed}" for r in rows),
    )
    return rows


def legend_to_dataframe(rows: list[StatusLegendRow]) -> pd.DataFrame:
    """
    Tabular form of the legend.

    Returns:
        DataFrame with columns kind, label, ready, pending, failed, total,
        one row per StatusLegendRow, in the given order.
    """
    records = [{**asdict(row), "total": row.total} for row in rows]
    return pd.DataFrame.from_records(
        records,
        columns=["kind", "label", "ready", "pending", "failed", "total"],
    )
