"""Referential-integrity pass run before any edge reaches the renderer."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from eunify.knowledge.graph.models import Edge, Vertex
from eunify.utils.monitoring import dropped_edges_total

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DroppedEdge:
    edge_id: str
    source: str
    target: str
    missing_source: bool
    missing_target: bool


@dataclass
class IntegrityReport:
    edges: List[Edge] = field(default_factory=list)
    dropped: List[DroppedEdge] = field(default_factory=list)


def filter_valid_edges(nodes: Iterable[Vertex], edges: Sequence[Edge]) -> IntegrityReport:
    """Keep only edges whose source and target are both present in ``nodes``.

    Each dropped edge is logged and recorded in the report; nothing is raised.
    Running the filter on its own output returns the same edges.
    """

    node_ids = {node.id for node in nodes}
    report = IntegrityReport()

    for edge in edges:
        has_source = edge.source in node_ids
        has_target = edge.target in node_ids
        if has_source and has_target:
            report.edges.append(edge)
            continue

        logger.warning(
            "Skipping edge %s: source=%s (%s), target=%s (%s)",
            edge.id,
            edge.source,
            has_source,
            edge.target,
            has_target,
        )
        report.dropped.append(
            DroppedEdge(
                edge_id=edge.id,
                source=edge.source,
                target=edge.target,
                missing_source=not has_source,
                missing_target=not has_target,
            )
        )

    if report.dropped:
        dropped_edges_total.inc(len(report.dropped))
    return report


__all__ = ["DroppedEdge", "IntegrityReport", "filter_valid_edges"]
