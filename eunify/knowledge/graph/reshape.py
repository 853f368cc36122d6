"""Turn ad hoc traversal output into a vertex-only graph snapshot."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping

from eunify.core.exceptions import ReshapeError
from eunify.knowledge.graph.models import GraphData, Scalar, Vertex

logger = logging.getLogger(__name__)

NOT_A_LIST_MESSAGE = (
    "Query results cannot be visualized - results must be an array of vertices. "
    "Try using .valueMap(true) to get vertex properties."
)
NO_VERTICES_MESSAGE = (
    "Query results cannot be visualized - no valid nodes found. "
    "Try queries that return vertices with id and label properties."
)

RESERVED_KEYS = ("id", "label")


def unwrap_property_value(value: Any) -> Scalar | Any:
    """Collapse the one-level list wrapping produced by ``valueMap``.

    ``valueMap`` returns every property as a list of its values; the first value
    is kept. An empty list becomes ``None``. Anything else is returned as is.
    """

    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def reshape_query_result(raw: Any) -> GraphData:
    """Extract vertices from a raw query result.

    Elements lacking either ``id`` or ``label`` are skipped. Edges are never
    inferred. Duplicate ids are passed through unchanged.
    """

    if not isinstance(raw, list):
        raise ReshapeError(
            error_code="RESULT_NOT_A_LIST",
            message=NOT_A_LIST_MESSAGE,
            details={"result_type": type(raw).__name__},
        )

    nodes: List[Vertex] = []
    skipped = 0
    for item in raw:
        if not isinstance(item, Mapping) or not item.get("id") or not item.get("label"):
            skipped += 1
            continue
        label = str(unwrap_property_value(item["label"]))
        properties = {
            key: unwrap_property_value(value) for key, value in item.items() if key not in RESERVED_KEYS
        }
        nodes.append(Vertex(id=str(item["id"]), label=label, type=label, properties=properties))

    if not nodes:
        raise ReshapeError(
            error_code="NO_VERTICES",
            message=NO_VERTICES_MESSAGE,
            details={"items": len(raw)},
        )

    if skipped:
        logger.debug("Reshaper skipped %d of %d result rows without id/label", skipped, len(raw))
    return GraphData(nodes=nodes, edges=[])


__all__ = ["NOT_A_LIST_MESSAGE", "NO_VERTICES_MESSAGE", "reshape_query_result", "unwrap_property_value"]
