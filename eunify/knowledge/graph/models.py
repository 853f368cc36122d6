"""Graph vertex, edge and snapshot models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Set, Union

Scalar = Union[str, int, float, bool, None]
Properties = Dict[str, Any]

UNKNOWN_VERTEX_TYPE = "unknown"
DEFAULT_EDGE_TYPE = "relationship"

VERTEX_FIELDS = frozenset({"id", "label", "type", "properties"})
EDGE_FIELDS = frozenset({"id", "source", "target", "label", "type", "properties"})


def _collect_properties(payload: Mapping[str, Any], reserved: frozenset) -> Properties:
    """Top-level attributes outside ``reserved`` plus the nested ``properties`` bag."""

    properties = {key: value for key, value in payload.items() if key not in reserved}
    properties.update(payload.get("properties") or {})
    return properties


@dataclass
class Vertex:
    id: str
    label: str
    type: str = UNKNOWN_VERTEX_TYPE
    properties: Properties = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Vertex":
        return cls(
            id=str(payload["id"]),
            label=str(payload.get("label", payload["id"])),
            type=str(payload.get("type") or UNKNOWN_VERTEX_TYPE),
            properties=_collect_properties(payload, VERTEX_FIELDS),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "label": self.label, "type": self.type, "properties": dict(self.properties)}


@dataclass
class Edge:
    id: str
    source: str
    target: str
    label: str
    type: str = DEFAULT_EDGE_TYPE
    properties: Properties = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Edge":
        # Missing endpoints parse as "" and are dropped by the integrity filter.
        return cls(
            id=str(payload["id"]),
            source=_endpoint(payload.get("source")),
            target=_endpoint(payload.get("target")),
            label=str(payload.get("label") or "connected"),
            type=str(payload.get("type") or DEFAULT_EDGE_TYPE),
            properties=_collect_properties(payload, EDGE_FIELDS),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "label": self.label,
            "type": self.type,
            "properties": dict(self.properties),
        }


def _endpoint(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass
class GraphData:
    """One snapshot of vertices and edges to display."""

    nodes: List[Vertex] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    # Extra blocks returned alongside analytic views (summaries, scores).
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "GraphData":
        return cls()

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "GraphData":
        nodes = [Vertex.from_payload(item) for item in payload.get("nodes") or []]
        edges = [Edge.from_payload(item) for item in payload.get("edges") or []]
        metadata = {key: value for key, value in payload.items() if key not in ("nodes", "edges")}
        return cls(nodes=nodes, edges=edges, metadata=metadata)

    def node_ids(self) -> Set[str]:
        return {node.id for node in self.nodes}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "metadata": dict(self.metadata),
        }


@dataclass
class ConnectionStatus:
    """Whether the backend is live-connected to the graph database or mocking it."""

    connected: bool
    gremlin_url: str
    mock_mode: bool = False
    healthy: Optional[bool] = None
    timestamp: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ConnectionStatus":
        connected = bool(payload.get("connected", False))
        return cls(
            connected=connected,
            gremlin_url=str(payload.get("gremlinUrl", "")),
            mock_mode=bool(payload.get("mockMode", not connected)),
            healthy=payload.get("healthy"),
            timestamp=payload.get("timestamp"),
            error=payload.get("error"),
        )

    def describe(self) -> str:
        if self.connected:
            return f"Connected to JanusGraph at {self.gremlin_url}"
        return f"Mock mode - JanusGraph not connected ({self.gremlin_url})"


@dataclass
class GraphStatistics:
    vertex_count: int
    edge_count: int
    vertex_types: Dict[str, int] = field(default_factory=dict)
    edge_types: Dict[str, int] = field(default_factory=dict)


@dataclass
class QueryResult:
    """Raw traversal output plus the metadata shown in the query console."""

    query: str
    data: Any
    result_count: int
    query_type: str
    executed_at: datetime


@dataclass
class Selection:
    """Single-selection model: at most one of node or edge is set."""

    node: Optional[Vertex] = None
    edge: Optional[Edge] = None

    def select_node(self, vertex: Vertex) -> None:
        self.node = vertex
        self.edge = None

    def select_edge(self, edge: Edge) -> None:
        self.edge = edge
        self.node = None

    def clear(self) -> None:
        self.node = None
        self.edge = None
