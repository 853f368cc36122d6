"""Async client for the E-Unify graph REST service."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar

import httpx

from eunify.core.config import Settings, settings as default_settings
from eunify.core.exceptions import EUnifyError, GraphFetchError, QueryExecutionError
from eunify.knowledge.graph import queries
from eunify.knowledge.graph.models import (
    DEFAULT_EDGE_TYPE,
    UNKNOWN_VERTEX_TYPE,
    ConnectionStatus,
    Edge,
    GraphData,
    GraphStatistics,
    Vertex,
)
from eunify.knowledge.graph.presets import Preset, get_preset
from eunify.utils.monitoring import observe_fetch

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GraphServiceClient:
    """Thin wrapper over the graph endpoints.

    Every endpoint answers with an envelope ``{"success", "data", "message"?,
    "error"?}``; methods return the unwrapped ``data`` shaped into models and
    raise :class:`GraphFetchError` (or :class:`QueryExecutionError` for ad hoc
    queries) on transport, HTTP or envelope failures. There is no retry.
    """

    def __init__(self, *, config: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None) -> None:
        self.config = config or default_settings
        self.base_url = self.config.graph_service_url
        self._owns_client = client is None
        if client is None:
            timeout = self.config.GRAPH_REQUEST_TIMEOUT_SECONDS
            client = httpx.AsyncClient(
                base_url=self.base_url,
                **({"timeout": timeout} if timeout is not None else {}),
            )
        self._client = client

    async def __aenter__(self) -> "GraphServiceClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Raw endpoints
    # ------------------------------------------------------------------

    async def get_status(self) -> ConnectionStatus:
        data = await self._request("GET", "/status", operation="JanusGraph status")
        return _parse("JanusGraph status", lambda payload: ConnectionStatus.from_payload(payload or {}), data)

    async def get_vertices(self) -> List[Vertex]:
        data = await self._request("GET", "/vertices", operation="vertices")
        return _parse("vertices", lambda items: [_coerce_vertex(item) for item in items or []], data)

    async def get_edges(self) -> List[Edge]:
        data = await self._request("GET", "/edges", operation="edges")
        return _parse("edges", lambda items: [_coerce_edge(item) for item in items or []], data)

    async def get_graph_data(self, limit: Optional[int] = None) -> GraphData:
        limit = limit or self.config.GRAPH_DEFAULT_LIMIT
        data = await self._request("GET", "/graph", operation="graph data", params={"limit": limit})
        return _parse("graph data", _graph_from_payload, data)

    async def create_vertex(
        self,
        label: str,
        *,
        type: str = "data_asset",
        properties: Optional[Mapping[str, Any]] = None,
    ) -> Vertex:
        payload = {"label": label, "properties": {"type": type, **dict(properties or {})}}
        data = await self._request("POST", "/vertex", operation="create vertex", json=payload)
        return _parse("create vertex", _coerce_vertex, data)

    async def create_edge(
        self,
        from_vertex_id: str,
        to_vertex_id: str,
        *,
        label: str = "connected",
        properties: Optional[Mapping[str, Any]] = None,
    ) -> Edge:
        payload = {
            "fromVertexId": from_vertex_id,
            "toVertexId": to_vertex_id,
            "label": label,
            "properties": dict(properties or {}),
        }
        data = await self._request("POST", "/edge", operation="create edge", json=payload)
        return _parse("create edge", _coerce_edge, data)

    async def execute_query(self, query: str, bindings: Optional[Mapping[str, Any]] = None) -> Any:
        return await self._request(
            "POST",
            "/query",
            operation="execute query",
            error_cls=QueryExecutionError,
            json={"query": query, "bindings": dict(bindings or {})},
        )

    async def get_impact_analysis(self, entity_id: Optional[str] = None, depth: Optional[int] = None) -> GraphData:
        entity_id = entity_id or self.config.IMPACT_ANALYSIS_ENTITY_ID
        depth = depth or self.config.IMPACT_ANALYSIS_DEPTH
        data = await self._request(
            "GET",
            f"/impact-analysis/{entity_id}",
            operation="impact analysis",
            params={"depth": depth},
        )
        return _parse("impact analysis", _graph_from_payload, data)

    async def get_fraud_detection(self, min_risk_score: Optional[int] = None) -> GraphData:
        if min_risk_score is None:
            min_risk_score = self.config.FRAUD_MIN_RISK_SCORE
        data = await self._request(
            "GET",
            "/fraud-detection",
            operation="fraud detection",
            params={"minRiskScore": min_risk_score},
        )
        return _parse("fraud detection", _graph_from_payload, data)

    async def get_intelligent_routing(self) -> GraphData:
        data = await self._request("GET", "/intelligent-routing", operation="intelligent routing")
        return _parse("intelligent routing", _graph_from_payload, data)

    async def get_predictive_analytics(self, case_type: Optional[str] = None) -> GraphData:
        data = await self._request(
            "GET",
            "/predictive-analytics",
            operation="predictive analytics",
            params={"caseType": case_type or self.config.PREDICTIVE_CASE_TYPE},
        )
        return _parse("predictive analytics", _graph_from_payload, data)

    # ------------------------------------------------------------------
    # Derived operations
    # ------------------------------------------------------------------

    async def fetch_preset(self, preset: Preset | str) -> GraphData:
        """Fetch the snapshot for a named view.

        Scoped views load the full graph and keep their own node types and
        edge labels; analytic views call their dedicated endpoint.
        """

        definition = get_preset(preset)
        if definition.scope is not None:
            graph = await self.get_graph_data(self.config.GRAPH_DEFAULT_LIMIT)
            return definition.scope.apply(graph)

        loaders = {
            Preset.FULL_GRAPH: self.get_graph_data,
            Preset.IMPACT_ANALYSIS: self.get_impact_analysis,
            Preset.FRAUD_DETECTION: self.get_fraud_detection,
            Preset.INTELLIGENT_ROUTING: self.get_intelligent_routing,
            Preset.PREDICTIVE_ANALYTICS: self.get_predictive_analytics,
        }
        return await loaders[definition.preset]()

    async def get_statistics(self) -> GraphStatistics:
        vertices, edges = await asyncio.gather(self.get_vertices(), self.get_edges())
        return GraphStatistics(
            vertex_count=len(vertices),
            edge_count=len(edges),
            vertex_types=dict(Counter(vertex.type for vertex in vertices)),
            edge_types=dict(Counter(edge.type for edge in edges)),
        )

    async def search_vertices(self, property_name: str, value: str) -> List[Vertex]:
        try:
            rows = await self.execute_query(queries.search_vertices_query(property_name, value))
        except QueryExecutionError as exc:
            raise GraphFetchError(error_code="SEARCH_FAILED", message="Failed to search vertices") from exc
        return _parse("vertex search", lambda items: [_vertex_from_row(row) for row in items or []], rows)

    async def get_vertex_neighbors(self, vertex_id: str) -> GraphData:
        """Return the vertex, its direct neighbours and the edges touching it."""

        try:
            vertex_rows, neighbor_rows, edge_rows = await asyncio.gather(
                *(self.execute_query(query) for query in queries.neighborhood_queries(vertex_id))
            )
        except QueryExecutionError as exc:
            raise GraphFetchError(error_code="NEIGHBORS_FAILED", message="Failed to fetch vertex neighbors") from exc

        def build(rows: tuple) -> GraphData:
            vertex_rows, neighbor_rows, edge_rows = rows
            nodes = [_vertex_from_row(row) for row in (vertex_rows or [])[:1]]
            nodes.extend(_vertex_from_row(row) for row in neighbor_rows or [])
            edges = [_edge_from_row(row) for row in edge_rows or []]
            return GraphData(nodes=nodes, edges=edges)

        return _parse("vertex neighbors", build, (vertex_rows, neighbor_rows, edge_rows))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        error_cls: Type[EUnifyError] = GraphFetchError,
        **kwargs: Any,
    ) -> Any:
        started = time.perf_counter()
        succeeded = False
        try:
            response = await self._client.request(method, self.base_url + path, **kwargs)
            body = _decode_body(response)
            if response.is_error or body.get("success") is False:
                message = body.get("message") or body.get("error") or f"Failed to fetch {operation}"
                logger.error("Graph service %s %s failed with %s: %s", method, path, response.status_code, message)
                raise error_cls(
                    error_code="GRAPH_SERVICE_ERROR",
                    message=message,
                    details={"operation": operation, "status": response.status_code},
                )
            succeeded = True
            return body.get("data")
        except httpx.HTTPError as exc:
            logger.error("Error fetching %s: %s", operation, exc)
            raise error_cls(
                error_code="GRAPH_SERVICE_UNREACHABLE",
                message=str(exc) or f"Failed to fetch {operation}",
                details={"operation": operation},
            ) from exc
        finally:
            observe_fetch(operation, succeeded, time.perf_counter() - started)


def _parse(operation: str, parser: Callable[[Any], T], data: Any) -> T:
    """Shape ``data`` with ``parser``; a malformed payload becomes a :class:`GraphFetchError`."""

    try:
        return parser(data)
    except (KeyError, TypeError, AttributeError, ValueError) as exc:
        logger.error("Malformed %s payload: %r", operation, exc)
        raise GraphFetchError(
            error_code="MALFORMED_PAYLOAD",
            message=f"Failed to fetch {operation}",
            details={"operation": operation},
        ) from exc


def _graph_from_payload(data: Any) -> GraphData:
    return GraphData.from_payload(data or {})


def _decode_body(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {"data": body}


def _coerce_vertex(payload: Mapping[str, Any]) -> Vertex:
    if "properties" in payload or isinstance(payload.get("type"), str):
        return Vertex.from_payload(payload)
    return _vertex_from_row(payload)


def _coerce_edge(payload: Mapping[str, Any]) -> Edge:
    if "source" in payload and "target" in payload:
        return Edge.from_payload(payload)
    return _edge_from_row(payload)


def _vertex_from_row(row: Mapping[str, Any]) -> Vertex:
    """Build a vertex from a ``valueMap(true)`` row."""

    vertex_id = str(row.get("id"))
    label = queries.first_value(row, "name") or queries.first_value(row, "title") or f"Node {vertex_id}"
    return Vertex(
        id=vertex_id,
        label=str(label),
        type=str(queries.first_value(row, "type") or UNKNOWN_VERTEX_TYPE),
        properties=dict(row),
    )


def _edge_from_row(row: Mapping[str, Any]) -> Edge:
    return Edge(
        id=str(row.get("id")),
        source=str(row.get("outV")),
        target=str(row.get("inV")),
        label=str(row.get("label") or "connected"),
        type=str(queries.first_value(row, "type") or DEFAULT_EDGE_TYPE),
        properties=dict(row),
    )


__all__ = ["GraphServiceClient"]
