"""Graph visualization endpoints: presets, query console and view state."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator

from eunify.api.dependencies import get_controller
from eunify.core.exceptions import ApplicationError, GraphFetchError, NotFoundError, RenderSurfaceError
from eunify.knowledge.graph.models import Edge, GraphStatistics, Vertex
from eunify.knowledge.graph.presets import PRESETS, Preset
from eunify.knowledge.graph.queries import EXAMPLE_QUERIES
from eunify.visualization.state import GraphViewController

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/graph", tags=["graph"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------


class VertexModel(BaseModel):
    id: str
    label: str
    type: str
    properties: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_vertex(cls, vertex: Vertex) -> "VertexModel":
        return cls(**vertex.to_dict())


class EdgeModel(BaseModel):
    id: str
    source: str
    target: str
    label: str
    type: str
    properties: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_edge(cls, edge: Edge) -> "EdgeModel":
        return cls(**edge.to_dict())


class GraphModel(BaseModel):
    nodes: List[VertexModel]
    edges: List[EdgeModel]
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ConnectionStatusModel(BaseModel):
    connected: bool
    gremlin_url: str
    mock_mode: bool
    healthy: Optional[bool] = None
    timestamp: Optional[str] = None
    error: Optional[str] = None
    description: str


class PresetModel(BaseModel):
    name: str
    title: str
    scoped: bool


class SelectionModel(BaseModel):
    node: Optional[VertexModel] = None
    edge: Optional[EdgeModel] = None


class ViewResponse(BaseModel):
    applied: Optional[bool] = None
    loading: bool
    error: Optional[str] = None
    active_preset: Optional[str] = None
    node_count: int
    edge_count: int
    dropped_edges: List[str] = Field(default_factory=list)
    selection: SelectionModel
    query_console_open: bool
    document: Optional[Dict[str, Any]] = None


class TapRequest(BaseModel):
    element_id: Optional[str] = None


class QueryRequest(BaseModel):
    query: str
    bindings: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("query")
    def validate_query(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Query cannot be empty")
        return value


class QueryResultModel(BaseModel):
    query: str
    data: Any
    result_count: int
    query_type: str
    executed_at: datetime


class QueryResponse(BaseModel):
    result: Optional[QueryResultModel] = None
    error: Optional[str] = None


class ExampleQueryModel(BaseModel):
    title: str
    query: str


class VertexCreateRequest(BaseModel):
    label: str = Field(..., min_length=1)
    type: str = "data_asset"
    properties: Dict[str, Any] = Field(default_factory=dict)


class EdgeCreateRequest(BaseModel):
    from_vertex_id: str
    to_vertex_id: str
    label: str = "connected"
    properties: Dict[str, Any] = Field(default_factory=dict)


class StatisticsModel(BaseModel):
    vertex_count: int
    edge_count: int
    vertex_types: Dict[str, int]
    edge_types: Dict[str, int]

    @classmethod
    def from_statistics(cls, stats: GraphStatistics) -> "StatisticsModel":
        return cls(
            vertex_count=stats.vertex_count,
            edge_count=stats.edge_count,
            vertex_types=stats.vertex_types,
            edge_types=stats.edge_types,
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _view(controller: GraphViewController, applied: Optional[bool] = None) -> ViewResponse:
    selection = controller.selection
    render = controller.last_render
    return ViewResponse(
        applied=applied,
        loading=controller.loading,
        error=controller.error,
        active_preset=controller.active_preset.value if controller.active_preset else None,
        node_count=len(controller.graph.nodes),
        edge_count=render.edge_count if render else 0,
        dropped_edges=render.dropped_edge_ids if render else [],
        selection=SelectionModel(
            node=VertexModel.from_vertex(selection.node) if selection.node else None,
            edge=EdgeModel.from_edge(selection.edge) if selection.edge else None,
        ),
        query_console_open=controller.query_console_open,
        document=controller.document(),
    )


# ---------------------------------------------------------------------------
# Endpoint implementations
# ---------------------------------------------------------------------------


@router.get("/status", response_model=ConnectionStatusModel)
async def connection_status(controller: GraphViewController = Depends(get_controller)) -> ConnectionStatusModel:
    result = await controller.load_connection_status()
    if result is None:
        raise ApplicationError(
            controller.error or "Failed to load connection status",
            status_code=status.HTTP_502_BAD_GATEWAY,
            code="status_unavailable",
        )
    return ConnectionStatusModel(
        connected=result.connected,
        gremlin_url=result.gremlin_url,
        mock_mode=result.mock_mode,
        healthy=result.healthy,
        timestamp=result.timestamp,
        error=result.error,
        description=result.describe(),
    )


@router.get("/presets", response_model=List[PresetModel])
async def list_presets() -> List[PresetModel]:
    return [
        PresetModel(name=preset.value, title=definition.title, scoped=definition.scope is not None)
        for preset, definition in PRESETS.items()
    ]


@router.post("/presets/{preset}/load", response_model=ViewResponse)
async def load_preset(preset: str, controller: GraphViewController = Depends(get_controller)) -> ViewResponse:
    try:
        selected = Preset(preset)
    except ValueError as exc:
        raise NotFoundError(f"Unknown preset '{preset}'") from exc
    applied = await controller.load_preset(selected)
    return _view(controller, applied)


@router.post("/refresh", response_model=ViewResponse)
async def refresh(controller: GraphViewController = Depends(get_controller)) -> ViewResponse:
    await controller.refresh()
    return _view(controller)


@router.get("/view", response_model=ViewResponse)
async def get_view(controller: GraphViewController = Depends(get_controller)) -> ViewResponse:
    return _view(controller)


@router.post("/view/tap", response_model=ViewResponse)
async def tap(payload: TapRequest, controller: GraphViewController = Depends(get_controller)) -> ViewResponse:
    try:
        controller.tap(payload.element_id)
    except RenderSurfaceError as exc:
        raise NotFoundError(exc.message) from exc
    return _view(controller)


@router.post("/view/zoom-in", response_model=ViewResponse)
async def zoom_in(controller: GraphViewController = Depends(get_controller)) -> ViewResponse:
    controller.zoom_in()
    return _view(controller)


@router.post("/view/zoom-out", response_model=ViewResponse)
async def zoom_out(controller: GraphViewController = Depends(get_controller)) -> ViewResponse:
    controller.zoom_out()
    return _view(controller)


@router.post("/view/fit", response_model=ViewResponse)
async def fit(controller: GraphViewController = Depends(get_controller)) -> ViewResponse:
    controller.fit()
    return _view(controller)


@router.delete("/view/error", response_model=ViewResponse)
async def dismiss_error(controller: GraphViewController = Depends(get_controller)) -> ViewResponse:
    controller.dismiss_error()
    return _view(controller)


@router.get("/statistics", response_model=StatisticsModel)
async def statistics(controller: GraphViewController = Depends(get_controller)) -> StatisticsModel:
    stats = await controller.load_statistics()
    if stats is None:
        raise ApplicationError(
            "Failed to load statistics",
            status_code=status.HTTP_502_BAD_GATEWAY,
            code="statistics_unavailable",
        )
    return StatisticsModel.from_statistics(stats)


@router.get("/query/examples", response_model=List[ExampleQueryModel])
async def example_queries() -> List[ExampleQueryModel]:
    return [ExampleQueryModel(title=title, query=query) for title, query in EXAMPLE_QUERIES]


@router.post("/query/execute", response_model=QueryResponse)
async def execute_query(payload: QueryRequest, controller: GraphViewController = Depends(get_controller)) -> QueryResponse:
    result = await controller.execute_query(payload.query, payload.bindings)
    if result is None:
        return QueryResponse(error=controller.error)
    return QueryResponse(
        result=QueryResultModel(
            query=result.query,
            data=result.data,
            result_count=result.result_count,
            query_type=result.query_type,
            executed_at=result.executed_at,
        )
    )


@router.post("/query/visualize", response_model=ViewResponse)
async def execute_and_visualize(
    payload: QueryRequest,
    controller: GraphViewController = Depends(get_controller),
) -> ViewResponse:
    controller.open_query_console()
    applied = await controller.execute_and_visualize(payload.query, payload.bindings)
    return _view(controller, applied)


@router.post("/vertices", response_model=VertexModel, status_code=status.HTTP_201_CREATED)
async def create_vertex(
    payload: VertexCreateRequest,
    controller: GraphViewController = Depends(get_controller),
) -> VertexModel:
    vertex = await controller.create_vertex(payload.label, type=payload.type, properties=payload.properties)
    if vertex is None:
        raise ApplicationError(controller.error or "Failed to create node", status_code=status.HTTP_502_BAD_GATEWAY)
    return VertexModel.from_vertex(vertex)


@router.post("/edges", response_model=EdgeModel, status_code=status.HTTP_201_CREATED)
async def create_edge(
    payload: EdgeCreateRequest,
    controller: GraphViewController = Depends(get_controller),
) -> EdgeModel:
    edge = await controller.create_edge(
        payload.from_vertex_id,
        payload.to_vertex_id,
        label=payload.label,
        properties=payload.properties,
    )
    if edge is None:
        raise ApplicationError(controller.error or "Failed to create edge", status_code=status.HTTP_502_BAD_GATEWAY)
    return EdgeModel.from_edge(edge)


@router.get("/vertices/search", response_model=List[VertexModel])
async def search_vertices(
    property: str = Query(..., min_length=1),
    value: str = Query(...),
    controller: GraphViewController = Depends(get_controller),
) -> List[VertexModel]:
    try:
        vertices = await controller.client.search_vertices(property, value)
    except GraphFetchError as exc:
        raise ApplicationError(exc.message, status_code=status.HTTP_502_BAD_GATEWAY, code="search_failed") from exc
    return [VertexModel.from_vertex(vertex) for vertex in vertices]


@router.get("/vertices/{vertex_id}/neighbors", response_model=GraphModel)
async def vertex_neighbors(vertex_id: str, controller: GraphViewController = Depends(get_controller)) -> GraphModel:
    try:
        graph = await controller.client.get_vertex_neighbors(vertex_id)
    except GraphFetchError as exc:
        raise ApplicationError(exc.message, status_code=status.HTTP_502_BAD_GATEWAY, code="neighbors_failed") from exc
    return GraphModel(
        nodes=[VertexModel.from_vertex(node) for node in graph.nodes],
        edges=[EdgeModel.from_edge(edge) for edge in graph.edges],
    )
