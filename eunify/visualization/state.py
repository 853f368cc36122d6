"""View state for the graph visualization page.

`GraphViewController` owns the displayed snapshot, the loading flag, the error
banner, the query console and the current selection. Every user action that
replaces the snapshot is tagged with an increasing generation number; a
response whose generation is older than the most recently settled action is
discarded, so a slow earlier load can never overwrite a newer result.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from eunify.core.exceptions import EUnifyError, GraphFetchError, QueryExecutionError, ReshapeError
from eunify.core.observability import get_tracer
from eunify.knowledge.graph import queries
from eunify.knowledge.graph.client import GraphServiceClient
from eunify.knowledge.graph.models import (
    ConnectionStatus,
    Edge,
    GraphData,
    GraphStatistics,
    QueryResult,
    Selection,
    Vertex,
)
from eunify.knowledge.graph.presets import Preset, get_preset
from eunify.knowledge.graph.reshape import reshape_query_result
from eunify.visualization.render import RenderAdapter, RenderResult, SelectionListener

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

GENERIC_QUERY_ERROR = "Failed to execute query"


class GraphViewController:
    """Single-user graph page state driven by preset loads and ad hoc queries."""

    def __init__(self, client: GraphServiceClient, adapter: Optional[RenderAdapter] = None) -> None:
        self.client = client
        self.adapter = adapter or RenderAdapter()
        self.adapter.listener = SelectionListener(
            on_node_selected=self._on_node_selected,
            on_edge_selected=self._on_edge_selected,
            on_cleared=self._on_selection_cleared,
        )

        self.graph = GraphData.empty()
        self.active_preset: Optional[Preset] = None
        self.loading = False
        self.error: Optional[str] = None
        self.selection = Selection()
        self.connection_status: Optional[ConnectionStatus] = None
        self.statistics: Optional[GraphStatistics] = None
        self.query_result: Optional[QueryResult] = None
        self.query_console_open = False
        self.last_render: Optional[RenderResult] = None

        self._generation = 0
        self._settled_generation = 0
        # Remote calls still in flight; ``loading`` stays set until all return.
        self._pending = 0

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        await self.load_connection_status()
        await self.load_graph_data()
        await self.load_statistics()

    async def refresh(self) -> None:
        await self.load_graph_data()
        await self.load_statistics()

    async def load_connection_status(self) -> Optional[ConnectionStatus]:
        try:
            self.connection_status = await self.client.get_status()
        except GraphFetchError as exc:
            logger.error("Error loading connection status: %s", exc)
            self.error = "Failed to load connection status"
        return self.connection_status

    async def load_graph_data(self) -> bool:
        return await self.load_preset(Preset.FULL_GRAPH)

    async def load_preset(self, preset: Preset | str) -> bool:
        """Replace the snapshot with a preset view; ``False`` when it failed or went stale."""

        definition = get_preset(preset)
        generation = self._begin()
        with tracer.start_as_current_span("graph.load_preset") as span:
            span.set_attribute("eunify.preset", definition.preset.value)
            span.set_attribute("eunify.generation", generation)
            try:
                graph = await self.client.fetch_preset(definition.preset)
            except GraphFetchError as exc:
                logger.error("Error loading %s: %s", definition.preset.value, exc)
                if self._settle(generation):
                    self.error = definition.failure_message
                return False
            finally:
                self._finish()

            if not self._settle(generation):
                logger.info("Discarding stale %s response (generation %d)", definition.preset.value, generation)
                return False
            self.active_preset = definition.preset
            self.error = None
            self._apply(graph)
            span.set_attribute("eunify.nodes", len(graph.nodes))
            return True

    async def load_statistics(self) -> Optional[GraphStatistics]:
        try:
            self.statistics = await self.client.get_statistics()
        except GraphFetchError as exc:
            logger.error("Error loading statistics: %s", exc)
        return self.statistics

    # ------------------------------------------------------------------
    # Query console
    # ------------------------------------------------------------------

    def open_query_console(self) -> None:
        self.query_console_open = True

    def close_query_console(self) -> None:
        self.query_console_open = False

    async def execute_query(self, query: str, bindings: Optional[Mapping[str, Any]] = None) -> Optional[QueryResult]:
        """Run a traversal and keep its raw output for display."""

        generation = self._begin()
        self.error = None
        try:
            self.query_result = await self._run_query(query, bindings)
        except QueryExecutionError as exc:
            self._fail_query(exc)
            return None
        finally:
            self._finish()
        return self.query_result

    async def execute_and_visualize(self, query: str, bindings: Optional[Mapping[str, Any]] = None) -> bool:
        """Run a traversal and, when its rows look like vertices, display them."""

        generation = self._begin()
        self.error = None
        try:
            self.query_result = await self._run_query(query, bindings)
        except QueryExecutionError as exc:
            if self._settle(generation):
                self._fail_query(exc)
            return False
        finally:
            self._finish()

        try:
            graph = reshape_query_result(self.query_result.data)
        except ReshapeError as exc:
            logger.info("Query result not visualizable: %s", exc)
            if self._settle(generation):
                self.error = exc.message
            return False

        if not self._settle(generation):
            logger.info("Discarding stale query visualization (generation %d)", generation)
            return False
        self.active_preset = None
        self._apply(graph)
        self.close_query_console()
        self.error = None
        return True

    # ------------------------------------------------------------------
    # Authoring
    # ------------------------------------------------------------------

    async def create_vertex(self, label: str, *, type: str = "data_asset", properties=None) -> Optional[Vertex]:
        try:
            vertex = await self.client.create_vertex(label, type=type, properties=properties)
        except GraphFetchError as exc:
            logger.error("Error creating vertex: %s", exc)
            self.error = "Failed to create node"
            return None
        await self.refresh()
        return vertex

    async def create_edge(self, from_vertex_id: str, to_vertex_id: str, *, label: str = "connected", properties=None):
        try:
            edge = await self.client.create_edge(from_vertex_id, to_vertex_id, label=label, properties=properties)
        except GraphFetchError as exc:
            logger.error("Error creating edge: %s", exc)
            self.error = "Failed to create edge"
            return None
        await self.refresh()
        return edge

    # ------------------------------------------------------------------
    # Rendering surface passthroughs
    # ------------------------------------------------------------------

    def tap(self, element_id: Optional[str]) -> None:
        self.adapter.surface.engine.tap(element_id)

    def zoom_in(self) -> Optional[float]:
        if not self.adapter.surface.is_mounted:
            return None
        return self.adapter.zoom_in()

    def zoom_out(self) -> Optional[float]:
        if not self.adapter.surface.is_mounted:
            return None
        return self.adapter.zoom_out()

    def fit(self) -> None:
        if self.adapter.surface.is_mounted:
            self.adapter.fit()

    def dismiss_error(self) -> None:
        self.error = None

    def document(self) -> Optional[dict]:
        """Cytoscape.js document for the current snapshot, if one is mounted."""

        if not self.adapter.surface.is_mounted:
            return None
        return self.adapter.surface.engine.to_json()

    def close(self) -> None:
        self.adapter.surface.dispose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run_query(self, query: str, bindings: Optional[Mapping[str, Any]]) -> QueryResult:
        data = await self.client.execute_query(query, bindings)
        return QueryResult(
            query=query,
            data=data,
            result_count=queries.count_results(data),
            query_type=queries.classify_query(query),
            executed_at=datetime.now(timezone.utc),
        )

    def _fail_query(self, exc: EUnifyError) -> None:
        logger.error("Query execution error: %s", exc)
        self.error = f"Query Error: {exc.message or GENERIC_QUERY_ERROR}"
        self.query_result = None

    def _apply(self, graph: GraphData) -> None:
        self.graph = graph
        self.selection.clear()
        self.last_render = self.adapter.render(graph)

    def _begin(self) -> int:
        self._generation += 1
        self._pending += 1
        self.loading = True
        return self._generation

    def _finish(self) -> None:
        self._pending -= 1
        self.loading = self._pending > 0

    def _settle(self, generation: int) -> bool:
        """Record ``generation`` as settled; ``False`` if a newer action already settled."""

        if generation < self._settled_generation:
            return False
        self._settled_generation = generation
        return True

    def _on_node_selected(self, vertex: Vertex) -> None:
        self.selection.select_node(vertex)

    def _on_edge_selected(self, edge: Edge) -> None:
        self.selection.select_edge(edge)

    def _on_selection_cleared(self) -> None:
        self.selection.clear()


__all__ = ["GraphViewController"]
