"""Cytoscape.js render adapter and rendering surface lifecycle.

The rendering engine itself lives in the browser. :class:`CytoscapeSession`
holds the document handed to ``cytoscape({...})`` together with the camera and
selection state, and replays the taps the browser relays back. A
:class:`RenderSurface` owns at most one session at a time and always disposes
the previous one before a new dataset is mounted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from eunify.core.exceptions import RenderSurfaceError
from eunify.knowledge.graph.integrity import IntegrityReport, filter_valid_edges
from eunify.knowledge.graph.models import Edge, GraphData, Vertex
from eunify.knowledge.graph.styles import TypeStyleMap, default_style_map

logger = logging.getLogger(__name__)

Element = Dict[str, Any]
Stylesheet = List[Dict[str, Any]]
Layout = Dict[str, Any]

PRIMARY_COLOR = "#003366"
HIGHLIGHT_COLOR = "#ff6b35"
COLOR_FIELD = "typeColor"

ZOOM_IN_FACTOR = 1.2
ZOOM_OUT_FACTOR = 0.8

NODE_RESERVED = ("id", "label", "type")
EDGE_RESERVED = ("id", "source", "target", "label", "type")


@dataclass
class TapEvent:
    """A tap relayed from the browser; ``kind`` is ``nodes``, ``edges`` or ``core``."""

    kind: str
    target: Optional[Element] = None

    @property
    def data(self) -> Dict[str, Any]:
        return dict((self.target or {}).get("data", {}))


TapHandler = Callable[[TapEvent], None]


class RenderingEngine(Protocol):
    destroyed: bool

    def on(self, event: str, selector: Optional[str], handler: TapHandler) -> None: ...

    def run_layout(self, layout: Layout) -> None: ...

    def zoom(self, level: Optional[float] = None) -> float: ...

    def fit(self) -> None: ...

    def tap(self, element_id: Optional[str]) -> TapEvent: ...

    def destroy(self) -> None: ...

    def to_json(self) -> Dict[str, Any]: ...


EngineFactory = Callable[[List[Element], Stylesheet, Layout], RenderingEngine]


class CytoscapeSession:
    """Server-side handle for one Cytoscape.js instance."""

    def __init__(self, elements: List[Element], style: Stylesheet, layout: Layout) -> None:
        self.elements = elements
        self.style = style
        self.layout: Optional[Layout] = None
        self.zoom_level = 1.0
        self.fit_requested = False
        self.selected_id: Optional[str] = None
        self.destroyed = False
        self._handlers: List[Tuple[str, Optional[str], TapHandler]] = []
        self._index = {element["data"]["id"]: element for element in elements}
        self._initial_layout = layout

    def on(self, event: str, selector: Optional[str], handler: TapHandler) -> None:
        self._ensure_alive()
        self._handlers.append((event, selector, handler))

    def run_layout(self, layout: Optional[Layout] = None) -> None:
        self._ensure_alive()
        self.layout = dict(layout or self._initial_layout)

    def zoom(self, level: Optional[float] = None) -> float:
        self._ensure_alive()
        if level is not None:
            self.zoom_level = level
            self.fit_requested = False
        return self.zoom_level

    def fit(self) -> None:
        self._ensure_alive()
        self.fit_requested = True

    def tap(self, element_id: Optional[str]) -> TapEvent:
        """Dispatch a tap on an element id, or on the empty canvas when ``None``."""

        self._ensure_alive()
        if element_id is None:
            event = TapEvent(kind="core")
            self.selected_id = None
        else:
            element = self._index.get(element_id)
            if element is None:
                raise RenderSurfaceError(
                    error_code="UNKNOWN_ELEMENT",
                    message=f"No rendered element with id '{element_id}'",
                )
            event = TapEvent(kind=element["group"], target=element)
            self.selected_id = element_id

        for name, selector, handler in list(self._handlers):
            if name == "tap" and selector in (None, event.kind):
                handler(event)
        return event

    def destroy(self) -> None:
        self._handlers.clear()
        self.destroyed = True

    def to_json(self) -> Dict[str, Any]:
        elements = []
        for element in self.elements:
            rendered = {"group": element["group"], "data": dict(element["data"])}
            if element["data"]["id"] == self.selected_id:
                rendered["selected"] = True
            elements.append(rendered)
        return {
            "elements": elements,
            "style": self.style,
            "layout": self.layout or self._initial_layout,
            "zoom": self.zoom_level,
            "fit": self.fit_requested,
        }

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    def _ensure_alive(self) -> None:
        if self.destroyed:
            raise RenderSurfaceError(error_code="ENGINE_DESTROYED", message="Rendering engine was destroyed")


class RenderSurface:
    """Display surface owning a single rendering-engine instance."""

    def __init__(self, factory: EngineFactory = CytoscapeSession) -> None:
        self._factory = factory
        self._engine: Optional[RenderingEngine] = None

    @property
    def engine(self) -> RenderingEngine:
        if self._engine is None:
            raise RenderSurfaceError(error_code="NO_ENGINE", message="Nothing has been rendered yet")
        return self._engine

    @property
    def is_mounted(self) -> bool:
        return self._engine is not None

    def mount(self, elements: List[Element], style: Stylesheet, layout: Layout) -> RenderingEngine:
        """Tear down the current engine, then create a fresh one for ``elements``."""

        self.dispose()
        self._engine = self._factory(elements, style, layout)
        return self._engine

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.destroy()
            self._engine = None


@dataclass
class SelectionListener:
    on_node_selected: Callable[[Vertex], None]
    on_edge_selected: Callable[[Edge], None]
    on_cleared: Callable[[], None]


@dataclass
class RenderResult:
    engine: RenderingEngine
    integrity: IntegrityReport
    node_count: int = 0
    edge_count: int = 0
    dropped_edge_ids: List[str] = field(default_factory=list)


class RenderAdapter:
    """Converts validated graph snapshots into Cytoscape.js documents."""

    def __init__(
        self,
        style_map: TypeStyleMap = default_style_map,
        surface: Optional[RenderSurface] = None,
        listener: Optional[SelectionListener] = None,
    ) -> None:
        self.style_map = style_map
        self.surface = surface or RenderSurface()
        self.listener = listener

    def build_elements(self, nodes: List[Vertex], edges: List[Edge]) -> List[Element]:
        elements: List[Element] = []
        for node in nodes:
            data = {key: value for key, value in node.properties.items() if key not in NODE_RESERVED}
            data.update(id=node.id, label=node.label, type=node.type)
            data[COLOR_FIELD] = self.style_map.color_for(node.type)
            elements.append({"group": "nodes", "data": data})
        for edge in edges:
            data = {key: value for key, value in edge.properties.items() if key not in EDGE_RESERVED}
            data.update(id=edge.id, source=edge.source, target=edge.target, label=edge.label, type=edge.type)
            elements.append({"group": "edges", "data": data})
        return elements

    def build_stylesheet(self) -> Stylesheet:
        return [
            {
                "selector": "node",
                "style": {
                    "shape": "roundrectangle",
                    "background-color": f"data({COLOR_FIELD})",
                    "label": "data(label)",
                    "text-valign": "center",
                    "text-halign": "center",
                    "color": "#ffffff",
                    "font-size": "14px",
                    "font-weight": "bold",
                    "width": 120,
                    "height": 80,
                    "border-width": 3,
                    "border-color": PRIMARY_COLOR,
                    "text-wrap": "wrap",
                    "text-max-width": "110px",
                    "text-outline-width": 1,
                    "text-outline-color": "#000000",
                    "text-outline-opacity": 0.3,
                },
            },
            {
                "selector": "node:selected",
                "style": {
                    "border-width": 5,
                    "border-color": HIGHLIGHT_COLOR,
                    "background-color": HIGHLIGHT_COLOR,
                    "text-outline-width": 2,
                    "text-outline-opacity": 0.5,
                },
            },
            {
                "selector": "edge",
                "style": {
                    "width": 3,
                    "line-color": PRIMARY_COLOR,
                    "target-arrow-color": PRIMARY_COLOR,
                    "target-arrow-shape": "triangle",
                    "curve-style": "bezier",
                    "label": "data(label)",
                    "font-size": "10px",
                    "color": PRIMARY_COLOR,
                    "text-rotation": "autorotate",
                    "text-margin-y": -10,
                },
            },
            {
                "selector": "edge:selected",
                "style": {
                    "width": 5,
                    "line-color": HIGHLIGHT_COLOR,
                    "target-arrow-color": HIGHLIGHT_COLOR,
                    "color": HIGHLIGHT_COLOR,
                },
            },
        ]

    def build_layout(self) -> Layout:
        return {
            "name": "breadthfirst",
            "directed": True,
            "padding": 80,
            "spacingFactor": 2.0,
            "nodeDimensionsIncludeLabels": True,
        }

    def render(self, graph: GraphData) -> RenderResult:
        """Filter, style and mount ``graph`` on a freshly created engine."""

        integrity = filter_valid_edges(graph.nodes, graph.edges)
        elements = self.build_elements(graph.nodes, integrity.edges)
        layout = self.build_layout()

        engine = self.surface.mount(elements, self.build_stylesheet(), layout)
        self._bind_handlers(engine, graph.nodes, integrity.edges)
        engine.run_layout(layout)

        logger.debug(
            "Rendered %d nodes and %d edges (%d dropped)",
            len(graph.nodes),
            len(integrity.edges),
            len(integrity.dropped),
        )
        return RenderResult(
            engine=engine,
            integrity=integrity,
            node_count=len(graph.nodes),
            edge_count=len(integrity.edges),
            dropped_edge_ids=[dropped.edge_id for dropped in integrity.dropped],
        )

    def zoom_in(self) -> float:
        engine = self.surface.engine
        return engine.zoom(engine.zoom() * ZOOM_IN_FACTOR)

    def zoom_out(self) -> float:
        engine = self.surface.engine
        return engine.zoom(engine.zoom() * ZOOM_OUT_FACTOR)

    def fit(self) -> None:
        self.surface.engine.fit()

    def _bind_handlers(self, engine: RenderingEngine, nodes: List[Vertex], edges: List[Edge]) -> None:
        listener = self.listener
        if listener is None:
            return

        vertices = {node.id: node for node in nodes}
        relationships = {edge.id: edge for edge in edges}

        def on_node(event: TapEvent) -> None:
            listener.on_node_selected(vertices[event.data["id"]])

        def on_edge(event: TapEvent) -> None:
            listener.on_edge_selected(relationships[event.data["id"]])

        def on_canvas(event: TapEvent) -> None:
            if event.kind == "core":
                listener.on_cleared()

        engine.on("tap", "nodes", on_node)
        engine.on("tap", "edges", on_edge)
        engine.on("tap", None, on_canvas)


__all__ = [
    "CytoscapeSession",
    "RenderAdapter",
    "RenderResult",
    "RenderSurface",
    "RenderingEngine",
    "SelectionListener",
    "TapEvent",
]
