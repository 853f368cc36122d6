import asyncio

import httpx
import pytest

from eunify.core.exceptions import GraphFetchError, QueryExecutionError
from eunify.knowledge.graph.models import GraphData, GraphStatistics, Vertex
from eunify.knowledge.graph.presets import Preset
from eunify.knowledge.graph.reshape import NOT_A_LIST_MESSAGE
from eunify.visualization.state import GraphViewController


def _graph(*ids: str) -> GraphData:
    return GraphData(nodes=[Vertex(id=node_id, label=node_id, type="applicant") for node_id in ids])


class StubGraphClient:
    """Client whose preset responses are released explicitly by the test."""

    def __init__(self) -> None:
        self.gates = {}
        self.results = {}
        self.query_result = []

    async def fetch_preset(self, preset):
        gate = self.gates.get(preset)
        if gate is not None:
            await gate.wait()
        result = self.results.get(preset, _graph("default"))
        if isinstance(result, Exception):
            raise result
        return result

    async def execute_query(self, query, bindings=None):
        if isinstance(self.query_result, Exception):
            raise self.query_result
        return self.query_result

    async def get_statistics(self):
        return GraphStatistics(vertex_count=1, edge_count=0)

    async def get_status(self):
        raise GraphFetchError(error_code="DOWN", message="down")


@pytest.fixture
def stub_client():
    return StubGraphClient()


@pytest.fixture
def controller(stub_client):
    view = GraphViewController(stub_client)  # type: ignore[arg-type]
    yield view
    view.close()


@pytest.mark.asyncio
async def test_preset_load_replaces_graph(controller, stub_client):
    stub_client.results[Preset.FULL_GRAPH] = _graph("old-1", "old-2")
    stub_client.results[Preset.NETWORK] = _graph("new-1")

    assert await controller.load_preset(Preset.FULL_GRAPH)
    assert await controller.load_preset(Preset.NETWORK)

    assert [node.id for node in controller.graph.nodes] == ["new-1"]
    element_ids = [element["data"]["id"] for element in controller.document()["elements"]]
    assert element_ids == ["new-1"]
    assert controller.active_preset is Preset.NETWORK
    assert controller.loading is False


@pytest.mark.asyncio
async def test_failed_preset_keeps_previous_graph(controller, stub_client):
    stub_client.results[Preset.FULL_GRAPH] = _graph("kept")
    stub_client.results[Preset.FRAUD_DETECTION] = GraphFetchError(error_code="X", message="boom")

    await controller.load_preset(Preset.FULL_GRAPH)
    applied = await controller.load_preset(Preset.FRAUD_DETECTION)

    assert applied is False
    assert controller.error == "Failed to load fraud detection"
    assert [node.id for node in controller.graph.nodes] == ["kept"]
    assert controller.loading is False


@pytest.mark.asyncio
async def test_next_success_clears_banner(controller, stub_client):
    stub_client.results[Preset.GEOSPATIAL_DATA] = GraphFetchError(error_code="X", message="boom")
    await controller.load_preset(Preset.GEOSPATIAL_DATA)
    assert controller.error == "Failed to load geospatial data"

    await controller.load_preset(Preset.FULL_GRAPH)
    assert controller.error is None


@pytest.mark.asyncio
async def test_stale_response_is_discarded(controller, stub_client):
    stub_client.gates[Preset.IMMIGRATION_CASE_NETWORK] = asyncio.Event()
    stub_client.gates[Preset.FRAUD_DETECTION] = asyncio.Event()
    stub_client.results[Preset.IMMIGRATION_CASE_NETWORK] = _graph("case-network")
    stub_client.results[Preset.FRAUD_DETECTION] = _graph("fraud")

    case_task = asyncio.create_task(controller.load_preset(Preset.IMMIGRATION_CASE_NETWORK))
    fraud_task = asyncio.create_task(controller.load_preset(Preset.FRAUD_DETECTION))
    await asyncio.sleep(0)
    assert controller.loading is True

    stub_client.gates[Preset.FRAUD_DETECTION].set()
    assert await fraud_task is True
    assert controller.loading is True

    stub_client.gates[Preset.IMMIGRATION_CASE_NETWORK].set()
    assert await case_task is False
    assert controller.loading is False

    assert [node.id for node in controller.graph.nodes] == ["fraud"]
    assert controller.active_preset is Preset.FRAUD_DETECTION


@pytest.mark.asyncio
async def test_raw_query_keeps_loading_while_preset_is_pending(controller, stub_client):
    stub_client.gates[Preset.FRAUD_DETECTION] = asyncio.Event()
    stub_client.results[Preset.FRAUD_DETECTION] = _graph("fraud")
    stub_client.query_result = [{"id": "a", "label": "b"}]

    load_task = asyncio.create_task(controller.load_preset(Preset.FRAUD_DETECTION))
    await asyncio.sleep(0)
    await controller.execute_query("g.V().limit(1)")

    assert controller.loading is True

    stub_client.gates[Preset.FRAUD_DETECTION].set()
    assert await load_task is True
    assert controller.loading is False
    assert [node.id for node in controller.graph.nodes] == ["fraud"]


@pytest.mark.asyncio
async def test_edges_without_endpoints_are_dropped(graph_client, backend):
    backend.fail_paths["/graph"] = httpx.Response(
        200,
        json={
            "success": True,
            "data": {
                "nodes": [{"id": "a", "label": "Case", "type": "immigration_case"}],
                "edges": [{"id": "e1", "label": "filed_by", "type": "relationship"}],
            },
        },
    )
    controller = GraphViewController(graph_client)

    assert await controller.load_preset(Preset.FULL_GRAPH) is True

    assert controller.error is None
    assert controller.last_render.edge_count == 0
    assert controller.last_render.dropped_edge_ids == ["e1"]
    controller.close()


@pytest.mark.asyncio
async def test_malformed_payload_keeps_previous_graph(graph_client, backend):
    view = GraphViewController(graph_client)
    await view.load_preset(Preset.FULL_GRAPH)
    backend.fail_paths["/graph"] = httpx.Response(200, json={"success": True, "data": {"nodes": [{"label": "no id"}]}})

    assert await view.load_preset(Preset.NETWORK) is False

    assert view.error == "Failed to load network graph"
    assert len(view.graph.nodes) == 4
    view.close()


@pytest.mark.asyncio
async def test_execute_and_visualize_replaces_graph(controller, stub_client):
    stub_client.query_result = [{"id": "v1", "label": "Case", "status": ["Open"]}, {"foo": "bar"}]
    await controller.load_preset(Preset.FULL_GRAPH)
    controller.open_query_console()

    applied = await controller.execute_and_visualize("g.V().valueMap(true)")

    assert applied is True
    assert controller.query_console_open is False
    assert [node.id for node in controller.graph.nodes] == ["v1"]
    assert controller.graph.nodes[0].properties == {"status": "Open"}
    assert controller.query_result.query_type == "Property Query"
    assert controller.active_preset is None


@pytest.mark.asyncio
async def test_unvisualizable_result_keeps_graph(controller, stub_client):
    stub_client.results[Preset.FULL_GRAPH] = _graph("kept")
    stub_client.query_result = {}
    await controller.load_preset(Preset.FULL_GRAPH)
    controller.open_query_console()

    applied = await controller.execute_and_visualize("g.V().count()")

    assert applied is False
    assert controller.error == NOT_A_LIST_MESSAGE
    assert controller.query_console_open is True
    assert [node.id for node in controller.graph.nodes] == ["kept"]


@pytest.mark.asyncio
async def test_query_failure_sets_banner_and_clears_result(controller, stub_client):
    stub_client.query_result = [{"id": "a", "label": "b"}]
    await controller.execute_query("g.V()")
    assert controller.query_result is not None

    stub_client.query_result = QueryExecutionError(error_code="E", message="Gremlin query is required")
    result = await controller.execute_query("")

    assert result is None
    assert controller.query_result is None
    assert controller.error == "Query Error: Gremlin query is required"
    assert controller.loading is False


@pytest.mark.asyncio
async def test_query_metadata(controller, stub_client):
    stub_client.query_result = {"applicant": 3, "document": 2}

    result = await controller.execute_query("g.V().groupCount().by(label)")

    assert result.result_count == 2
    assert result.query_type == "Aggregation"


@pytest.mark.asyncio
async def test_selection_follows_taps(controller, stub_client):
    stub_client.results[Preset.FULL_GRAPH] = _graph("a", "b")
    await controller.load_preset(Preset.FULL_GRAPH)

    controller.tap("a")
    assert controller.selection.node.id == "a"
    controller.tap(None)
    assert controller.selection.node is None and controller.selection.edge is None


@pytest.mark.asyncio
async def test_new_dataset_clears_selection(controller, stub_client):
    await controller.load_preset(Preset.FULL_GRAPH)
    controller.tap("default")
    assert controller.selection.node is not None

    await controller.load_preset(Preset.NETWORK)
    assert controller.selection.node is None


@pytest.mark.asyncio
async def test_status_failure_is_surfaced(controller):
    status = await controller.load_connection_status()

    assert status is None
    assert controller.error == "Failed to load connection status"

    controller.dismiss_error()
    assert controller.error is None


def test_camera_commands_before_render_are_noops(controller):
    assert controller.zoom_in() is None
    assert controller.zoom_out() is None
    controller.fit()
    assert controller.document() is None


@pytest.mark.asyncio
async def test_refresh_against_rest_backend(graph_client, backend):
    controller = GraphViewController(graph_client)

    await controller.initialize()

    assert controller.connection_status.mock_mode is True
    assert controller.statistics.vertex_count == 4
    assert controller.last_render.dropped_edge_ids == ["e-dangling"]
    assert backend.paths()[:2] == ["/status", "/graph"]
    controller.close()


@pytest.mark.asyncio
async def test_create_vertex_failure(graph_client, backend):
    backend.fail_paths["/vertex"] = httpx.Response(500, json={"success": False, "message": "nope"})
    controller = GraphViewController(graph_client)

    assert await controller.create_vertex("Case DB") is None
    assert controller.error == "Failed to create node"
