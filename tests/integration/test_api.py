import httpx
import pytest
from fastapi.testclient import TestClient

from eunify.api.main import app
from eunify.knowledge.graph.client import GraphServiceClient
from eunify.visualization.manager import view_manager
from eunify.visualization.state import GraphViewController


@pytest.fixture
def api(backend):
    view_manager.client = GraphServiceClient(client=httpx.AsyncClient(transport=httpx.MockTransport(backend)))
    view_manager.controller = GraphViewController(view_manager.client)
    with TestClient(app) as client:
        yield client
    assert view_manager.controller is None


def test_health(api):
    response = api.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_connection_status(api):
    body = api.get("/api/v1/graph/status").json()

    assert body["mock_mode"] is True
    assert body["description"].startswith("Mock mode")


def test_presets_listing(api):
    presets = api.get("/api/v1/graph/presets").json()

    names = [preset["name"] for preset in presets]
    assert len(names) == 15
    assert "fraud_detection" in names
    scoped = {preset["name"]: preset["scoped"] for preset in presets}
    assert scoped["immigration_case_network"] is True
    assert scoped["fraud_detection"] is False


def test_load_preset_returns_cytoscape_document(api):
    body = api.post("/api/v1/graph/presets/full_graph/load").json()

    assert body["applied"] is True
    assert body["loading"] is False
    assert body["node_count"] == 4
    assert body["edge_count"] == 2
    assert body["dropped_edges"] == ["e-dangling"]
    assert body["document"]["layout"]["name"] == "breadthfirst"
    element_ids = {element["data"]["id"] for element in body["document"]["elements"]}
    assert "e-dangling" not in element_ids


def test_unknown_preset_is_404(api):
    response = api.post("/api/v1/graph/presets/not-a-preset/load")

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_failed_preset_keeps_graph_and_shows_banner(api, backend):
    api.post("/api/v1/graph/presets/full_graph/load")
    backend.fail_paths["/fraud-detection"] = httpx.Response(500, json={"success": False, "message": "boom"})

    body = api.post("/api/v1/graph/presets/fraud_detection/load").json()

    assert body["applied"] is False
    assert body["error"] == "Failed to load fraud detection"
    assert body["node_count"] == 4
    assert body["active_preset"] == "full_graph"

    cleared = api.delete("/api/v1/graph/view/error").json()
    assert cleared["error"] is None


def test_tap_selects_node_and_edge(api):
    api.post("/api/v1/graph/presets/full_graph/load")

    node_view = api.post("/api/v1/graph/view/tap", json={"element_id": "case-1"}).json()
    assert node_view["selection"]["node"]["id"] == "case-1"
    assert node_view["selection"]["edge"] is None

    edge_view = api.post("/api/v1/graph/view/tap", json={"element_id": "e-filed"}).json()
    assert edge_view["selection"]["edge"]["id"] == "e-filed"
    assert edge_view["selection"]["node"] is None

    cleared = api.post("/api/v1/graph/view/tap", json={}).json()
    assert cleared["selection"] == {"node": None, "edge": None}

    missing = api.post("/api/v1/graph/view/tap", json={"element_id": "ghost"})
    assert missing.status_code == 404


def test_camera_commands(api):
    api.post("/api/v1/graph/presets/full_graph/load")

    body = api.post("/api/v1/graph/view/zoom-in").json()
    assert body["document"]["zoom"] == pytest.approx(1.2)
    body = api.post("/api/v1/graph/view/fit").json()
    assert body["document"]["fit"] is True


def test_execute_query(api):
    body = api.post("/api/v1/graph/query/execute", json={"query": "g.V().valueMap(true)"}).json()

    assert body["error"] is None
    assert body["result"]["result_count"] == 2
    assert body["result"]["query_type"] == "Property Query"


def test_empty_query_is_rejected(api):
    response = api.post("/api/v1/graph/query/execute", json={"query": "   "})

    assert response.status_code == 422


def test_visualize_query(api):
    body = api.post("/api/v1/graph/query/visualize", json={"query": "g.V().valueMap(true)"}).json()

    assert body["applied"] is True
    assert body["query_console_open"] is False
    assert body["active_preset"] is None
    assert body["node_count"] == 2
    types = {element["data"]["type"] for element in body["document"]["elements"]}
    assert types == {"immigration_case"}


def test_query_error_banner(api, backend):
    backend.query_response = lambda query: httpx.Response(
        400, json={"success": False, "message": "Query contains potentially dangerous operations"}
    )

    body = api.post("/api/v1/graph/query/execute", json={"query": "g.V().drop()"}).json()

    assert body["result"] is None
    assert body["error"] == "Query Error: Query contains potentially dangerous operations"


def test_statistics(api):
    body = api.get("/api/v1/graph/statistics").json()

    assert body["vertex_count"] == 4
    assert body["edge_types"] == {"relationship": 2, "workflow": 1}


def test_example_queries(api):
    examples = api.get("/api/v1/graph/query/examples").json()

    assert len(examples) == 5
    assert all(example["query"].startswith("g.") for example in examples)


def test_create_vertex_refreshes_view(api, backend):
    response = api.post("/api/v1/graph/vertices", json={"label": "Case DB", "type": "database"})

    assert response.status_code == 201
    assert response.json()["id"] == "v-new"
    assert backend.paths()[0] == "/vertex"
    assert set(backend.paths()[1:]) == {"/graph", "/vertices", "/edges"}


def test_metrics_endpoint(api):
    api.get("/health")
    response = api.get("/metrics")

    assert response.status_code == 200
    assert "eunify_http_requests_total" in response.text
