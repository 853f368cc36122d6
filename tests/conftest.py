import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from eunify.knowledge.graph.client import GraphServiceClient

GRAPH_PAYLOAD: Dict[str, Any] = {
    "nodes": [
        {"id": "case-1", "label": "N-400 Case", "type": "immigration_case", "properties": {"status": "Open"}},
        {"id": "applicant-1", "label": "John Doe", "type": "applicant", "properties": {"country": "Mexico"}},
        {"id": "step-1", "label": "Intake", "type": "workflow_step", "properties": {}},
        {"id": "asset-1", "label": "Case DB", "type": "data_asset"},
    ],
    "edges": [
        {"id": "e-filed", "source": "case-1", "target": "applicant-1", "label": "filed_by", "type": "relationship"},
        {"id": "e-step", "source": "case-1", "target": "step-1", "label": "currently_at", "type": "workflow"},
        {"id": "e-dangling", "source": "case-1", "target": "missing-9", "label": "filed_by", "type": "relationship"},
    ],
}

FRAUD_PAYLOAD: Dict[str, Any] = {
    "detectionSummary": {"highRiskCases": 12},
    "nodes": [
        {"id": "ring-1", "label": "Suspicious Attorney Network", "type": "anomaly_detection"},
        {"id": "case-7", "label": "I-130 Case", "type": "immigration_case"},
    ],
    "edges": [{"id": "f-1", "source": "ring-1", "target": "case-7", "label": "flagged", "type": "fraud"}],
}

STATUS_PAYLOAD = {
    "connected": False,
    "mockMode": True,
    "gremlinUrl": "ws://localhost:8182/gremlin",
    "timestamp": "2025-01-01T00:00:00Z",
}

QUERY_ROWS: List[Dict[str, Any]] = [
    {"id": "case-n400-001", "label": "immigration_case", "form_type": ["N-400"], "status": ["Under Review"]},
    {"id": "case-i485-002", "label": "immigration_case", "form_type": ["I-485"], "status": ["Interview Scheduled"]},
]


def envelope(data: Any, **extra: Any) -> httpx.Response:
    return httpx.Response(200, json={"success": True, "data": data, **extra})


class FakeGraphBackend:
    """In-process stand-in for the graph REST service."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.query_response: Callable[[str], httpx.Response] = lambda query: envelope(QUERY_ROWS)
        self.fail_paths: Dict[str, httpx.Response] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.split("/janusgraph", 1)[-1]
        if path in self.fail_paths:
            return self.fail_paths[path]
        if path == "/status":
            return envelope(STATUS_PAYLOAD)
        if path == "/graph":
            return envelope(GRAPH_PAYLOAD, message="Mock data - JanusGraph not connected")
        if path == "/vertices":
            return envelope(GRAPH_PAYLOAD["nodes"])
        if path == "/edges":
            return envelope(GRAPH_PAYLOAD["edges"])
        if path == "/fraud-detection":
            return envelope(FRAUD_PAYLOAD)
        if path.startswith("/impact-analysis/"):
            return envelope({"nodes": GRAPH_PAYLOAD["nodes"][:2], "edges": GRAPH_PAYLOAD["edges"][:1]})
        if path in ("/intelligent-routing", "/predictive-analytics"):
            return envelope({"nodes": GRAPH_PAYLOAD["nodes"][:1], "edges": []})
        if path == "/query":
            body = json.loads(request.content)
            return self.query_response(body["query"])
        if path == "/vertex":
            body = json.loads(request.content)
            return envelope({"id": "v-new", "label": body["label"], "type": body["properties"]["type"], "properties": {}})
        if path == "/edge":
            body = json.loads(request.content)
            return envelope(
                {
                    "id": "e-new",
                    "source": body["fromVertexId"],
                    "target": body["toVertexId"],
                    "label": body["label"],
                    "type": "relationship",
                }
            )
        return httpx.Response(404, json={"success": False, "message": "Not found"})

    def paths(self) -> List[str]:
        return [request.url.path.split("/janusgraph", 1)[-1] for request in self.requests]


@pytest.fixture
def backend() -> FakeGraphBackend:
    return FakeGraphBackend()


@pytest.fixture
def http_client(backend: FakeGraphBackend) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(backend))


@pytest.fixture
def graph_client(http_client: httpx.AsyncClient) -> GraphServiceClient:
    return GraphServiceClient(client=http_client)
