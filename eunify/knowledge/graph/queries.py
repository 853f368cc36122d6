"""Gremlin query templates for E-Unify graph operations."""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

# Palette offered by the query console.
EXAMPLE_QUERIES: Tuple[Tuple[str, str], ...] = (
    ("Immigration cases", "g.V().hasLabel('immigration_case').limit(5).valueMap(true)"),
    ("Applicants", "g.V().hasLabel('applicant').limit(5).valueMap(true)"),
    ("Workflow steps", "g.V().hasLabel('workflow_step').limit(5).valueMap(true)"),
    (
        "USCIS offices",
        "g.V().hasLabel('geographic_location').has('location_type', 'USCIS Office').valueMap(true)",
    ),
    ("Policy impact", "g.V().hasLabel('policy_rule').out('affects').groupCount().by(label)"),
)

SEARCH_VERTICES = "g.V().has('{property}', '{value}').valueMap(true)"
VERTEX_BY_ID = "g.V('{vertex_id}').valueMap(true)"
VERTEX_NEIGHBORS = "g.V('{vertex_id}').both().valueMap(true)"
VERTEX_EDGES = "g.V('{vertex_id}').bothE().valueMap(true)"


def quote(value: str) -> str:
    """Escape a value for use inside a single-quoted Gremlin string literal."""

    return str(value).replace("\\", "\\\\").replace("'", "\\'")


def search_vertices_query(property_name: str, value: str) -> str:
    return SEARCH_VERTICES.format(property=quote(property_name), value=quote(value))


def neighborhood_queries(vertex_id: str) -> List[str]:
    vertex_id = quote(vertex_id)
    return [
        VERTEX_BY_ID.format(vertex_id=vertex_id),
        VERTEX_NEIGHBORS.format(vertex_id=vertex_id),
        VERTEX_EDGES.format(vertex_id=vertex_id),
    ]


def classify_query(query: str) -> str:
    if "groupCount" in query:
        return "Aggregation"
    if "path" in query:
        return "Path Traversal"
    if "valueMap" in query:
        return "Property Query"
    return "General Query"


def count_results(data: Any) -> int:
    if isinstance(data, list):
        return len(data)
    if isinstance(data, dict):
        return len(data)
    return 1


def first_value(row: Dict[str, Any], key: str) -> Any:
    value = row.get(key)
    if isinstance(value, list):
        return value[0] if value else None
    return value
