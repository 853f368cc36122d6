"""Vertex type to fill color mapping."""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Mapping

UNKNOWN_TYPE = "unknown"
UNKNOWN_COLOR = "#757575"

DEFAULT_TYPE_COLORS: Mapping[str, str] = MappingProxyType(
    {
        # Immigration case network
        "immigration_case": "#003366",
        "applicant": "#4caf50",
        "petitioner": "#2196f3",
        "beneficiary": "#8bc34a",
        "legal_representative": "#9c27b0",
        "document": "#ff9800",
        "uscis_system": "#795548",
        # Workflow and case management
        "workflow_step": "#e91e63",
        "uscis_personnel": "#00bcd4",
        # RNA advanced analytics
        "policy_rule": "#673ab7",
        "analytics_model": "#3f51b5",
        "trend_pattern": "#ff5722",
        "anomaly_detection": "#f44336",
        # Document and data lineage
        "data_source": "#607d8b",
        "data_transformation": "#ffc107",
        "audit_trail": "#795548",
        "quality_control": "#4caf50",
        # Personnel roles and access
        "access_role": "#9c27b0",
        "access_permission": "#e91e63",
        "access_session": "#ff5722",
        "compliance_review": "#2196f3",
        # Master data management
        "master_entity": "#00bcd4",
        "reference_data": "#4caf50",
        "data_standard": "#ff9800",
        "data_mapping": "#9e9e9e",
        # Automated governance and metadata
        "governance_policy": "#3f51b5",
        "metadata_element": "#8bc34a",
        "impact_analysis": "#ff5722",
        "governance_automation": "#795548",
        "policy_violation": "#f44336",
        # Geospatial
        "geographic_location": "#2e7d32",
        "spatial_analysis": "#1976d2",
        "geospatial_service": "#7b1fa2",
        # Generic data catalog types
        "data_asset": "#4caf50",
        "system": "#2196f3",
        "process": "#ff9800",
        "user": "#9c27b0",
        "database": "#795548",
        "table": "#607d8b",
        "application": "#e91e63",
        "service": "#00bcd4",
        UNKNOWN_TYPE: UNKNOWN_COLOR,
    }
)


class TypeStyleMap:
    """Total mapping from an open set of type tags to fill colors.

    Any tag missing from the table, including the empty string, resolves to
    ``default``. The table is read-only; use :meth:`extend` to derive a map with
    extra or overridden entries.
    """

    def __init__(self, colors: Mapping[str, str] = DEFAULT_TYPE_COLORS, *, default: str = UNKNOWN_COLOR) -> None:
        if not default:
            raise ValueError("default color must be a non-empty string")
        self._colors: Mapping[str, str] = MappingProxyType({key: value for key, value in colors.items() if value})
        self.default = default

    @property
    def colors(self) -> Mapping[str, str]:
        return self._colors

    def color_for(self, type_tag: str | None) -> str:
        if not type_tag:
            return self.default
        return self._colors.get(type_tag, self.default)

    def is_known(self, type_tag: str | None) -> bool:
        return bool(type_tag) and type_tag in self._colors

    def extend(self, overrides: Mapping[str, str] | None = None, **extra: str) -> "TypeStyleMap":
        merged: Dict[str, str] = dict(self._colors)
        merged.update(overrides or {})
        merged.update(extra)
        return TypeStyleMap(merged, default=self.default)


default_style_map = TypeStyleMap()


__all__ = ["DEFAULT_TYPE_COLORS", "TypeStyleMap", "UNKNOWN_COLOR", "default_style_map"]
