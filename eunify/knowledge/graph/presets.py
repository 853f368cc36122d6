"""Named analytical graph views."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional

from eunify.knowledge.graph.models import GraphData


class Preset(str, Enum):
    FULL_GRAPH = "full_graph"
    IMMIGRATION_CASE_NETWORK = "immigration_case_network"
    WORKFLOW_CASE_MANAGEMENT = "workflow_case_management"
    RNA_ADVANCED_ANALYTICS = "rna_advanced_analytics"
    DOCUMENT_DATA_LINEAGE = "document_data_lineage"
    PERSONNEL_ROLES_ACCESS = "personnel_roles_access"
    MASTER_DATA_MANAGEMENT = "master_data_management"
    AUTOMATED_GOVERNANCE = "automated_governance"
    GEOSPATIAL_DATA = "geospatial_data"
    DATA_LINEAGE = "data_lineage"
    NETWORK = "network"
    IMPACT_ANALYSIS = "impact_analysis"
    FRAUD_DETECTION = "fraud_detection"
    INTELLIGENT_ROUTING = "intelligent_routing"
    PREDICTIVE_ANALYTICS = "predictive_analytics"


@dataclass(frozen=True)
class GraphScope:
    """Subset of the full graph kept by a scoped preset."""

    node_types: FrozenSet[str]
    edge_labels: FrozenSet[str]

    def apply(self, graph: GraphData) -> GraphData:
        nodes = [node for node in graph.nodes if node.type in self.node_types]
        node_ids = {node.id for node in nodes}
        edges = [
            edge
            for edge in graph.edges
            if edge.label in self.edge_labels and edge.source in node_ids and edge.target in node_ids
        ]
        return GraphData(nodes=nodes, edges=edges)


@dataclass(frozen=True)
class PresetDefinition:
    preset: Preset
    title: str
    scope: Optional[GraphScope] = None

    @property
    def failure_message(self) -> str:
        return f"Failed to load {self.title.lower()}"


def _scope(node_types: str, edge_labels: str) -> GraphScope:
    return GraphScope(frozenset(node_types.split()), frozenset(edge_labels.split()))


PRESETS: Dict[Preset, PresetDefinition] = {
    definition.preset: definition
    for definition in (
        PresetDefinition(Preset.FULL_GRAPH, "Graph data"),
        PresetDefinition(
            Preset.IMMIGRATION_CASE_NETWORK,
            "Immigration case network",
            _scope(
                "immigration_case applicant petitioner beneficiary legal_representative document uscis_system",
                "filed_by married_to sibling_of petitioned_by benefits represents owns holds requires "
                "processes processed",
            ),
        ),
        PresetDefinition(
            Preset.WORKFLOW_CASE_MANAGEMENT,
            "Workflow case management",
            _scope(
                "immigration_case workflow_step uscis_personnel uscis_system",
                "precedes currently_at assigned_to processes processed",
            ),
        ),
        PresetDefinition(
            Preset.RNA_ADVANCED_ANALYTICS,
            "RNA advanced analytics",
            _scope(
                "immigration_case policy_rule analytics_model trend_pattern anomaly_detection "
                "legal_representative workflow_step",
                "affects predicts monitors influences impacts detected_in flagged correlates_with generated "
                "filed_by represents precedes",
            ),
        ),
        PresetDefinition(
            Preset.DOCUMENT_DATA_LINEAGE,
            "Document data lineage",
            _scope(
                "document data_source data_transformation audit_trail quality_control immigration_case "
                "uscis_system applicant",
                "feeds_into processed_by flows_to enriches tracks monitors logs_activity validates "
                "supports_foia background_check owns holds requires",
            ),
        ),
        PresetDefinition(
            Preset.PERSONNEL_ROLES_ACCESS,
            "Personnel roles access",
            _scope(
                "uscis_personnel access_role access_permission access_session compliance_review uscis_system "
                "immigration_case",
                "has_permission assigned_role performed_by accessed_system accessed_case reviewed reviewed_role "
                "grants_access assigned_to",
            ),
        ),
        PresetDefinition(
            Preset.MASTER_DATA_MANAGEMENT,
            "Master data management",
            _scope(
                "master_entity reference_data data_standard data_mapping uscis_system immigration_case applicant",
                "implemented_in validates categorizes governs maps_to source_system target_system uses_reference",
            ),
        ),
        PresetDefinition(
            Preset.AUTOMATED_GOVERNANCE,
            "Automated governance",
            _scope(
                "governance_policy metadata_element impact_analysis governance_automation policy_violation "
                "uscis_system workflow_step master_entity",
                "enforced_in describes analyzes triggered_by classifies enforces violates detected_in governs "
                "impacts",
            ),
        ),
        PresetDefinition(
            Preset.GEOSPATIAL_DATA,
            "Geospatial data",
            _scope(
                "geographic_location spatial_analysis geospatial_service immigration_case applicant uscis_personnel",
                "processed_at born_in resides_in analyzes optimizes_routing_to routed migration_corridor "
                "stationed_at",
            ),
        ),
        PresetDefinition(
            Preset.DATA_LINEAGE,
            "Data lineage",
            _scope("data_asset system process database table", "contains processed_by produces flows_to derived_from"),
        ),
        PresetDefinition(
            Preset.NETWORK,
            "Network graph",
            _scope("user system application service", "connects_to uses depends_on communicates_with"),
        ),
        PresetDefinition(Preset.IMPACT_ANALYSIS, "Impact analysis"),
        PresetDefinition(Preset.FRAUD_DETECTION, "Fraud detection"),
        PresetDefinition(Preset.INTELLIGENT_ROUTING, "Intelligent routing"),
        PresetDefinition(Preset.PREDICTIVE_ANALYTICS, "Predictive analytics"),
    )
}


def get_preset(preset: Preset | str) -> PresetDefinition:
    return PRESETS[Preset(preset)]


__all__ = ["GraphScope", "PRESETS", "Preset", "PresetDefinition", "get_preset"]
