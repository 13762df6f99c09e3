# ============================================================================
# triage/cortex/__init__.py
# Correlation layer: derives the temporal/attribution graph from the feed.
# ============================================================================

from triage.cortex.correlation_graph import (
    AttributionCluster,
    CorrelationGraph,
    CorrelationGraphBuilder,
    EdgeType,
    GraphEdge,
    GraphNode,
)

__all__ = [
    "AttributionCluster",
    "CorrelationGraph",
    "CorrelationGraphBuilder",
    "EdgeType",
    "GraphEdge",
    "GraphNode",
]
