"""
Correlation Graph - Temporal Chain + Attribution Clusters

PURPOSE:
Turn the flat evidence feed into something an analyst can read as a story:
which artifact came after which, and which artifacts point at the same actor.

KEY CONCEPTS:
- **Temporal Edge**: artifact -> its immediate chronological successor.
  One chain, n-1 edges; approximates a kill-chain timeline.
- **Attribution Edge**: undirected link between two artifacts attributed to
  the same known actor, both with confidence strictly above the threshold.
- **Attribution Cluster**: connected component of attribution edges.

DESIGN:
The graph is derived state. It is rebuilt from scratch on every read and
never diffed; the artifact cap keeps that cheap. Attribution edges are found
by grouping artifacts per actor and linking every pair inside a group, which
is exactly the pairwise rule without scanning unrelated pairs.

DETERMINISM:
Input is sorted by (timestamp, id) first, so any permutation of the same
artifact set yields the same nodes, edges and clusters.
"""

import itertools
import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Tuple

import networkx as nx

from triage.data.artifact import Artifact, Severity

logger = logging.getLogger(__name__)

CRITICAL_NODE_WEIGHT = 10
DEFAULT_NODE_WEIGHT = 5


class EdgeType(str, Enum):
    TEMPORAL = "temporal"
    ATTRIBUTION = "attribution"


@dataclass(frozen=True)
class GraphNode:
    id: str
    group: str  # attack phase
    weight: int
    severity: str
    tampered: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "group": self.group,
            "val": self.weight,
            "severity": self.severity,
            "tampered": self.tampered,
        }


@dataclass(frozen=True, order=True)
class GraphEdge:
    source: str
    target: str
    type: EdgeType

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source, "target": self.target, "type": self.type.value}


@dataclass(frozen=True)
class AttributionCluster:
    actor_name: str
    artifact_ids: Tuple[str, ...]


@dataclass(frozen=True)
class CorrelationGraph:
    nodes: Tuple[GraphNode, ...]
    edges: Tuple[GraphEdge, ...]
    clusters: Tuple[AttributionCluster, ...] = ()

    def edge_set(self) -> FrozenSet[GraphEdge]:
        return frozenset(self.edges)

    @property
    def temporal_edges(self) -> Tuple[GraphEdge, ...]:
        return tuple(e for e in self.edges if e.type == EdgeType.TEMPORAL)

    @property
    def attribution_edges(self) -> Tuple[GraphEdge, ...]:
        return tuple(e for e in self.edges if e.type == EdgeType.ATTRIBUTION)

    def to_networkx(self) -> nx.MultiGraph:
        """Rebuild as a networkx MultiGraph (edge key = edge type)."""
        graph = nx.MultiGraph()
        for node in self.nodes:
            graph.add_node(node.id, group=node.group, weight=node.weight,
                           severity=node.severity, tampered=node.tampered)
        for edge in self.edges:
            graph.add_edge(edge.source, edge.target, key=edge.type.value, type=edge.type.value)
        return graph

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [e.to_dict() for e in self.edges],
            "clusters": [
                {"actor_name": c.actor_name, "artifact_ids": list(c.artifact_ids)}
                for c in self.clusters
            ],
        }


class CorrelationGraphBuilder:
    """
    Builds the correlation graph for a set of artifacts.

    Args:
        high_confidence_threshold: both ends of an attribution edge must have
            a confidence score strictly above this value
    """

    def __init__(self, high_confidence_threshold: float = 0.8):
        self.high_confidence_threshold = high_confidence_threshold

    def build(self, artifacts: Iterable[Artifact]) -> CorrelationGraph:
        ordered = sorted(artifacts, key=lambda a: (a.timestamp, a.id))

        nodes = tuple(
            GraphNode(
                id=a.id,
                group=a.phase.value,
                weight=CRITICAL_NODE_WEIGHT if a.severity == Severity.CRITICAL else DEFAULT_NODE_WEIGHT,
                severity=a.severity.value,
                tampered=a.tampered,
            )
            for a in ordered
        )

        edges: List[GraphEdge] = [
            GraphEdge(prev.id, nxt.id, EdgeType.TEMPORAL)
            for prev, nxt in zip(ordered, ordered[1:])
        ]

        groups = self._group_by_actor(ordered)
        attribution_graph = nx.Graph()
        for actor_name, ids in groups.items():
            for left, right in itertools.combinations(sorted(ids), 2):
                edges.append(GraphEdge(left, right, EdgeType.ATTRIBUTION))
                attribution_graph.add_edge(left, right, actor=actor_name)

        clusters = self._clusters(attribution_graph)
        edges.sort()

        logger.debug(
            f"[CorrelationGraph] Built graph: {len(nodes)} nodes, {len(edges)} edges, "
            f"{len(clusters)} attribution clusters"
        )
        return CorrelationGraph(nodes=nodes, edges=tuple(edges), clusters=clusters)

    def _group_by_actor(self, artifacts: List[Artifact]) -> Dict[str, List[str]]:
        """Known actor -> ids of its high-confidence artifacts (groups of 2+ only)."""
        groups: Dict[str, List[str]] = defaultdict(list)
        for artifact in artifacts:
            attribution = artifact.attribution
            if not attribution.is_known:
                continue
            if attribution.confidence_score <= self.high_confidence_threshold:
                continue
            groups[attribution.actor_name].append(artifact.id)
        return {actor: ids for actor, ids in groups.items() if len(ids) > 1}

    @staticmethod
    def _clusters(attribution_graph: nx.Graph) -> Tuple[AttributionCluster, ...]:
        clusters = []
        for component in nx.connected_components(attribution_graph):
            ids = tuple(sorted(component))
            # Every edge inside a component carries the same actor
            actor = attribution_graph.edges[ids[0], next(iter(attribution_graph[ids[0]]))]["actor"]
            clusters.append(AttributionCluster(actor_name=actor, artifact_ids=ids))
        clusters.sort(key=lambda c: (c.actor_name, c.artifact_ids))
        return tuple(clusters)
