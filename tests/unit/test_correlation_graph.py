# ============================================================================
# tests/unit/test_correlation_graph.py
# Temporal chain, attribution edges, clusters, order independence
# ============================================================================

import random

from helpers import make_artifact
from triage.cortex.correlation_graph import CorrelationGraphBuilder, EdgeType, GraphEdge
from triage.data.artifact import Severity

APT = "APT29 (Cozy Bear)"
FIN = "FIN7"


def _feed():
    return [
        make_artifact("ART-00000A", timestamp=100.0, severity=Severity.CRITICAL, actor=APT, confidence=0.95),
        make_artifact("ART-00000B", timestamp=200.0),
        make_artifact("ART-00000C", timestamp=300.0, severity=Severity.HIGH, actor=APT, confidence=0.85),
        make_artifact("ART-00000D", timestamp=400.0, severity=Severity.HIGH, actor=FIN, confidence=0.9),
        make_artifact("ART-00000E", timestamp=500.0, severity=Severity.HIGH, actor=APT, confidence=0.78),
        make_artifact("ART-00000F", timestamp=600.0),
    ]


def test_empty_feed():
    graph = CorrelationGraphBuilder().build([])
    assert graph.nodes == ()
    assert graph.edges == ()
    assert graph.clusters == ()


def test_single_artifact_has_no_edges():
    graph = CorrelationGraphBuilder().build([make_artifact()])
    assert len(graph.nodes) == 1
    assert graph.edges == ()


def test_temporal_chain_links_neighbours():
    graph = CorrelationGraphBuilder().build(_feed())

    assert [(e.source, e.target) for e in graph.temporal_edges] == [
        ("ART-00000A", "ART-00000B"),
        ("ART-00000B", "ART-00000C"),
        ("ART-00000C", "ART-00000D"),
        ("ART-00000D", "ART-00000E"),
        ("ART-00000E", "ART-00000F"),
    ]


def test_attribution_edges_need_same_actor_and_high_confidence():
    graph = CorrelationGraphBuilder().build(_feed())

    # E is APT29 but only 0.78; D is FIN7 alone; B/F are Unknown
    assert graph.attribution_edges == (GraphEdge("ART-00000A", "ART-00000C", EdgeType.ATTRIBUTION),)


def test_threshold_is_strict():
    feed = [
        make_artifact("ART-000001", timestamp=1.0, severity=Severity.HIGH, actor=FIN, confidence=0.8),
        make_artifact("ART-000002", timestamp=2.0, severity=Severity.HIGH, actor=FIN, confidence=0.99),
    ]
    assert CorrelationGraphBuilder(0.8).build(feed).attribution_edges == ()
    assert len(CorrelationGraphBuilder(0.7).build(feed).attribution_edges) == 1


def test_unknown_artifacts_never_linked_by_attribution():
    feed = [make_artifact(f"ART-00000{i}", timestamp=float(i), confidence=0.99) for i in range(4)]
    graph = CorrelationGraphBuilder(0.5).build(feed)
    assert graph.attribution_edges == ()
    assert len(graph.temporal_edges) == 3


def test_group_links_every_pair():
    feed = [
        make_artifact(f"ART-00000{i}", timestamp=float(i), severity=Severity.HIGH, actor=APT, confidence=0.9)
        for i in range(4)
    ]
    graph = CorrelationGraphBuilder().build(feed)

    assert len(graph.attribution_edges) == 6
    assert len(graph.clusters) == 1
    assert graph.clusters[0].actor_name == APT
    assert graph.clusters[0].artifact_ids == tuple(f"ART-00000{i}" for i in range(4))


def test_build_is_order_independent():
    feed = _feed()
    baseline = CorrelationGraphBuilder().build(feed)
    expected, expected_edges = baseline.to_dict(), baseline.edge_set()

    rng = random.Random(5)
    for _ in range(10):
        shuffled = feed[:]
        rng.shuffle(shuffled)
        rebuilt = CorrelationGraphBuilder().build(shuffled)
        assert rebuilt.to_dict() == expected
        assert rebuilt.edge_set() == expected_edges


def test_node_weights_and_groups():
    graph = CorrelationGraphBuilder().build(_feed())
    nodes = {n.id: n for n in graph.nodes}

    assert nodes["ART-00000A"].weight == 10
    assert nodes["ART-00000C"].weight == 5
    assert nodes["ART-00000A"].group == "Execution"
    assert graph.to_dict()["nodes"][0]["val"] == 10


def test_networkx_export():
    graph = CorrelationGraphBuilder().build(_feed())
    nx_graph = graph.to_networkx()

    assert nx_graph.number_of_nodes() == 6
    assert nx_graph.number_of_edges() == len(graph.edges)
    assert nx_graph.has_edge("ART-00000A", "ART-00000C", key="attribution")
