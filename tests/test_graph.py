"""Node and edge sets built from a topology."""

import numpy as np
import pytest

from neuroflow.constants import Direction, Variant
from neuroflow.graph import build_graph, expected_edge_count

TOPOLOGIES = [[3, 4, 4, 2], [1, 1], [5], [2, 7, 1, 3, 2]]


class TestCounts:
    @pytest.mark.parametrize("topology", TOPOLOGIES)
    @pytest.mark.parametrize("variant", [Variant.BACKPROP, Variant.PREDICTIVE])
    def test_node_and_edge_counts(self, topology, variant):
        graph = build_graph(topology, variant)
        dense = sum(a * b for a, b in zip(topology[:-1], topology[1:]))
        factor = 2 if variant is Variant.PREDICTIVE else 1
        assert len(graph.nodes) == sum(topology)
        assert len(graph.edges) == dense * factor
        assert len(graph.edges) == expected_edge_count(topology, variant)

    def test_scenario_edge_count(self):
        assert len(build_graph([3, 4, 4, 2], "backprop").edges) == 36
        assert len(build_graph([3, 4, 4, 2], "predictive").edges) == 72


class TestStructure:
    @pytest.mark.parametrize("topology", TOPOLOGIES)
    @pytest.mark.parametrize("variant", ["backprop", "predictive"])
    def test_no_dangling_edges(self, topology, variant):
        graph = build_graph(topology, variant)
        ids = graph.node_ids
        for edge in graph.edges:
            assert edge.source in ids
            assert edge.target in ids

    def test_nodes_in_layer_index_order(self):
        graph = build_graph([2, 3], "backprop")
        assert [n.id for n in graph.nodes] == ["l0-n0", "l0-n1", "l1-n0", "l1-n1", "l1-n2"]

    def test_backprop_edges_point_forward(self):
        graph = build_graph([3, 4, 4, 2], "backprop")
        assert all(e.direction is Direction.FORWARD for e in graph.edges)
        assert all(e.target_layer == e.source_layer + 1 for e in graph.edges)
        pairs = {(e.source, e.target) for e in graph.edges}
        assert len(pairs) == len(graph.edges)

    def test_predictive_edges_reciprocal(self):
        graph = build_graph([3, 4, 4, 2], "predictive")
        up = graph.edges_with(Direction.UP)
        down = graph.edges_with(Direction.DOWN)
        assert len(up) == len(down) == 36
        assert all(e.target_layer == e.source_layer + 1 for e in up)
        assert all(e.target_layer == e.source_layer - 1 for e in down)
        assert {(e.source, e.target) for e in up} == {(e.target, e.source) for e in down}

    def test_edges_between_boundary(self):
        graph = build_graph([3, 4, 4, 2], "backprop")
        assert len(graph.edges_between(0)) == 12
        assert len(graph.edges_between(1)) == 16
        assert len(graph.edges_between(2)) == 8
        predictive = build_graph([3, 4, 4, 2], "predictive")
        assert len(predictive.edges_between(2, Direction.DOWN)) == 8

    def test_unknown_variant_rejected(self):
        with pytest.raises(ValueError):
            build_graph([3, 4], "hebbian")


class TestValues:
    def test_missing_values_default_to_zero(self):
        graph = build_graph([2, 2], "backprop", activations=[[0.5]], errors=[])
        nodes = graph.node_map()
        assert nodes["l0-n0"].activation == 0.5
        assert nodes["l0-n1"].activation == 0.0
        assert nodes["l1-n1"].activation == 0.0
        assert all(n.error == 0.0 for n in graph.nodes)

    def test_weights_in_unit_interval_and_seedable(self):
        g1 = build_graph([3, 4, 2], "predictive", rng=np.random.default_rng(7))
        g2 = build_graph([3, 4, 2], "predictive", rng=np.random.default_rng(7))
        weights = [e.weight for e in g1.edges]
        assert all(0.0 <= w < 1.0 for w in weights)
        assert weights == [e.weight for e in g2.edges]
