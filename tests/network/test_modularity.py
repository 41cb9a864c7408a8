"""
Tests for modularity and community bookkeeping.
"""

import doctest

import pytest

from relgraph.network.construction import build_graph
from relgraph.network import modularity
from relgraph.network.modularity import (
    calculate_modularity,
    community_internal_weight,
    community_total_degree,
    weight_to_community
)


def tie(source, target, strength=1):
    return {"source_id": source, "target_id": target, "strength": strength}


class TestCalculateModularity:
    """Test calculate_modularity."""

    def setup_method(self):
        self.triangle = build_graph(
            ["a", "b", "c"], [tie("a", "b"), tie("b", "c"), tie("a", "c")]
        )

    def test_single_edge_same_community(self):
        graph = build_graph(["a", "b"], [tie("a", "b")])
        assert calculate_modularity(graph, {"a": 0, "b": 0}) == pytest.approx(0.5)

    def test_single_edge_split(self):
        graph = build_graph(["a", "b"], [tie("a", "b")])
        assert calculate_modularity(graph, {"a": 0, "b": 1}) == 0.0

    def test_triangle_one_community(self):
        assignment = {"a": 0, "b": 0, "c": 0}
        assert calculate_modularity(self.triangle, assignment) == pytest.approx(1 / 3)

    def test_singletons_score_zero(self):
        assignment = {"a": 0, "b": 1, "c": 2}
        assert calculate_modularity(self.triangle, assignment) == 0.0

    def test_two_triads(self):
        graph = build_graph(
            ["1", "2", "3", "4", "5", "6"],
            [
                tie("1", "2", 5), tie("2", "3", 5), tie("1", "3", 5),
                tie("4", "5", 5), tie("5", "6", 5), tie("4", "6", 5),
                tie("3", "4", 1),
            ]
        )
        assignment = {"1": 0, "2": 0, "3": 0, "4": 1, "5": 1, "6": 1}
        # (60 - 1280 / 62) / 62
        assert calculate_modularity(graph, assignment) == pytest.approx((60 - 1280 / 62) / 62)

    def test_zero_total_weight(self):
        graph = build_graph(["a", "b"], [])
        assert calculate_modularity(graph, {"a": 0, "b": 0}) == 0.0

    def test_is_idempotent(self):
        assignment = {"a": 0, "b": 0, "c": 1}
        first = calculate_modularity(self.triangle, assignment)
        second = calculate_modularity(self.triangle, assignment)
        assert first == second
        assert self.triangle.total_weight == 6

    def test_unassigned_nodes_contribute_nothing(self):
        partial = calculate_modularity(self.triangle, {"a": 0, "b": 0})
        full = calculate_modularity(self.triangle, {"a": 0, "b": 0, "c": 1})
        assert partial == pytest.approx(full)


class TestCommunityBookkeeping:
    """Test the helper sums."""

    def setup_method(self):
        self.graph = build_graph(
            ["a", "b", "c", "d"],
            [tie("a", "b", 2), tie("b", "c", 3), tie("c", "d", 4)]
        )
        self.assignment = {"a": 0, "b": 0, "c": 1, "d": 1}

    def test_weight_to_community(self):
        assert weight_to_community(self.graph, "b", 1, self.assignment) == 3
        assert weight_to_community(self.graph, "b", 0, self.assignment) == 2
        assert weight_to_community(self.graph, "a", 1, self.assignment) == 0

    def test_internal_weight_is_undirected(self):
        assert community_internal_weight(self.graph, 0, self.assignment) == 2
        assert community_internal_weight(self.graph, 1, self.assignment) == 4

    def test_total_degree(self):
        assert community_total_degree(self.graph, 0, self.assignment) == 2 + 5
        assert community_total_degree(self.graph, 1, self.assignment) == 7 + 4


class TestDocstringExamples:
    """Run the examples in the module docstrings."""

    def test_examples_run(self):
        results = doctest.testmod(modularity)
        assert results.attempted > 0
        assert results.failed == 0
