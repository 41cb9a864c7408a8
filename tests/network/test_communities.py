"""
Tests for Louvain community detection and community reports.
"""

import pytest
import polars as pl

from relgraph.common.exceptions import ConfigurationError, ValidationError
from relgraph.network.construction import build_graph
from relgraph.network.modularity import calculate_modularity
from relgraph.network.communities import (
    COMMUNITY_COLORS,
    _contract_graph,
    _optimize_modularity,
    calculate_community_stats,
    communities_to_dataframe,
    detect_communities,
    filter_small_communities,
    group_by_community,
    louvain_community_detection,
    sort_communities_by_size
)


def tie(source, target, strength=1):
    return {"source_id": source, "target_id": target, "strength": strength}


TRIAD_NODES = ["1", "2", "3", "4", "5", "6"]
TRIAD_TIES = [
    tie("1", "2", 5), tie("2", "3", 5), tie("1", "3", 5),
    tie("4", "5", 5), tie("5", "6", 5), tie("4", "6", 5),
    tie("3", "4", 1),
]


class TestLouvainCommunityDetection:
    """Test the Louvain detector."""

    def setup_method(self):
        self.triangle = build_graph(["a", "b", "c"], [tie("a", "b"), tie("b", "c"), tie("a", "c")])
        self.triads = build_graph(TRIAD_NODES, TRIAD_TIES)

    def test_triangle_single_community(self):
        result = louvain_community_detection(self.triangle)

        assert set(result["assignment"]) == {"a", "b", "c"}
        assert len(set(result["assignment"].values())) == 1
        assert result["modularity"] == pytest.approx(1 / 3)

    def test_two_triads(self):
        result = louvain_community_detection(self.triads)
        assignment = result["assignment"]

        assert len(set(assignment.values())) == 2
        assert assignment["1"] == assignment["2"] == assignment["3"]
        assert assignment["4"] == assignment["5"] == assignment["6"]
        assert assignment["1"] != assignment["4"]
        assert result["modularity"] > 0
        assert result["modularity"] == pytest.approx(calculate_modularity(self.triads, assignment))

    def test_isolated_nodes_are_assigned(self):
        graph = build_graph(
            ["a", "b", "c", "iso1", "iso2"],
            [tie("a", "b"), tie("b", "c"), tie("a", "c")]
        )
        result = louvain_community_detection(graph)
        assignment = result["assignment"]

        assert set(assignment) == set(graph.nodes)
        groups = group_by_community(assignment)
        assert sum(len(members) for members in groups.values()) == 5
        assert assignment["iso1"] != assignment["a"]
        assert assignment["iso1"] != assignment["iso2"]

    def test_empty_graph(self):
        assert louvain_community_detection(build_graph([], [])) == {"assignment": {}, "modularity": 0.0}

    def test_single_node(self):
        result = louvain_community_detection(build_graph(["a"], []))
        assert result == {"assignment": {"a": 0}, "modularity": 0.0}

    def test_edgeless_graph_keeps_singletons(self):
        result = louvain_community_detection(build_graph(["a", "b", "c"], []))
        assert result == {"assignment": {"a": 0, "b": 1, "c": 2}, "modularity": 0.0}

    def test_zero_iterations(self):
        result = louvain_community_detection(self.triangle, max_iterations=0)
        assert result["assignment"] == {"a": 0, "b": 1, "c": 2}
        assert result["modularity"] == 0.0

    def test_negative_iterations(self):
        with pytest.raises(ConfigurationError):
            louvain_community_detection(self.triangle, max_iterations=-1)

    def test_deterministic(self):
        first = louvain_community_detection(self.triads)
        second = louvain_community_detection(self.triads)
        assert first == second

    def test_disconnected_components(self):
        graph = build_graph(
            ["a", "b", "c", "x", "y", "z"],
            [
                tie("a", "b"), tie("b", "c"), tie("a", "c"),
                tie("x", "y"), tie("y", "z"), tie("x", "z"),
            ]
        )
        assignment = louvain_community_detection(graph)["assignment"]
        assert assignment["a"] == assignment["b"] == assignment["c"]
        assert assignment["x"] == assignment["y"] == assignment["z"]
        assert assignment["a"] != assignment["x"]


class TestLouvainMultiLevel:
    """A path of four plus a loner: pairs at level one, one group at level two."""

    def setup_method(self):
        self.graph = build_graph(
            ["a", "b", "c", "d", "e"],
            [tie("a", "b"), tie("b", "c"), tie("c", "d")]
        )

    def test_first_level_pairs(self):
        result = louvain_community_detection(self.graph, max_iterations=1)

        assert result["assignment"] == {"a": 1, "b": 1, "c": 3, "d": 3, "e": 4}
        assert result["modularity"] == pytest.approx(4 / 9)

    def test_second_level_merges_pairs(self):
        result = louvain_community_detection(self.graph)

        # super-node community_1 absorbs community_3; the loner keeps its
        # singleton slot (index 2) in the contracted graph
        assert result["assignment"] == {"a": 1, "b": 1, "c": 1, "d": 1, "e": 2}
        assert result["modularity"] == pytest.approx(0.5)

    def test_second_level_is_the_last(self):
        assert louvain_community_detection(self.graph, max_iterations=2) == \
            louvain_community_detection(self.graph, max_iterations=10)

    def test_contracted_level_modularity(self):
        level_one = {"a": 1, "b": 1, "c": 3, "d": 3, "e": 4}
        contracted = _contract_graph(self.graph, level_one)

        assert contracted.nodes == ["community_1", "community_3", "community_4"]
        assert contracted.total_weight == 2
        merged = {"community_1": 1, "community_3": 1, "community_4": 2}
        assert calculate_modularity(contracted, merged) == pytest.approx(0.5)
        assert calculate_modularity(self.graph, level_one) == pytest.approx(4 / 9)


class TestLouvainPhases:
    """Test local moving and contraction directly."""

    def setup_method(self):
        self.triads = build_graph(TRIAD_NODES, TRIAD_TIES)

    def test_local_moving_reports_moves(self):
        singletons = {node: index for index, node in enumerate(TRIAD_NODES)}
        improved, assignment = _optimize_modularity(self.triads, singletons)

        assert improved
        assert len(set(assignment.values())) == 2
        # input assignment is left untouched
        assert singletons["2"] == 1

    def test_local_moving_without_weight(self):
        graph = build_graph(["a", "b"], [])
        improved, assignment = _optimize_modularity(graph, {"a": 0, "b": 1})
        assert not improved
        assert assignment == {"a": 0, "b": 1}

    def test_contraction_drops_internal_weight(self):
        assignment = {"1": 0, "2": 0, "3": 0, "4": 3, "5": 3, "6": 3}
        contracted = _contract_graph(self.triads, assignment)

        assert contracted.nodes == ["community_0", "community_3"]
        assert contracted.adjacency == {
            "community_0": {"community_3": 1},
            "community_3": {"community_0": 1},
        }
        assert contracted.total_weight == 2

    def test_contraction_sums_parallel_edges(self):
        graph = build_graph(
            ["a", "b", "c", "d"],
            [tie("a", "c", 2), tie("b", "d", 3), tie("a", "b", 1)]
        )
        contracted = _contract_graph(graph, {"a": 0, "b": 0, "c": 1, "d": 1})

        assert contracted.edge_weight("community_0", "community_1") == 5
        assert contracted.total_weight == 10


class TestGroupByCommunity:
    """Test grouping of assignments."""

    def test_first_seen_order(self):
        assert group_by_community({"a": 4, "b": 1, "c": 4}) == {4: ["a", "c"], 1: ["b"]}

    def test_empty(self):
        assert group_by_community({}) == {}


class TestDetectCommunities:
    """Test the community report."""

    def setup_method(self):
        self.entities = [{"id": node, "name": f"Member {node}"} for node in TRIAD_NODES]

    def test_two_named_communities(self):
        result = detect_communities(self.entities, TRIAD_TIES, map_id="map-7")
        communities = result["communities"]

        assert result["algorithm"] == "louvain"
        assert result["modularity"] > 0
        assert [c["name"] for c in communities] == ["Community 1", "Community 2"]
        assert communities[0]["member_ids"] == ["1", "2", "3"]
        assert communities[1]["member_ids"] == ["4", "5", "6"]
        assert [c["color"] for c in communities] == COMMUNITY_COLORS[:2]

    def test_record_fields(self):
        result = detect_communities(self.entities, TRIAD_TIES, map_id="map-7")

        ids = set()
        for community in result["communities"]:
            assert community["map_id"] == "map-7"
            assert community["algorithm"] == "louvain"
            assert community["modularity"] == result["modularity"]
            assert len(community["id"]) == 32
            ids.add(community["id"])
        assert len(ids) == 2

    def test_colors_cycle(self):
        members = [f"m{i}" for i in range(len(COMMUNITY_COLORS) + 2)]
        result = detect_communities(members, [])
        colors = [c["color"] for c in result["communities"]]

        assert len(colors) == len(members)
        assert colors[len(COMMUNITY_COLORS)] == COMMUNITY_COLORS[0]
        assert colors[len(COMMUNITY_COLORS) + 1] == COMMUNITY_COLORS[1]

    def test_every_member_in_one_community(self):
        entities = self.entities + [{"id": "solo"}]
        result = detect_communities(entities, TRIAD_TIES)
        members = [m for c in result["communities"] for m in c["member_ids"]]
        assert sorted(members) == sorted(e["id"] for e in entities)

    def test_validation(self):
        with pytest.raises(ValidationError):
            detect_communities(self.entities, TRIAD_TIES + [tie("1", "ghost")])

    def test_negative_iterations(self):
        with pytest.raises(ConfigurationError):
            detect_communities(self.entities, TRIAD_TIES, max_iterations=-2)


class TestCommunityReports:
    """Test sorting, filtering and statistics of community records."""

    def setup_method(self):
        self.communities = [
            {"name": "Community 1", "member_ids": ["a"]},
            {"name": "Community 2", "member_ids": ["b", "c", "d"]},
            {"name": "Community 3", "member_ids": ["e", "f"]},
            {"name": "Community 4", "member_ids": ["g", "h"]},
        ]

    def test_sort_by_size(self):
        ordered = sort_communities_by_size(self.communities)
        assert [c["name"] for c in ordered] == [
            "Community 2", "Community 3", "Community 4", "Community 1"
        ]

    def test_filter_small(self):
        assert len(filter_small_communities(self.communities)) == 3
        assert len(filter_small_communities(self.communities, min_size=3)) == 1
        assert len(filter_small_communities(self.communities, min_size=0)) == 4

    def test_filter_negative_min_size(self):
        with pytest.raises(ConfigurationError):
            filter_small_communities(self.communities, min_size=-1)

    def test_stats(self):
        stats = calculate_community_stats({"communities": self.communities, "modularity": 0.4})
        assert stats == {
            "total_communities": 4,
            "average_size": 2.0,
            "largest_size": 3,
            "smallest_size": 1,
            "modularity": 0.4,
        }

    def test_stats_without_communities(self):
        stats = calculate_community_stats({"communities": [], "modularity": 0.0})
        assert stats["total_communities"] == 0
        assert stats["average_size"] == 0.0
        assert stats["largest_size"] == 0

    def test_to_dataframe(self):
        df = communities_to_dataframe({"a": 0, "b": 0, "c": 2})
        assert df.columns == ["node_id", "community"]
        assert df.schema["community"] == pl.Int64
        assert df["community"].to_list() == [0, 0, 2]
