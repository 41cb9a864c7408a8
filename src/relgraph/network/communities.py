"""
Community detection module for the relgraph library.

Implements the Louvain method: local modularity-gain moves followed by graph
contraction, repeated while modularity improves. Also provides the reporting
layer that turns a raw community assignment into named, colored community
records.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple
import uuid

import polars as pl

from relgraph.common.exceptions import ComputationError, require_positive
from relgraph.common.logging_config import get_logger, log_function_entry, LoggingTimer
from relgraph.common.validators import validate_graph_inputs
from relgraph.network.construction import Graph, build_graph
from relgraph.network.modularity import CommunityAssignment, calculate_modularity

logger = get_logger(__name__)

ALGORITHM_NAME = "louvain"
DEFAULT_MAX_ITERATIONS = 10
SUPER_NODE_PREFIX = "community_"

COMMUNITY_COLORS = [
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#FFA07A", "#98D8C8",
    "#F7DC6F", "#BB8FCE", "#85C1E2", "#F8B4D1", "#A8E6CF",
    "#FFD3B6", "#FFAAA5", "#A0C4FF", "#BDB2FF", "#FFC6FF",
]


def louvain_community_detection(
    graph: Graph,
    max_iterations: int = DEFAULT_MAX_ITERATIONS
) -> Dict[str, Any]:
    """
    Partition a graph into communities with the Louvain method.

    Every node starts in its own community (id = position in ``graph.nodes``).
    Each level runs local moving until no node changes community, then
    contracts every community into a super-node. A level is accepted only if
    it moved at least one node and raised modularity above the best value so
    far; the first rejected level ends the search.

    Parameters
    ----------
    graph : Graph
        Graph to partition
    max_iterations : int, default 10
        Maximum number of levels

    Returns
    -------
    Dict[str, Any]
        ``{"assignment": {node_id: community_id}, "modularity": float}``
        where the assignment covers every node of ``graph.nodes``

    Raises
    ------
    ConfigurationError
        If ``max_iterations`` is negative

    Examples
    --------
    >>> graph = build_graph(["a", "b", "c"], [
    ...     {"source_id": "a", "target_id": "b", "strength": 1},
    ...     {"source_id": "b", "target_id": "c", "strength": 1},
    ...     {"source_id": "a", "target_id": "c", "strength": 1},
    ... ])
    >>> result = louvain_community_detection(graph)
    >>> len(set(result["assignment"].values()))
    1

    Notes
    -----
    Contraction drops intra-community weight instead of keeping it as a
    self-loop, so modularity on contracted levels is computed on the reduced
    graph. Graphs with at most one node or without any tie weight return the
    singleton assignment with modularity 0.
    """
    require_positive(max_iterations, "max_iterations", allow_zero=True)
    log_function_entry("louvain_community_detection",
                       n_nodes=graph.number_of_nodes(), max_iterations=max_iterations)

    assignment = _singleton_assignment(graph)
    global_assignment = dict(assignment)

    if graph.number_of_nodes() <= 1 or graph.total_weight == 0:
        return {"assignment": global_assignment, "modularity": 0.0}

    with LoggingTimer("louvain_community_detection", {"nodes": graph.number_of_nodes()}):
        best_modularity = calculate_modularity(graph, assignment)

        # node of the current working graph that holds each original node
        membership = {node: node for node in graph.nodes}
        current_graph = graph

        for level in range(max_iterations):
            improved, level_assignment = _optimize_modularity(current_graph, assignment)
            if not improved:
                logger.debug("Level %d: no moves, stopping", level)
                break

            contracted = _contract_graph(current_graph, level_assignment)
            modularity = calculate_modularity(current_graph, level_assignment)

            if modularity <= best_modularity:
                logger.debug("Level %d: modularity %.6f did not improve on %.6f",
                             level, modularity, best_modularity)
                break

            best_modularity = modularity
            global_assignment = {
                node: level_assignment[membership[node]] for node in graph.nodes
            }
            membership = {
                node: f"{SUPER_NODE_PREFIX}{community}"
                for node, community in global_assignment.items()
            }

            logger.debug("Level %d: %d communities, modularity %.6f",
                         level, contracted.number_of_nodes(), modularity)

            current_graph = contracted
            assignment = _singleton_assignment(current_graph)

    logger.info("Louvain finished: %d communities, modularity %.4f",
                len(set(global_assignment.values())), best_modularity)

    return {"assignment": global_assignment, "modularity": best_modularity}


def _singleton_assignment(graph: Graph) -> CommunityAssignment:
    return {node: index for index, node in enumerate(graph.nodes)}


def _optimize_modularity(
    graph: Graph,
    assignment: CommunityAssignment
) -> Tuple[bool, CommunityAssignment]:
    """
    Local moving phase.

    Scans the nodes in order and moves each one to the neighboring community
    with the largest strictly positive modularity gain. Full passes repeat
    until one produces no move.

    Returns
    -------
    Tuple[bool, CommunityAssignment]
        Whether any node moved, and the resulting assignment
    """
    assignment = dict(assignment)
    total_weight = graph.total_weight
    if total_weight == 0:
        return False, assignment

    node_degrees = {node: graph.node_degree(node) for node in graph.nodes}
    community_degrees: Dict[int, float] = {}
    for node in graph.nodes:
        community = assignment[node]
        community_degrees[community] = community_degrees.get(community, 0) + node_degrees[node]

    squared_weight = total_weight * total_weight
    improved = False
    moved = True

    while moved:
        moved = False

        for node in graph.nodes:
            source = assignment[node]
            degree = node_degrees[node]

            # community -> weight from node, in neighbor order
            links: Dict[int, float] = {}
            for neighbor, weight in graph.neighbors(node).items():
                community = assignment.get(neighbor)
                if community is None:
                    continue
                links[community] = links.get(community, 0) + weight

            removal_cost = (
                links.get(source, 0) / total_weight
                - (community_degrees[source] - degree) * degree / squared_weight
            )

            best_community = source
            best_gain = 0.0
            for target in links:
                if target == source:
                    continue
                gain = (
                    links[target] / total_weight
                    - community_degrees[target] * degree / squared_weight
                ) - removal_cost
                if gain > best_gain:
                    best_gain = gain
                    best_community = target

            if best_community != source:
                community_degrees[source] -= degree
                community_degrees[best_community] += degree
                assignment[node] = best_community
                moved = True
                improved = True

    return improved, assignment


def _contract_graph(graph: Graph, assignment: CommunityAssignment) -> Graph:
    """
    Collapse every community into a super-node named ``community_{id}``.

    Weights of edges between two communities are summed into one super-edge.
    Edges inside a community are dropped.
    """
    communities = dict.fromkeys(assignment[node] for node in graph.nodes)
    super_nodes = [f"{SUPER_NODE_PREFIX}{community}" for community in communities]

    adjacency: Dict[str, Dict[str, float]] = {node: {} for node in super_nodes}
    total_weight = 0

    for node in graph.nodes:
        source = assignment[node]
        for neighbor, weight in graph.neighbors(node).items():
            target = assignment.get(neighbor)
            if target is None or target == source:
                continue
            source_node = f"{SUPER_NODE_PREFIX}{source}"
            target_node = f"{SUPER_NODE_PREFIX}{target}"
            adjacency[source_node][target_node] = adjacency[source_node].get(target_node, 0) + weight
            total_weight += weight

    return Graph(super_nodes, adjacency, total_weight)


def group_by_community(assignment: CommunityAssignment) -> Dict[int, List[str]]:
    """
    Group node ids by community.

    Communities appear in the order their first member appears in
    ``assignment``; members keep assignment order.

    Examples
    --------
    >>> group_by_community({"a": 0, "b": 3, "c": 0})
    {0: ['a', 'c'], 3: ['b']}
    """
    groups: Dict[int, List[str]] = {}
    for node, community in assignment.items():
        groups.setdefault(community, []).append(node)
    return groups


def detect_communities(
    entities: Iterable[Any],
    ties: Iterable[Any],
    map_id: Optional[str] = None,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    validate: bool = True
) -> Dict[str, Any]:
    """
    Detect communities among members and describe them as display records.

    Parameters
    ----------
    entities : Iterable[Any]
        Member records
    ties : Iterable[Any]
        Tie records
    map_id : str, optional
        Identifier of the relationship map, copied into every record
    max_iterations : int, default 10
        Passed to ``louvain_community_detection``
    validate : bool, default True
        Run ``validate_graph_inputs`` before building the graph

    Returns
    -------
    Dict[str, Any]
        ``communities``: list of records with ``id`` (random hex), ``map_id``,
        ``name`` ("Community 1", "Community 2", ...), ``member_ids``,
        ``color`` (cycled through ``COMMUNITY_COLORS``), ``algorithm`` and
        ``modularity``; plus top-level ``algorithm`` and ``modularity``.

    Raises
    ------
    ValidationError
        If ``validate`` is set and the input is inconsistent
    ConfigurationError
        If ``max_iterations`` is negative
    ComputationError
        If detection fails unexpectedly

    Examples
    --------
    >>> result = detect_communities(members, ties, map_id="map-1")
    >>> [c["name"] for c in result["communities"]]
    ['Community 1', 'Community 2']
    """
    entities = list(entities)
    ties = list(ties)
    log_function_entry("detect_communities", map_id=map_id,
                       n_entities=len(entities), n_ties=len(ties))

    require_positive(max_iterations, "max_iterations", allow_zero=True)
    if validate:
        validate_graph_inputs(entities, ties)

    try:
        graph = build_graph(entities, ties)
        detection = louvain_community_detection(graph, max_iterations)
    except Exception as e:
        raise ComputationError(
            f"Community detection failed: {str(e)}",
            operation="detect_communities",
            error_type="computation",
            resource_info={"nodes": len(entities), "ties": len(ties)},
            cause=e
        )

    modularity = detection["modularity"]
    communities = []
    for index, member_ids in enumerate(group_by_community(detection["assignment"]).values()):
        communities.append({
            "id": uuid.uuid4().hex,
            "map_id": map_id,
            "name": f"Community {index + 1}",
            "member_ids": member_ids,
            "color": COMMUNITY_COLORS[index % len(COMMUNITY_COLORS)],
            "algorithm": ALGORITHM_NAME,
            "modularity": modularity,
        })

    logger.info("Detected %d communities for map %s (modularity %.4f)",
                len(communities), map_id, modularity)

    return {
        "communities": communities,
        "algorithm": ALGORITHM_NAME,
        "modularity": modularity,
    }


def sort_communities_by_size(communities: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Largest communities first; equal sizes keep their order."""
    return sorted(communities, key=lambda c: len(c["member_ids"]), reverse=True)


def filter_small_communities(
    communities: List[Dict[str, Any]],
    min_size: int = 2
) -> List[Dict[str, Any]]:
    """
    Drop communities with fewer than ``min_size`` members.

    Raises
    ------
    ConfigurationError
        If ``min_size`` is negative
    """
    require_positive(min_size, "min_size", allow_zero=True)
    return [c for c in communities if len(c["member_ids"]) >= min_size]


def calculate_community_stats(result: Dict[str, Any]) -> Dict[str, Any]:
    """
    Size statistics for a ``detect_communities`` result.

    Returns
    -------
    Dict[str, Any]
        ``total_communities``, ``average_size``, ``largest_size``,
        ``smallest_size`` and ``modularity``. Sizes are 0 when there are no
        communities.
    """
    sizes = [len(c["member_ids"]) for c in result.get("communities", [])]

    return {
        "total_communities": len(sizes),
        "average_size": sum(sizes) / len(sizes) if sizes else 0.0,
        "largest_size": max(sizes) if sizes else 0,
        "smallest_size": min(sizes) if sizes else 0,
        "modularity": result.get("modularity", 0.0),
    }


def communities_to_dataframe(assignment: CommunityAssignment) -> pl.DataFrame:
    """
    Community assignment as a two-column Polars DataFrame.

    Examples
    --------
    >>> communities_to_dataframe({"a": 0, "b": 0}).columns
    ['node_id', 'community']
    """
    return pl.DataFrame(
        {
            "node_id": list(assignment.keys()),
            "community": list(assignment.values()),
        },
        schema={"node_id": pl.Utf8, "community": pl.Int64}
    )
