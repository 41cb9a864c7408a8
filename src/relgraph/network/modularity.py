"""
Modularity and community bookkeeping for the relgraph library.

A community assignment is a plain ``{node_id: community_id}`` dictionary that
covers every node of the graph. All functions here are pure.
"""

from typing import Dict

from relgraph.network.construction import Graph

CommunityAssignment = Dict[str, int]


def weight_to_community(
    graph: Graph,
    node: str,
    community: int,
    assignment: CommunityAssignment
) -> float:
    """
    Sum of edge weights from ``node`` to nodes currently in ``community``.

    A self-loop counts when ``node`` itself belongs to ``community``.
    """
    weight = 0
    for neighbor, edge_weight in graph.neighbors(node).items():
        if assignment.get(neighbor) == community:
            weight += edge_weight
    return weight


def community_internal_weight(
    graph: Graph,
    community: int,
    assignment: CommunityAssignment
) -> float:
    """
    Total weight of the undirected edges lying inside ``community``.

    Each internal edge is seen once from each endpoint, so the directed sum
    is halved.
    """
    internal_weight = 0
    for node, neighbors in graph.adjacency.items():
        if assignment.get(node) != community:
            continue
        for neighbor, edge_weight in neighbors.items():
            if assignment.get(neighbor) == community:
                internal_weight += edge_weight
    return internal_weight / 2


def community_total_degree(
    graph: Graph,
    community: int,
    assignment: CommunityAssignment
) -> float:
    """Sum of the weighted degrees of every node in ``community``."""
    return sum(
        graph.node_degree(node)
        for node in graph.adjacency
        if assignment.get(node) == community
    )


def calculate_modularity(graph: Graph, assignment: CommunityAssignment) -> float:
    """
    Compute the modularity of a community assignment.

    Parameters
    ----------
    graph : Graph
        Graph the assignment refers to
    assignment : CommunityAssignment
        Community id for every node

    Returns
    -------
    float
        ``Q = (1 / W) * sum(A_ij - k_i * k_j / W)`` over every directed
        adjacency entry ``(i, j)`` whose endpoints share a community, where
        ``W`` is ``graph.total_weight`` (twice the undirected edge weight)
        and ``k`` is the weighted degree. 0.0 when ``W`` is 0.

    Examples
    --------
    >>> from relgraph import build_graph
    >>> graph = build_graph(["a", "b"], [{"source_id": "a", "target_id": "b", "strength": 1}])
    >>> calculate_modularity(graph, {"a": 0, "b": 0})
    0.5

    Notes
    -----
    Only adjacency entries are summed: node pairs that are not adjacent, and
    the diagonal of nodes without self-loops, contribute nothing. Nodes
    missing from ``assignment`` are treated as belonging to no community.
    """
    total_weight = graph.total_weight
    if total_weight == 0:
        return 0.0

    degrees = {node: graph.node_degree(node) for node in graph.adjacency}

    modularity = 0.0
    for node_i, neighbors in graph.adjacency.items():
        community_i = assignment.get(node_i)
        if community_i is None:
            continue

        degree_i = degrees[node_i]
        for node_j, edge_weight in neighbors.items():
            if assignment.get(node_j) == community_i:
                expected_weight = (degree_i * degrees.get(node_j, 0)) / total_weight
                modularity += edge_weight - expected_weight

    return modularity / total_weight
