"""
Graph construction module for the relgraph library.

Turns a snapshot of members and weighted ties into an undirected, weighted
adjacency graph keyed by the caller's own identifiers. The graph is built
fresh for every analysis and never mutated by the algorithms that consume it.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

import networkit as nk
import polars as pl

from relgraph.common.exceptions import DataFormatError, GraphConstructionError
from relgraph.common.id_mapper import IDMapper
from relgraph.common.validators import (
    extract_entity_id,
    extract_tie,
    validate_ties_dataframe
)
from relgraph.common.logging_config import get_logger, log_function_entry

logger = get_logger(__name__)


class Graph:
    """
    Undirected weighted graph over caller-supplied node identifiers.

    Parameters
    ----------
    nodes : List[str], optional
        Node identifiers in input order
    adjacency : Dict[str, Dict[str, float]], optional
        Mapping of node to ``{neighbor: weight}``. Must be symmetric.
    total_weight : float, default 0.0
        Sum of every directed adjacency entry, i.e. each undirected edge
        counted twice. Plays the role of ``2m`` in modularity formulas.

    Attributes
    ----------
    nodes : List[str]
    adjacency : Dict[str, Dict[str, float]]
    total_weight : float

    Notes
    -----
    ``adjacency`` may contain keys that are not in ``nodes`` when a tie named
    an unknown member (see ``dangling_nodes``). Both ``nodes`` and the
    neighbor mappings keep insertion order, which the community detector
    relies on for deterministic tie-breaking.
    """

    def __init__(
        self,
        nodes: Optional[List[str]] = None,
        adjacency: Optional[Dict[str, Dict[str, float]]] = None,
        total_weight: float = 0.0
    ) -> None:
        self.nodes: List[str] = list(nodes) if nodes is not None else []
        self.adjacency: Dict[str, Dict[str, float]] = adjacency if adjacency is not None else {}
        self.total_weight = total_weight

    def neighbors(self, node: str) -> Dict[str, float]:
        """Neighbor-to-weight mapping of ``node`` (empty if unknown)."""
        return self.adjacency.get(node, {})

    def node_degree(self, node: str) -> float:
        """Weighted degree: sum of the weights of all edges incident to ``node``."""
        return sum(self.neighbors(node).values())

    def edge_weight(self, node_a: str, node_b: str) -> float:
        """Weight of the edge between two nodes, 0 if they are not adjacent."""
        return self.neighbors(node_a).get(node_b, 0)

    def number_of_nodes(self) -> int:
        return len(self.nodes)

    def number_of_edges(self) -> int:
        """Number of distinct undirected edges, self-loops included."""
        directed_entries = 0
        self_loops = 0
        for node, neighbors in self.adjacency.items():
            directed_entries += len(neighbors)
            if node in neighbors:
                self_loops += 1
        return (directed_entries - self_loops) // 2 + self_loops

    def isolated_nodes(self) -> List[str]:
        """Nodes without any tie, in node order."""
        return [node for node in self.nodes if not self.neighbors(node)]

    def dangling_nodes(self) -> List[str]:
        """Adjacency keys that are not part of ``nodes`` (ties to unknown members)."""
        known = set(self.nodes)
        return [node for node in self.adjacency if node not in known]

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node: Any) -> bool:
        return node in self.adjacency

    def __repr__(self) -> str:
        return (
            f"Graph(nodes={self.number_of_nodes()}, edges={self.number_of_edges()}, "
            f"total_weight={self.total_weight})"
        )


def build_graph(entities: Iterable[Any], ties: Iterable[Any]) -> Graph:
    """
    Build an undirected weighted graph from members and ties.

    Parameters
    ----------
    entities : Iterable[Any]
        Member records: identifier strings, mappings with an ``"id"`` key,
        or objects with an ``id`` attribute
    ties : Iterable[Any]
        Tie records exposing ``source_id``, ``target_id`` and ``strength``
        (as mapping keys or attributes)

    Returns
    -------
    Graph
        Graph whose ``nodes`` follow member order. Every member gets an
        adjacency entry, isolated members included.

    Examples
    --------
    >>> graph = build_graph(
    ...     ["a", "b", "c"],
    ...     [{"source_id": "a", "target_id": "b", "strength": 3}]
    ... )
    >>> graph.adjacency
    {'a': {'b': 3}, 'b': {'a': 3}, 'c': {}}
    >>> graph.total_weight
    6

    Notes
    -----
    - Direction on the input tie is ignored; each tie is stored both ways.
    - A repeated pair overwrites the earlier weight (the last tie wins), but
      ``total_weight`` still accumulates ``2 * strength`` for every tie.
    - Ties naming unknown members create adjacency entries for them without
      adding them to ``nodes``. Use ``validate_graph_inputs`` upstream to
      reject such input.
    """
    adjacency: Dict[str, Dict[str, float]] = {}
    nodes: List[str] = []
    total_weight = 0

    for entity in entities:
        node_id = extract_entity_id(entity)
        nodes.append(node_id)
        adjacency[node_id] = {}

    tie_count = 0
    for tie in ties:
        source_id, target_id, strength = extract_tie(tie)

        adjacency.setdefault(source_id, {})[target_id] = strength
        adjacency.setdefault(target_id, {})[source_id] = strength

        total_weight += strength * 2
        tie_count += 1

    graph = Graph(nodes, adjacency, total_weight)

    dangling = len(adjacency) - len(set(nodes))
    if dangling > 0:
        logger.warning("%d tie endpoints reference unknown members", dangling)

    logger.debug("Graph built: %d nodes, %d ties, total_weight=%s",
                 len(nodes), tie_count, total_weight)

    return graph


def build_graph_from_dataframes(
    entities: pl.DataFrame,
    ties: pl.DataFrame,
    id_col: str = "id",
    source_col: str = "source_id",
    target_col: str = "target_id",
    strength_col: str = "strength"
) -> Graph:
    """
    Build a graph from Polars member and tie tables.

    Parameters
    ----------
    entities : pl.DataFrame
        Member table with an identifier column
    ties : pl.DataFrame
        Tie table with source, target and strength columns
    id_col : str, default "id"
        Member identifier column
    source_col, target_col, strength_col : str
        Tie columns

    Returns
    -------
    Graph
        Same result as ``build_graph`` on the row-wise records

    Raises
    ------
    DataFormatError
        If a required column is missing
    ValidationError
        If the tie table fails ``validate_ties_dataframe``

    Examples
    --------
    >>> members = pl.DataFrame({"id": ["a", "b"]})
    >>> ties = pl.DataFrame({"source_id": ["a"], "target_id": ["b"], "strength": [2]})
    >>> build_graph_from_dataframes(members, ties).total_weight
    4
    """
    log_function_entry("build_graph_from_dataframes",
                       n_entities=entities.height, n_ties=ties.height)

    if id_col not in entities.columns:
        raise DataFormatError(
            f"Missing member id column '{id_col}'",
            columns=entities.columns,
            field=id_col
        )

    validate_ties_dataframe(ties, source_col, target_col, strength_col)

    member_ids = entities[id_col].to_list()
    tie_records = [
        {"source_id": row[source_col], "target_id": row[target_col], "strength": row[strength_col]}
        for row in ties.iter_rows(named=True)
    ]

    return build_graph(member_ids, tie_records)


def to_networkit(
    graph: Graph,
    weighted: bool = True,
    include_dangling: bool = True
) -> Tuple[nk.Graph, IDMapper]:
    """
    Export a graph to an undirected NetworkIt graph.

    Parameters
    ----------
    graph : Graph
        Graph to export
    weighted : bool, default True
        Carry tie strengths as edge weights. Unweighted exports give every
        edge length 1, which is what the hop-based centralities need.
    include_dangling : bool, default True
        Export adjacency keys that are not members. When False, ties to
        unknown members are left out and the graph has one node per member.

    Returns
    -------
    nk_graph : nk.Graph
        NetworkIt graph with one edge per symmetric adjacency pair
    id_mapper : IDMapper
        Mapping between relgraph node ids and NetworkIt node ids. Members
        come first in node order (repeated ids mapped once), followed by any
        exported dangling endpoints.

    Raises
    ------
    GraphConstructionError
        If NetworkIt rejects the graph

    Examples
    --------
    >>> nk_graph, mapper = to_networkit(graph)
    >>> nk_graph.numberOfNodes() == mapper.size()
    True
    """
    node_order = list(dict.fromkeys(graph.nodes))
    if include_dangling:
        node_order += graph.dangling_nodes()

    try:
        id_mapper = IDMapper.from_ids(node_order)
        nk_graph = nk.Graph(id_mapper.size(), weighted=weighted, directed=False)

        for node in node_order:
            u = id_mapper.get_internal(node)
            for neighbor, weight in graph.neighbors(node).items():
                if not id_mapper.has_original(neighbor):
                    continue
                v = id_mapper.get_internal(neighbor)
                if u > v:
                    continue
                if weighted:
                    nk_graph.addEdge(u, v, float(weight))
                else:
                    nk_graph.addEdge(u, v)

    except Exception as e:
        raise GraphConstructionError(
            f"Failed to export graph to NetworkIt: {str(e)}",
            operation="to_networkit",
            node_count=len(node_order),
            cause=e
        )

    logger.debug("Exported graph to NetworkIt: %d nodes, %d edges",
                 nk_graph.numberOfNodes(), nk_graph.numberOfEdges())

    return nk_graph, id_mapper


def get_graph_info(graph: Graph) -> Dict[str, Any]:
    """
    Get summary information about a constructed graph.

    Returns
    -------
    Dict[str, Any]
        ``num_nodes``, ``num_edges``, ``total_weight``, ``density``,
        ``num_isolated``, ``num_dangling`` and ``num_components`` (connected
        components over members and dangling endpoints, via NetworkIt)

    Examples
    --------
    >>> info = get_graph_info(build_graph(["a", "b", "c"], []))
    >>> info["num_components"]
    3
    """
    n_nodes = graph.number_of_nodes()
    n_edges = graph.number_of_edges()

    if graph.adjacency:
        nk_graph, _ = to_networkit(graph)
        components = nk.components.ConnectedComponents(nk_graph)
        components.run()
        num_components = components.numberOfComponents()
    else:
        num_components = 0

    return {
        "num_nodes": n_nodes,
        "num_edges": n_edges,
        "total_weight": graph.total_weight,
        "density": (2.0 * n_edges) / (n_nodes * (n_nodes - 1)) if n_nodes > 1 else 0.0,
        "num_isolated": len(graph.isolated_nodes()),
        "num_dangling": len(graph.dangling_nodes()),
        "num_components": num_components
    }
