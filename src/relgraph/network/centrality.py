"""
Centrality analysis module for the relgraph library.

Computes degree, betweenness (Brandes) and closeness centrality over a
``Graph`` and ranks members by their scores. Betweenness and closeness run
on NetworkIt over an unweighted export of the member graph: shortest paths
are measured in hops because tie strength is association confidence, not
distance.
"""

from concurrent.futures import ProcessPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional
import multiprocessing
import warnings

import networkit as nk
import numpy as np
import polars as pl
from scipy.stats import spearmanr

from relgraph.common.exceptions import (
    ComputationError,
    ConfigurationError,
    ValidationError,
    require_positive,
    validate_parameter
)
from relgraph.common.logging_config import get_logger, log_function_entry, LoggingTimer
from relgraph.common.validators import extract_entity_id, extract_entity_name, validate_graph_inputs
from relgraph.network.construction import Graph, build_graph, to_networkit

logger = get_logger(__name__)

CentralityScores = Dict[str, float]

AVAILABLE_METRICS = ["degree", "betweenness", "closeness"]
DEFAULT_TOP_N = 10
UNKNOWN_MEMBER_NAME = "Unknown"


def calculate_degree_centrality(graph: Graph) -> CentralityScores:
    """
    Degree centrality: fraction of the other nodes a node is tied to.

    Counts distinct neighbors, not the sum of tie strengths, and divides by
    ``n - 1``. Every score is 0 when the graph has at most one node.

    Examples
    --------
    >>> graph = build_graph(["hub", "a", "b"], [
    ...     {"source_id": "hub", "target_id": "a", "strength": 5},
    ...     {"source_id": "hub", "target_id": "b", "strength": 1},
    ... ])
    >>> calculate_degree_centrality(graph)
    {'hub': 1.0, 'a': 0.5, 'b': 0.5}
    """
    n = graph.number_of_nodes()
    scores: CentralityScores = {}

    for node in graph.nodes:
        degree = len(graph.neighbors(node))
        scores[node] = degree / (n - 1) if n > 1 else 0.0

    return scores


def calculate_betweenness_centrality(graph: Graph) -> CentralityScores:
    """
    Betweenness centrality on hop distances (Brandes' algorithm).

    The members and their ties are exported as an unweighted NetworkIt
    graph and scored with ``nk.centrality.Betweenness``. Scores are divided
    by ``(n - 1)(n - 2)`` when ``n > 2`` and left raw otherwise.

    Parameters
    ----------
    graph : Graph
        Graph to analyze

    Returns
    -------
    CentralityScores
        Score for every node in ``graph.nodes``; roughly within [0, 1]

    Notes
    -----
    Time Complexity: O(V * E). Ties to ids outside ``graph.nodes`` are not
    traversed.
    """
    n = graph.number_of_nodes()
    log_function_entry("calculate_betweenness_centrality", n_nodes=n)

    if n == 0:
        return {}

    nk_graph, id_mapper = to_networkit(graph, weighted=False, include_dangling=False)

    with LoggingTimer("betweenness_centrality", {"nodes": n}):
        bc = nk.centrality.Betweenness(nk_graph, normalized=nk_graph.numberOfNodes() > 2)
        bc.run()
        values = bc.scores()

    return {node: float(values[id_mapper.get_internal(node)]) for node in graph.nodes}


def calculate_closeness_centrality(graph: Graph) -> CentralityScores:
    """
    Closeness centrality scaled by the fraction of reachable nodes.

    With ``r`` other nodes reachable from a node at total hop distance ``D``,
    the score is ``(r / (n - 1)) * (r / D)``, and 0 when ``r`` or ``D`` is 0.
    This is NetworkIt's generalized closeness on the unweighted member graph.
    Nodes that can only reach a small part of a disconnected graph score low
    even when their local distances are short.

    Examples
    --------
    >>> graph = build_graph(["a", "b", "c"], [
    ...     {"source_id": "a", "target_id": "b", "strength": 2},
    ... ])
    >>> calculate_closeness_centrality(graph)
    {'a': 0.5, 'b': 0.5, 'c': 0.0}
    """
    n = graph.number_of_nodes()
    log_function_entry("calculate_closeness_centrality", n_nodes=n)

    if n <= 1:
        return {node: 0.0 for node in graph.nodes}

    nk_graph, id_mapper = to_networkit(graph, weighted=False, include_dangling=False)

    with LoggingTimer("closeness_centrality", {"nodes": n}):
        cc = nk.centrality.Closeness(nk_graph, True, nk.centrality.ClosenessVariant.GENERALIZED)
        cc.run()
        values = cc.scores()

    scores: CentralityScores = {}
    for node in graph.nodes:
        u = id_mapper.get_internal(node)
        # isolated members score 0
        scores[node] = float(values[u]) if nk_graph.degree(u) > 0 else 0.0

    return scores



_CENTRALITY_FUNCTIONS: Dict[str, Callable[[Graph], CentralityScores]] = {
    "degree": calculate_degree_centrality,
    "betweenness": calculate_betweenness_centrality,
    "closeness": calculate_closeness_centrality,
}


def calculate_all_centralities(graph: Graph) -> Dict[str, CentralityScores]:
    """
    Compute degree, betweenness and closeness centrality in one call.

    Returns
    -------
    Dict[str, CentralityScores]
        ``{"degree": ..., "betweenness": ..., "closeness": ...}``
    """
    return {
        "degree": calculate_degree_centrality(graph),
        "betweenness": calculate_betweenness_centrality(graph),
        "closeness": calculate_closeness_centrality(graph),
    }


def rank_by_centrality(
    scores: CentralityScores,
    limit: Optional[int] = None
) -> List[Dict[str, Any]]:
    """
    Rank nodes by descending score.

    Parameters
    ----------
    scores : CentralityScores
        Scores to rank
    limit : int, optional
        Keep only the first ``limit`` entries. ``None`` or 0 keeps all.

    Returns
    -------
    List[Dict[str, Any]]
        Entries ``{"node_id", "score", "rank"}`` with 1-based ranks taken
        from the sort position. Equal scores keep their input order.

    Raises
    ------
    ConfigurationError
        If ``limit`` is negative

    Examples
    --------
    >>> rank_by_centrality({"1": 0.8, "2": 0.5, "3": 0.9}, limit=2)
    [{'node_id': '3', 'score': 0.9, 'rank': 1}, {'node_id': '1', 'score': 0.8, 'rank': 2}]
    """
    if limit is not None:
        require_positive(limit, "limit", allow_zero=True)

    ordered = sorted(scores.items(), key=lambda item: item[1], reverse=True)
    rankings = [
        {"node_id": node_id, "score": score, "rank": index + 1}
        for index, (node_id, score) in enumerate(ordered)
    ]

    return rankings[:limit] if limit else rankings


def extract_centrality(
    graph: Graph,
    metrics: Optional[List[str]] = None,
    n_jobs: int = 1
) -> pl.DataFrame:
    """
    Calculate centrality metrics for all nodes as a Polars DataFrame.

    Parameters
    ----------
    graph : Graph
        Graph to analyze
    metrics : List[str], optional
        Any of ``"degree"``, ``"betweenness"``, ``"closeness"``. Defaults to all.
    n_jobs : int, default 1
        1 computes metrics sequentially; -1 or >1 computes each metric in a
        separate worker process.

    Returns
    -------
    pl.DataFrame
        ``node_id`` column in graph node order plus one
        ``{metric}_centrality`` column per requested metric

    Raises
    ------
    ConfigurationError
        If metrics are unknown or n_jobs is 0
    ComputationError
        If a metric calculation fails unexpectedly

    Examples
    --------
    >>> df = extract_centrality(graph, ["degree", "betweenness"])
    >>> df.columns
    ['node_id', 'degree_centrality', 'betweenness_centrality']
    """
    metrics = list(metrics) if metrics is not None else list(AVAILABLE_METRICS)
    log_function_entry("extract_centrality",
                       n_nodes=graph.number_of_nodes(), metrics=metrics, n_jobs=n_jobs)

    _validate_centrality_parameters(metrics, n_jobs)

    centrality_data = _calculate_centralities(graph, metrics, n_jobs)

    df_data: Dict[str, List[Any]] = {"node_id": list(graph.nodes)}
    for metric in metrics:
        scores = centrality_data[metric]
        df_data[f"{metric}_centrality"] = [float(scores.get(node, 0.0)) for node in graph.nodes]

    schema = {"node_id": pl.Utf8, **{f"{metric}_centrality": pl.Float64 for metric in metrics}}
    return pl.DataFrame(df_data, schema=schema)


def _validate_centrality_parameters(metrics: List[str], n_jobs: int) -> None:
    if not metrics:
        raise ConfigurationError("At least one centrality metric must be specified",
                                 parameter="metrics")

    for metric in metrics:
        validate_parameter(metric, AVAILABLE_METRICS, "metrics", "extract_centrality")

    if n_jobs == 0:
        raise ConfigurationError("n_jobs cannot be 0", parameter="n_jobs", value=n_jobs)


def _calculate_centralities(
    graph: Graph,
    metrics: List[str],
    n_jobs: int
) -> Dict[str, CentralityScores]:
    """Run the requested metrics sequentially or in a process pool."""
    if n_jobs == 1 or len(metrics) == 1:
        centrality_data = {}
        for metric in metrics:
            try:
                centrality_data[metric] = _calculate_single_centrality(graph, metric)
            except Exception as e:
                raise ComputationError(
                    f"Failed to calculate {metric} centrality: {str(e)}",
                    operation=f"calculate_{metric}",
                    error_type="computation",
                    resource_info={"nodes": graph.number_of_nodes()},
                    cause=e
                )
        return centrality_data

    max_cores = multiprocessing.cpu_count()
    max_workers = min(len(metrics), max_cores if n_jobs < 0 else n_jobs)
    logger.debug("Calculating %d centralities with %d workers", len(metrics), max_workers)

    centrality_data = {}
    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        future_to_metric = {
            executor.submit(_calculate_single_centrality, graph, metric): metric
            for metric in metrics
        }

        for future in as_completed(future_to_metric):
            metric = future_to_metric[future]
            try:
                centrality_data[metric] = future.result()
            except Exception as e:
                raise ComputationError(
                    f"Failed to calculate {metric} centrality in parallel: {str(e)}",
                    operation=f"calculate_{metric}_parallel",
                    error_type="worker",
                    resource_info={"nodes": graph.number_of_nodes()},
                    cause=e
                )

    return centrality_data


def _calculate_single_centrality(graph: Graph, metric: str) -> CentralityScores:
    # must stay at module level to be picklable
    return _CENTRALITY_FUNCTIONS[metric](graph)


def get_centrality_summary(centrality_df: pl.DataFrame) -> Dict[str, Dict[str, float]]:
    """
    Summary statistics for every ``*_centrality`` column.

    Returns
    -------
    Dict[str, Dict[str, float]]
        Per column: ``count``, ``mean``, ``std``, ``min``, ``max``, ``median``.
        Statistics of an empty frame are reported as 0.0.
    """
    summary = {}

    for col in centrality_df.columns:
        if not col.endswith("_centrality"):
            continue

        values = centrality_df[col]
        summary[col] = {
            "count": len(values),
            "mean": _as_float(values.mean()),
            "std": _as_float(values.std()),
            "min": _as_float(values.min()),
            "max": _as_float(values.max()),
            "median": _as_float(values.median()),
        }

    return summary


def _as_float(value: Any) -> float:
    return float(value) if value is not None else 0.0


def compare_centrality_metrics(
    centrality_df: pl.DataFrame,
    metric1: str,
    metric2: str
) -> Dict[str, float]:
    """
    Correlate two centrality columns.

    Returns
    -------
    Dict[str, float]
        ``pearson`` (numpy) and ``spearman`` (scipy) coefficients and
        ``n_nodes``. Undefined correlations (constant columns, fewer than two
        nodes) are reported as 0.0.

    Raises
    ------
    ValidationError
        If either column is missing
    """
    for metric in (metric1, metric2):
        if metric not in centrality_df.columns:
            raise ValidationError(
                f"Metric '{metric}' not found in DataFrame",
                field="metric",
                value=metric
            )

    values1 = centrality_df[metric1].to_numpy()
    values2 = centrality_df[metric2].to_numpy()

    if len(values1) < 2:
        return {"pearson": 0.0, "spearman": 0.0, "n_nodes": len(values1)}

    with warnings.catch_warnings(), np.errstate(invalid="ignore", divide="ignore"):
        warnings.simplefilter("ignore")
        pearson_corr = np.corrcoef(values1, values2)[0, 1]
        spearman_corr = spearmanr(values1, values2)[0]

    return {
        "pearson": float(pearson_corr) if not np.isnan(pearson_corr) else 0.0,
        "spearman": float(spearman_corr) if not np.isnan(spearman_corr) else 0.0,
        "n_nodes": len(values1)
    }


def analyze_centrality(
    entities: Iterable[Any],
    ties: Iterable[Any],
    top_n: int = DEFAULT_TOP_N,
    map_id: Optional[str] = None,
    validate: bool = True,
    n_jobs: int = 1
) -> Dict[str, Any]:
    """
    Build a graph from members and ties and produce a full centrality report.

    Parameters
    ----------
    entities : Iterable[Any]
        Member records; an optional ``name`` is used for display
    ties : Iterable[Any]
        Tie records
    top_n : int, default 10
        Length of each top-influencer ranking
    map_id : str, optional
        Identifier of the relationship map, echoed in the report
    validate : bool, default True
        Run ``validate_graph_inputs`` before building the graph
    n_jobs : int, default 1
        Passed through to the metric computation (see ``extract_centrality``)

    Returns
    -------
    Dict[str, Any]
        - ``map_id``
        - ``scores``: one entry per member with ``member_id``, ``member_name``,
          ``degree``, ``betweenness``, ``closeness``
        - ``top_influencers``: ``by_degree``, ``by_betweenness``,
          ``by_closeness`` rankings of ``member_id``, ``member_name``,
          ``score``, ``rank``
        - ``statistics``: average and maximum of each metric
        - ``analyzed_at``: UTC timestamp

    Raises
    ------
    ValidationError
        If ``validate`` is set and the input is inconsistent
    ConfigurationError
        If ``top_n`` is negative or ``n_jobs`` is 0
    ComputationError
        If the analysis fails unexpectedly
    """
    entities = list(entities)
    ties = list(ties)
    log_function_entry("analyze_centrality", map_id=map_id,
                       n_entities=len(entities), n_ties=len(ties), top_n=top_n)

    require_positive(top_n, "top_n", allow_zero=True)
    _validate_centrality_parameters(AVAILABLE_METRICS, n_jobs)
    if validate:
        validate_graph_inputs(entities, ties)

    with LoggingTimer("analyze_centrality", {"nodes": len(entities), "ties": len(ties)}):
        try:
            graph = build_graph(entities, ties)
            centrality = _calculate_centralities(graph, AVAILABLE_METRICS, n_jobs)

            names: Dict[str, str] = {}
            scores = []
            for entity in entities:
                member_id = extract_entity_id(entity)
                member_name = extract_entity_name(entity) or UNKNOWN_MEMBER_NAME
                names[member_id] = member_name
                scores.append({
                    "member_id": member_id,
                    "member_name": member_name,
                    "degree": centrality["degree"].get(member_id, 0.0),
                    "betweenness": centrality["betweenness"].get(member_id, 0.0),
                    "closeness": centrality["closeness"].get(member_id, 0.0),
                })

            top_influencers = {
                f"by_{metric}": [
                    {
                        "member_id": entry["node_id"],
                        "member_name": names.get(entry["node_id"], UNKNOWN_MEMBER_NAME),
                        "score": entry["score"],
                        "rank": entry["rank"],
                    }
                    for entry in rank_by_centrality(centrality[metric], top_n)
                ]
                for metric in AVAILABLE_METRICS
            }

            statistics = {}
            for metric in AVAILABLE_METRICS:
                values = np.array(list(centrality[metric].values()), dtype=float)
                statistics[f"average_{metric}"] = float(values.mean()) if values.size else 0.0
                statistics[f"max_{metric}"] = float(values.max()) if values.size else 0.0

        except Exception as e:
            if isinstance(e, ComputationError):
                raise
            raise ComputationError(
                f"Centrality analysis failed: {str(e)}",
                operation="analyze_centrality",
                error_type="computation",
                resource_info={"nodes": len(entities), "ties": len(ties)},
                cause=e
            )

    logger.info("Centrality analysis completed: map=%s, %d members", map_id, len(scores))

    return {
        "map_id": map_id,
        "scores": scores,
        "top_influencers": top_influencers,
        "statistics": statistics,
        "analyzed_at": datetime.now(timezone.utc),
    }
