"""
relgraph - Weighted relationship graph analytics.

Computes who matters (degree, betweenness and closeness centrality) and which
members cluster together (Louvain community detection) in a map of members
connected by weighted ties.

Modules:
    common: Shared utilities for exceptions, logging, ID mapping and validation
    network: Graph construction, modularity, centrality and communities
"""

from ._version import __version__

from .common.exceptions import (
    NetworkAnalysisError,
    ValidationError,
    DataFormatError,
    GraphConstructionError,
    ConfigurationError,
    ComputationError
)
from .common.logging_config import setup_logging, get_logger

from .network.construction import Graph, build_graph, build_graph_from_dataframes
from .network.modularity import calculate_modularity
from .network.centrality import (
    calculate_degree_centrality,
    calculate_betweenness_centrality,
    calculate_closeness_centrality,
    calculate_all_centralities,
    rank_by_centrality,
    analyze_centrality
)
from .network.communities import louvain_community_detection, detect_communities

__all__ = [
    "__version__",
    "NetworkAnalysisError",
    "ValidationError",
    "DataFormatError",
    "GraphConstructionError",
    "ConfigurationError",
    "ComputationError",
    "setup_logging",
    "get_logger",
    "Graph",
    "build_graph",
    "build_graph_from_dataframes",
    "calculate_modularity",
    "calculate_degree_centrality",
    "calculate_betweenness_centrality",
    "calculate_closeness_centrality",
    "calculate_all_centralities",
    "rank_by_centrality",
    "analyze_centrality",
    "louvain_community_detection",
    "detect_communities",
]
