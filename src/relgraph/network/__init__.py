"""
Relationship graph analysis module.

This module provides the analytic core:
- Graph construction from member and tie lists (and Polars tables)
- Modularity of a community assignment
- Centrality measures (degree, betweenness, closeness) and rankings
- Community detection using the Louvain method
"""

# Graph construction functions
from .construction import (
    Graph,
    build_graph,
    build_graph_from_dataframes,
    to_networkit,
    get_graph_info
)

# Modularity functions
from .modularity import (
    CommunityAssignment,
    calculate_modularity,
    weight_to_community,
    community_internal_weight,
    community_total_degree
)

# Centrality functions
from .centrality import (
    AVAILABLE_METRICS,
    DEFAULT_TOP_N,
    calculate_degree_centrality,
    calculate_betweenness_centrality,
    calculate_closeness_centrality,
    calculate_all_centralities,
    rank_by_centrality,
    extract_centrality,
    get_centrality_summary,
    compare_centrality_metrics,
    analyze_centrality
)

# Community detection functions
from .communities import (
    COMMUNITY_COLORS,
    DEFAULT_MAX_ITERATIONS,
    louvain_community_detection,
    group_by_community,
    detect_communities,
    sort_communities_by_size,
    filter_small_communities,
    calculate_community_stats,
    communities_to_dataframe
)
