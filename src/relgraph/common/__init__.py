"""
Common utilities for the relgraph library.

This module provides shared functionality used by the network modules:
- Custom exception hierarchy
- Logging configuration
- ID mapping between member identifiers and integer node ids
- Access helpers and validators for member and tie input
"""

from .exceptions import (
    NetworkAnalysisError,
    ValidationError,
    DataFormatError,
    GraphConstructionError,
    ConfigurationError,
    ComputationError,
    validate_parameter,
    require_positive
)

from .id_mapper import IDMapper
from .validators import (
    extract_entity_id,
    extract_entity_name,
    extract_tie,
    validate_graph_inputs,
    validate_ties_dataframe
)

from .logging_config import (
    setup_logging,
    get_logger,
    configure_external_library_logging,
    log_function_entry,
    log_performance_metric,
    LoggingTimer,
    JSONFormatter
)
