"""
Exception hierarchy for the relgraph library.

The analytic core degrades to neutral values (zero scores, zero modularity)
instead of raising, so these exceptions are reserved for the edges of the
library: invalid parameters, malformed member or tie collections handed over
by a collaborator, NetworkIt export failures, and unexpected failures inside
the report functions.
"""

from typing import Any, Dict, List, Optional, Union

# collections longer than this are summarized in error messages
_MAX_RENDERED_ITEMS = 10


def _render_pairs(values: Dict[str, Any]) -> str:
    rendered = []
    for key, value in values.items():
        if isinstance(value, (list, dict, set)) and len(value) > _MAX_RENDERED_ITEMS:
            value = f"<{type(value).__name__} with {len(value)} items>"
        rendered.append(f"{key}={value}")
    return ", ".join(rendered)


class NetworkAnalysisError(Exception):
    """
    Base exception for all relgraph errors.

    Parameters
    ----------
    message : str
        What went wrong
    details : Dict[str, Any], optional
        Structured facts about the offending input (ids, counts, values)
    cause : Exception, optional
        Underlying exception; also set as ``__cause__``
    context : Dict[str, Any], optional
        The operation that was running when the error occurred

    Examples
    --------
    >>> raise NetworkAnalysisError("Graph analysis failed", details={"nodes": 0})
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        self.message = message
        self.details = dict(details or {})
        self.context = dict(context or {})
        self.cause = cause

        parts = [message]
        if self.details:
            parts.append(f"(Details: {_render_pairs(self.details)})")
        if self.context:
            parts.append(f"(Context: {_render_pairs(self.context)})")
        super().__init__(" ".join(parts))

        if cause is not None:
            self.__cause__ = cause


class ValidationError(NetworkAnalysisError):
    """
    Member or tie input that does not describe a consistent graph.

    Raised by the collaborator-side validators, never by ``build_graph``,
    which tolerates ties to unknown members.

    Parameters
    ----------
    message : str
        What is wrong with the input
    field : str, optional
        Record field or column at fault (``"id"``, ``"target_id"``, ...)
    value : Any, optional
        The offending value
    expected : str, optional
        What the field should contain
    tie_index : int, optional
        Position of the offending tie in the tie list

    Examples
    --------
    >>> raise ValidationError("Tie references unknown member",
    ...                       field="target_id", value="m9", tie_index=3)
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        expected: Optional[str] = None,
        tie_index: Optional[int] = None,
        **kwargs
    ) -> None:
        self.field = field
        self.value = value
        self.expected = expected
        self.tie_index = tie_index

        details = kwargs.pop("details", None) or {}
        for key, item in (("field", field), ("invalid_value", value),
                          ("expected", expected), ("tie_index", tie_index)):
            if item is not None:
                details[key] = item

        prefix = f"Invalid {field}" if field else "Invalid input"
        super().__init__(f"{prefix}: {message}", details=details, **kwargs)


class DataFormatError(ValidationError):
    """
    A member or tie table lacks the columns the graph builder needs.

    Parameters
    ----------
    message : str
        Description of the format error
    columns : List[str], optional
        Columns the table actually has
    """

    def __init__(
        self,
        message: str,
        columns: Optional[List[str]] = None,
        **kwargs
    ) -> None:
        self.columns = list(columns) if columns is not None else None

        details = kwargs.pop("details", None) or {}
        if self.columns is not None:
            details["available_columns"] = self.columns
        super().__init__(message, details=details, **kwargs)


class GraphConstructionError(NetworkAnalysisError):
    """
    A ``Graph`` could not be exported to NetworkIt.

    Parameters
    ----------
    message : str
        Description of the failure
    node_count : int, optional
        Number of nodes being exported
    operation : str, optional
        Export step that failed
    """

    def __init__(
        self,
        message: str,
        node_count: Optional[int] = None,
        operation: Optional[str] = None,
        **kwargs
    ) -> None:
        self.node_count = node_count
        self.operation = operation

        context = {}
        if operation:
            context["operation"] = operation
        if node_count is not None:
            context["node_count"] = node_count
        super().__init__(message, context=context, **kwargs)


class ConfigurationError(NetworkAnalysisError):
    """
    An analysis parameter is out of range or not one of the known options.

    Parameters
    ----------
    message : str
        Description of the problem
    parameter : str, optional
        Parameter name (``"limit"``, ``"metrics"``, ``"n_jobs"``, ...)
    value : Any, optional
        The rejected value
    valid_options : List[Any], optional
        Accepted values, appended to the message when given
    function : str, optional
        Public function that received the parameter

    Examples
    --------
    >>> raise ConfigurationError("Unknown centrality metric", parameter="metrics",
    ...                          value="eigenvector", valid_options=["degree"])
    """

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        value: Optional[Any] = None,
        valid_options: Optional[List[Any]] = None,
        function: Optional[str] = None,
        **kwargs
    ) -> None:
        self.parameter = parameter
        self.value = value
        self.valid_options = valid_options
        self.function = function

        details = kwargs.pop("details", None) or {}
        if parameter:
            details["parameter"] = parameter
        if value is not None:
            details["invalid_value"] = value
        if function:
            details["function"] = function

        if parameter and valid_options:
            message = f"{message}. Valid options for '{parameter}': {valid_options}"
        super().__init__(message, details=details, **kwargs)


class ComputationError(NetworkAnalysisError):
    """
    A centrality or community analysis failed for reasons other than bad input.

    Parameters
    ----------
    message : str
        Description of the failure
    operation : str, optional
        Analysis that failed (``"analyze_centrality"``, ``"calculate_degree"``, ...)
    error_type : str, optional
        ``"computation"`` for in-process failures, ``"worker"`` for
        failures inside the process pool
    resource_info : Dict[str, Any], optional
        Graph size at the time of failure
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        error_type: Optional[str] = None,
        resource_info: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> None:
        self.operation = operation
        self.error_type = error_type
        self.resource_info = dict(resource_info or {})

        context = kwargs.pop("context", None) or {}
        if operation:
            context["operation"] = operation
        if error_type:
            context["error_type"] = error_type

        details = kwargs.pop("details", None) or {}
        details.update(self.resource_info)
        super().__init__(message, details=details, context=context, **kwargs)


def validate_parameter(
    value: Any,
    valid_options: List[Any],
    parameter_name: str,
    function_name: Optional[str] = None
) -> None:
    """Raise ConfigurationError unless ``value`` is one of ``valid_options``."""
    if value not in valid_options:
        raise ConfigurationError(
            f"Invalid value for parameter '{parameter_name}': {value}",
            parameter=parameter_name,
            value=value,
            valid_options=valid_options,
            function=function_name
        )


def require_positive(
    value: Union[int, float],
    parameter_name: str,
    allow_zero: bool = False
) -> None:
    """
    Reject counts and limits below their lower bound.

    Raises
    ------
    ConfigurationError
        If ``value`` is not positive, or negative when ``allow_zero`` is set
    """
    acceptable = value >= 0 if allow_zero else value > 0
    if not acceptable:
        requirement = "non-negative" if allow_zero else "positive"
        raise ConfigurationError(
            f"Parameter '{parameter_name}' must be {requirement}, got {value}",
            parameter=parameter_name,
            value=value
        )
