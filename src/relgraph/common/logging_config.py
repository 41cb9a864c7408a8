"""
Logging configuration for the relgraph library.

All library modules log through ``get_logger(__name__)``, which places them
under the ``relgraph`` logger hierarchy. Nothing is emitted until the host
application calls ``setup_logging()`` (or configures ``relgraph`` itself).
Timings for the expensive analyses go to ``relgraph.performance``.
"""

import json
import logging
import logging.handlers
import os
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any


ROOT_LOGGER_NAME = "relgraph"
PERFORMANCE_LOGGER_NAME = "relgraph.performance"

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s.%(funcName)s:%(lineno)d | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_FILENAME = "relgraph.log"
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
DEFAULT_BACKUP_COUNT = 5

ENV_LOG_LEVEL = "RELGRAPH_LOG_LEVEL"
ENV_LOG_FILE = "RELGRAPH_LOG_FILE"
ENV_LOG_DIR = "RELGRAPH_LOG_DIR"
ENV_LOG_FORMAT = "RELGRAPH_LOG_FORMAT"
ENV_LOG_CONSOLE = "RELGRAPH_LOG_CONSOLE"
ENV_LOG_JSON = "RELGRAPH_LOG_JSON"

# LogRecord attributes that are not user-supplied ``extra`` fields
_RESERVED_RECORD_KEYS = {
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "exc_info", "exc_text",
    "stack_info", "message", "taskName"
}


class JSONFormatter(logging.Formatter):
    """
    Render log records as single-line JSON objects.

    Fields passed through ``extra=`` (for example the ``operation`` and
    ``duration`` attached by ``log_performance_metric``) are included as
    top-level keys.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_obj[key] = value

        return json.dumps(log_obj, default=str)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Parameters
    ----------
    name : str
        The name for the logger (typically ``__name__``)

    Returns
    -------
    logging.Logger
        Logger that inherits the ``relgraph`` configuration
    """
    return logging.getLogger(name)


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    console: Optional[bool] = None,
    json_format: Optional[bool] = None,
    format_string: Optional[str] = None,
    date_format: Optional[str] = None,
    max_file_size: Optional[int] = None,
    backup_count: Optional[int] = None,
    force_setup: bool = False
) -> logging.Logger:
    """
    Configure the ``relgraph`` root logger.

    Explicit arguments take precedence over environment variables, which take
    precedence over the module defaults. File logging is only enabled when a
    log file or a log directory is given. The NetworkIt, Polars and
    process-pool loggers are quieted to WARNING.

    Parameters
    ----------
    level : str, optional
        Logging level name. Falls back to ``RELGRAPH_LOG_LEVEL``, then INFO.
    log_file : str, optional
        Path to a log file. Falls back to ``RELGRAPH_LOG_FILE``.
    log_dir : str, optional
        Directory for ``relgraph.log`` when no explicit file is given.
        Falls back to ``RELGRAPH_LOG_DIR``.
    console : bool, optional
        Log to stdout. Falls back to ``RELGRAPH_LOG_CONSOLE``, then True.
    json_format : bool, optional
        Use ``JSONFormatter``. Falls back to ``RELGRAPH_LOG_JSON``, then False.
    format_string : str, optional
        Format string for plain-text output.
    date_format : str, optional
        Timestamp format for plain-text output.
    max_file_size : int, optional
        Rotation threshold in bytes for the file handler.
    backup_count : int, optional
        Number of rotated files to keep.
    force_setup : bool, default False
        Reconfigure even if handlers are already installed.

    Returns
    -------
    logging.Logger
        The configured ``relgraph`` logger

    Raises
    ------
    ValueError
        If an unknown logging level is requested

    Examples
    --------
    >>> logger = setup_logging(level="DEBUG")
    >>> logger = setup_logging(log_dir="/var/log/relgraph", json_format=True,
    ...                        console=False, force_setup=True)
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)

    if not force_setup and root_logger.handlers:
        return root_logger

    if force_setup:
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

    config = _resolve_logging_config(
        level=level,
        log_file=log_file,
        log_dir=log_dir,
        console=console,
        json_format=json_format,
        format_string=format_string,
        date_format=date_format,
        max_file_size=max_file_size,
        backup_count=backup_count
    )

    log_level = logging.getLevelName(config["level"].upper())
    if not isinstance(log_level, int):
        raise ValueError(f"Invalid logging level: {config['level']}")
    root_logger.setLevel(log_level)

    if config["json_format"]:
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            fmt=config["format_string"],
            datefmt=config["date_format"]
        )

    if config["console"]:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if config["log_file"]:
        Path(config["log_file"]).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=config["log_file"],
            maxBytes=config["max_file_size"],
            backupCount=config["backup_count"],
            encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.propagate = False
    configure_external_library_logging()

    root_logger.info(
        "Logging configured: level=%s, console=%s, file=%s, json=%s",
        config["level"], config["console"],
        config["log_file"] or "None", config["json_format"]
    )

    return root_logger


def _resolve_logging_config(**kwargs) -> Dict[str, Any]:
    """Merge explicit arguments, environment variables and defaults."""

    def _get_bool_env(env_var: str, default: bool) -> bool:
        value = os.getenv(env_var, "").lower()
        if value in ("true", "yes", "1", "on"):
            return True
        elif value in ("false", "no", "0", "off"):
            return False
        return default

    level = kwargs.get("level") or os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL)

    log_file = kwargs.get("log_file") or os.getenv(ENV_LOG_FILE)
    log_dir = kwargs.get("log_dir") or os.getenv(ENV_LOG_DIR)
    if not log_file and log_dir:
        log_file = os.path.join(log_dir, DEFAULT_LOG_FILENAME)

    console = kwargs.get("console")
    if console is None:
        console = _get_bool_env(ENV_LOG_CONSOLE, True)

    json_format = kwargs.get("json_format")
    if json_format is None:
        json_format = _get_bool_env(ENV_LOG_JSON, False)

    return {
        "level": level,
        "log_file": log_file,
        "console": console,
        "json_format": json_format,
        "format_string": kwargs.get("format_string") or os.getenv(ENV_LOG_FORMAT, DEFAULT_LOG_FORMAT),
        "date_format": kwargs.get("date_format") or DEFAULT_DATE_FORMAT,
        "max_file_size": kwargs.get("max_file_size") or DEFAULT_MAX_FILE_SIZE,
        "backup_count": kwargs.get("backup_count") or DEFAULT_BACKUP_COUNT,
    }


def configure_external_library_logging(
    libraries: Optional[Dict[str, str]] = None
) -> None:
    """
    Set log levels for the third-party libraries relgraph depends on.

    Parameters
    ----------
    libraries : Dict[str, str], optional
        Mapping of logger name to level name. Defaults to WARNING for
        networkit, polars and concurrent.futures. Unknown level names are
        skipped.
    """
    config = libraries or {
        "networkit": "WARNING",
        "polars": "WARNING",
        "concurrent.futures": "WARNING",
    }

    for library_name, level in config.items():
        library_level = logging.getLevelName(level.upper())
        if isinstance(library_level, int):
            logging.getLogger(library_name).setLevel(library_level)


def log_function_entry(func_name: str, **kwargs) -> None:
    """
    Log function entry with its parameters at DEBUG level.

    Examples
    --------
    >>> log_function_entry("calculate_betweenness_centrality", n_nodes=120)
    """
    logger = get_logger(f"{ROOT_LOGGER_NAME}.debug")
    if logger.isEnabledFor(logging.DEBUG):
        param_str = ", ".join(f"{k}={v}" for k, v in kwargs.items())
        logger.debug("Entering %s(%s)", func_name, param_str)


def log_performance_metric(
    operation: str,
    duration: float,
    details: Optional[Dict[str, Any]] = None
) -> None:
    """
    Log how long an operation took.

    Parameters
    ----------
    operation : str
        Name of the operation that was timed
    duration : float
        Duration in seconds
    details : Dict[str, Any], optional
        Size information about the operation (node count, etc.)
    """
    logger = get_logger(PERFORMANCE_LOGGER_NAME)

    message = f"Performance: {operation} completed in {duration:.3f}s"
    if details:
        detail_str = ", ".join(f"{k}={v}" for k, v in details.items())
        message += f" ({detail_str})"

    logger.info(message, extra={"operation": operation, "duration": duration, **(details or {})})


class LoggingTimer:
    """
    Context manager that times a block and reports it via ``log_performance_metric``.

    Examples
    --------
    >>> with LoggingTimer("louvain_community_detection", {"nodes": 250}):
    ...     pass
    """

    def __init__(self, operation: str, details: Optional[Dict[str, Any]] = None):
        self.operation = operation
        self.details = details or {}
        self.start_time: Optional[float] = None
        self.duration: Optional[float] = None

    def __enter__(self) -> "LoggingTimer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time is not None:
            self.duration = time.perf_counter() - self.start_time
            log_performance_metric(self.operation, self.duration, self.details)
