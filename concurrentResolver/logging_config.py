"""
Centralized logging configuration for concurrentResolver.

Provides structured JSONL logging with rotation, run-id injection and
component-specific loggers. The console handler writes to stderr so that
stdout only carries resolved result lines.

Run ID Propagation:
    Use `set_run_id()` at the start of a resolution run. The id is stored in
    a context variable, so every task spawned afterwards inherits it and it
    is included in each JSON record.

    Example:
        from concurrentResolver.logging_config import set_run_id, get_logger

        token = set_run_id(uuid.uuid4().hex)
        logger = get_logger("pipeline")
        logger.info("Worker started", extra={"worker_id": 3})
        # Log will include: "run_id": "<hex>"
"""
import contextvars
import json
import logging
import logging.handlers
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# Context variable for run ID propagation across asyncio tasks
_run_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "run_id", default=""
)


def set_run_id(run_id: str) -> contextvars.Token:
    """
    Set the current run ID for this context.

    Args:
        run_id: The run ID to set

    Returns:
        Token that can be used to reset the context variable
    """
    return _run_id_var.set(run_id)


def get_run_id() -> str:
    """Return the current run ID, or an empty string if not set."""
    return _run_id_var.get()


def reset_run_id(token: contextvars.Token) -> None:
    """Reset the run ID context variable to its previous state."""
    _run_id_var.reset(token)


class JSONLFormatter(logging.Formatter):
    """
    Formatter that outputs logs in JSON Lines format.
    Each log entry is a single-line JSON object with standardized fields.
    """

    # Structured attributes copied from `extra={...}` when present
    EXTRA_ATTRS = (
        "action", "outcome", "state", "error_type", "duration",
        "worker_id", "domain", "ip", "input", "mode", "concurrency",
        "lines_read", "outcomes", "resolved", "unresolved", "emitted",
        "unique_ips", "elapsed_seconds", "path", "timeout", "nameservers",
    )

    def __init__(self, component: str = "concurrentresolver"):
        super().__init__()
        self.component = component
        self.hostname = os.getenv("HOSTNAME", os.getenv("COMPUTERNAME", "unknown"))

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "component": self.component,
            "logger": record.name,
            "message": record.getMessage(),
            "hostname": self.hostname,
            "process_id": record.process,
            "task": getattr(record, "taskName", None),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        run_id = get_run_id()
        if run_id:
            log_data["run_id"] = run_id

        if record.exc_info and record.exc_info[0] is not None:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        for attr in self.EXTRA_ATTRS:
            if hasattr(record, attr):
                log_data[attr] = getattr(record, attr)

        return json.dumps(log_data, default=str)


def setup_logging(
    component: str = "concurrentresolver",
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    max_bytes: Optional[int] = None,
    backup_count: int = 5,
    enable_console: bool = True,
) -> logging.Logger:
    """
    Set up logging for a concurrentResolver component.

    Args:
        component: Component name (cli, pipeline, lookup, output, etc.)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (default: logs/concurrent-resolver.jsonl)
        max_bytes: Max bytes per log file before rotation (default: 100MB)
        backup_count: Number of backup files to keep (default: 5)
        enable_console: Whether to enable stderr logging (default: True)

    Returns:
        Configured logger instance
    """
    log_level = (log_level or os.getenv("CRESOLVER_LOG_LEVEL", "INFO")).upper()
    log_file = log_file or os.getenv("CRESOLVER_LOG_FILE", "logs/concurrent-resolver.jsonl")
    max_bytes = max_bytes or int(os.getenv("CRESOLVER_LOG_MAX_BYTES", str(100 * 1024 * 1024)))

    numeric_level = getattr(logging, log_level, logging.INFO)

    logger = logging.getLogger(f"concurrentresolver.{component}")
    logger.setLevel(numeric_level)
    logger.propagate = False

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    log_dir = os.path.dirname(log_file)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir, exist_ok=True)

    try:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(JSONLFormatter(component=component))
        logger.addHandler(file_handler)
    except OSError as e:
        sys.stderr.write(f"Failed to set up file logging to {log_file}: {e}\n")

    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(console_handler)

    logger.debug(
        "Logging configured",
        extra={"state": "configured", "path": log_file},
    )

    return logger


def get_logger(component: str) -> logging.Logger:
    """
    Get or create the logger for a component.

    The logger is configured with defaults the first time it is requested.
    """
    logger = logging.getLogger(f"concurrentresolver.{component}")
    if not logger.handlers:
        logger = setup_logging(component)
    return logger


def set_level(level: str) -> None:
    """Change the level of every configured concurrentResolver logger and its handlers."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    for name, logger in logging.Logger.manager.loggerDict.items():
        if not name.startswith("concurrentresolver.") or not isinstance(logger, logging.Logger):
            continue
        logger.setLevel(numeric_level)
        for handler in logger.handlers:
            handler.setLevel(numeric_level)
