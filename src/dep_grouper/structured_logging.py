"""
Structured logging configuration for dep-grouper.

Provides consistent, machine-readable logging for grouping runs and
plain-text loggers for user-facing configuration warnings.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

_RECORD_ATTRIBUTES = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "message",
    "exc_info",
    "exc_text",
    "stack_info",
}


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": getattr(record, "component", record.name),
            "message": record.getMessage(),
        }

        # Add extra fields from record
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class StderrHandler(logging.StreamHandler):
    """Stream handler bound to whatever sys.stderr is when a record is emitted."""

    def __init__(self, level: int = logging.NOTSET):
        logging.Handler.__init__(self, level)

    @property
    def stream(self):
        return sys.stderr


class EventLogger:
    """Structured logger for grouping events."""

    def __init__(self, name: str = "dep_grouper.events"):
        self.logger = logging.getLogger(name)
        self.run_context: Dict[str, Any] = {}

    def set_run_context(
        self,
        run_id: Optional[str] = None,
        groups_file: Optional[str] = None,
        total_dependencies: Optional[int] = None,
    ) -> None:
        """Set run context for logging."""
        self.run_context = {}
        if run_id:
            self.run_context["run_id"] = run_id
        if groups_file:
            self.run_context["groups_file"] = groups_file
        if total_dependencies is not None:
            self.run_context["total_dependencies"] = total_dependencies

    def clear_run_context(self) -> None:
        """Clear run context."""
        self.run_context.clear()

    def _log(self, level: str, event_type: str, **kwargs) -> None:
        log_data = {"event_type": event_type, **self.run_context, **kwargs}
        getattr(self.logger, level)(event_type, extra=log_data)

    def info(self, event_type: str, **kwargs) -> None:
        """Log info level event."""
        self._log("info", event_type, **kwargs)

    def debug(self, event_type: str, **kwargs) -> None:
        """Log debug level event."""
        self._log("debug", event_type, **kwargs)


# Global logger instances
_event_logger = EventLogger("dep_grouper.events")
_engine_logger = logging.getLogger("dep_grouper.engine")
_cli_logger = logging.getLogger("dep_grouper.cli")


def get_event_logger() -> EventLogger:
    """Get grouping events logger."""
    return _event_logger


def get_engine_logger() -> logging.Logger:
    """Get the logger that receives configuration warnings from the engine."""
    return _engine_logger


def get_cli_logger() -> logging.Logger:
    """Get command line logger."""
    return _cli_logger


def log_engine_created(group_names: List[str]) -> None:
    """Log engine construction."""
    get_event_logger().debug(
        "engine_created", group_count=len(group_names), groups=group_names
    )


def log_assignment_complete(
    group_counts: Dict[str, int], ungrouped_count: int, empty_groups: List[str]
) -> None:
    """Log the outcome of an assignment pass."""
    logger = get_event_logger()
    log_data = {
        "group_counts": group_counts,
        "ungrouped_count": ungrouped_count,
        "empty_groups": empty_groups,
    }

    if empty_groups:
        logger.info("assignment_completed_with_empty_groups", **log_data)
    else:
        logger.debug("assignment_completed", **log_data)


def configure_logging(log_level: str = "WARNING", enable_json: bool = False) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Name of the level for all dep-grouper loggers
        enable_json: Emit structured JSON lines instead of plain messages
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)

    package_logger = logging.getLogger("dep_grouper")
    package_logger.setLevel(level)

    handler = StderrHandler()
    if enable_json:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    for existing in list(package_logger.handlers):
        package_logger.removeHandler(existing)
    package_logger.addHandler(handler)
