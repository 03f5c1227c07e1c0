"""
Error handling for dep-grouper.

Provides the exception hierarchy, structured error contexts, and a central
handler that logs configuration problems and dispatches error callbacks.
"""

import logging
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class DependencyGroupError(Exception):
    """Base class for dependency grouping errors."""


class ConfigurationError(DependencyGroupError):
    """Raised when group configuration or engine usage is invalid."""


class ErrorLevel(Enum):
    """Error severity levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorCategory(Enum):
    """Error categories for better classification."""

    CONFIGURATION = "CONFIGURATION"
    VALIDATION = "VALIDATION"
    INPUT = "INPUT"


@dataclass
class ErrorContext:
    """Structured error context information."""

    level: ErrorLevel
    category: ErrorCategory
    message: str
    module: str
    function: str
    details: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None
    traceback_info: Optional[str] = None
    suggestions: List[str] = field(default_factory=list)


# Error callback type
ErrorCallback = Callable[[ErrorContext], None]

_LEVEL_MAP = {
    ErrorLevel.DEBUG: logging.DEBUG,
    ErrorLevel.INFO: logging.INFO,
    ErrorLevel.WARNING: logging.WARNING,
    ErrorLevel.ERROR: logging.ERROR,
    ErrorLevel.CRITICAL: logging.CRITICAL,
}


class ErrorHandler:
    """
    Centralized error handler for consistent error management.

    Records statistics, logs each error context, and notifies callbacks
    registered for its category.
    """

    def __init__(
        self,
        logger_name: str = "dep_grouper.errors",
        log_level: int = logging.WARNING,
        enable_callbacks: bool = True,
    ):
        """
        Initialize error handler.

        Args:
            logger_name: Name for the logger
            log_level: Logging level
            enable_callbacks: Whether to enable error callbacks
        """
        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(log_level)

        self.enable_callbacks = enable_callbacks
        self.error_callbacks: Dict[ErrorCategory, List[ErrorCallback]] = {}
        self.global_callbacks: List[ErrorCallback] = []
        self.error_stats: Dict[str, int] = {}

    def register_callback(
        self, callback: ErrorCallback, category: Optional[ErrorCategory] = None
    ):
        """
        Register error callback.

        Args:
            callback: Function to call on errors
            category: Error category to filter, None for all errors
        """
        if not self.enable_callbacks:
            return

        if category is None:
            self.global_callbacks.append(callback)
        else:
            self.error_callbacks.setdefault(category, []).append(callback)

    def handle_error(
        self,
        level: ErrorLevel,
        category: ErrorCategory,
        message: str,
        module: str,
        function: str,
        exception: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ) -> ErrorContext:
        """Handle an error with structured logging and callbacks."""
        context = ErrorContext(
            level=level,
            category=category,
            message=message,
            module=module,
            function=function,
            details=details or {},
            exception=exception,
            traceback_info=(
                "".join(traceback.format_exception_only(type(exception), exception))
                if exception
                else None
            ),
            suggestions=suggestions or [],
        )

        stat_key = f"{category.value}_{level.value}"
        self.error_stats[stat_key] = self.error_stats.get(stat_key, 0) + 1

        log_data = {
            "category": category.value,
            "module": module,
            "function": function,
            "details": context.details,
        }
        if context.suggestions:
            log_data["suggestions"] = context.suggestions
        self.logger.log(_LEVEL_MAP[level], f"{message} | {log_data}")

        if self.enable_callbacks:
            for callback in self.error_callbacks.get(category, []):
                try:
                    callback(context)
                except Exception as cb_error:
                    # Don't let callback errors break the main flow
                    self.logger.error(f"Error in callback: {cb_error}")

            for callback in self.global_callbacks:
                try:
                    callback(context)
                except Exception as cb_error:
                    self.logger.error(f"Error in global callback: {cb_error}")

        return context

    def error(
        self, category: ErrorCategory, message: str, module: str, function: str, **kwargs
    ) -> ErrorContext:
        """Handle error level error."""
        return self.handle_error(
            ErrorLevel.ERROR, category, message, module, function, **kwargs
        )

    def get_error_stats(self) -> Dict[str, int]:
        """Get error statistics."""
        return self.error_stats.copy()

    def reset_stats(self):
        """Reset error statistics."""
        self.error_stats.clear()


# Global error handler instance
_global_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """
    Get the global error handler instance.

    Returns:
        ErrorHandler: Global error handler
    """
    global _global_error_handler
    if _global_error_handler is None:
        _global_error_handler = ErrorHandler()
    return _global_error_handler


def setup_error_handling(
    log_level: int = logging.WARNING,
    enable_callbacks: bool = True,
    logger_name: str = "dep_grouper.errors",
) -> ErrorHandler:
    """
    Setup global error handling configuration.

    Args:
        log_level: Logging level
        enable_callbacks: Whether to enable callbacks
        logger_name: Logger name

    Returns:
        ErrorHandler: Configured error handler
    """
    global _global_error_handler
    _global_error_handler = ErrorHandler(logger_name, log_level, enable_callbacks)
    return _global_error_handler


def log_configuration_error(
    error: ConfigurationError,
    module: str,
    function: str,
    group_name: Optional[str] = None,
) -> ConfigurationError:
    """
    Record a configuration error before it is raised.

    Args:
        error: The error about to be raised
        module: Module name
        function: Function name
        group_name: Group the error relates to, if any

    Returns:
        ConfigurationError: The same error, so callers can ``raise`` the result
    """
    details = {}
    if group_name is not None:
        details["group_name"] = group_name

    get_error_handler().error(
        ErrorCategory.CONFIGURATION,
        str(error),
        module,
        function,
        details=details,
        exception=error,
        suggestions=[
            "Check the dependency group definitions",
            "Make sure each group has a unique name",
        ],
    )
    return error
