"""
Error handling for go-mod-what.

Defines the exception taxonomy raised by the resolver, loader and parser,
plus a central handler that logs reported errors and dispatches callbacks.
"""

import logging
import re
import traceback
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .structured_logging import StderrHandler


class ErrorLevel(Enum):
    """Error severity levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorCategory(Enum):
    """Error categories for better classification."""

    USAGE = "USAGE"
    FILESYSTEM = "FILESYSTEM"
    PARSING = "PARSING"


class GoModWhatError(Exception):
    """
    Base class for errors that terminate a query.

    The string form is ``message`` or ``message: cause`` so it can be
    written to stderr as-is.
    """

    category = ErrorCategory.USAGE
    show_usage = False

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message}: {self.cause}"


class UsageError(GoModWhatError):
    """Invalid command-line arguments."""

    category = ErrorCategory.USAGE
    show_usage = True


class ManifestPathError(GoModWhatError):
    """The manifest path could not be resolved to a go.mod file."""

    category = ErrorCategory.FILESYSTEM


class ManifestReadError(GoModWhatError):
    """The manifest file could not be read."""

    category = ErrorCategory.FILESYSTEM


class ManifestParseError(GoModWhatError):
    """The manifest file is not valid go.mod syntax."""

    category = ErrorCategory.PARSING


@dataclass
class ErrorContext:
    """Structured error context information."""

    level: ErrorLevel
    category: ErrorCategory
    message: str
    module: str
    function: str
    details: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[BaseException] = None
    traceback_info: Optional[str] = None
    suggestions: List[str] = field(default_factory=list)


class SecureLogger:
    """Logger that masks credentials embedded in proxy or VCS URLs."""

    _sensitive_patterns = [
        (re.compile(r"(https?://[^@\s/]+:)[^@\s]+@", re.IGNORECASE), r"\1[REDACTED]@"),
        (
            re.compile(r'token["\s]*[:=]["\s]*([a-zA-Z0-9_\-+=/.]{8,})', re.IGNORECASE),
            'token="[REDACTED]"',
        ),
        (re.compile(r'password["\s]*[:=]["\s]*([^\s"\']+)', re.IGNORECASE), 'password="[REDACTED]"'),
    ]

    def __init__(self, name: str, level: int = logging.WARNING):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        if not self.logger.handlers:
            handler = StderrHandler()
            handler.setFormatter(
                logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )
            self.logger.addHandler(handler)

    def _sanitize_message(self, message: str) -> str:
        sanitized = message
        for pattern, replacement in self._sensitive_patterns:
            sanitized = pattern.sub(replacement, sanitized)
        return sanitized

    def log_error_context(self, context: ErrorContext) -> None:
        """
        Log error context with appropriate level.

        Args:
            context: Error context to log
        """
        log_data: Dict[str, Any] = {
            "category": context.category.value,
            "module": context.module,
            "function": context.function,
            "details": {
                key: self._sanitize_message(value) if isinstance(value, str) else value
                for key, value in context.details.items()
            },
        }

        if context.exception:
            log_data["exception"] = type(context.exception).__name__

        if context.suggestions:
            log_data["suggestions"] = context.suggestions

        level = getattr(logging, context.level.value)
        self.logger.log(level, f"{self._sanitize_message(context.message)} | {log_data}")


ErrorCallback = Callable[[ErrorContext], None]


class ErrorHandler:
    """
    Centralized error handler.

    Keeps per-category statistics, logs every reported error and notifies
    registered callbacks.
    """

    def __init__(
        self,
        logger_name: str = "go_mod_what",
        log_level: int = logging.WARNING,
        enable_callbacks: bool = True,
    ):
        self.logger = SecureLogger(logger_name, log_level)
        self.enable_callbacks = enable_callbacks
        self.error_callbacks: Dict[ErrorCategory, List[ErrorCallback]] = {}
        self.global_callbacks: List[ErrorCallback] = []
        self.error_stats: Dict[str, int] = {}

    def register_callback(
        self, callback: ErrorCallback, category: Optional[ErrorCategory] = None
    ) -> None:
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
        exception: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ) -> ErrorContext:
        """
        Handle an error with structured logging and callbacks.

        Returns:
            ErrorContext: The created error context
        """
        context = ErrorContext(
            level=level,
            category=category,
            message=message,
            module=module,
            function=function,
            details=details or {},
            exception=exception,
            traceback_info=traceback.format_exc() if exception else None,
            suggestions=suggestions or [],
        )

        stat_key = f"{category.value}_{level.value}"
        self.error_stats[stat_key] = self.error_stats.get(stat_key, 0) + 1

        self.logger.log_error_context(context)

        if self.enable_callbacks:
            callbacks = self.error_callbacks.get(category, []) + self.global_callbacks
            for callback in callbacks:
                try:
                    callback(context)
                except Exception as cb_error:
                    # Callback failures must not mask the original error
                    self.logger.logger.error(f"Error in callback: {cb_error}")

        return context

    def report(self, exc: GoModWhatError, module: str, function: str) -> ErrorContext:
        """
        Record a terminal query error under its own category.

        The user-facing message is printed by the caller, so the log entry
        is emitted at INFO and only shows up with a verbose log level.
        """
        details: Dict[str, Any] = {}
        line_number = getattr(exc.cause, "line", None)
        if line_number is not None:
            details["line_number"] = line_number
        file_name = getattr(exc.cause, "filename", None)
        if file_name:
            details["file_path"] = Path(file_name).name

        suggestions = []
        if exc.category == ErrorCategory.PARSING:
            suggestions.append("Run `go mod tidy` to normalise the manifest")
        elif exc.category == ErrorCategory.FILESYSTEM:
            suggestions.append("Point -modfile at a go.mod file or its directory")

        return self.handle_error(
            ErrorLevel.INFO,
            exc.category,
            exc.message,
            module,
            function,
            exception=exc.cause or exc,
            details=details,
            suggestions=suggestions,
        )

    def get_error_stats(self) -> Dict[str, int]:
        """Get error statistics."""
        return self.error_stats.copy()


_global_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """Get the global error handler instance."""
    global _global_error_handler
    if _global_error_handler is None:
        _global_error_handler = ErrorHandler()
    return _global_error_handler


def setup_error_handling(
    log_level: int = logging.WARNING,
    enable_callbacks: bool = True,
    logger_name: str = "go_mod_what",
) -> ErrorHandler:
    """
    Setup global error handling configuration.

    Returns:
        ErrorHandler: Configured error handler
    """
    global _global_error_handler
    _global_error_handler = ErrorHandler(logger_name, log_level, enable_callbacks)
    return _global_error_handler

