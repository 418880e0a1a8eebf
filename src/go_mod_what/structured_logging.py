"""
Structured logging configuration for go-mod-what.

Emits machine-readable JSON events on stderr so that stdout stays reserved
for lookup results.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_RESERVED_ATTRS = {
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
    "exc_info",
    "exc_text",
    "stack_info",
    "message",
}


class StderrHandler(logging.StreamHandler):
    """Stream handler that writes to whatever sys.stderr is at emit time."""

    def __init__(self):
        super().__init__(sys.stderr)

    @property
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value):
        pass


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class EventLogger:
    """Structured logger for query events."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(f"go_mod_what.{name}")
        self.context: Dict[str, Any] = {}
        self._setup_logger()

    def _setup_logger(self) -> None:
        if not self.logger.handlers:
            handler = StderrHandler()
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.WARNING)
            self.logger.propagate = False

    def set_context(self, **kwargs) -> None:
        """Attach fields to every subsequent event."""
        self.context = {k: v for k, v in kwargs.items() if v is not None}

    def clear_context(self) -> None:
        self.context.clear()

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        if self.logger.isEnabledFor(level):
            self.logger.log(
                level, event_type, extra={"event_type": event_type, **self.context, **kwargs}
            )

    def info(self, event_type: str, **kwargs) -> None:
        self._log(logging.INFO, event_type, **kwargs)

    def debug(self, event_type: str, **kwargs) -> None:
        self._log(logging.DEBUG, event_type, **kwargs)


_query_logger = EventLogger("query")
_loader_logger = EventLogger("loader")


def get_query_logger() -> EventLogger:
    """Get the lookup events logger."""
    return _query_logger


def get_loader_logger() -> EventLogger:
    """Get the manifest loading logger."""
    return _loader_logger


def log_query_start(modfile: str, patterns: list) -> None:
    """Log query start event."""
    logger = get_query_logger()
    logger.set_context(modfile=modfile)
    logger.info("query_started", patterns=list(patterns), pattern_count=len(patterns))


def log_manifest_loaded(
    modfile: str, requirement_count: int, module: Optional[str] = None
) -> None:
    """Log a successfully parsed manifest."""
    get_loader_logger().info(
        "manifest_loaded",
        modfile=modfile,
        module_path=module,
        requirement_count=requirement_count,
    )


def log_pattern_not_found(pattern: str) -> None:
    get_query_logger().debug("pattern_not_found", pattern=pattern)


def log_query_complete(match_count: int, missing_count: int, duration_ms: int) -> None:
    """Log query completion event."""
    logger = get_query_logger()
    logger.info(
        "query_completed",
        match_count=match_count,
        missing_count=missing_count,
        duration_ms=duration_ms,
    )
    logger.clear_context()


def configure_logging(
    log_level: str = "WARNING",
    enable_json: bool = True,
    log_format: Optional[str] = None,
) -> None:
    """Configure logging for the application."""
    level = getattr(logging, log_level.upper(), logging.WARNING)

    formatter: logging.Formatter
    if enable_json:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(log_format)

    for event_logger in [_query_logger, _loader_logger]:
        event_logger.logger.setLevel(level)
        for handler in event_logger.logger.handlers:
            handler.setFormatter(formatter)

    logging.getLogger("go_mod_what").setLevel(level)
