"""
Structured logging configuration for cartfile-tools.

Emits one JSON object per event so manifest loading can be traced by
machines. Records go to stderr; stdout is reserved for rendered manifests.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional


_RESERVED_RECORD_KEYS = frozenset(
    [
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
        "getMessage",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
    ]
)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


class ManifestLogger:
    """Event logger for manifest processing."""

    def __init__(self, name: str = "cartfile_tools"):
        self.logger = logging.getLogger(name)
        self._setup_logger()

    def _setup_logger(self) -> None:
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.WARNING)
            self.logger.propagate = False

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        # Context travels with each event; loads may run on several threads.
        self.logger.log(level, event_type, extra={"event_type": event_type, **kwargs})

    def info(self, event_type: str, **kwargs) -> None:
        self._log(logging.INFO, event_type, **kwargs)

    def debug(self, event_type: str, **kwargs) -> None:
        self._log(logging.DEBUG, event_type, **kwargs)


_loader_logger = ManifestLogger("cartfile_tools.loader")
_cli_logger = ManifestLogger("cartfile_tools.cli")


def get_loader_logger() -> ManifestLogger:
    """Get manifest loading logger."""
    return _loader_logger


def get_cli_logger() -> ManifestLogger:
    return _cli_logger


def log_parse_start(file_path: str, manifest_format: str) -> None:
    get_loader_logger().debug(
        "manifest_parse_started", file_path=file_path, format=manifest_format
    )


def log_parse_complete(
    file_path: str, manifest_format: str, entry_count: int, duration_ms: float
) -> None:
    get_loader_logger().info(
        "manifest_parse_completed",
        file_path=file_path,
        format=manifest_format,
        entry_count=entry_count,
        duration_ms=round(duration_ms, 3),
    )


def log_parse_failed(file_path: str, manifest_format: str, error: Exception) -> None:
    get_loader_logger().debug(
        "manifest_parse_failed",
        file_path=file_path,
        format=manifest_format,
        error_type=type(error).__name__,
        error_message=str(error),
    )


def configure_logging(
    log_level: str = "WARNING", structured: bool = True, log_format: Optional[str] = None
) -> None:
    """
    Configure every cartfile-tools event logger.

    Args:
        log_level: Name of the logging level
        structured: Emit JSON records; otherwise use ``log_format``
        log_format: Format string for plain-text records
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)
    formatter = StructuredFormatter() if structured else logging.Formatter(log_format)
    for logger in [_loader_logger, _cli_logger]:
        logger.logger.setLevel(level)
        for handler in logger.logger.handlers:
            handler.setFormatter(formatter)
