"""
Logging Configuration.

This module configures loguru for the plugvisor library and CLI.

Environment variables:
    PLUGVISOR_LOG_LEVEL: Log level (TRACE/DEBUG/INFO/WARNING/ERROR/CRITICAL)
    PLUGVISOR_LOG_FILE: Optional log file path (rotated by size)
    PLUGVISOR_LOG_MAX_SIZE: Rotation size for the log file (default "10 MB")
    PLUGVISOR_LOG_RETENTION: Retention for rotated files (default "7 days")

Usage:
    from plugvisor.logging_config import get_logger, setup_logging

    setup_logging()
    logger = get_logger("generator")
    logger.info("Wrote {}", path)
"""

import os
import sys
from enum import Enum
from pathlib import Path
from typing import Any

from loguru import logger as _loguru_logger


class LogLevel(str, Enum):
    """Log level enumeration."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


FORMAT_CONSOLE = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[component]: <12}</cyan> | "
    "<level>{message}</level>"
)
FORMAT_FILE = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{extra[component]: <12} | {message}"
)

_DEFAULT_COMPONENT = "plugvisor"


def _formatter(template: str) -> Any:
    """Sink format function that fills in a component for records logged without bind()."""

    def format_record(record: dict[str, Any]) -> str:
        record["extra"].setdefault("component", _DEFAULT_COMPONENT)
        # Callable formats must supply the exception trailer themselves
        return template + "\n{exception}"

    return format_record


def _resolve_level(level: str | LogLevel | None) -> LogLevel:
    """Resolve the effective level, falling back to PLUGVISOR_LOG_LEVEL then INFO."""
    if level is None:
        level = os.getenv("PLUGVISOR_LOG_LEVEL", "INFO")
    if isinstance(level, LogLevel):
        return level
    try:
        return LogLevel(str(level).upper())
    except ValueError:
        return LogLevel.INFO


def setup_logging(
    level: str | LogLevel | None = None,
    log_file: Path | str | None = None,
) -> None:
    """
    Replace loguru's default sink with the plugvisor sinks.

    Args:
        level: Log level (default: PLUGVISOR_LOG_LEVEL or INFO)
        log_file: Optional file sink (default: PLUGVISOR_LOG_FILE)
    """
    effective = _resolve_level(level)

    _loguru_logger.remove()
    _loguru_logger.add(
        sys.stderr,
        level=effective.value,
        format=_formatter(FORMAT_CONSOLE),
        colorize=None,
    )

    if log_file is None:
        log_file = os.getenv("PLUGVISOR_LOG_FILE") or None

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        _loguru_logger.add(
            str(path),
            level=effective.value,
            format=_formatter(FORMAT_FILE),
            rotation=os.getenv("PLUGVISOR_LOG_MAX_SIZE", "10 MB"),
            retention=os.getenv("PLUGVISOR_LOG_RETENTION", "7 days"),
            encoding="utf-8",
            enqueue=True,
        )


def get_logger(component: str) -> Any:
    """Return a loguru logger bound to a component name."""
    return _loguru_logger.bind(component=component)
