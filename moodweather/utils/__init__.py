"""Shared utilities."""

from .logging_config import (
    MoodWeatherLogger,
    get_logger,
    log_performance,
    set_request_context,
    setup_logging,
)

__all__ = [
    "MoodWeatherLogger",
    "get_logger",
    "log_performance",
    "set_request_context",
    "setup_logging",
]
