"""
moodweather Logging Configuration

structlog is routed through stdlib logging so that library records and
pipeline events share the same handlers:

- moodweather.log: every event at the configured level, JSON lines
- errors.log: ERROR and above, JSON lines
- stdout: coloured key=value rendering for development

Request handlers bind a request id with set_request_context(); every event
emitted while serving that request carries it.
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars

MAIN_LOG = "moodweather.log"
ERROR_LOG = "errors.log"

# Event keys whose values must never reach a log sink
SECRET_KEYS = frozenset({"access_token", "authorization", "client_secret", "token"})

QUIET_LOGGERS = ("aiohttp", "aiohttp.access", "httpx", "uvicorn.access", "urllib3")


def redact_secrets(logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """structlog processor masking credential-bearing keys."""
    for key in SECRET_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = "***"
    return event_dict


class MoodWeatherLogger:
    """
    Owns the root logger's handlers for the process.

    Constructing an instance replaces any handlers installed before it, so
    calling setup_logging() twice (tests, reloads) does not duplicate output.
    """

    def __init__(
        self,
        log_dir: str = "logs",
        log_level: str = "INFO",
        enable_console: bool = True,
        enable_files: bool = True,
        max_file_size: int = 10 * 1024 * 1024,
        backup_count: int = 5
    ):
        """
        Args:
            log_dir: Directory for the rotating log files
            log_level: Level name for the root logger
            enable_console: Attach the coloured stdout handler
            enable_files: Attach the rotating file handlers
            max_file_size: Bytes per file before rotation
            backup_count: Rotated files kept per log
        """
        self.log_dir = Path(log_dir)
        self.level = logging.getLevelName(log_level.upper())
        if not isinstance(self.level, int):
            self.level = logging.INFO
        self.max_file_size = max_file_size
        self.backup_count = backup_count

        handlers: List[logging.Handler] = []
        if enable_files:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            handlers.append(self._file_handler(MAIN_LOG, self.level))
            handlers.append(self._file_handler(ERROR_LOG, logging.ERROR))
        if enable_console:
            handlers.append(self._console_handler())

        self._install(handlers)

    def _install(self, handlers: List[logging.Handler]) -> None:
        pre_chain = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ]
        structlog.configure(
            processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        root = logging.getLogger()
        root.handlers.clear()
        for handler in handlers:
            root.addHandler(handler)
        root.setLevel(self.level)

        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    def _file_handler(self, filename: str, level: int) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            self.log_dir / filename,
            maxBytes=self.max_file_size,
            backupCount=self.backup_count,
            encoding="utf-8"
        )
        handler.setLevel(level)
        handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=structlog.processors.JSONRenderer()))
        return handler

    def _console_handler(self) -> logging.Handler:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(self.level)
        handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=structlog.dev.ConsoleRenderer(colors=True)))
        return handler

    def bind_request(self, request_id: str, user_id: Optional[str] = None) -> None:
        clear_contextvars()
        bind_contextvars(
            request_id=request_id,
            user_id=user_id,
            started_at=datetime.now(timezone.utc).isoformat()
        )

    def performance(self, operation: str, duration: float, **context) -> None:
        structlog.get_logger("moodweather.performance").info(
            "Operation timed",
            operation=operation,
            duration_seconds=round(duration, 4),
            **context
        )


_logger_instance: Optional[MoodWeatherLogger] = None


def setup_logging(
    log_dir: str = "logs",
    log_level: str = "INFO",
    enable_console: bool = True,
    **kwargs
) -> MoodWeatherLogger:
    """
    Configure process-wide logging and return the active configuration.

    Extra keyword arguments are passed to MoodWeatherLogger.
    """
    global _logger_instance
    _logger_instance = MoodWeatherLogger(log_dir=log_dir, log_level=log_level, enable_console=enable_console, **kwargs)
    return _logger_instance


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def log_performance(operation: str, duration: float, **context) -> None:
    """Record a timing; a no-op until setup_logging() has run."""
    if _logger_instance:
        _logger_instance.performance(operation, duration, **context)


def set_request_context(request_id: str, user_id: Optional[str] = None) -> None:
    """Bind the request id for the current task; a no-op before setup_logging()."""
    if _logger_instance:
        _logger_instance.bind_request(request_id, user_id)
