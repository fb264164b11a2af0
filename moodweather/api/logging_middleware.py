"""
FastAPI request logging for moodweather.

Every request gets an id bound into the structlog context, so log lines
emitted by the pipeline while serving it carry the same `request_id`.
Slow requests are reported at warning level.
"""

import time
import uuid
from typing import Callable, Iterable, Optional

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..utils.logging_config import set_request_context

logger = structlog.get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs request start, completion and failure with timing.

    Request headers are never logged; they carry the listener's bearer token.
    """

    def __init__(
        self,
        app,
        exclude_paths: Optional[Iterable[str]] = None,
        slow_request_threshold: float = 5.0
    ):
        super().__init__(app)
        self.exclude_paths = set(exclude_paths or ("/health", "/docs", "/openapi.json"))
        self.slow_request_threshold = slow_request_threshold
        self.logger = logger.bind(component="RequestLoggingMiddleware")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        set_request_context(request_id=request_id)

        start_time = time.perf_counter()
        self.logger.info(
            "Request started",
            method=request.method,
            path=request.url.path,
            client_ip=self._client_ip(request)
        )

        try:
            response = await call_next(request)
        except Exception as e:
            self.logger.error(
                "Request failed",
                method=request.method,
                path=request.url.path,
                error_type=type(e).__name__,
                error=str(e),
                duration_seconds=round(time.perf_counter() - start_time, 4)
            )
            raise

        duration = time.perf_counter() - start_time
        slow = duration > self.slow_request_threshold
        log = self.logger.warning if slow else self.logger.info
        log(
            "Slow request" if slow else "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_seconds=round(duration, 4)
        )

        response.headers["X-Request-ID"] = request_id
        return response

    @staticmethod
    def _client_ip(request: Request) -> str:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        return request.client.host if request.client else "unknown"
