"""
Unified Rate Limiter

Outgoing-call throttle shared by every catalog client built for the same
rate. A token bucket smooths per-second bursts; optional minute and hour
windows cap sustained volume.
"""

import asyncio
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

import structlog

logger = structlog.get_logger(__name__)

# Calls older than this are never needed for window checks or usage stats
MIN_HISTORY_SECONDS = 60


class UnifiedRateLimiter:
    """Token bucket plus sliding-window limiter with an injectable clock."""

    def __init__(
        self,
        calls_per_second: Optional[float] = None,
        calls_per_minute: Optional[int] = None,
        calls_per_hour: Optional[int] = None,
        burst_size: Optional[int] = None,
        service_name: str = "api",
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Args:
            calls_per_second: Bucket refill rate; None disables the bucket
            calls_per_minute: Cap on calls in any 60 second span
            calls_per_hour: Cap on calls in any 3600 second span
            burst_size: Bucket capacity, twice the per-second rate by default
            service_name: Label used in log events
            clock: Monotonic time source
        """
        self.calls_per_second = calls_per_second
        self.calls_per_minute = calls_per_minute
        self.calls_per_hour = calls_per_hour
        self.service_name = service_name
        self._clock = clock

        self.windows: List[Tuple[int, int]] = [
            (span, limit) for span, limit in ((60, calls_per_minute), (3600, calls_per_hour)) if limit
        ]
        self._history_span = max([MIN_HISTORY_SECONDS] + [span for span, _ in self.windows])

        self.burst_size = (burst_size or max(int(calls_per_second * 2), 1)) if calls_per_second else None
        self.tokens = float(self.burst_size or 0)
        self.last_refill = self._clock()

        self.request_times: Deque[float] = deque()
        self.lock = asyncio.Lock()
        self.logger = logger.bind(component="RateLimiter", service=service_name)

    @classmethod
    def for_spotify(cls, calls_per_second: float = 10.0) -> "UnifiedRateLimiter":
        """Limiter for the Spotify Web API, which throttles on a rolling 30 second window."""
        return cls(calls_per_second=calls_per_second, service_name="Spotify")

    async def wait_if_needed(self) -> None:
        """Block until one more call is allowed, then record it."""
        async with self.lock:
            now = self._clock()
            self._forget_older_than(now - self._history_span)

            delay = max([self._bucket_delay(now)] + [self._window_delay(now, span, limit) for span, limit in self.windows])
            if delay > 0:
                self.logger.debug("Throttling outgoing call", delay=round(delay, 3), recent=len(self.request_times))
                await asyncio.sleep(delay)
                now = self._clock()
                self._refill(now)

            self.request_times.append(now)
            if self.burst_size:
                self.tokens = max(0.0, self.tokens - 1)

    def _refill(self, now: float) -> None:
        if self.burst_size:
            self.tokens = min(float(self.burst_size), self.tokens + (now - self.last_refill) * self.calls_per_second)
        self.last_refill = now

    def _bucket_delay(self, now: float) -> float:
        if not self.burst_size:
            return 0.0
        self._refill(now)
        return 0.0 if self.tokens >= 1 else (1.0 - self.tokens) / self.calls_per_second

    def _window_delay(self, now: float, span: int, limit: int) -> float:
        inside = [t for t in self.request_times if t > now - span]
        if len(inside) < limit:
            return 0.0
        return max(0.0, span - (now - inside[0]))

    def _forget_older_than(self, cutoff: float) -> None:
        while self.request_times and self.request_times[0] < cutoff:
            self.request_times.popleft()

    def get_current_usage(self) -> Dict[str, Any]:
        now = self._clock()
        usage: Dict[str, Any] = {
            "total_requests_tracked": len(self.request_times),
            "requests_last_minute": sum(1 for t in self.request_times if t > now - 60),
        }
        if self.burst_size:
            usage["tokens_available"] = round(self.tokens, 3)
            usage["burst_capacity"] = self.burst_size
        return usage

    def reset(self) -> None:
        """Forget call history and refill the bucket."""
        self.request_times.clear()
        self.tokens = float(self.burst_size or 0)
        self.last_refill = self._clock()
