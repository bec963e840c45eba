"""Client-side request pacing with per-endpoint sliding windows.

This only delays outgoing requests so they stay under the published quotas.
Server-side throttling still surfaces as ``ValrRateLimitError``; nothing here
retries a request.
"""
import asyncio
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .constants import RATE_LIMITS


@dataclass
class RateLimitQuota:
    """Per-endpoint rate-limit quota."""
    requests_per_window: int  # max requests allowed in the window
    window_seconds: float     # time window in seconds


@dataclass
class RateLimitState:
    """Track request history for a single endpoint."""
    quota: RateLimitQuota
    request_times: List[float] = field(default_factory=list)

    def _prune(self, now: float) -> None:
        cutoff = now - self.quota.window_seconds
        self.request_times = [t for t in self.request_times if t > cutoff]

    def is_allowed(self) -> bool:
        """Check if a new request is allowed under the quota."""
        self._prune(time.time())
        return len(self.request_times) < self.quota.requests_per_window

    def record_request(self) -> None:
        self.request_times.append(time.time())

    def time_until_allowed(self) -> float:
        """Return seconds until next request is allowed. 0 if allowed now."""
        if self.is_allowed():
            return 0.0
        oldest = min(self.request_times)
        return max(0.0, oldest + self.quota.window_seconds - time.time())


def default_quotas() -> Dict[str, RateLimitQuota]:
    """Quotas derived from the published VALR limits."""
    quotas = {
        path: RateLimitQuota(requests_per_window=per_second, window_seconds=1)
        for path, per_second in RATE_LIMITS["endpoints"].items()
    }
    quotas["default"] = RateLimitQuota(requests_per_window=RATE_LIMITS["per_key_per_minute"], window_seconds=60)
    return quotas


class RateLimitManager:
    """Enforce rate-limit quotas per endpoint.

    Endpoints are keyed by path without the query string; anything without a
    dedicated quota shares the ``default`` window. Custom quotas that omit
    ``default`` fall back to the published per-key limit for it.
    """

    def __init__(self, quotas: Optional[Dict[str, RateLimitQuota]] = None):
        self.quotas = dict(quotas) if quotas else default_quotas()
        if "default" not in self.quotas:
            self.quotas["default"] = default_quotas()["default"]
        self.states: Dict[str, RateLimitState] = {}

    @staticmethod
    def endpoint_key(path: str) -> str:
        return path.split("?", 1)[0]

    def _get_state(self, endpoint: str) -> RateLimitState:
        key = self.endpoint_key(endpoint)
        if key not in self.quotas:
            key = "default"
        if key not in self.states:
            self.states[key] = RateLimitState(quota=self.quotas[key])
        return self.states[key]

    def is_allowed(self, endpoint: str) -> bool:
        return self._get_state(endpoint).is_allowed()

    def record_request(self, endpoint: str) -> None:
        self._get_state(endpoint).record_request()

    def time_until_allowed(self, endpoint: str) -> float:
        return self._get_state(endpoint).time_until_allowed()

    def wait_if_needed(self, endpoint: str, max_wait: float = 60.0) -> bool:
        """Block until a request is allowed; return False if max_wait would be exceeded.

        Args:
            endpoint: API request path
            max_wait: Maximum time to wait in seconds

        Returns:
            True if allowed (and recorded), False on timeout
        """
        start = time.time()
        while not self.is_allowed(endpoint):
            wait_time = self.time_until_allowed(endpoint)
            elapsed = time.time() - start
            if elapsed + wait_time > max_wait:
                return False
            time.sleep(wait_time)

        self.record_request(endpoint)
        return True

    async def wait_if_needed_async(self, endpoint: str, max_wait: float = 60.0) -> bool:
        """Non-blocking variant of ``wait_if_needed`` for the asyncio transport."""
        start = time.time()
        while not self.is_allowed(endpoint):
            wait_time = self.time_until_allowed(endpoint)
            elapsed = time.time() - start
            if elapsed + wait_time > max_wait:
                return False
            await asyncio.sleep(wait_time)

        self.record_request(endpoint)
        return True
